"""
Boyer-Moore substring search for content matching.

The matcher compares right to left and uses a bad-character skip table built
once per pattern. Offsets are code-point indices into the caller's text, so
multi-byte characters are compared as whole units.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence


def fold_case(text: str) -> str:
    """
    Lower-case text one code point at a time.

    Characters whose lower-case form is longer than one code point keep only
    the first, so offsets in the result line up with offsets in text.
    """
    folded = text.lower()
    if len(folded) == len(text):
        return folded
    return "".join(char.lower()[0] for char in text)


@dataclass(frozen=True)
class LineMatch:
    """
    Matches found on a single line.

    Attributes:
        line_number: 1-based line number
        line: The original line text
        positions: Offsets of every non-overlapping occurrence
        count: Number of occurrences
    """
    line_number: int
    line: str
    positions: List[int] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.positions)


class BoyerMooreMatcher:
    """
    Substring matcher with a precomputed bad-character skip table.

    The skip table stores, for each character of the pattern except the last,
    its distance from the pattern's end; characters not in the table shift by
    the full pattern length. On a mismatch the window advances by the skip of
    the text character under the pattern's last position (at least 1). After a
    full match the window advances by the pattern length, so matches never
    overlap.
    """

    def __init__(self, pattern: str, case_sensitive: bool = False):
        """
        Initialize the matcher.

        Args:
            pattern: Substring to search for
            case_sensitive: If False, pattern and text are folded with fold_case
        """
        self.case_sensitive = case_sensitive
        self.pattern = pattern if case_sensitive else fold_case(pattern)
        self._skip_table = self._build_skip_table(self.pattern)

    @staticmethod
    def _build_skip_table(pattern: str) -> Dict[str, int]:
        length = len(pattern)
        table = {}
        for index, char in enumerate(pattern[:-1]):
            table[char] = length - index - 1
        return table

    def get_skip(self, char: str) -> int:
        """Get the shift distance for a text character."""
        return self._skip_table.get(char, len(self.pattern))

    def find_all(self, text: str) -> List[int]:
        """
        Find every non-overlapping occurrence of the pattern.

        Args:
            text: Text to search

        Returns:
            Ascending start offsets; empty for an empty pattern or no match
        """
        pattern = self.pattern
        pattern_len = len(pattern)
        if not self.case_sensitive:
            text = fold_case(text)
        text_len = len(text)

        matches: List[int] = []
        if pattern_len == 0 or text_len < pattern_len:
            return matches

        last = pattern_len - 1
        cursor = last
        while cursor < text_len:
            j = last
            k = cursor
            while j >= 0 and text[k] == pattern[j]:
                j -= 1
                k -= 1

            if j < 0:
                matches.append(k + 1)
                cursor += pattern_len
            else:
                cursor += max(1, self.get_skip(text[cursor]))

        return matches

    def find_in_lines(self, lines: Sequence[str]) -> List[LineMatch]:
        """
        Search each line independently.

        Args:
            lines: Lines of a file in order

        Returns:
            One LineMatch per line with at least one occurrence, in line order
        """
        results = []
        for index, line in enumerate(lines):
            positions = self.find_all(line)
            if positions:
                results.append(LineMatch(line_number=index + 1, line=line, positions=positions))
        return results

    def contains(self, text: str) -> bool:
        """Check whether the pattern occurs in text."""
        return bool(self.find_all(text))

    def __repr__(self) -> str:
        return f"BoyerMooreMatcher(pattern={self.pattern!r}, case_sensitive={self.case_sensitive})"
