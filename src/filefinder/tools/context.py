"""
Context extraction around content matches.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from .pattern_matcher import BoyerMooreMatcher, LineMatch


@dataclass(frozen=True)
class ContextMatch:
    """A line match together with its surrounding lines."""
    line_match: LineMatch
    context: List[str]


class ContextExtractor:
    """Builds bounded windows of lines around 1-based match line numbers."""

    def __init__(self, context_lines: int = 2):
        if context_lines < 0:
            raise ValueError("context_lines must be >= 0")
        self.context_lines = context_lines

    def window(self, line_count: int, line_number: int) -> Tuple[int, int]:
        """
        Get the half-open index range of lines around a match.

        Args:
            line_count: Number of lines in the file
            line_number: 1-based line number of the match

        Returns:
            (start, end) indices clipped to [0, line_count)
        """
        index = line_number - 1
        start = max(0, index - self.context_lines)
        end = min(line_count, index + self.context_lines + 1)
        return start, end

    def extract(self, lines: Sequence[str], line_number: int) -> List[str]:
        """Get the context lines for a single match."""
        start, end = self.window(len(lines), line_number)
        return list(lines[start:end])

    def merge(self, lines: Sequence[str], line_numbers: Iterable[int]) -> List[str]:
        """
        Get the union of all match windows in file order.

        Overlapping windows contribute each line once.
        """
        indices = set()
        for line_number in line_numbers:
            start, end = self.window(len(lines), line_number)
            indices.update(range(start, end))
        return [lines[i] for i in sorted(indices)]


class ContextSearch:
    """Couples a matcher with a context extractor."""

    def __init__(self, pattern: str, case_sensitive: bool = False, context_lines: int = 2):
        self.matcher = BoyerMooreMatcher(pattern, case_sensitive)
        self.extractor = ContextExtractor(context_lines)

    def search(self, lines: Sequence[str]) -> List[ContextMatch]:
        """Find all matching lines with their individual context windows."""
        return [
            ContextMatch(line_match=match, context=self.extractor.extract(lines, match.line_number))
            for match in self.matcher.find_in_lines(lines)
        ]
