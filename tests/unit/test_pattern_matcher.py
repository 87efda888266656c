"""
Unit tests for the Boyer-Moore pattern matcher.

Tests skip table construction, match offsets against a naive scan,
case sensitivity and line-level matching.
"""

import random

import pytest

from filefinder.tools.pattern_matcher import BoyerMooreMatcher, LineMatch, fold_case


def naive_find_all(pattern: str, text: str) -> list:
    """Reference scan: leftmost non-overlapping occurrences."""
    positions = []
    start = 0
    while True:
        index = text.find(pattern, start)
        if index == -1:
            return positions
        positions.append(index)
        start = index + len(pattern)


class TestSkipTable:
    """Test cases for the bad-character skip table."""

    def test_distances_from_end(self):
        matcher = BoyerMooreMatcher("abcd", case_sensitive=True)
        assert matcher.get_skip("a") == 3
        assert matcher.get_skip("b") == 2
        assert matcher.get_skip("c") == 1

    def test_unseen_character_shifts_full_length(self):
        matcher = BoyerMooreMatcher("abcd", case_sensitive=True)
        assert matcher.get_skip("z") == 4

    def test_repeated_character_uses_rightmost_occurrence(self):
        matcher = BoyerMooreMatcher("abab", case_sensitive=True)
        assert matcher.get_skip("a") == 1
        assert matcher.get_skip("b") == 2


class TestFindAll:
    """Test cases for find_all."""

    def test_single_match(self):
        matcher = BoyerMooreMatcher("flag", case_sensitive=True)
        assert matcher.find_all("the flag is here") == [4]

    def test_multiple_matches(self):
        matcher = BoyerMooreMatcher("ab", case_sensitive=True)
        assert matcher.find_all("ab ab xab") == [0, 3, 7]

    def test_matches_do_not_overlap(self):
        matcher = BoyerMooreMatcher("aa", case_sensitive=True)
        assert matcher.find_all("aaaa") == [0, 2]
        assert matcher.find_all("aaa") == [0]

    def test_empty_pattern(self):
        matcher = BoyerMooreMatcher("", case_sensitive=True)
        assert matcher.find_all("anything") == []

    def test_pattern_longer_than_text(self):
        matcher = BoyerMooreMatcher("longer pattern", case_sensitive=True)
        assert matcher.find_all("short") == []

    def test_no_match(self):
        matcher = BoyerMooreMatcher("xyz", case_sensitive=True)
        assert matcher.find_all("abcdefg") == []

    def test_multibyte_characters_compared_whole(self):
        """Offsets are code-point indices, not byte offsets."""
        matcher = BoyerMooreMatcher("错误", case_sensitive=True)
        assert matcher.find_all("配置错误: 错误") == [2, 6]

    def test_input_not_mutated(self):
        text = "Mixed CASE Text"
        matcher = BoyerMooreMatcher("case")
        matcher.find_all(text)
        assert text == "Mixed CASE Text"

    @pytest.mark.parametrize("seed", range(5))
    def test_equivalent_to_naive_scan(self, seed):
        """Random patterns over a small alphabet agree with the reference scan."""
        rng = random.Random(seed)
        for _ in range(200):
            text = "".join(rng.choice("abc") for _ in range(rng.randint(0, 60)))
            pattern = "".join(rng.choice("abc") for _ in range(rng.randint(1, 6)))
            matcher = BoyerMooreMatcher(pattern, case_sensitive=True)
            assert matcher.find_all(text) == naive_find_all(pattern, text), (pattern, text)


class TestCaseSensitivity:
    """Test cases for case handling."""

    def test_case_insensitive_matches_any_case(self):
        matcher = BoyerMooreMatcher("Error", case_sensitive=False)
        assert matcher.find_all("error ERROR ErRoR") == [0, 6, 12]

    def test_case_sensitive_matches_exact_case_only(self):
        matcher = BoyerMooreMatcher("ERROR", case_sensitive=True)
        assert matcher.find_all("error ERROR ErRoR") == [6]

    def test_insensitive_is_default(self):
        assert BoyerMooreMatcher("abc").case_sensitive is False

    def test_pattern_lowered_once(self):
        matcher = BoyerMooreMatcher("MiXeD", case_sensitive=False)
        assert matcher.pattern == "mixed"

    def test_offsets_index_original_text(self):
        """Characters that lower-case to two code points do not shift later offsets."""
        text = "İstanbul: x marks İ"
        positions = BoyerMooreMatcher("x").find_all(text)

        assert positions == [10]
        assert text[positions[0]] == "x"

    def test_fold_case_keeps_length(self):
        assert fold_case("İx") == "ix"
        assert fold_case("ABC") == "abc"
        assert len(fold_case("ẞİǅ")) == 3


class TestFindInLines:
    """Test cases for line-level matching."""

    def test_line_numbers_are_one_based(self):
        matcher = BoyerMooreMatcher("ERROR", case_sensitive=True)
        matches = matcher.find_in_lines(["ok", "ERROR: bad", "ok"])

        assert len(matches) == 1
        assert matches[0].line_number == 2
        assert matches[0].positions == [0]
        assert matches[0].count == 1
        assert matches[0].line == "ERROR: bad"

    def test_lines_without_matches_are_omitted(self):
        matcher = BoyerMooreMatcher("x")
        matches = matcher.find_in_lines(["x", "", "y", "xx x"])

        assert [m.line_number for m in matches] == [1, 4]
        assert matches[1].count == 3

    def test_line_numbers_increase(self):
        matcher = BoyerMooreMatcher("a")
        lines = ["a" if i % 3 == 0 else "b" for i in range(30)]
        numbers = [m.line_number for m in matcher.find_in_lines(lines)]
        assert numbers == sorted(set(numbers))

    def test_empty_input(self):
        assert BoyerMooreMatcher("a").find_in_lines([]) == []

    def test_line_match_count_property(self):
        match = LineMatch(line_number=1, line="aa", positions=[0, 1])
        assert match.count == 2
