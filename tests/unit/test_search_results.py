"""
Unit tests for search results data models.

Tests FileRecord snapshots, MatchResult validation and merging, and the
SearchResults container.
"""

import os
import stat
import pytest
from datetime import datetime
from pydantic import ValidationError

from filefinder.models.search_query import SearchQuery
from filefinder.models.search_results import (
    FileRecord,
    MatchResult,
    MatchType,
    SearchResults,
    format_size
)


def make_record(path="/data/logs/app.log", size=2048, mode=stat.S_IFREG | 0o644, is_dir=False):
    return FileRecord(
        path=path,
        name=os.path.basename(path),
        size=size,
        mod_time=datetime(2024, 1, 2, 3, 4, 5),
        mode=mode,
        is_dir=is_dir,
    )


class TestFileRecord:
    """Test cases for FileRecord."""

    def test_from_path(self, tmp_path):
        target = tmp_path / "notes.TXT"
        target.write_text("hello")

        record = FileRecord.from_path(str(target))

        assert record.path == str(target)
        assert record.name == "notes.TXT"
        assert record.size == 5
        assert record.is_dir is False
        assert record.extension == "txt"

    def test_from_path_directory(self, tmp_path):
        record = FileRecord.from_path(str(tmp_path))
        assert record.is_dir is True
        assert record.name == tmp_path.name

    def test_from_path_missing(self, tmp_path):
        with pytest.raises(OSError):
            FileRecord.from_path(str(tmp_path / "missing"))

    def test_frozen(self):
        record = make_record()
        with pytest.raises(ValidationError):
            record.size = 1

    def test_negative_size_rejected(self):
        with pytest.raises(ValidationError):
            make_record(size=-1)

    def test_permissions(self):
        assert make_record().permissions == "-rw-r--r--"

    def test_has_mode_bits(self):
        record = make_record(mode=stat.S_IFREG | 0o644)

        assert record.has_mode_bits(0o444) is True
        assert record.has_mode_bits(0o222) is False
        assert record.has_mode_bits(0o200) is True

    def test_extension_missing(self):
        assert make_record(path="/data/Makefile").extension is None

    def test_to_dict(self):
        data = make_record().to_dict()

        assert data['mod_time'] == "2024-01-02 03:04:05"
        assert data['permissions'] == "-rw-r--r--"
        assert data['size_human'] == "2.0 KB"

    def test_format_size(self):
        assert format_size(0) == "0.0 B"
        assert format_size(1536) == "1.5 KB"
        assert format_size(5 * 1024 * 1024) == "5.0 MB"


class TestMatchResult:
    """Test cases for MatchResult."""

    def test_filename_match(self):
        match = MatchResult(path="/data/flag.txt", match_type="filename")

        assert match.match_type == MatchType.FILENAME
        assert match.has_content_match() is False
        assert match.get_filename() == "flag.txt"
        assert match.get_directory() == "/data"

    def test_invalid_match_type(self):
        with pytest.raises(ValidationError, match="Invalid match type"):
            MatchResult(path="/a", match_type="fuzzy")

    @pytest.mark.parametrize("lines", [[2, 2], [3, 1], [0, 1], [-1]])
    def test_match_lines_must_increase(self, lines):
        with pytest.raises(ValidationError):
            MatchResult(path="/a", match_type=MatchType.CONTENT, match_lines=lines)

    def test_empty_path_rejected(self):
        with pytest.raises(ValidationError):
            MatchResult(path="", match_type=MatchType.CONTENT)

    def test_merged_with_content(self):
        record = make_record()
        filename = MatchResult(path=record.path, match_type=MatchType.FILENAME,
                               preview_text="preview", record=record)
        content = MatchResult(path=record.path, match_type=MatchType.CONTENT,
                              match_lines=[2, 7], match_count=3,
                              context_lines=["a", "b"], preview_text="ERROR: bad")

        merged = filename.merged_with_content(content)

        assert merged.match_type == MatchType.BOTH
        assert merged.match_lines == [2, 7]
        assert merged.match_count == 3
        assert merged.context_lines == ["a", "b"]
        assert merged.preview_text == "ERROR: bad"
        assert merged.record == record
        assert filename.match_type == MatchType.FILENAME

    def test_to_dict(self):
        record = make_record()
        data = MatchResult(path=record.path, match_type=MatchType.CONTENT,
                           match_lines=[1], match_count=1, record=record).to_dict()

        assert data['match_type'] == "content"
        assert data['filename'] == "app.log"
        assert data['record']['mod_time'] == "2024-01-02 03:04:05"

    def test_str(self):
        match = MatchResult(path="/data/app.log", match_type=MatchType.CONTENT,
                            match_lines=[1, 4], match_count=5, record=make_record())
        text = str(match)

        assert "app.log" in text
        assert "Type: content" in text
        assert "Matches: 5 on 2 lines" in text


class TestSearchResults:
    """Test cases for SearchResults."""

    def setup_method(self):
        self.query = SearchQuery(keyword="flag")
        self.matches = {
            "/b/flag.txt": MatchResult(path="/b/flag.txt", match_type=MatchType.FILENAME),
            "/a/flag.md": MatchResult(path="/a/flag.md", match_type=MatchType.BOTH,
                                      match_lines=[1], match_count=1),
            "/c/log.txt": MatchResult(path="/c/log.txt", match_type=MatchType.CONTENT,
                                      match_lines=[4], match_count=2),
        }

    def test_empty_results(self):
        results = SearchResults(query=self.query)

        assert results.get_match_count() == 0
        assert results.sorted_matches() == []
        assert results.has_errors() is False

    def test_sorted_matches(self):
        results = SearchResults(query=self.query, matches=self.matches)
        assert [m.path for m in results.sorted_matches()] == ["/a/flag.md", "/b/flag.txt", "/c/log.txt"]

    def test_matches_by_type(self):
        results = SearchResults(query=self.query, matches=self.matches)

        assert [m.path for m in results.get_matches_by_type(MatchType.BOTH)] == ["/a/flag.md"]
        assert results.get_matches_by_type(MatchType.PERMISSION) == []

    def test_errors(self):
        results = SearchResults(query=self.query)
        results.add_error("3 files could not be read")

        assert results.has_errors() is True
        assert results.errors == ["3 files could not be read"]

    def test_negative_counters_rejected(self):
        with pytest.raises(ValidationError):
            SearchResults(query=self.query, total_scanned=-1)

    def test_to_dict(self):
        results = SearchResults(query=self.query, matches=self.matches,
                                total_scanned=10, index_stale=True)
        data = results.to_dict()

        assert data['query']['keyword'] == "flag"
        assert data['match_count'] == 3
        assert [m['path'] for m in data['matches']] == ["/a/flag.md", "/b/flag.txt", "/c/log.txt"]
        assert data['index_stale'] is True

    def test_str(self):
        results = SearchResults(query=self.query, matches=self.matches,
                                total_scanned=10, execution_time=1.5, index_stale=True)
        results.add_error("boom")
        text = str(results)

        assert "Found 3 matches" in text
        assert "Scanned 10 files" in text
        assert "Took 1.50s" in text
        assert "Index stale" in text
        assert "Errors: 1" in text
