"""
Unit tests for result rendering.
"""

import csv
import io
import json
import os
from datetime import datetime

import pytest

from filefinder.models.search_query import SearchQuery
from filefinder.models.search_results import FileRecord, MatchResult, MatchType, SearchResults
from filefinder.output import (
    PATH_WIDTH,
    CSV_HEADERS,
    format_file_size,
    preview_cell,
    render_table,
    truncate,
    wrap_path,
    write_csv,
    write_json,
    write_results
)
from filefinder.tools.text_decoder import BINARY_SENTINEL


def make_match(path, match_type=MatchType.FILENAME, preview="", **kwargs):
    record = FileRecord(path=path, name=os.path.basename(path), size=1536,
                        mod_time=datetime(2024, 5, 6, 7, 8, 9), mode=0o100644)
    return MatchResult(path=path, match_type=match_type, preview_text=preview, record=record, **kwargs)


def make_results(*matches, keyword="flag"):
    return SearchResults(query=SearchQuery(keyword=keyword),
                         matches={m.path: m for m in matches})


class TestHelpers:
    """Test cases for formatting helpers."""

    @pytest.mark.parametrize("size,expected", [
        (0, "0 B"),
        (512, "512 B"),
        (1536, "1.5 KB"),
        (3 * 1024 * 1024, "3.0 MB"),
        (2 * 1024 ** 3, "2.0 GB"),
    ])
    def test_format_file_size(self, size, expected):
        assert format_file_size(size) == expected

    def test_truncate(self):
        assert truncate("short", 10) == "short"
        assert truncate("a" * 20, 10) == "aaaaaaa..."

    def test_wrap_path(self):
        path = os.sep.join(["", "very", "long", "directory", "name", "file.txt"])
        lines = wrap_path(path, 15)

        assert len(lines) > 1
        assert "".join(lines) == path

    def test_wrap_short_path(self):
        assert wrap_path("/a/b", 20) == ["/a/b"]

    def test_preview_cell(self):
        assert preview_cell(make_match("/a", preview=BINARY_SENTINEL)) == "[binary]"
        assert preview_cell(make_match("/a", preview="first\nsecond")) == "first"
        assert preview_cell(make_match("/a")) == ""


class TestRenderTable:
    """Test cases for the text table."""

    def test_no_results_with_keyword(self):
        assert render_table(make_results()) == "No files containing 'flag' found"

    def test_no_results_without_keyword(self):
        results = SearchResults(query=SearchQuery(permission="r"))
        assert render_table(results) == "No matching files found"

    def test_rows_sorted_and_grouped(self):
        results = make_results(
            make_match("/b/flag.txt", preview="hello"),
            make_match("/a/flag.md"),
            make_match("/a/flags.log"),
        )
        table = render_table(results)
        lines = table.splitlines()

        assert lines[0] == "Found 3 matching files:"
        body = [line for line in lines if line.startswith("| /")]
        assert [line.split("|")[1].strip() for line in body] == ["/a/flag.md", "/a/flags.log", "/b/flag.txt"]
        assert sum(1 for line in lines if "=" in line and line.startswith("+")) == 1
        assert "1.5 KB" in table
        assert "2024-05-06 07:08:09" in table
        assert "-rw-r--r--" in table

    def test_long_path_wraps(self):
        long_path = os.sep + os.sep.join(["segment%02d" % n for n in range(10)]) + os.sep + "flag.txt"
        table = render_table(make_results(make_match(long_path)))

        assert long_path not in table
        assert len(table.splitlines()[2]) == len(table.splitlines()[-1])
        assert len(long_path) > PATH_WIDTH


class TestWriters:
    """Test cases for the file writers."""

    def setup_method(self):
        self.results = make_results(
            make_match("/a/app.log", MatchType.CONTENT, preview="ok\nERROR",
                       match_lines=[2, 5], match_count=2),
            make_match("/a/flag.txt"),
        )

    def test_write_json(self):
        stream = io.StringIO()
        write_json(self.results, stream)
        data = json.loads(stream.getvalue())

        assert data['match_count'] == 2
        assert data['matches'][0]['path'] == "/a/app.log"
        assert data['matches'][0]['match_lines'] == [2, 5]

    def test_write_csv(self):
        stream = io.StringIO()
        write_csv(self.results, stream)
        rows = list(csv.reader(io.StringIO(stream.getvalue())))

        assert rows[0] == CSV_HEADERS
        assert rows[1][0] == "/a/app.log"
        assert rows[1][4] == "content"
        assert rows[1][6] == "2 5"
        assert rows[1][7] == "ok"

    @pytest.mark.parametrize("fmt", ["txt", "json", "csv"])
    def test_write_results(self, tmp_path, fmt):
        output = tmp_path / "out" / f"results.{fmt}"
        write_results(self.results, output, fmt)

        assert output.exists()
        assert "/a/app.log" in output.read_text(encoding="utf-8")

    def test_unsupported_format(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported output format"):
            write_results(self.results, tmp_path / "out.xml", "xml")
