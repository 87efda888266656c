"""
Result rendering for the File Finder.

Formats a SearchResults set as a text table, JSON or CSV. Rows are always
sorted by path here; the engine itself returns results unordered.
"""

import csv
import json
import os
from pathlib import Path
from typing import IO, List, Union

from .models.search_results import MatchResult, SearchResults
from .tools.text_decoder import BINARY_SENTINEL


OUTPUT_FORMATS = ('txt', 'json', 'csv')

PATH_WIDTH = 50
SIZE_WIDTH = 9
TIME_WIDTH = 19
PERM_WIDTH = 11
PREVIEW_WIDTH = 35

CSV_HEADERS = ['Path', 'Size', 'ModTime', 'Permissions', 'MatchType', 'MatchCount', 'MatchLines', 'Preview']


def format_file_size(size: int) -> str:
    """Format a byte count like 512 B, 1.5 KB, 3.0 MB."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {'KMGTPE'[exp]}B"


def truncate(text: str, width: int) -> str:
    """Cut text to width, marking the cut with an ellipsis."""
    if len(text) <= width:
        return text
    return text[:width - 3] + "..."


def wrap_path(path: str, width: int) -> List[str]:
    """Wrap a long path at separators so each piece fits width where possible."""
    if len(path) <= width:
        return [path]

    lines = []
    current = None
    for part in path.split(os.sep):
        candidate = part if current is None else f"{current}{os.sep}{part}"
        if current and len(candidate) > width:
            lines.append(current)
            current = os.sep + part
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def preview_cell(match: MatchResult) -> str:
    """First line of the preview, shortened for the table."""
    if match.preview_text == BINARY_SENTINEL:
        return "[binary]"
    first_line = match.preview_text.split("\n", 1)[0] if match.preview_text else ""
    return truncate(first_line, PREVIEW_WIDTH)


def _separator(char: str = "-") -> str:
    widths = [PATH_WIDTH, SIZE_WIDTH, TIME_WIDTH, PERM_WIDTH, PREVIEW_WIDTH]
    return "+" + "+".join(char * (w + 2) for w in widths) + "+"


def _row(path: str, size: str, mod_time: str, perms: str, preview: str) -> str:
    return (f"| {path:<{PATH_WIDTH}} | {size:>{SIZE_WIDTH}} | {mod_time:<{TIME_WIDTH}} "
            f"| {perms:<{PERM_WIDTH}} | {preview:<{PREVIEW_WIDTH}} |")


def render_table(results: SearchResults) -> str:
    """
    Render results as a fixed-width text table.

    A double rule separates entries from different directories.
    """
    if not results.matches:
        keyword = results.query.keyword
        return f"No files containing '{keyword}' found" if keyword else "No matching files found"

    lines = [f"Found {results.get_match_count()} matching files:", ""]
    lines.append(_row("Path", "Size", "Modified", "Permissions", "Preview"))
    lines.append(_separator())

    previous_dir = None
    for match in results.sorted_matches():
        directory = match.get_directory()
        if previous_dir is not None and directory != previous_dir:
            lines.append(_separator("="))
        previous_dir = directory

        record = match.record
        size = format_file_size(record.size) if record else ""
        mod_time = record.mod_time.strftime('%Y-%m-%d %H:%M:%S') if record else ""
        perms = record.permissions if record else ""

        path_lines = wrap_path(match.path, PATH_WIDTH)
        lines.append(_row(path_lines[0], size, mod_time, perms, preview_cell(match)))
        for extra in path_lines[1:]:
            lines.append(_row(extra, "", "", "", ""))

    lines.append(_separator())
    return "\n".join(lines)


def write_json(results: SearchResults, stream: IO[str]) -> None:
    """Write results as a JSON document."""
    json.dump(results.to_dict(), stream, ensure_ascii=False, indent=2)
    stream.write("\n")


def write_csv(results: SearchResults, stream: IO[str]) -> None:
    """Write results as CSV, one row per file."""
    writer = csv.writer(stream)
    writer.writerow(CSV_HEADERS)
    for match in results.sorted_matches():
        record = match.record
        writer.writerow([
            match.path,
            record.size if record else "",
            record.mod_time.strftime('%Y-%m-%d %H:%M:%S') if record else "",
            record.permissions if record else "",
            match.match_type.value,
            match.match_count,
            " ".join(str(n) for n in match.match_lines),
            match.preview_text.split("\n", 1)[0] if match.preview_text else "",
        ])


def write_results(results: SearchResults, output_path: Union[str, Path], fmt: str = 'txt') -> None:
    """
    Persist results to a file in the requested format.

    Raises:
        ValueError: If fmt is not one of txt, json, csv
    """
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format: {fmt}")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8', newline='') as f:
        if fmt == 'json':
            write_json(results, f)
        elif fmt == 'csv':
            write_csv(results, f)
        else:
            f.write(render_table(results))
            f.write("\n")
