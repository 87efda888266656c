"""
Search results data models for the File Finder.

This module defines the value objects handed across the engine boundary:
immutable filesystem snapshots, per-file match results, and the complete
result set returned to the output layer.
"""

import os
import stat
from typing import Dict, List, Optional, Any
from datetime import datetime
from pathlib import Path
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator


class MatchType(Enum):
    """Enumeration of the ways a file can end up in a result set."""
    FILENAME = "filename"
    CONTENT = "content"
    BOTH = "both"
    PERMISSION = "permission"
    MODIFIED = "modified"


def format_size(size_bytes: int) -> str:
    """Get a byte count in human-readable format."""
    size = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} PB"


class FileRecord(BaseModel):
    """
    Immutable snapshot of one filesystem entry at index or scan time.

    Identity is the path. A newer observation of the same path produces a new
    record rather than mutating this one.

    Attributes:
        path: Path of the entry as produced by the walk
        name: Final path component
        size: Size in bytes
        mod_time: Last modification timestamp
        mode: Raw st_mode bits
        is_dir: Whether the entry is a directory
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Path of the entry")
    name: str = Field(..., description="Final path component")
    size: int = Field(..., ge=0, description="Size in bytes")
    mod_time: datetime = Field(..., description="Last modification timestamp")
    mode: int = Field(0, ge=0, description="Raw st_mode bits")
    is_dir: bool = Field(False, description="Whether the entry is a directory")

    @classmethod
    def from_stat(cls, path: str, stat_result: os.stat_result) -> 'FileRecord':
        """Build a record from an os.stat result."""
        return cls(
            path=path,
            name=os.path.basename(path.rstrip(os.sep)) or path,
            size=stat_result.st_size,
            mod_time=datetime.fromtimestamp(stat_result.st_mtime),
            mode=stat_result.st_mode,
            is_dir=stat.S_ISDIR(stat_result.st_mode),
        )

    @classmethod
    def from_path(cls, path: str) -> 'FileRecord':
        """Stat a path and build a record; raises OSError if it cannot be read."""
        return cls.from_stat(path, os.stat(path))

    @property
    def permissions(self) -> str:
        """Permission bits in ls style, e.g. -rw-r--r--."""
        return stat.filemode(self.mode)

    @property
    def extension(self) -> Optional[str]:
        """Lower-case extension without the leading dot."""
        suffix = Path(self.name).suffix
        return suffix[1:].lower() if suffix else None

    def get_size_human_readable(self) -> str:
        """Get file size in human-readable format."""
        return format_size(self.size)

    def has_mode_bits(self, mask: int) -> bool:
        """Check whether every bit of mask is set in the permission bits."""
        return stat.S_IMODE(self.mode) & mask == mask

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to dictionary representation."""
        data = self.model_dump()
        data['mod_time'] = self.mod_time.strftime('%Y-%m-%d %H:%M:%S')
        data['permissions'] = self.permissions
        data['size_human'] = self.get_size_human_readable()
        return data


class MatchResult(BaseModel):
    """
    One file in a keyword, permission or time result set.

    Attributes:
        path: Path of the matched file (unique key of the result set)
        match_type: How the file matched
        match_lines: 1-based line numbers of content matches, increasing
        match_count: Total number of content occurrences
        context_lines: De-duplicated context lines around all matches
        preview_text: Short preview for display
        record: Filesystem snapshot of the matched file
    """

    path: str = Field(..., min_length=1, description="Path of the matched file")
    match_type: MatchType = Field(..., description="How the file matched")
    match_lines: List[int] = Field(default_factory=list, description="Line numbers of content matches")
    match_count: int = Field(0, ge=0, description="Total content occurrences")
    context_lines: List[str] = Field(default_factory=list, description="Context around matches")
    preview_text: str = Field("", description="Short preview for display")
    record: Optional[FileRecord] = Field(None, description="Filesystem snapshot")

    @field_validator('match_type', mode='before')
    @classmethod
    def validate_match_type(cls, v) -> MatchType:
        """Ensure match_type is MatchType enum."""
        if isinstance(v, str):
            try:
                return MatchType(v)
            except ValueError:
                raise ValueError(f"Invalid match type: {v}")
        return v

    @field_validator('match_lines')
    @classmethod
    def validate_match_lines(cls, v: List[int]) -> List[int]:
        """Line numbers are 1-based and strictly increasing."""
        previous = 0
        for line_number in v:
            if line_number <= previous:
                raise ValueError("Match lines must be positive and strictly increasing")
            previous = line_number
        return v

    def get_filename(self) -> str:
        """Get just the filename without directory path."""
        return Path(self.path).name

    def get_directory(self) -> str:
        """Get the directory containing this file."""
        return str(Path(self.path).parent)

    def has_content_match(self) -> bool:
        """Check if this result carries line-level match data."""
        return bool(self.match_lines)

    def merged_with_content(self, content: 'MatchResult') -> 'MatchResult':
        """Promote a filename match to BOTH using the content match's line data."""
        return self.model_copy(update={
            'match_type': MatchType.BOTH,
            'match_lines': list(content.match_lines),
            'match_count': content.match_count,
            'context_lines': list(content.context_lines),
            'preview_text': content.preview_text,
            'record': self.record or content.record,
        })

    def to_dict(self) -> Dict[str, Any]:
        """Convert match result to dictionary representation."""
        data = self.model_dump()
        data['match_type'] = self.match_type.value
        data['filename'] = self.get_filename()
        data['record'] = self.record.to_dict() if self.record else None
        return data

    def __str__(self) -> str:
        """String representation of the match result."""
        parts = [f"{self.get_filename()}"]
        parts.append(f"Type: {self.match_type.value}")

        if self.has_content_match():
            parts.append(f"Matches: {self.match_count} on {len(self.match_lines)} lines")

        if self.record:
            parts.append(f"Size: {self.record.get_size_human_readable()}")

        return " | ".join(parts)


class SearchResults(BaseModel):
    """
    Complete results from one search invocation.

    The engine does not order matches; ``sorted_matches`` sorts by path for
    presentation.

    Attributes:
        query: The query that produced these results
        matches: Mapping from path to match result
        total_scanned: Number of files examined by content scans
        execution_time: Time taken to execute the search in seconds
        timestamp: When the search was executed
        errors: Non-fatal errors encountered during the search
        index_stale: Whether the name index was past its freshness window
    """

    query: 'SearchQuery' = Field(..., description="The original search query")
    matches: Dict[str, MatchResult] = Field(default_factory=dict, description="Path to match result")
    total_scanned: int = Field(0, ge=0, description="Total number of files examined")
    execution_time: float = Field(0.0, ge=0.0, description="Time taken to execute the search")
    timestamp: datetime = Field(default_factory=datetime.now, description="When the search was executed")
    errors: List[str] = Field(default_factory=list, description="Non-fatal errors")
    index_stale: bool = Field(False, description="Whether the index was stale")

    def get_match_count(self) -> int:
        """Get the total number of matches."""
        return len(self.matches)

    def sorted_matches(self) -> List[MatchResult]:
        """Get matches sorted alphabetically by path."""
        return [self.matches[path] for path in sorted(self.matches)]

    def get_matches_by_type(self, match_type: MatchType) -> List[MatchResult]:
        """Get all matches of a specific type."""
        return [match for match in self.matches.values() if match.match_type == match_type]

    def has_errors(self) -> bool:
        """Check if any errors occurred during search."""
        return len(self.errors) > 0

    def add_error(self, error: str) -> None:
        """Add an error message to the results."""
        self.errors.append(error)

    def to_dict(self) -> Dict[str, Any]:
        """Convert search results to dictionary representation."""
        return {
            'query': self.query.to_dict(),
            'matches': [match.to_dict() for match in self.sorted_matches()],
            'match_count': self.get_match_count(),
            'total_scanned': self.total_scanned,
            'execution_time': self.execution_time,
            'timestamp': self.timestamp.isoformat(),
            'errors': list(self.errors),
            'index_stale': self.index_stale,
        }

    def __str__(self) -> str:
        """String representation of search results."""
        parts = [f"Found {self.get_match_count()} matches"]
        parts.append(f"Scanned {self.total_scanned} files")
        parts.append(f"Took {self.execution_time:.2f}s")

        if self.index_stale:
            parts.append("Index stale")

        if self.has_errors():
            parts.append(f"Errors: {len(self.errors)}")

        return " | ".join(parts)


# Rebuild models to resolve forward references
from .search_query import SearchQuery
SearchResults.model_rebuild()
