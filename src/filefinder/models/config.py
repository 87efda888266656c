"""
Configuration data models for the File Finder.

This module defines the immutable configuration snapshot that every engine
component receives for one search invocation: the start directory, traversal
limits, extension and directory filters, content-search options and worker
pool sizes.
"""

from typing import Dict, List, Optional, Any
from pathlib import Path
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator


class SearchMode(Enum):
    """Supported keyword search strategies."""
    FILENAME = "filename"
    CONTENT = "content"
    BOTH = "both"


# System directories excluded in addition to whatever the caller configures
SYSTEM_EXCLUDE_DIRS = ["$Recycle.Bin", "$RECYCLE.BIN", "System Volume Information"]

DEFAULT_EXCLUDE_DIRS = [".git", "node_modules"]

DEFAULT_MAX_CONTENT_SIZE = 10 * 1024 * 1024


class SearchConfig(BaseModel):
    """
    Immutable configuration snapshot for one search invocation.

    All engine components treat this as read-only input. Use ``with_overrides``
    to derive a modified copy.

    Attributes:
        start_dir: Directory the walk starts from
        max_depth: Maximum directory depth relative to start_dir (-1 = unlimited)
        size_limit: Skip files larger than this many bytes (-1 = unlimited)
        file_types: Allowed extensions, case-insensitive (empty = all)
        exclude_dirs: Path fragments that exclude any entry containing them
        case_sensitive: Whether content matching is case-sensitive
        context_lines: Lines of context captured around each content match
        max_content_size: Files above this size are never content-searched
        workers: Worker threads for concurrent content scanning
        index_workers: Worker threads for index building
        search_mode: filename, content or both
        global_search: Force a fresh index build for this invocation
        concurrent: Scan file contents with a worker pool
        include_dirs: Allow directories in filename results
        drop_on_backpressure: Drop index entries when the build queue stays full
        load_previews: Attach a content preview to filename results
    """

    model_config = ConfigDict(frozen=True)

    start_dir: str = Field(".", min_length=1, description="Directory the walk starts from")
    max_depth: int = Field(-1, ge=-1, description="Maximum directory depth (-1 = unlimited)")
    size_limit: int = Field(-1, ge=-1, description="Maximum file size in bytes (-1 = unlimited)")
    file_types: List[str] = Field(default_factory=list, description="Allowed file extensions")
    exclude_dirs: List[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS),
        description="Excluded path fragments"
    )
    case_sensitive: bool = Field(False, description="Case-sensitive content matching")
    context_lines: int = Field(2, ge=0, description="Context lines around each content match")
    max_content_size: int = Field(DEFAULT_MAX_CONTENT_SIZE, gt=0, description="Maximum content-search file size")
    workers: int = Field(5, gt=0, description="Content scan worker threads")
    index_workers: int = Field(4, gt=0, description="Index build worker threads")
    search_mode: SearchMode = Field(SearchMode.FILENAME, description="Keyword search strategy")
    global_search: bool = Field(False, description="Force a fresh index build")
    concurrent: bool = Field(True, description="Scan file contents concurrently")
    include_dirs: bool = Field(False, description="Allow directories in filename results")
    drop_on_backpressure: bool = Field(False, description="Drop index entries when the queue stays full")
    load_previews: bool = Field(True, description="Attach content previews to filename results")

    @field_validator('search_mode', mode='before')
    @classmethod
    def validate_search_mode(cls, v) -> SearchMode:
        """Validate and convert search mode to enum."""
        if isinstance(v, str):
            try:
                return SearchMode(v.strip().lower())
            except ValueError:
                raise ValueError(f"Invalid search mode: {v}")
        return v

    @field_validator('file_types', mode='before')
    @classmethod
    def validate_file_types(cls, v) -> List[str]:
        """Normalize extensions to lower case without a leading dot."""
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(',')

        normalized = []
        for ext in v:
            ext = str(ext).strip().lower().lstrip('.')
            if ext and ext not in normalized:
                normalized.append(ext)
        return normalized

    @field_validator('exclude_dirs', mode='before')
    @classmethod
    def validate_exclude_dirs(cls, v) -> List[str]:
        """Drop blank entries; exclusion is case-sensitive so case is kept."""
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(',')

        normalized = []
        for name in v:
            name = str(name).strip()
            if name and name not in normalized:
                normalized.append(name)
        return normalized

    @field_validator('start_dir')
    @classmethod
    def validate_start_dir(cls, v: str) -> str:
        """Expand the user directory; existence is checked at walk time."""
        if not v.strip():
            raise ValueError("Start directory cannot be empty")
        return str(Path(v.strip()).expanduser())

    def has_type_filter(self) -> bool:
        """Check if an extension allow-set is configured."""
        return bool(self.file_types)

    def has_depth_limit(self) -> bool:
        """Check if traversal depth is limited."""
        return self.max_depth >= 0

    def has_size_limit(self) -> bool:
        """Check if a file size limit is configured."""
        return self.size_limit > 0

    def get_root_path(self) -> Path:
        """Get the resolved start directory."""
        return Path(self.start_dir).resolve()

    def get_max_content_size_human_readable(self) -> str:
        """Get max content-search size in human-readable format."""
        size = float(self.max_content_size)
        for unit in ['B', 'KB', 'MB', 'GB']:
            if size < 1024.0:
                return f"{size:.1f} {unit}"
            size /= 1024.0
        return f"{size:.1f} TB"

    def with_overrides(self, **overrides: Any) -> 'SearchConfig':
        """Return a validated copy with the given fields replaced."""
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return SearchConfig.model_validate(data)

    def validate_configuration(self) -> List[str]:
        """
        Check for settings that are legal but likely unintended.

        Returns:
            List of warning messages
        """
        warnings = []

        if self.workers > 64:
            warnings.append(f"High worker count ({self.workers}) may exhaust file handles")

        if self.max_content_size > 100 * 1024 * 1024:
            warnings.append("Very high max_content_size may cause memory issues")

        if self.context_lines > 50:
            warnings.append(f"Large context window ({self.context_lines} lines) inflates results")

        if self.search_mode != SearchMode.FILENAME and not self.concurrent and self.workers > 1:
            warnings.append("Worker count is ignored when concurrent scanning is disabled")

        if self.drop_on_backpressure:
            warnings.append("drop_on_backpressure may silently omit entries from the index")

        return warnings

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = self.model_dump()
        data['search_mode'] = self.search_mode.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SearchConfig':
        """Create a SearchConfig instance from a dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        """String representation of the configuration."""
        parts = [f"Start: {self.start_dir}"]
        parts.append(f"Mode: {self.search_mode.value}")

        if self.has_depth_limit():
            parts.append(f"Depth: {self.max_depth}")

        if self.has_type_filter():
            parts.append(f"Types: {','.join(self.file_types)}")

        if self.search_mode != SearchMode.FILENAME:
            parts.append(f"Max content: {self.get_max_content_size_human_readable()}")

        parts.append(f"Workers: {self.workers}")

        return " | ".join(parts)
