"""
Filesystem walker for the File Finder.

This module provides the directory traversal and the filter predicates shared
by the index builder and the content scanner, plus the permission and
modification-time finders. Permission errors on a directory skip that subtree;
errors on a single file skip the file.
"""

import os
import logging
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional
from datetime import datetime

from ..errors import InvalidRootDirectoryError
from ..models.config import SearchConfig
from ..models.search_results import FileRecord


logger = logging.getLogger(__name__)


def validate_root(start_dir: str) -> str:
    """
    Resolve a start directory and make sure it can be walked.

    Args:
        start_dir: Directory to validate

    Returns:
        Absolute, normalized path of the directory

    Raises:
        InvalidRootDirectoryError: If the path does not exist or is not a directory
    """
    root_path = Path(start_dir).expanduser()
    try:
        root_path = root_path.resolve()
    except (OSError, RuntimeError) as e:
        raise InvalidRootDirectoryError(str(start_dir), f"cannot resolve: {e}") from e

    if not root_path.exists():
        raise InvalidRootDirectoryError(str(root_path))

    if not root_path.is_dir():
        raise InvalidRootDirectoryError(str(root_path), "not a directory")

    return str(root_path)


def get_extension(path: str) -> str:
    """Get the lower-case extension of a path without the leading dot."""
    return os.path.splitext(path)[1][1:].lower()


def relative_depth(path: str, root: str) -> int:
    """Count path separators below the root (entries directly in root are depth 0)."""
    relative = os.path.relpath(path, root)
    if relative == os.curdir:
        return 0
    return relative.count(os.sep)


class FSWalker:
    """
    Filesystem walker applying the configured inclusion/exclusion filters.

    Filters, all applied before a record is produced:
    - an entry is excluded if any configured exclude fragment is a substring
      of its full path (case-sensitive)
    - a file is excluded if an extension allow-set is configured and its
      extension is not in it (case-insensitive)
    - an entry is excluded if a depth limit is set and its separator count
      below the start directory exceeds it
    - a file is excluded if a size limit is set and it is larger
    """

    def __init__(self, config: SearchConfig):
        """
        Initialize the filesystem walker.

        Args:
            config: Search configuration supplying filters and limits
        """
        self.config = config
        self._allowed_types = frozenset(config.file_types)
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            'files_scanned': 0,
            'files_matched': 0,
            'directories_traversed': 0,
            'files_ignored': 0,
            'errors': 0
        }

    def is_excluded_path(self, path: str) -> bool:
        """Check the exclude fragments against the full path."""
        return any(fragment in path for fragment in self.config.exclude_dirs)

    def is_allowed_type(self, path: str) -> bool:
        """Check the extension allow-set (an empty set allows everything)."""
        if not self._allowed_types:
            return True
        return get_extension(path) in self._allowed_types

    def exceeds_depth(self, path: str, root: str) -> bool:
        """Check the depth limit relative to the walk root."""
        if not self.config.has_depth_limit():
            return False
        return relative_depth(path, root) > self.config.max_depth

    def exceeds_size(self, size: int) -> bool:
        """Check the file size limit."""
        return self.config.has_size_limit() and size > self.config.size_limit

    def should_skip_directory(self, path: str, root: str) -> bool:
        """Check whether a directory (and its subtree) is filtered out."""
        return self.is_excluded_path(path) or self.exceeds_depth(path, root)

    def should_skip_file(self, path: str, root: str, size: Optional[int] = None) -> bool:
        """Check whether a file is filtered out."""
        if self.is_excluded_path(path):
            return True
        if not self.is_allowed_type(path):
            return True
        if self.exceeds_depth(path, root):
            return True
        if size is not None and self.exceeds_size(size):
            return True
        return False

    def _can_descend(self, directory: str, root: str) -> bool:
        # Entries inside a directory at depth d sit at depth d + 1
        if not self.config.has_depth_limit():
            return True
        return relative_depth(directory, root) < self.config.max_depth

    def _on_walk_error(self, error: OSError) -> None:
        self._stats['errors'] += 1
        if isinstance(error, PermissionError):
            logger.debug(f"Permission denied, skipping subtree: {error.filename}")
        else:
            logger.warning(f"Cannot list directory {error.filename}: {error}")

    def walk(self, start_dir: str,
             on_directory: Optional[Callable[[str], None]] = None) -> Iterator[FileRecord]:
        """
        Walk a directory tree and yield a record for every entry that passes the filters.

        Directories are yielded before their contents; the root itself is not
        yielded.

        Args:
            start_dir: Directory to walk
            on_directory: Called with each directory path as it is entered

        Yields:
            FileRecord for each included file and directory

        Raises:
            InvalidRootDirectoryError: If start_dir cannot be walked
        """
        root = validate_root(start_dir)
        logger.info(f"Walking directory tree: {root}")

        for current_dir, subdirs, files in os.walk(root, onerror=self._on_walk_error):
            self._stats['directories_traversed'] += 1
            if on_directory is not None:
                on_directory(current_dir)

            kept_dirs = []
            for dirname in subdirs:
                dir_path = os.path.join(current_dir, dirname)
                if self.should_skip_directory(dir_path, root):
                    continue

                record = self._stat_entry(dir_path)
                if record is None:
                    continue

                yield record
                if self._can_descend(dir_path, root):
                    kept_dirs.append(dirname)

            # Prune in place so os.walk does not descend into filtered subtrees
            subdirs[:] = kept_dirs

            for filename in files:
                file_path = os.path.join(current_dir, filename)
                if self.should_skip_file(file_path, root):
                    self._stats['files_ignored'] += 1
                    continue

                record = self._stat_entry(file_path)
                if record is None:
                    continue

                if self.exceeds_size(record.size):
                    self._stats['files_ignored'] += 1
                    continue

                self._stats['files_scanned'] += 1
                yield record

    def walk_files(self, start_dir: str) -> Iterator[FileRecord]:
        """Walk a directory tree and yield only file records."""
        for record in self.walk(start_dir):
            if not record.is_dir:
                yield record

    def _stat_entry(self, path: str) -> Optional[FileRecord]:
        """Stat a single entry; unreadable or vanished entries are skipped."""
        try:
            return FileRecord.from_stat(path, os.stat(path))
        except PermissionError:
            logger.debug(f"Permission denied, skipping: {path}")
        except OSError as e:
            logger.debug(f"Cannot stat {path}: {e}")
        self._stats['errors'] += 1
        return None

    def find_by_permission(self, start_dir: str, mask: int) -> List[FileRecord]:
        """
        Find entries whose permission bits include every bit of mask.

        Args:
            start_dir: Directory to walk
            mask: Required mode bits, e.g. 0o444 for readable by everyone

        Returns:
            Matching records (directories only if include_dirs is set)
        """
        matches = []
        for record in self.walk(start_dir):
            if record.is_dir and not self.config.include_dirs:
                continue
            if record.has_mode_bits(mask):
                self._stats['files_matched'] += 1
                matches.append(record)
        return matches

    def find_modified_since(self, start_dir: str, limit: datetime) -> List[FileRecord]:
        """
        Find entries modified strictly after limit.

        Args:
            start_dir: Directory to walk
            limit: Lower bound on modification time

        Returns:
            Matching records (directories only if include_dirs is set)
        """
        matches = []
        for record in self.walk(start_dir):
            if record.is_dir and not self.config.include_dirs:
                continue
            if record.mod_time > limit:
                self._stats['files_matched'] += 1
                matches.append(record)
        return matches

    def get_stats(self) -> Dict[str, int]:
        """
        Get statistics about the filesystem walking operation.

        Returns:
            Dictionary containing operation statistics
        """
        return self._stats.copy()

    def reset_stats(self) -> None:
        """Reset the statistics counters."""
        self._stats = self._empty_stats()
