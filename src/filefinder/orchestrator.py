"""
Search orchestration for the File Finder.

The orchestrator owns one FileIndex and decides per invocation whether to
query it (filename mode), walk the tree fresh with the content matcher
(content mode), or do both and merge the results by path. Permission and
modification-time finders are merged in by ``run``.
"""

import logging
import os
import time
from typing import Dict, List, Optional

from .models.config import SearchConfig, SearchMode
from .models.search_query import SearchQuery
from .models.search_results import FileRecord, MatchResult, MatchType, SearchResults
from .tools.content_search import ContentScanner, load_preview
from .tools.fs_walker import FSWalker, validate_root
from .tools.indexer import FileIndex, IndexBuildStats
from .tools.progress import ProgressReporter
from .tools.text_decoder import TextDecoder


logger = logging.getLogger(__name__)


class SearchOrchestrator:
    """
    Combines index lookups, content scans and metadata finders.

    The index is injected rather than shared process-wide, so independent
    orchestrators never see each other's state.
    """

    def __init__(self, index: Optional[FileIndex] = None,
                 progress: Optional[ProgressReporter] = None):
        """
        Initialize the orchestrator.

        Args:
            index: Index to query and rebuild; a fresh one is created if omitted
            progress: Receiver of index build events
        """
        self.index = index if index is not None else FileIndex()
        self.progress = progress
        self.last_index_stale = False
        self.last_scan_stats: Dict[str, int] = {}

    def rebuild_index(self, config: SearchConfig) -> IndexBuildStats:
        """Rebuild the index from the configured start directory."""
        logger.info(f"Rebuilding file index from {config.start_dir}")
        return self.index.build(config.start_dir, config, self.progress)

    def search(self, keyword: str, config: SearchConfig) -> Dict[str, MatchResult]:
        """
        Run a keyword search in the configured mode.

        Args:
            keyword: Substring to look for
            config: Search configuration

        Returns:
            Mapping from path to match result, in no particular order

        Raises:
            InvalidRootDirectoryError: If the start directory cannot be walked
        """
        mode = config.search_mode
        logger.debug(f"Keyword search '{keyword}' in {mode.value} mode")

        if mode == SearchMode.FILENAME:
            return self.search_filenames(keyword, config)
        if mode == SearchMode.CONTENT:
            return self.search_contents(keyword, config)

        filename_results = self.search_filenames(keyword, config)
        content_results = self.search_contents(keyword, config)
        return self.merge_results(filename_results, content_results)

    def _ensure_index(self, config: SearchConfig) -> None:
        root = validate_root(config.start_dir)
        if self.index.is_empty():
            reason = "index is empty"
        elif config.global_search:
            reason = "global search requested"
        elif self.index.root != root:
            reason = f"index was built for {self.index.root}"
        elif not self.index.built_with(config):
            reason = "filters changed since the last build"
        else:
            reason = None

        if reason is not None:
            logger.info(f"Building index: {reason}")
            self.index.build(root, config, self.progress)

        self.last_index_stale = self.index.is_stale()
        if self.last_index_stale:
            logger.warning("File index is older than 30 minutes, consider rebuilding it")

    def search_filenames(self, keyword: str, config: SearchConfig) -> Dict[str, MatchResult]:
        """
        Find indexed entries whose name contains keyword, case-insensitively.

        Each candidate is re-stat'ed: vanished files are dropped and records
        whose modification time drifted are refreshed in the index.
        """
        self._ensure_index(config)
        decoder = TextDecoder(config.max_content_size)
        results = {}

        for record in self.index.search_names(keyword, include_dirs=config.include_dirs):
            current = self._restat(record)
            if current is None:
                continue

            preview = load_preview(decoder, current) if config.load_previews else ""
            results[current.path] = MatchResult(
                path=current.path,
                match_type=MatchType.FILENAME,
                preview_text=preview,
                record=current,
            )

        return results

    def _restat(self, record: FileRecord) -> Optional[FileRecord]:
        try:
            current = FileRecord.from_path(record.path)
        except OSError:
            logger.debug(f"Indexed entry no longer available: {record.path}")
            return None

        if current.mod_time != record.mod_time:
            logger.debug(f"Refreshing drifted index entry: {record.path}")
            self.index.refresh_record(current)
        return current

    def search_contents(self, keyword: str, config: SearchConfig) -> Dict[str, MatchResult]:
        """Walk the tree fresh and search file contents, bypassing the index."""
        scanner = ContentScanner(keyword, config)
        results = scanner.scan(config.start_dir)
        self.last_scan_stats = scanner.get_stats()
        return results

    @staticmethod
    def merge_results(filename_results: Dict[str, MatchResult],
                      content_results: Dict[str, MatchResult]) -> Dict[str, MatchResult]:
        """
        Merge filename and content results by path.

        A path found by both becomes a BOTH match carrying the content
        result's lines, context and count.
        """
        merged = dict(filename_results)
        for path, content in content_results.items():
            existing = merged.get(path)
            if existing is None:
                merged[path] = content
            else:
                merged[path] = existing.merged_with_content(content)
        return merged

    def find_by_permission(self, query: SearchQuery, config: SearchConfig) -> List[FileRecord]:
        """Find entries carrying every bit of the query's permission mask."""
        walker = FSWalker(config)
        return walker.find_by_permission(config.start_dir, query.permission.get_mask())

    def find_modified(self, query: SearchQuery, config: SearchConfig) -> List[FileRecord]:
        """
        Find entries modified after the query's date.

        Raises:
            InvalidTimeFormatError: If the date cannot be parsed
        """
        limit = query.get_time_limit()
        walker = FSWalker(config)
        return walker.find_modified_since(config.start_dir, limit)

    def run(self, query: SearchQuery, config: SearchConfig) -> SearchResults:
        """
        Execute every criterion of a query and merge the results.

        Keyword results take precedence; permission and time matches only add
        paths not already present.

        Raises:
            InvalidTimeFormatError: If modified_after is malformed
            InvalidRootDirectoryError: If the start directory cannot be walked
        """
        started = time.perf_counter()
        # Fail on a bad date before doing any work
        query.get_time_limit()
        self.last_index_stale = False
        self.last_scan_stats = {}

        matches: Dict[str, MatchResult] = {}
        if query.has_keyword():
            matches.update(self.search(query.keyword, config))

        if query.permission is not None:
            self._add_records(matches, self.find_by_permission(query, config),
                              MatchType.PERMISSION, config)

        if query.modified_after is not None:
            self._add_records(matches, self.find_modified(query, config),
                              MatchType.MODIFIED, config)

        results = SearchResults(
            query=query,
            matches=matches,
            total_scanned=self.last_scan_stats.get('files_scanned', 0),
            execution_time=time.perf_counter() - started,
            index_stale=self.last_index_stale,
        )
        if self.last_scan_stats.get('errors'):
            results.add_error(f"{self.last_scan_stats['errors']} files could not be read")
        logger.info(str(results))
        return results

    @staticmethod
    def _add_records(matches: Dict[str, MatchResult], records: List[FileRecord],
                     match_type: MatchType, config: SearchConfig) -> None:
        decoder = TextDecoder(config.max_content_size)
        for record in records:
            if record.path in matches:
                continue
            preview = load_preview(decoder, record) if config.load_previews else ""
            matches[record.path] = MatchResult(
                path=record.path,
                match_type=match_type,
                preview_text=preview,
                record=record,
            )


def find_files(keyword: str, config: Optional[SearchConfig] = None,
               index: Optional[FileIndex] = None) -> Dict[str, MatchResult]:
    """
    Convenience function for a one-off keyword search.

    Args:
        keyword: Substring to look for
        config: Search configuration (defaults to the current directory)
        index: Index to reuse between calls

    Returns:
        Mapping from path to match result
    """
    config = config or SearchConfig(start_dir=os.curdir)
    return SearchOrchestrator(index=index).search(keyword, config)
