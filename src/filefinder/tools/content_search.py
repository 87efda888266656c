"""
Content scanning for keyword searches.

The scanner walks the tree with the same filters as the index builder, rejects
binary and oversized files through the text decoder, and runs the Boyer-Moore
matcher plus context extraction over each remaining file. Files are scanned
by a worker pool when concurrent scanning is enabled; each file is scanned by
a single thread, so line numbers within a result are strictly increasing.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional

from ..errors import BinaryContentError, OversizedFileError, PermissionDeniedError
from ..models.config import SearchConfig
from ..models.search_results import FileRecord, MatchResult, MatchType
from .context import ContextSearch
from .fs_walker import FSWalker
from .text_decoder import BINARY_SENTINEL, TextDecoder, split_lines


logger = logging.getLogger(__name__)

PREVIEW_MAX_LINES = 3
PREVIEW_MAX_CHARS = 200


def load_preview(decoder: TextDecoder, record: FileRecord) -> str:
    """
    Get a short preview of a file for filename results.

    Binary files preview as the binary sentinel; unreadable or oversized files
    get an empty preview.
    """
    if record.is_dir:
        return ""
    if decoder.max_size > 0 and record.size > decoder.max_size:
        return ""

    try:
        content = decoder.read_file(record.path)
    except (OversizedFileError, PermissionDeniedError, OSError) as e:
        logger.debug(f"No preview for {record.path}: {e}")
        return ""

    if content.is_binary:
        return BINARY_SENTINEL

    lines = split_lines(content.text)[:PREVIEW_MAX_LINES]
    return "\n".join(lines)[:PREVIEW_MAX_CHARS]


class ContentScanner:
    """Searches file contents for a keyword."""

    def __init__(self, keyword: str, config: SearchConfig):
        """
        Initialize the scanner.

        Args:
            keyword: Substring to search for
            config: Search configuration supplying filters and matcher options
        """
        self.keyword = keyword
        self.config = config
        self.decoder = TextDecoder(config.max_content_size)
        self.context_search = ContextSearch(keyword, config.case_sensitive, config.context_lines)
        self._stats_lock = threading.Lock()
        self._stats = {
            'files_scanned': 0,
            'files_matched': 0,
            'binary_skipped': 0,
            'oversized_skipped': 0,
            'errors': 0
        }

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1

    def scan(self, start_dir: str) -> Dict[str, MatchResult]:
        """
        Walk start_dir and search every qualifying file.

        Args:
            start_dir: Directory to walk

        Returns:
            Mapping from path to content match; files without matches are absent

        Raises:
            InvalidRootDirectoryError: If start_dir cannot be walked
        """
        walker = FSWalker(self.config)
        candidates = [record for record in walker.walk_files(start_dir) if self._qualifies(record)]

        if self.config.concurrent and self.config.workers > 1 and len(candidates) > 1:
            results = self._scan_concurrent(candidates)
        else:
            results = {}
            for record in candidates:
                match = self.scan_file(record)
                if match is not None:
                    results[record.path] = match

        logger.info(f"Content scan of {start_dir}: {len(results)} of {len(candidates)} files matched")
        return results

    def _qualifies(self, record: FileRecord) -> bool:
        if record.size > self.config.max_content_size:
            logger.debug(f"Skipping oversized file: {record.path} ({record.size} bytes)")
            self._count('oversized_skipped')
            return False
        return True

    def _scan_concurrent(self, candidates: List[FileRecord]) -> Dict[str, MatchResult]:
        results: Dict[str, MatchResult] = {}
        with ThreadPoolExecutor(max_workers=self.config.workers,
                                thread_name_prefix="filefinder-scan") as executor:
            futures = {executor.submit(self.scan_file, record): record for record in candidates}
            for future in as_completed(futures):
                record = futures[future]
                try:
                    match = future.result()
                except Exception as e:
                    logger.warning(f"Error scanning {record.path}: {e}")
                    self._count('errors')
                    continue
                if match is not None:
                    results[record.path] = match
        return results

    def scan_file(self, record: FileRecord) -> Optional[MatchResult]:
        """
        Search a single file.

        Args:
            record: Snapshot of the file to search

        Returns:
            MatchResult if the keyword occurs at least once, otherwise None
        """
        try:
            lines = self.decoder.read_lines(record.path)
        except BinaryContentError:
            self._count('binary_skipped')
            return None
        except OversizedFileError as e:
            logger.debug(str(e))
            self._count('oversized_skipped')
            return None
        except PermissionDeniedError as e:
            logger.debug(str(e))
            self._count('errors')
            return None
        except OSError as e:
            logger.debug(f"Cannot read {record.path}: {e}")
            self._count('errors')
            return None

        self._count('files_scanned')
        matches = self.context_search.search(lines)
        if not matches:
            return None

        self._count('files_matched')
        match_lines = [match.line_match.line_number for match in matches]
        return MatchResult(
            path=record.path,
            match_type=MatchType.CONTENT,
            match_lines=match_lines,
            match_count=sum(match.line_match.count for match in matches),
            context_lines=self.context_search.extractor.merge(lines, match_lines),
            preview_text="\n".join(matches[0].context),
            record=record,
        )

    def get_stats(self) -> Dict[str, int]:
        """Get a copy of the scan counters."""
        with self._stats_lock:
            return self._stats.copy()
