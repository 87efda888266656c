"""
In-memory file index for filename searches.

The index maps paths to FileRecord snapshots and file names to the paths that
carry them. It is built by one traversal thread feeding a bounded queue that a
fixed pool of worker threads drains into thread-local batches. Batches are
flushed into staging maps under a single mutex; when the build completes the
staging maps replace the live maps in one swap under the index lock, so
readers see either the previous index or the new one in full.
"""

import logging
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from ..errors import ChannelBackpressureTimeout, IndexWorkersStoppedError
from ..models.config import SearchConfig
from ..models.search_results import FileRecord
from .fs_walker import FSWalker, validate_root
from .progress import NullProgressReporter, ProgressReporter


logger = logging.getLogger(__name__)

QUEUE_SIZE = 5000
BATCH_SIZE = 1000
ENQUEUE_TIMEOUT = 0.01
STALE_AFTER = timedelta(minutes=30)

_DONE = object()


def filter_signature(config: SearchConfig) -> tuple:
    """Config fields that decide which entries a build admits."""
    return (
        tuple(config.exclude_dirs),
        tuple(config.file_types),
        config.max_depth,
        config.size_limit,
    )


@dataclass(frozen=True)
class IndexBuildStats:
    """Counters from one index build."""
    root: str
    entries: int
    directories_traversed: int
    errors: int
    dropped: int
    duration: float


class FileIndex:
    """
    Name and path index owned by one orchestrator.

    The maps are never handed out; all access goes through the query methods,
    which copy what they return while holding the lock.
    """

    def __init__(self, stale_after: timedelta = STALE_AFTER,
                 queue_size: int = QUEUE_SIZE, batch_size: int = BATCH_SIZE,
                 enqueue_timeout: float = ENQUEUE_TIMEOUT):
        self.stale_after = stale_after
        self.queue_size = queue_size
        self.batch_size = batch_size
        self.enqueue_timeout = enqueue_timeout

        self._lock = threading.RLock()
        self._path_to_record: Dict[str, FileRecord] = {}
        self._name_to_paths: Dict[str, List[str]] = {}
        self._built_at: Optional[datetime] = None
        self._root: Optional[str] = None
        self._filters: Optional[tuple] = None

    @property
    def built_at(self) -> Optional[datetime]:
        with self._lock:
            return self._built_at

    @property
    def root(self) -> Optional[str]:
        with self._lock:
            return self._root

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._path_to_record)

    def built_with(self, config: SearchConfig) -> bool:
        """Check if the current entries were admitted by the same filters as config."""
        with self._lock:
            return self._filters == filter_signature(config)

    def is_empty(self) -> bool:
        """Check if no build has populated the index."""
        with self._lock:
            return not self._path_to_record

    def is_stale(self, now: Optional[datetime] = None) -> bool:
        """
        Check whether the index is past its freshness window.

        An index that was never built counts as stale. Staleness is advisory;
        queries keep working.
        """
        with self._lock:
            built_at = self._built_at
        if built_at is None:
            return True
        now = now or datetime.now()
        return now - built_at > self.stale_after

    def build(self, start_dir: str, config: SearchConfig,
              progress: Optional[ProgressReporter] = None) -> IndexBuildStats:
        """
        Walk start_dir and replace the index with what was found.

        Args:
            start_dir: Directory to index
            config: Search configuration supplying filters and pool width
            progress: Optional receiver of build events

        Returns:
            Counters describing the build

        Raises:
            InvalidRootDirectoryError: If start_dir cannot be walked
            Exception: Any traversal-level failure; the previous index stays in place
        """
        progress = progress or NullProgressReporter()
        root = validate_root(start_dir)
        started = time.perf_counter()

        walker = FSWalker(config)
        entries: queue.Queue = queue.Queue(maxsize=self.queue_size)
        staging_records: Dict[str, FileRecord] = {}
        staging_names: Dict[str, List[str]] = {}
        staging_lock = threading.Lock()
        producer_errors: List[Exception] = []
        dropped = [0]
        worker_count = config.index_workers

        def flush(batch: List[FileRecord]) -> None:
            with staging_lock:
                for record in batch:
                    if record.path not in staging_records:
                        staging_names.setdefault(record.name, []).append(record.path)
                    staging_records[record.path] = record

        def drain() -> None:
            batch: List[FileRecord] = []
            while True:
                item = entries.get()
                if item is _DONE:
                    break
                batch.append(item)
                try:
                    progress.increment()
                except Exception as e:
                    logger.debug(f"Progress reporter failed: {e}")
                if len(batch) >= self.batch_size:
                    flush(batch)
                    batch = []
            if batch:
                flush(batch)

        def workers_gone() -> bool:
            return all(future.done() for future in futures)

        def produce() -> None:
            try:
                for record in walker.walk(root, on_directory=progress.current_directory):
                    try:
                        self._enqueue(entries, record, config.drop_on_backpressure, workers_gone)
                    except ChannelBackpressureTimeout as e:
                        dropped[0] += 1
                        logger.warning(str(e))
            except Exception as e:
                producer_errors.append(e)
            finally:
                self._signal_done(entries, worker_count, workers_gone)

        progress.start()
        producer = threading.Thread(target=produce, name="filefinder-index-walk", daemon=True)
        with ThreadPoolExecutor(max_workers=worker_count,
                                thread_name_prefix="filefinder-index") as executor:
            futures = [executor.submit(drain) for _ in range(worker_count)]
            producer.start()
            producer.join()
            worker_errors = [future.exception() for future in futures]

        # Worker failures first: they abort the producer too
        errors = [e for e in worker_errors if e is not None] + producer_errors
        if errors:
            progress.stop(False)
            logger.error(f"Index build of {root} failed: {errors[0]}")
            raise errors[0]

        with self._lock:
            self._path_to_record = staging_records
            self._name_to_paths = staging_names
            self._built_at = datetime.now()
            self._root = root
            self._filters = filter_signature(config)

        progress.stop(True)
        walker_stats = walker.get_stats()
        stats = IndexBuildStats(
            root=root,
            entries=len(staging_records),
            directories_traversed=walker_stats['directories_traversed'],
            errors=walker_stats['errors'],
            dropped=dropped[0],
            duration=time.perf_counter() - started,
        )
        logger.info(f"Indexed {stats.entries} entries under {root} in {stats.duration:.2f}s")
        if stats.dropped:
            logger.warning(f"{stats.dropped} entries dropped under queue backpressure")
        return stats

    def _enqueue(self, entries: queue.Queue, record: FileRecord, drop: bool,
                 workers_gone: Optional[Callable[[], bool]] = None) -> None:
        """
        Put a record on the build queue, waiting in short slices while it is full.

        Raises:
            ChannelBackpressureTimeout: If drop is set and the first wait times out
            IndexWorkersStoppedError: If the queue is full and no worker is left to drain it
        """
        while True:
            try:
                entries.put(record, timeout=self.enqueue_timeout)
                return
            except queue.Full:
                if drop:
                    raise ChannelBackpressureTimeout(record.path, self.enqueue_timeout)
                if workers_gone is not None and workers_gone():
                    raise IndexWorkersStoppedError(record.path)

    def _signal_done(self, entries: queue.Queue, worker_count: int,
                     workers_gone: Callable[[], bool]) -> None:
        """Queue one end marker per worker, giving up once every worker has exited."""
        for _ in range(worker_count):
            while True:
                try:
                    entries.put(_DONE, timeout=self.enqueue_timeout)
                    break
                except queue.Full:
                    if workers_gone():
                        return

    def search_names(self, keyword: str, include_dirs: bool = False) -> List[FileRecord]:
        """
        Find records whose name contains keyword, case-insensitively.

        Args:
            keyword: Substring to look for in entry names
            include_dirs: Whether directory records are returned

        Returns:
            Matching records in no particular order
        """
        needle = keyword.lower()
        results = []
        with self._lock:
            for name, paths in self._name_to_paths.items():
                if needle not in name.lower():
                    continue
                for path in paths:
                    record = self._path_to_record[path]
                    if record.is_dir and not include_dirs:
                        continue
                    results.append(record)
        return results

    def get_record(self, path: str) -> Optional[FileRecord]:
        """Get the indexed record for a path."""
        with self._lock:
            return self._path_to_record.get(path)

    def refresh_record(self, record: FileRecord) -> bool:
        """
        Replace the record for an already indexed path.

        Paths not in the current index are ignored so a refresh racing a
        rebuild cannot break the name-to-path invariant.

        Returns:
            True if the record was replaced
        """
        with self._lock:
            current = self._path_to_record.get(record.path)
            if current is None or current.name != record.name:
                return False
            self._path_to_record[record.path] = record
            return True

    def paths_for_name(self, name: str) -> List[str]:
        """Get every indexed path carrying exactly this name."""
        with self._lock:
            return list(self._name_to_paths.get(name, []))

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._path_to_record = {}
            self._name_to_paths = {}
            self._built_at = None
            self._root = None
            self._filters = None
