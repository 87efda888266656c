"""
Progress reporting side channel for index builds.

The engine calls into a reporter at discrete points of a build; rendering is
entirely up to the reporter.
"""

import logging
import os
import threading
from typing import Optional, Protocol, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class ProgressReporter(Protocol):
    """Receives index build events."""

    def start(self) -> None:
        ...

    def current_directory(self, path: str) -> None:
        ...

    def increment(self) -> None:
        ...

    def stop(self, completed: bool) -> None:
        ...


class NullProgressReporter:
    """Reporter that ignores every event."""

    def start(self) -> None:
        pass

    def current_directory(self, path: str) -> None:
        pass

    def increment(self) -> None:
        pass

    def stop(self, completed: bool) -> None:
        pass


class LoggingProgressReporter:
    """
    Reporter that logs build start/stop and each newly entered volume.

    ``increment`` may be called from several worker threads at once.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger
        self._lock = threading.Lock()
        self._count = 0
        self._last_volume: Optional[str] = None

    @property
    def count(self) -> int:
        return self._count

    def start(self) -> None:
        self._count = 0
        self._last_volume = None
        self.log.info("Building file index...")

    def current_directory(self, path: str) -> None:
        volume = os.path.splitdrive(path)[0]
        if volume and volume != self._last_volume:
            self.log.info(f"Indexing volume {volume}")
            self._last_volume = volume
        self.log.debug(f"Indexing directory: {path}")

    def increment(self) -> None:
        with self._lock:
            self._count += 1

    def stop(self, completed: bool) -> None:
        if completed:
            self.log.info(f"File index built: {self._count} entries")
        else:
            self.log.warning(f"File index build aborted after {self._count} entries")
