"""
Exception hierarchy for the File Finder engine.

Per-file and per-subtree errors (permission, size, decoding, backpressure) are
raised close to where they happen and absorbed by the walkers and scanners.
Root-directory and time-format errors propagate to the caller.
"""

from typing import Optional


class FinderError(Exception):
    """Base class for all engine errors."""
    pass


class PermissionDeniedError(FinderError):
    """Raised when a file or directory cannot be read due to permissions."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        message = f"Permission denied: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class OversizedFileError(FinderError):
    """Raised when content exceeds the configured content-search ceiling."""

    def __init__(self, size: int, limit: int, path: Optional[str] = None):
        self.size = size
        self.limit = limit
        self.path = path
        target = path or "content"
        super().__init__(f"{target} exceeds size limit: {size} > {limit} bytes")


class UndecodableContentError(FinderError):
    """Raised when no known encoding can decode a byte sequence."""
    pass


class BinaryContentError(FinderError):
    """Raised when line-oriented access is requested for binary content."""
    pass


class InvalidTimeFormatError(FinderError):
    """Raised when a modification-time filter cannot be parsed."""

    def __init__(self, value: str, expected: str = "YYYY-MM-DD"):
        self.value = value
        super().__init__(f"Invalid time format '{value}', expected {expected}")


class InvalidRootDirectoryError(FinderError):
    """Raised when the start directory does not exist or is not a directory."""

    def __init__(self, path: str, reason: str = "does not exist"):
        self.path = path
        super().__init__(f"Invalid root directory {path}: {reason}")


class ChannelBackpressureTimeout(FinderError):
    """Raised when the index queue stays full past the enqueue timeout."""

    def __init__(self, path: str, timeout: float):
        self.path = path
        self.timeout = timeout
        super().__init__(f"Index queue full for {timeout:.3f}s, dropping entry: {path}")


class IndexWorkersStoppedError(FinderError):
    """Raised when every index worker has exited while the walk still has entries."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Index workers stopped before {path} could be queued")
