"""
Exception types for backend_map.

Only RootTraversalError (and its subclass) ever leaves BackendScanner.scan();
the per-file errors are raised and handled inside the scanner and reported
through logging.
"""

from __future__ import annotations


class ScanError(Exception):
    """Base class for scanner errors."""


class RootTraversalError(ScanError, OSError):
    """The project root could not be opened as a directory."""

    def __init__(self, root: str, reason: str) -> None:
        super().__init__(f"Cannot scan {root}: {reason}")
        self.root = root
        self.reason = reason


class TraversalLimitError(RootTraversalError):
    """The walk discovered more files than the configured bound."""

    def __init__(self, root: str, limit: int) -> None:
        super().__init__(root, f"more than {limit} candidate files")
        self.limit = limit


class PerFileReadError(ScanError):
    """A discovered file could not be read. The file is left out of the snapshot."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Could not read {path}: {reason}")
        self.path = path


class PerFileExtractionError(ScanError):
    """A matcher failed on a file. The file is kept with empty facts."""

    def __init__(self, path: str, matcher: str, reason: str) -> None:
        super().__init__(f"{matcher} failed on {path}: {reason}")
        self.path = path
        self.matcher = matcher
