"""
Directory walker for backend_map.

Enumerates candidate source files under a project root: conventional
backend/frontend directories first, then the root itself, then a few
well-known entry files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from backend_map.config import (
    CANDIDATE_DIRS,
    DEFAULT_CONFIG,
    DEFAULT_EXCLUDE,
    ROOT_ENTRY_FILES,
    SUPPORTED_EXTENSIONS,
)
from backend_map.errors import RootTraversalError, TraversalLimitError
from backend_map.utils import should_exclude

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


class DirectoryWalker:
    """Find the files worth scanning under a project root."""

    def __init__(self, root: Path | str, config: dict[str, Any] | None = None) -> None:
        """
        Initialize the walker.

        Args:
            root: Project root directory.
            config: Configuration dictionary (see DEFAULT_CONFIG).
        """
        config = config or DEFAULT_CONFIG
        self.root = Path(root).expanduser()

        candidates = config.get("candidates", {})
        self.candidate_dirs = list(CANDIDATE_DIRS)
        for directory in candidates.get("directories") or []:
            if directory not in self.candidate_dirs:
                # Extra directories are searched before the root catch-all
                self.candidate_dirs.insert(len(self.candidate_dirs) - 1, directory)
        self.entry_files = list(ROOT_ENTRY_FILES) + list(candidates.get("entry_files") or [])

        exclude = config.get("exclude", {})
        self.exclude = DEFAULT_EXCLUDE + list(exclude.get("directories") or [])
        excluded_exts = {
            (ext if ext.startswith(".") else "." + ext).lower()
            for ext in exclude.get("extensions") or []
        }
        self.extensions = [ext for ext in SUPPORTED_EXTENSIONS if ext not in excluded_exts]

        self.max_files: int = config.get("scan", {}).get(
            "max_files", DEFAULT_CONFIG["scan"]["max_files"]
        )

        self._seen: set[Path] = set()
        self._found: list[Path] = []

    def walk(self) -> list[Path]:
        """
        Enumerate candidate files.

        Returns:
            Absolute file paths, in discovery order, without duplicates.

        Raises:
            RootTraversalError: If the root cannot be opened as a directory.
            TraversalLimitError: If more than max_files files are found.
        """
        try:
            with os.scandir(self.root):
                pass
        except OSError as e:
            raise RootTraversalError(str(self.root), e.strerror or str(e)) from e

        root = self.root.resolve()
        self._seen = set()
        self._found = []

        for directory in self.candidate_dirs:
            full_path = root / directory if directory != "." else root
            if full_path.is_dir():
                logger.debug("Scanning directory: %s", directory)
                self._scan_directory(full_path)
            else:
                logger.debug("Directory not found: %s", directory)

        for filename in self.entry_files:
            full_path = root / filename
            if full_path.is_file() and self._is_supported(filename):
                self._add(full_path)

        logger.info("Found %d candidate files under %s", len(self._found), root)
        return list(self._found)

    def _scan_directory(self, directory: Path) -> None:
        """Recursively collect supported files. Unreadable directories are skipped."""
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            logger.warning("Skipping unreadable directory %s: %s", directory, e)
            return

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    if not should_exclude(entry.name, self.exclude):
                        self._scan_directory(Path(entry.path))
                elif entry.is_file() and self._is_supported(entry.name):
                    self._add(Path(entry.path))
            except TraversalLimitError:
                raise
            except OSError as e:
                logger.warning("Skipping %s: %s", entry.path, e)

    def _is_supported(self, filename: str) -> bool:
        return os.path.splitext(filename)[1].lower() in self.extensions

    def _add(self, path: Path) -> None:
        if path in self._seen:
            return
        self._seen.add(path)
        self._found.append(path)
        if len(self._found) > self.max_files:
            raise TraversalLimitError(str(self.root), self.max_files)


def walk(root: Path | str, config: dict[str, Any] | None = None) -> list[Path]:
    """
    Enumerate candidate files under root.

    Args:
        root: Project root directory.
        config: Configuration dictionary.

    Returns:
        Absolute file paths in discovery order.
    """
    return DirectoryWalker(root, config).walk()
