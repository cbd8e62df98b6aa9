"""
File read/write helpers for editing scanned files.

Saving never patches the current Snapshot: it writes the file and returns
the Snapshot of a fresh scan.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from backend_map.scanner import scan
from backend_map.utils import is_within_root

if TYPE_CHECKING:
    from typing import Any

    from backend_map.models import Snapshot

logger = logging.getLogger(__name__)


def _resolve_inside(root: Path | str, relative_path: str) -> Path:
    root_path = Path(root).expanduser().resolve()
    full_path = (root_path / relative_path).resolve()
    if not is_within_root(full_path, root_path):
        raise ValueError(f"Path {relative_path} is outside {root_path}")
    return full_path


def read_file(root: Path | str, relative_path: str) -> str:
    """
    Read a project file as UTF-8 text.

    Args:
        root: Project root.
        relative_path: Path relative to root.

    Returns:
        File content.

    Raises:
        ValueError: If the path points outside root.
        OSError: If the file cannot be read.
    """
    full_path = _resolve_inside(root, relative_path)
    with open(full_path, "r", encoding="utf-8") as f:
        return f.read()


def save_file(
    root: Path | str,
    relative_path: str,
    content: str,
    config: dict[str, Any] | None = None,
) -> Snapshot:
    """
    Write a project file and rescan the project.

    Args:
        root: Project root.
        relative_path: Path relative to root.
        content: New file content.
        config: Configuration for the rescan.

    Returns:
        Snapshot of the project after the write.

    Raises:
        ValueError: If the path points outside root.
        OSError: If the file cannot be written.
    """
    full_path = _resolve_inside(root, relative_path)
    full_path.parent.mkdir(parents=True, exist_ok=True)
    with open(full_path, "w", encoding="utf-8") as f:
        f.write(content)
    logger.info("Saved %s, rescanning", relative_path)
    return scan(root, config)
