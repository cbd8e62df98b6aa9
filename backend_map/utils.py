"""
Utility functions for backend_map.
"""

from __future__ import annotations

import posixpath
from pathlib import Path, PurePath


def normalize_path(path: str | PurePath) -> str:
    """
    Normalize a relative path to POSIX form.

    Backslashes become slashes, "." and ".." segments are collapsed and a
    leading "./" is dropped.

    Args:
        path: Relative path, in any separator style.

    Returns:
        Normalized POSIX path ("" for the root itself).
    """
    text = str(path).replace("\\", "/")
    if not text:
        return ""
    normalized = posixpath.normpath(text)
    return "" if normalized == "." else normalized


def make_file_id(relative_path: str | PurePath) -> str:
    """
    Derive a file id from its relative path.

    The id depends on nothing but the normalized path, so rescanning an
    unchanged tree yields the same ids.

    Args:
        relative_path: Path relative to the project root.

    Returns:
        The normalized POSIX path. Distinct files never share an id.
    """
    return normalize_path(relative_path)


def should_exclude(name: str, exclude_patterns: list[str]) -> bool:
    """
    Check if a directory or file name should be excluded.

    Args:
        name: Single path component.
        exclude_patterns: Patterns. Patterns starting with '*' match
            suffixes, others match the name exactly.

    Returns:
        True if the name should be excluded.
    """
    for pattern in exclude_patterns:
        if pattern.startswith("*"):
            if name.endswith(pattern[1:]):
                return True
        elif name == pattern:
            return True
    return False


def is_within_root(path: Path, root: Path) -> bool:
    """Check whether a resolved path is inside root."""
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False


def line_at(content: str, offset: int) -> int:
    """
    Get the 1-based line number of a character offset.

    Args:
        content: Full file text.
        offset: Character offset into content.

    Returns:
        Line number containing offset.
    """
    return content.count("\n", 0, offset) + 1


def count_lines(content: str) -> int:
    """Count lines in text. Empty text still has one (empty) line."""
    return content.count("\n") + 1

