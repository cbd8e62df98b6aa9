"""
Shared helpers for the lexical matchers.

Matchers work on raw text with regular expressions. Block ends are estimated
by brace balancing, with indentation (Python) and ``end`` keyword (Ruby)
fallbacks for languages without brace-delimited blocks. The estimates are
approximations: minified or malformed source can make them overrun.
"""

from __future__ import annotations

import os
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from backend_map.utils import line_at

if TYPE_CHECKING:
    from backend_map.models import ScannedFile


LANGUAGE_BY_EXTENSION = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "javascript",
    ".tsx": "javascript",
    ".py": "python",
    ".php": "php",
    ".go": "go",
    ".rb": "ruby",
    ".java": "java",
    ".cs": "csharp",
    ".c": "c",
    ".cpp": "c",
}

# Lines added to the start line when no block end can be found
FALLBACK_SPAN = 10

_RUBY_BLOCK_END = re.compile(r"^\s*end\b")
# How far a multi-line signature may run before its closing ":"
MAX_SIGNATURE_LINES = 10


def language_of(path: str) -> str:
    """Language family of a file, from its extension ("unknown" if unsupported)."""
    return LANGUAGE_BY_EXTENSION.get(os.path.splitext(path)[1].lower(), "unknown")


def find_brace_end(content: str, offset: int) -> int | None:
    """
    Find the line where the block opened at or after offset closes.

    Scans forward from offset to the first "{" and counts brace depth back to
    zero. A ";" reached before any "{" ends a body-less declaration on that
    line.

    Args:
        content: Full file text.
        offset: Character offset of the declaration.

    Returns:
        1-based end line, or None if the block never opens or never closes.
    """
    depth = 0
    opened = False
    for i in range(offset, len(content)):
        char = content[i]
        if char == "{":
            depth += 1
            opened = True
        elif char == "}":
            if opened:
                depth -= 1
                if depth == 0:
                    return line_at(content, i)
        elif char == ";" and not opened:
            return line_at(content, i)
    return None


def _indent_width(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def _block_colon(header: str) -> int | None:
    """Index of the ":" opening a block on a header line, outside brackets."""
    depth = 0
    for index, char in enumerate(header):
        if char == "#":
            return None
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        elif char == ":" and depth == 0:
            return index
    return None


def find_indent_end(lines: list[str], start_line: int) -> int:
    """
    Find the last line of an indentation-delimited block (Python).

    The block starts at start_line (1-based) and continues while lines are
    blank or indented deeper than the header. A header with code after its
    ":" is a one-liner.
    """
    header = lines[start_line - 1]
    base = _indent_width(header)
    colon = _block_colon(header)
    if colon is not None:
        rest = header[colon + 1:].strip()
        if rest and not rest.startswith("#"):
            return start_line
        index = start_line - 1
    else:
        # Decorators and multi-line signatures: skip to the line holding the ":"
        index = start_line - 1
        limit = min(len(lines), index + MAX_SIGNATURE_LINES)
        while index < limit and not lines[index].rstrip().endswith(":"):
            index += 1
        if index >= limit:
            return start_line
    end = index + 1

    for index in range(end, len(lines)):
        line = lines[index]
        if not line.strip():
            continue
        if _indent_width(line) <= base:
            break
        end = index + 1
    return end


def find_keyword_end(lines: list[str], start_line: int) -> int | None:
    """
    Find the ``end`` closing a Ruby def/class at start_line.

    Returns the first later line that is a bare ``end`` at the header's
    indentation, or None.
    """
    base = _indent_width(lines[start_line - 1])
    for index in range(start_line, len(lines)):
        line = lines[index]
        if _RUBY_BLOCK_END.match(line) and _indent_width(line) == base:
            return index + 1
    return None


def estimate_end_line(
    content: str,
    lines: list[str],
    offset: int,
    start_line: int,
    language: str,
) -> int:
    """
    Estimate where a declaration ends.

    Args:
        content: Full file text.
        lines: content split into lines.
        offset: Character offset of the declaration.
        start_line: 1-based line of the declaration.
        language: Language family (see LANGUAGE_BY_EXTENSION).

    Returns:
        End line, always within [start_line, len(lines)].
    """
    end: int | None
    if language == "python":
        end = find_indent_end(lines, start_line)
    elif language == "ruby":
        end = find_keyword_end(lines, start_line)
    else:
        end = find_brace_end(content, offset)

    if end is None:
        end = start_line + FALLBACK_SPAN
    return max(start_line, min(end, len(lines)))


class BaseMatcher(ABC):
    """
    One independent pass over a file.

    Each matcher fills in its own fields of the ScannedFile and leaves the
    others alone. Finding nothing is not an error.
    """

    name: ClassVar[str] = "matcher"

    @abstractmethod
    def apply(self, scanned: ScannedFile) -> None:
        """
        Run this matcher over scanned.content and record results on scanned.

        Args:
            scanned: File being analyzed; role, path and content are set.
        """
        ...
