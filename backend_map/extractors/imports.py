"""
Import and export matchers for backend_map.

Only local imports are kept: targets that start with "./" or "../". Package
imports cannot be resolved to files in the project and are ignored.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from backend_map.extractors.base import BaseMatcher

if TYPE_CHECKING:
    from backend_map.models import ScannedFile


LOCAL_PREFIXES = ("./", "../")

# Each pattern captures the import target in group 1
IMPORT_PATTERNS = [
    # ES modules: import x from './a', import { x } from './a', import './a'
    re.compile(r"import\s+(?:[\w\s{},*$]+\s+from\s+)?['\"`]([^'\"`]+)['\"`]"),
    # Dynamic import('./a')
    re.compile(r"import\s*\(\s*['\"`]([^'\"`]+)['\"`]\s*\)"),
    # Re-exports: export * from './a', export { x } from './a'
    re.compile(r"export\s+(?:\*(?:\s+as\s+\w+)?|(?:type\s+)?\{[^}]*\})\s*from\s+['\"`]([^'\"`]+)['\"`]"),
    # CommonJS require('./a')
    re.compile(r"require\s*\(\s*['\"`]([^'\"`]+)['\"`]\s*\)"),
    # PHP require/include, with or without parentheses
    re.compile(r"\b(?:require|include)(?:_once)?\s*\(?\s*['\"]([^'\"]+)['\"]"),
]

# Targets that are relative by convention even without a "./" prefix
IMPLICIT_RELATIVE_PATTERNS = [
    # Ruby require_relative 'a'
    re.compile(r"require_relative\s*\(?\s*['\"]([^'\"]+)['\"]"),
    # C/C++ #include "a.h"
    re.compile(r"^\s*#\s*include\s+\"([^\"]+)\"", re.MULTILINE),
]

# Python relative imports: from .a import b, from .. import c
PYTHON_RELATIVE_IMPORT = re.compile(
    r"^[ \t]*from[ \t]+(\.+)([\w.]*)[ \t]+import[ \t]+\(?([\w*, \t]*)\)?",
    re.MULTILINE,
)

NAMED_EXPORT = re.compile(r"export\s+(?:type\s+)?\{\s*([^}]+?)\s*\}(?!\s*from)")
DIRECT_EXPORT = re.compile(
    r"export\s+(?:declare\s+)?"
    r"(?:const|let|var|function\*?|class|async\s+function\*?|abstract\s+class|interface|type|enum)"
    r"\s+(\w+)"
)
DEFAULT_EXPORT = re.compile(r"export\s+default\b")
COMMONJS_EXPORT_OBJECT = re.compile(r"module\.exports\s*=\s*\{([^}]*)\}")
COMMONJS_EXPORT_SINGLE = re.compile(r"module\.exports\s*=\s*(?!\{)")
COMMONJS_EXPORT_NAME = re.compile(r"\b(?:module\.)?exports\.(\w+)\s*=")
PYTHON_ALL = re.compile(r"^__all__\s*=\s*[\[(]([^\])]*)[\])]", re.MULTILINE)

DEFAULT_MARKER = "default"


def is_local_import(target: str) -> bool:
    """Check whether an import target is a relative path."""
    return target.startswith(LOCAL_PREFIXES)


def python_relative_targets(dots: str, module: str, names: str) -> list[str]:
    """
    Convert a Python relative import to path-style targets.

    ``from .a.b import c`` becomes ``./a/b``; ``from .. import c, d`` becomes
    ``../c`` and ``../d`` since the imported names are modules there.

    Args:
        dots: The leading dots.
        module: Dotted module after the dots (may be empty).
        names: The imported names clause.

    Returns:
        List of "./" or "../" prefixed targets.
    """
    prefix = "./" if len(dots) == 1 else "../" * (len(dots) - 1)
    if module:
        return [prefix + module.replace(".", "/")]
    targets = []
    for name in names.split(","):
        name = name.strip().split()[0] if name.strip() else ""
        if name and name != "*":
            targets.append(prefix + name)
    return targets


class ImportMatcher(BaseMatcher):
    """Collect local import/require targets."""

    name = "imports"

    def apply(self, scanned: ScannedFile) -> None:
        scanned.imports = extract_imports(scanned.content)


class ExportMatcher(BaseMatcher):
    """Collect exported names and the default-export marker."""

    name = "exports"

    def apply(self, scanned: ScannedFile) -> None:
        scanned.exports = extract_exports(scanned.content)


def extract_imports(content: str) -> list[str]:
    """
    Extract local import targets from source text.

    Args:
        content: File text.

    Returns:
        Sorted, duplicate-free list of relative targets.
    """
    imports: set[str] = set()

    for pattern in IMPORT_PATTERNS:
        for match in pattern.finditer(content):
            target = match.group(1)
            if is_local_import(target):
                imports.add(target)

    for pattern in IMPLICIT_RELATIVE_PATTERNS:
        for match in pattern.finditer(content):
            target = match.group(1)
            if not is_local_import(target):
                target = "./" + target
            imports.add(target)

    for match in PYTHON_RELATIVE_IMPORT.finditer(content):
        imports.update(python_relative_targets(*match.groups()))

    return sorted(imports)


def _export_name(spec: str) -> str:
    """Name a specifier is exported as: ``a as b`` exports ``b``."""
    parts = spec.split()
    if len(parts) >= 3 and parts[-2] == "as":
        return parts[-1]
    return parts[-1] if parts else ""


def extract_exports(content: str) -> list[str]:
    """
    Extract exported names from source text.

    Args:
        content: File text.

    Returns:
        Sorted, duplicate-free list of names; "default" marks a default export.
    """
    exports: set[str] = set()

    for match in NAMED_EXPORT.finditer(content):
        for spec in match.group(1).split(","):
            name = _export_name(spec.strip())
            if name:
                exports.add(name)

    for match in DIRECT_EXPORT.finditer(content):
        exports.add(match.group(1))

    if DEFAULT_EXPORT.search(content):
        exports.add(DEFAULT_MARKER)

    for match in COMMONJS_EXPORT_OBJECT.finditer(content):
        for spec in match.group(1).split(","):
            name = spec.split(":")[0].strip()
            if re.fullmatch(r"\w+", name):
                exports.add(name)
    if COMMONJS_EXPORT_SINGLE.search(content):
        exports.add(DEFAULT_MARKER)
    for match in COMMONJS_EXPORT_NAME.finditer(content):
        exports.add(match.group(1))

    for match in PYTHON_ALL.finditer(content):
        exports.update(re.findall(r"['\"](\w+)['\"]", match.group(1)))

    return sorted(exports)
