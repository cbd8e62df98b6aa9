"""
Cross-file call matcher for backend_map.

Tracks the names a file binds from local imports and records where those
names are called from inside the file's functions. The resolver turns the
calls whose import path resolves into function_call relationships.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from backend_map.extractors.base import BaseMatcher
from backend_map.extractors.imports import is_local_import, python_relative_targets
from backend_map.models import FunctionCall

if TYPE_CHECKING:
    from backend_map.models import FunctionFact, ScannedFile


# import d, { a, b as c } from './x'
ES_BINDING = re.compile(
    r"import\s+(?:type\s+)?(?:(?P<default>[\w$]+)\s*,?\s*)?(?:\{(?P<named>[^}]*)\})?\s*from\s+['\"`](?P<path>[^'\"`]+)['\"`]"
)
# import * as ns from './x'
ES_NAMESPACE_BINDING = re.compile(r"import\s+\*\s+as\s+(?P<name>[\w$]+)\s+from\s+['\"`](?P<path>[^'\"`]+)['\"`]")
# const { e, f: g } = require('./x')
REQUIRE_DESTRUCTURE = re.compile(
    r"(?:const|let|var)\s+\{(?P<named>[^}]*)\}\s*=\s*require\s*\(\s*['\"`](?P<path>[^'\"`]+)['\"`]\s*\)"
)
# const h = require('./x')
REQUIRE_BINDING = re.compile(
    r"(?:const|let|var)\s+(?P<name>[\w$]+)\s*=\s*require\s*\(\s*['\"`](?P<path>[^'\"`]+)['\"`]\s*\)"
)
# from .x import a, b as c
PYTHON_BINDING = re.compile(
    r"^[ \t]*from[ \t]+(?P<dots>\.+)(?P<module>[\w.]*)[ \t]+import[ \t]+\(?(?P<names>[\w*, \t]*)\)?",
    re.MULTILINE,
)


class Binding:
    """A local name bound by an import: ``local`` refers to ``exported`` in ``path``."""

    __slots__ = ("local", "exported", "path")

    def __init__(self, local: str, exported: str, path: str) -> None:
        self.local = local
        self.exported = exported
        self.path = path

    def __repr__(self) -> str:
        return f"Binding({self.local!r}, {self.exported!r}, {self.path!r})"


def _named_bindings(specifiers: str, path: str, separator: str) -> list[Binding]:
    """Parse ``a, b as c`` (ES) or ``a, b: c`` (destructuring) specifier lists."""
    bindings = []
    for spec in specifiers.split(","):
        spec = spec.strip()
        if not spec:
            continue
        if separator in spec:
            exported, local = (part.strip() for part in spec.split(separator, 1))
        else:
            exported = local = spec
        exported = exported.replace("type ", "").strip()
        if re.fullmatch(r"[\w$]+", local) and re.fullmatch(r"[\w$]+", exported):
            bindings.append(Binding(local, exported, path))
    return bindings


def find_bindings(content: str) -> list[Binding]:
    """
    Collect names bound by local imports.

    Args:
        content: File text.

    Returns:
        Bindings in pattern order; package imports are ignored.
    """
    bindings: list[Binding] = []

    for match in ES_BINDING.finditer(content):
        path = match.group("path")
        if not is_local_import(path):
            continue
        if match.group("default"):
            bindings.append(Binding(match.group("default"), match.group("default"), path))
        if match.group("named"):
            bindings.extend(_named_bindings(match.group("named"), path, " as "))

    for pattern in (ES_NAMESPACE_BINDING, REQUIRE_BINDING):
        for match in pattern.finditer(content):
            if is_local_import(match.group("path")):
                bindings.append(Binding(match.group("name"), match.group("name"), match.group("path")))

    for match in REQUIRE_DESTRUCTURE.finditer(content):
        if is_local_import(match.group("path")):
            bindings.extend(_named_bindings(match.group("named"), match.group("path"), ":"))

    for match in PYTHON_BINDING.finditer(content):
        dots, module, names = match.group("dots"), match.group("module"), match.group("names")
        for spec in names.split(","):
            parts = spec.split()
            if not parts or parts[0] == "*":
                continue
            exported, local = parts[0], parts[-1]
            if module:
                path = python_relative_targets(dots, module, "")[0]
            else:
                path = python_relative_targets(dots, "", exported)[0]
            bindings.append(Binding(local, exported, path))

    return bindings


def _owner_by_line(functions: list[FunctionFact], line_count: int) -> list[FunctionFact | None]:
    """Map each line (0-based) to the innermost function whose range contains it."""
    owners: list[FunctionFact | None] = [None] * line_count
    # Widest ranges first so narrower ones overwrite them
    for func in sorted(functions, key=lambda f: f.end_line - f.start_line, reverse=True):
        for index in range(func.start_line - 1, min(func.end_line, line_count)):
            owners[index] = func
    return owners


def extract_calls(content: str, functions: list[FunctionFact]) -> list[FunctionCall]:
    """
    Find calls to imported names inside function bodies.

    Args:
        content: File text.
        functions: Function facts of the same file.

    Returns:
        FunctionCalls in line order.
    """
    bindings = find_bindings(content)
    if not bindings or not functions:
        return []

    lines = content.split("\n")
    owners = _owner_by_line(functions, len(lines))
    call_patterns = [
        (binding, re.compile(r"(?<![\w$.])" + re.escape(binding.local) + r"\s*(?:\.\s*([\w$]+)\s*)?\("))
        for binding in bindings
    ]

    calls: list[FunctionCall] = []
    for index, line in enumerate(lines):
        owner = owners[index]
        if owner is None:
            continue
        for binding, pattern in call_patterns:
            for match in pattern.finditer(line):
                member = match.group(1)
                calls.append(FunctionCall(
                    caller=owner.name,
                    name=member or binding.exported,
                    import_path=binding.path,
                    line=index + 1,
                ))
    return calls


class CallMatcher(BaseMatcher):
    """
    Collect calls to imported names.

    Reads scanned.functions, so it runs after SymbolMatcher.
    """

    name = "calls"

    def apply(self, scanned: ScannedFile) -> None:
        scanned.calls = extract_calls(scanned.content, scanned.functions)
