"""
Function and class matcher for backend_map.

Declarations are found with one ordered pattern table per construct. Each
pattern names the language families it applies to; adding a declaration
shape means appending a row, not touching existing ones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from backend_map.extractors.base import BaseMatcher, estimate_end_line, language_of
from backend_map.models import ClassFact, ClassKind, FunctionFact, FunctionKind
from backend_map.utils import line_at

if TYPE_CHECKING:
    from backend_map.models import ScannedFile


JS = "javascript"
PY = "python"
PHP = "php"
GO = "go"
RUBY = "ruby"
JAVA = "java"
CSHARP = "csharp"
C = "c"

# Names that look like declarations to a regex but are control flow
KEYWORDS = frozenset({
    "if", "for", "while", "switch", "catch", "function", "return", "with",
    "elif", "else", "foreach", "using", "lock", "fixed", "sizeof", "typeof",
    "new", "throw", "await", "case", "do", "try", "synchronized",
})


@dataclass(frozen=True)
class SymbolPattern:
    """
    One declaration shape.

    Named groups used by the matcher: name, params/param, async, export,
    method, route, receiver, indent, modifiers, rtype, extends, implements,
    bases.
    """

    label: str
    regex: re.Pattern
    kind: str
    languages: frozenset


def _pattern(label: str, regex: str, kind: str, *languages: str, flags: int = 0) -> SymbolPattern:
    return SymbolPattern(label, re.compile(regex, flags), kind, frozenset(languages))


FUNCTION_PATTERNS = (
    # function foo(a, b)
    _pattern(
        "js_function",
        r"(?P<export>export\s+(?:default\s+)?)?(?P<async>async\s+)?function\s*\*?\s*(?P<name>\w+)\s*"
        r"(?:<[^>]*>)?\s*\((?P<params>[^)]*)\)",
        FunctionKind.FUNCTION, JS,
    ),
    # const foo = async (a) => ..., const foo = a => ...
    _pattern(
        "js_arrow",
        r"(?P<export>export\s+)?(?:const|let|var)\s+(?P<name>\w+)\s*(?::[^=\n]+)?=\s*(?P<async>async\s+)?"
        r"(?:\((?P<params>[^)]*)\)|(?P<param>\w+))\s*(?::\s*[^=\n]+)?=>",
        FunctionKind.FUNCTION, JS,
    ),
    # const foo = function (a) {...}
    _pattern(
        "js_function_expression",
        r"(?P<export>export\s+)?(?:const|let|var)\s+(?P<name>\w+)\s*=\s*(?P<async>async\s+)?"
        r"function\b\s*\*?\s*\w*\s*\((?P<params>[^)]*)\)",
        FunctionKind.FUNCTION, JS,
    ),
    # class methods: async foo(a): Promise<X> {
    _pattern(
        "js_method",
        r"^[ \t]*(?:(?:public|private|protected|static|readonly|override|abstract|get|set)[ \t]+)*"
        r"(?P<async>async[ \t]+)?\*?(?P<name>[A-Za-z_$][\w$]*)[ \t]*\((?P<params>[^)]*)\)"
        r"[ \t]*(?::[ \t]*[^{;=\n]+)?\{",
        FunctionKind.METHOD, JS, flags=re.MULTILINE,
    ),
    # app.get('/users', ...), router.post('/users', ...)
    _pattern(
        "express_route",
        r"\b(?P<object>app|router)\.(?P<method>get|post|put|delete|patch)\s*\(\s*['\"`](?P<route>[^'\"`]+)['\"`]",
        FunctionKind.ENDPOINT, JS,
    ),
    # def foo(a), async def foo(a)
    _pattern(
        "py_function",
        r"^(?P<indent>[ \t]*)(?P<async>async[ \t]+)?def[ \t]+(?P<name>\w+)[ \t]*\((?P<params>[^)]*)\)",
        FunctionKind.FUNCTION, PY, flags=re.MULTILINE,
    ),
    # @app.get("/users"), @router.post("/users")
    _pattern(
        "py_route",
        r"^[ \t]*@(?P<object>\w+)\.(?P<method>get|post|put|delete|patch)\(\s*['\"](?P<route>[^'\"]+)['\"]",
        FunctionKind.ENDPOINT, PY, flags=re.MULTILINE,
    ),
    # @app.route("/users", methods=["POST"])
    _pattern(
        "flask_route",
        r"^[ \t]*@(?P<object>\w+)\.route\(\s*['\"](?P<route>[^'\"]+)['\"]"
        r"(?:[^)\n]*methods\s*=\s*[\[(]\s*['\"](?P<method>\w+))?",
        FunctionKind.ENDPOINT, PY, flags=re.MULTILINE,
    ),
    # public function foo($a)
    _pattern(
        "php_function",
        r"(?P<modifiers>(?:(?:public|private|protected|static|abstract|final)\s+)*)function\s+&?(?P<name>\w+)\s*"
        r"\((?P<params>[^)]*)\)",
        FunctionKind.FUNCTION, PHP,
    ),
    # func Foo(a int), func (s *Server) Foo(a int)
    _pattern(
        "go_function",
        r"\bfunc\s+(?P<receiver>\([^)]*\)\s*)?(?P<name>\w+)\s*(?:\[[^\]]*\])?\s*\((?P<params>[^)]*)\)",
        FunctionKind.FUNCTION, GO,
    ),
    # def foo(a), def self.foo
    _pattern(
        "ruby_def",
        r"^(?P<indent>[ \t]*)def[ \t]+(?:self\.)?(?P<name>\w+[?!=]?)(?:[ \t]*\((?P<params>[^)]*)\))?",
        FunctionKind.FUNCTION, RUBY, flags=re.MULTILINE,
    ),
    # public static List<User> findAll(int a) throws X {
    _pattern(
        "c_like_method",
        r"^[ \t]*(?P<modifiers>(?:(?:public|private|protected|internal|static|final|abstract|synchronized|"
        r"virtual|override|async|extern|inline|unsafe|sealed|default)[ \t]+)*)"
        r"(?P<rtype>[\w<>\[\],.?]+[ \t]*[*&]*)[ \t]+[*&]*(?P<name>(?:\w+::)*~?\w+)[ \t]*\((?P<params>[^)]*)\)"
        r"[ \t]*(?:const[ \t]*)?(?:throws[ \t]+[\w., \t]+)?\{?[ \t]*$",
        FunctionKind.METHOD, JAVA, CSHARP, C, flags=re.MULTILINE,
    ),
)

CLASS_PATTERNS = (
    # class Foo extends Bar implements Baz, Qux {
    _pattern(
        "class",
        r"(?P<export>export\s+(?:default\s+)?)?(?:(?:public|private|protected|internal|abstract|final|static|"
        r"sealed|partial)\s+)*class\s+(?P<name>\w+)(?:<[^>{]*>)?(?:\s+extends\s+(?P<extends>[\w.]+)(?:<[^>{]*>)?)?"
        r"(?:\s+implements\s+(?P<implements>[^{]+?))?\s*\{",
        ClassKind.CLASS, JS, PHP, JAVA,
    ),
    # class Foo : Bar, IBaz {  /  struct Foo {
    _pattern(
        "colon_class",
        r"(?:(?:public|private|protected|internal|abstract|sealed|static|partial)\s+)*(?:class|struct)\s+"
        r"(?P<name>\w+)(?:<[^>{]*>)?\s*(?::\s*(?P<bases>[^{;]+?))?\s*\{",
        ClassKind.CLASS, CSHARP, C,
    ),
    # interface Foo extends Bar {
    _pattern(
        "interface",
        r"(?P<export>export\s+)?(?:(?:public|private|protected|internal)\s+)?interface\s+(?P<name>\w+)"
        r"(?:<[^>{]*>)?(?:\s*(?:extends|:)\s*(?P<extends>[^{]+?))?\s*\{",
        ClassKind.INTERFACE, JS, PHP, JAVA, CSHARP,
    ),
    # type Foo = ...
    _pattern(
        "type_alias",
        r"(?P<export>export\s+)?\btype\s+(?P<name>\w+)(?:<[^>]*>)?\s*=",
        ClassKind.TYPE, JS,
    ),
    # class Foo(Base, Mixin):
    _pattern(
        "py_class",
        r"^(?P<indent>[ \t]*)class[ \t]+(?P<name>\w+)[ \t]*(?:\((?P<bases>[^)]*)\))?[ \t]*:",
        ClassKind.CLASS, PY, flags=re.MULTILINE,
    ),
    # type Foo struct {
    _pattern(
        "go_struct",
        r"\btype\s+(?P<name>\w+)\s+struct\s*\{",
        ClassKind.CLASS, GO,
    ),
    # type Foo interface {
    _pattern(
        "go_interface",
        r"\btype\s+(?P<name>\w+)\s+interface\s*\{",
        ClassKind.INTERFACE, GO,
    ),
    # class Foo < Bar, module Foo
    _pattern(
        "ruby_class",
        r"^(?P<indent>[ \t]*)(?:class|module)[ \t]+(?P<name>[\w:]+)(?:[ \t]*<[ \t]*(?P<extends>[\w:]+))?",
        ClassKind.CLASS, RUBY, flags=re.MULTILINE,
    ),
)

# Property declarations, tested against lines directly inside a class body
PROPERTY_PATTERNS = {
    JS: re.compile(
        r"^\s*(?:(?:public|private|protected|readonly|static|declare|override)\s+)*#?(?P<name>\w+)\s*[?!]?\s*"
        r"(?::\s*[^;=(){}]+?)?\s*(?:=\s*[^;]+?)?\s*;?\s*$"
    ),
    PHP: re.compile(
        r"^\s*(?:(?:public|private|protected|static|readonly|var|const)\s+)+(?:\??[\w\\]+\s+)?\$?(?P<name>\w+)\s*"
        r"(?:=[^;]*)?;\s*$"
    ),
    JAVA: re.compile(
        r"^\s*(?:(?:public|private|protected|static|final|transient|volatile)\s+)+[\w<>\[\],.?]+\s+(?P<name>\w+)\s*"
        r"(?:=[^;]*)?;\s*$"
    ),
    CSHARP: re.compile(
        r"^\s*(?:(?:public|private|protected|internal|static|readonly|const)\s+)+[\w<>\[\],.?]+\s+(?P<name>\w+)\s*"
        r"(?:\{\s*get\b.*|(?:=[^;]*)?;)\s*$"
    ),
    C: re.compile(r"^\s*(?:(?:const|static|unsigned|struct)\s+)*[\w<>:]+[\s*&]+(?P<name>\w+)\s*(?:\[[^\]]*\])?\s*;\s*$"),
    GO: re.compile(r"^\s*(?P<name>[A-Za-z_]\w*)\s+[\w.*\[\]]+(?:\s+`[^`]*`)?\s*$"),
}

PY_INSTANCE_ATTRIBUTE = re.compile(r"\bself\.(\w+)\s*(?::[^=\n]+)?=(?!=)")
PY_CLASS_ATTRIBUTE = re.compile(r"^(?P<indent>[ \t]+)(?P<name>\w+)\s*(?::[^=\n]+)?(?:=(?!=)|:)")
RUBY_ATTRIBUTE = re.compile(r"^\s*attr_(?:accessor|reader|writer)\s+(.+)$")


def _split_list(text: str | None) -> list[str]:
    if not text:
        return []
    return [item.strip() for item in text.split(",") if item.strip()]


def _group(match: re.Match, name: str) -> str | None:
    """Value of a named group, or None when the pattern does not define it."""
    if name in match.re.groupindex:
        return match.group(name)
    return None


class SymbolMatcher(BaseMatcher):
    """Collect function and class declarations."""

    name = "symbols"

    def apply(self, scanned: ScannedFile) -> None:
        language = language_of(scanned.path)
        lines = scanned.content.split("\n")
        scanned.functions = self.extract_functions(scanned.content, lines, scanned.path, language)
        scanned.classes = self.extract_classes(scanned.content, lines, scanned.path, language)
        self._attach_members(scanned.classes, scanned.functions, lines, language)

    def extract_functions(
        self,
        content: str,
        lines: list[str],
        path: str,
        language: str,
    ) -> list[FunctionFact]:
        """
        Find function, method and route-handler declarations.

        Args:
            content: File text.
            lines: content split into lines.
            path: Relative path, used for ids.
            language: Language family.

        Returns:
            FunctionFacts in pattern order, then source order.
        """
        functions: list[FunctionFact] = []
        seen: set[tuple[str, int]] = set()

        for pattern in FUNCTION_PATTERNS:
            if language not in pattern.languages:
                continue
            for match in pattern.regex.finditer(content):
                fact = self._function_fact(match, pattern, content, lines, path, language, len(functions))
                if fact is None:
                    continue
                key = (fact.name, fact.start_line)
                if key in seen:
                    continue
                seen.add(key)
                functions.append(fact)

        return functions

    def _function_fact(
        self,
        match: re.Match,
        pattern: SymbolPattern,
        content: str,
        lines: list[str],
        path: str,
        language: str,
        index: int,
    ) -> FunctionFact | None:
        name = match.group("name") if "name" in match.re.groupindex else None
        kind = pattern.kind
        http_method = route = None

        if kind == FunctionKind.ENDPOINT:
            http_method = (_group(match, "method") or "GET").upper()
            route = match.group("route")
            name = f"{http_method} {route}"
        elif name is None or name in KEYWORDS:
            return None

        modifiers = _group(match, "modifiers") or ""
        rtype = (_group(match, "rtype") or "").strip()
        if rtype in KEYWORDS:
            return None

        params_text = _group(match, "params") or _group(match, "param")
        parameters = _split_list(params_text)
        indent = _group(match, "indent") or ""
        exported = bool(_group(match, "export"))

        if pattern.label == "py_function":
            if indent and parameters and parameters[0].split(":")[0].strip() in ("self", "cls"):
                kind = FunctionKind.METHOD
            exported = not indent and not name.startswith("_")
        elif pattern.label == "ruby_def":
            kind = FunctionKind.METHOD if indent else FunctionKind.FUNCTION
        elif pattern.label == "php_function":
            if modifiers.strip():
                kind = FunctionKind.METHOD
            exported = "private" not in modifiers and "protected" not in modifiers
        elif pattern.label == "go_function":
            if _group(match, "receiver"):
                kind = FunctionKind.METHOD
            exported = name[0].isupper()
        elif pattern.label == "c_like_method":
            if "::" in name:
                name = name.rsplit("::", 1)[1]
            elif language == C:
                kind = FunctionKind.FUNCTION
            exported = "public" in modifiers or (language == C and "static" not in modifiers)

        if kind == FunctionKind.FUNCTION and self._looks_like_middleware(name, parameters):
            kind = FunctionKind.MIDDLEWARE

        start_line = line_at(content, match.start())
        end_line = estimate_end_line(content, lines, match.start(), start_line, language)

        return FunctionFact(
            id=f"{path}-func-{index}",
            name=name,
            kind=kind,
            start_line=start_line,
            end_line=end_line,
            parameters=parameters,
            is_async=bool(_group(match, "async")) or "async" in modifiers,
            is_exported=exported,
            http_method=http_method,
            route=route,
        )

    @staticmethod
    def _looks_like_middleware(name: str, parameters: list[str]) -> bool:
        if "middleware" in name.lower():
            return True
        names = [p.split(":")[0].split("=")[0].strip() for p in parameters]
        return len(names) == 3 and names[2] == "next"

    def extract_classes(
        self,
        content: str,
        lines: list[str],
        path: str,
        language: str,
    ) -> list[ClassFact]:
        """
        Find class, interface, struct and type-alias declarations.

        Args:
            content: File text.
            lines: content split into lines.
            path: Relative path, used for ids.
            language: Language family.

        Returns:
            ClassFacts in pattern order, then source order.
        """
        classes: list[ClassFact] = []
        seen: set[tuple[str, int]] = set()

        for pattern in CLASS_PATTERNS:
            if language not in pattern.languages:
                continue
            for match in pattern.regex.finditer(content):
                name = match.group("name")
                start_line = line_at(content, match.start())
                if (name, start_line) in seen:
                    continue
                seen.add((name, start_line))

                extends = _group(match, "extends")
                implements = _split_list(_group(match, "implements"))
                bases = _split_list(_group(match, "bases"))
                if bases:
                    bases = [base.replace("public ", "").replace("private ", "").strip() for base in bases]
                    extends, implements = bases[0], bases[1:]

                exported = bool(_group(match, "export"))
                if language == PY:
                    exported = not (_group(match, "indent") or "") and not name.startswith("_")
                elif language == GO:
                    exported = name[0].isupper()
                elif language in (JAVA, CSHARP, PHP):
                    exported = "public" in match.group(0) or language == PHP

                classes.append(ClassFact(
                    id=f"{path}-class-{len(classes)}",
                    name=name,
                    kind=pattern.kind,
                    start_line=start_line,
                    end_line=estimate_end_line(content, lines, match.start(), start_line, language),
                    extends=extends.strip() if extends else None,
                    implements=implements,
                    is_exported=exported,
                ))

        return classes

    def _attach_members(
        self,
        classes: list[ClassFact],
        functions: list[FunctionFact],
        lines: list[str],
        language: str,
    ) -> None:
        """Fill in method and property names from within each class's line range."""
        for cls in classes:
            if cls.kind == ClassKind.TYPE:
                continue
            cls.methods = [
                func.name for func in functions
                if cls.start_line <= func.start_line <= cls.end_line
                and func.kind != FunctionKind.ENDPOINT
                and func.name != cls.name
            ]
            cls.properties = self._properties(cls, lines, language)

    def _properties(self, cls: ClassFact, lines: list[str], language: str) -> list[str]:
        body = lines[cls.start_line - 1:cls.end_line]
        found: list[str] = []

        if language == PY:
            member_indent = None
            for line in body[1:]:
                for name in PY_INSTANCE_ATTRIBUTE.findall(line):
                    found.append(name)
                match = PY_CLASS_ATTRIBUTE.match(line)
                if not match:
                    continue
                if member_indent is None:
                    member_indent = match.group("indent")
                if match.group("indent") == member_indent and match.group("name") not in ("def", "class", "return"):
                    found.append(match.group("name"))
        elif language == RUBY:
            for line in body:
                match = RUBY_ATTRIBUTE.match(line)
                if match:
                    found.extend(re.findall(r":(\w+)", match.group(1)))
        else:
            pattern = PROPERTY_PATTERNS.get(language)
            if pattern is None:
                return []
            depth = 0
            for line in body:
                if depth == 1 and self._is_property_line(line, language):
                    match = pattern.match(line)
                    if match and match.group("name") not in KEYWORDS:
                        found.append(match.group("name"))
                depth += line.count("{") - line.count("}")

        return list(dict.fromkeys(found))

    @staticmethod
    def _is_property_line(line: str, language: str) -> bool:
        stripped = line.strip()
        if not stripped or stripped.startswith(("//", "/*", "*", "#", "@")):
            return False
        if language == JS:
            # Bare identifiers and calls are not declarations
            head = stripped.split("=", 1)[0]
            return "(" not in head and any(c in stripped for c in ":=;")
        return True
