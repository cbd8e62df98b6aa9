"""
Data model for backend_map snapshots.

All values are JSON-compatible primitives so a Snapshot can be handed to a
renderer or written to disk with ``json.dumps(snapshot.to_dict())``.
Vocabulary types are plain string constants rather than Enums.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional


class Role:
    """Architectural role of a scanned file."""

    CONTROLLER = "controller"
    MODEL = "model"
    ROUTE = "route"
    SERVICE = "service"
    MIDDLEWARE = "middleware"
    CONFIG = "config"
    UNKNOWN = "unknown"

    ALL = (CONTROLLER, MODEL, ROUTE, SERVICE, MIDDLEWARE, CONFIG, UNKNOWN)


class FunctionKind:
    FUNCTION = "function"
    METHOD = "method"
    ENDPOINT = "endpoint"
    MIDDLEWARE = "middleware"


class ClassKind:
    CLASS = "class"
    INTERFACE = "interface"
    TYPE = "type"


class BlockKind:
    API_CALL = "api_call"
    DB_QUERY = "db_query"
    AUTH_CHECK = "auth_check"
    FILE_OPERATION = "file_operation"
    THIRD_PARTY = "third_party"


class Importance:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RelationshipKind:
    IMPORT = "import"
    FUNCTION_CALL = "function_call"
    API_CALL = "api_call"


EXTERNAL_PREFIX = "external-"


def provider_node_id(provider: str) -> str:
    """Id of the virtual graph node standing for an external provider."""
    return f"{EXTERNAL_PREFIX}{provider}"


@dataclass
class Position:
    x: int
    y: int


@dataclass
class Endpoint:
    """An HTTP route declared in a route or controller file."""

    method: str
    path: str

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


@dataclass
class FunctionFact:
    id: str
    name: str
    kind: str
    start_line: int
    end_line: int
    parameters: list[str] = field(default_factory=list)
    is_async: bool = False
    is_exported: bool = False
    http_method: Optional[str] = None
    route: Optional[str] = None


@dataclass
class ClassFact:
    id: str
    name: str
    kind: str
    start_line: int
    end_line: int
    methods: list[str] = field(default_factory=list)
    properties: list[str] = field(default_factory=list)
    extends: Optional[str] = None
    implements: list[str] = field(default_factory=list)
    is_exported: bool = False


@dataclass
class CodeBlockFact:
    """A single line flagged as an integration or sensitive operation."""

    id: str
    kind: str
    start_line: int
    end_line: int
    code: str
    description: str
    importance: str
    provider: Optional[str] = None


@dataclass
class FunctionCall:
    """A call to a name that was bound by a local import."""

    caller: str
    name: str
    import_path: str
    line: int


@dataclass
class ScannedFile:
    """Everything the scanner learned about one source file."""

    id: str
    path: str
    name: str
    extension: str
    role: str
    content: str
    size: int = 0
    line_count: int = 1
    imports: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)
    endpoints: list[Endpoint] = field(default_factory=list)
    functions: list[FunctionFact] = field(default_factory=list)
    classes: list[ClassFact] = field(default_factory=list)
    code_blocks: list[CodeBlockFact] = field(default_factory=list)
    calls: list[FunctionCall] = field(default_factory=list)
    position: Optional[Position] = None

    def clear_facts(self) -> None:
        """Drop all extracted facts, keeping identity, role and content."""
        self.imports = []
        self.exports = []
        self.endpoints = []
        self.functions = []
        self.classes = []
        self.code_blocks = []
        self.calls = []

    def to_dict(self, include_content: bool = True) -> dict[str, Any]:
        data = asdict(self)
        data["endpoints"] = [str(endpoint) for endpoint in self.endpoints]
        if not include_content:
            data.pop("content")
        return data


@dataclass
class Relationship:
    id: str
    source: str
    target: str
    kind: str
    label: str
    source_function: Optional[str] = None
    target_function: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return self.target.startswith(EXTERNAL_PREFIX)


@dataclass
class ProviderNode:
    """Virtual node for a third-party provider, one per provider per snapshot."""

    id: str
    provider: str


@dataclass
class Snapshot:
    """The complete result of one scan."""

    files: list[ScannedFile]
    relationships: list[Relationship]
    project_root: str
    scanned_at: datetime
    providers: list[ProviderNode] = field(default_factory=list)

    def file_by_path(self, path: str) -> ScannedFile | None:
        for scanned in self.files:
            if scanned.path == path:
                return scanned
        return None

    def summary(self) -> dict[str, Any]:
        """Aggregate counts, in the shape of the toolbar statistics."""
        by_role = {role: 0 for role in Role.ALL}
        for scanned in self.files:
            by_role[scanned.role] = by_role.get(scanned.role, 0) + 1

        blocks = [block for scanned in self.files for block in scanned.code_blocks]
        return {
            "total_files": len(self.files),
            "total_relationships": len(self.relationships),
            "by_role": by_role,
            "by_relationship_kind": dict(Counter(rel.kind for rel in self.relationships)),
            "total_functions": sum(len(f.functions) for f in self.files),
            "total_classes": sum(len(f.classes) for f in self.files),
            "total_endpoints": sum(len(f.endpoints) for f in self.files),
            "code_blocks": len(blocks),
            "critical_blocks": sum(1 for b in blocks if b.importance == Importance.CRITICAL),
            "third_party_blocks": sum(1 for b in blocks if b.kind == BlockKind.THIRD_PARTY),
            "providers": sorted(node.provider for node in self.providers),
        }

    def to_dict(self, include_content: bool = True) -> dict[str, Any]:
        return {
            "files": [f.to_dict(include_content) for f in self.files],
            "relationships": [asdict(rel) for rel in self.relationships],
            "providers": [asdict(node) for node in self.providers],
            "projectRoot": self.project_root,
            "scannedAt": self.scanned_at.isoformat(),
            "summary": self.summary(),
        }
