"""
Dependency resolver for backend_map.

Turns the per-file facts of a complete scan into graph edges:

- one ``import`` edge per local import that resolves to a scanned file,
- one ``function_call`` edge per call whose import path resolves,
- one ``api_call`` edge per third-party code block, pointing at the
  provider's virtual node.

Unresolvable imports are dropped, not reported.
"""

from __future__ import annotations

import logging
import posixpath

from backend_map.config import INDEX_FILENAMES, SUPPORTED_EXTENSIONS
from backend_map.models import (
    BlockKind,
    ProviderNode,
    Relationship,
    RelationshipKind,
    ScannedFile,
    provider_node_id,
)

logger = logging.getLogger(__name__)


def import_target(importer_path: str, import_path: str) -> str | None:
    """
    Compute the root-relative path an import points at.

    Args:
        importer_path: Relative POSIX path of the importing file.
        import_path: The "./" or "../" import target.

    Returns:
        Normalized relative path, or None if it escapes the project root.
    """
    joined = posixpath.normpath(posixpath.join(posixpath.dirname(importer_path), import_path))
    if joined == ".." or joined.startswith("../") or posixpath.isabs(joined):
        return None
    return "" if joined == "." else joined


def candidate_paths(target: str) -> list[str]:
    """
    Paths to probe for an import target, in precedence order.

    The exact path first, then the path with each supported extension, then
    the directory's index or __init__ module.
    """
    candidates = [target] if target else []
    candidates.extend(target + ext for ext in SUPPORTED_EXTENSIONS if target)
    for index_name in INDEX_FILENAMES:
        base = posixpath.join(target, index_name) if target else index_name
        candidates.extend(base + ext for ext in SUPPORTED_EXTENSIONS)
    return candidates


class DependencyResolver:
    """Build relationships over a complete list of scanned files."""

    def __init__(self, files: list[ScannedFile]) -> None:
        self.files = files
        self.by_path = {}
        for scanned in files:
            # First file wins on duplicate paths
            self.by_path.setdefault(scanned.path, scanned)
        self._next_id = 0
        self.relationships: list[Relationship] = []
        self.providers: dict[str, ProviderNode] = {}

    def find_file(self, importer_path: str, import_path: str) -> ScannedFile | None:
        """
        Resolve an import to a scanned file.

        Args:
            importer_path: Relative path of the importing file.
            import_path: Local import target.

        Returns:
            The first matching file, or None.
        """
        target = import_target(importer_path, import_path)
        if target is None:
            logger.debug("Import %s in %s escapes the project root", import_path, importer_path)
            return None
        for candidate in candidate_paths(target):
            scanned = self.by_path.get(candidate)
            if scanned is not None:
                return scanned
        logger.debug("Unresolved import %s in %s", import_path, importer_path)
        return None

    def resolve(self) -> tuple[list[Relationship], list[ProviderNode]]:
        """
        Emit all relationships.

        Returns:
            Tuple of (relationships, provider nodes). Relationships are in
            file order; within a file imports come first, then calls, then
            code blocks. Provider nodes are in first-use order.
        """
        self._next_id = 0
        self.relationships = []
        self.providers = {}

        for scanned in self.files:
            self._resolve_imports(scanned)
            self._resolve_calls(scanned)
            self._resolve_code_blocks(scanned)

        logger.info(
            "Resolved %d relationships and %d providers",
            len(self.relationships), len(self.providers),
        )
        return self.relationships, list(self.providers.values())

    def _emit(self, source: str, target: str, kind: str, label: str, **extra: str) -> None:
        self.relationships.append(Relationship(
            id=f"rel-{self._next_id}",
            source=source,
            target=target,
            kind=kind,
            label=label,
            **extra,
        ))
        self._next_id += 1

    def _resolve_imports(self, scanned: ScannedFile) -> None:
        for import_path in scanned.imports:
            target = self.find_file(scanned.path, import_path)
            if target is not None:
                self._emit(scanned.id, target.id, RelationshipKind.IMPORT, posixpath.basename(import_path))

    def _resolve_calls(self, scanned: ScannedFile) -> None:
        for call in scanned.calls:
            target = self.find_file(scanned.path, call.import_path)
            if target is None:
                continue
            self._emit(
                scanned.id, target.id, RelationshipKind.FUNCTION_CALL, f"calls {call.name}",
                source_function=call.caller, target_function=call.name,
            )

    def _resolve_code_blocks(self, scanned: ScannedFile) -> None:
        for block in scanned.code_blocks:
            if block.kind != BlockKind.THIRD_PARTY or not block.provider:
                continue
            node_id = provider_node_id(block.provider)
            if block.provider not in self.providers:
                self.providers[block.provider] = ProviderNode(id=node_id, provider=block.provider)
            self._emit(scanned.id, node_id, RelationshipKind.API_CALL, f"uses {block.provider}")


def resolve(files: list[ScannedFile]) -> tuple[list[Relationship], list[ProviderNode]]:
    """
    Resolve dependencies among a complete list of scanned files.

    Args:
        files: All files of one scan.

    Returns:
        Tuple of (relationships, provider nodes).
    """
    return DependencyResolver(files).resolve()
