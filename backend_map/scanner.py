"""
Scan orchestrator for backend_map.

Walks the project, classifies and extracts every file in a thread pool,
then resolves dependencies and lays out the graph. Each call to scan()
builds a new Snapshot from scratch.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from backend_map.classifier import classify
from backend_map.config import DEFAULT_CONFIG, merge_config
from backend_map.errors import PerFileExtractionError, PerFileReadError
from backend_map.extractors import LexicalExtractor
from backend_map.layout import layout
from backend_map.models import ScannedFile, Snapshot
from backend_map.resolver import resolve
from backend_map.utils import count_lines, make_file_id, normalize_path
from backend_map.walker import DirectoryWalker

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


class BackendScanner:
    """Produce a Snapshot of a project directory."""

    def __init__(
        self,
        root: Path | str,
        config: dict[str, Any] | None = None,
        max_workers: int | None = None,
    ) -> None:
        """
        Initialize the scanner.

        Args:
            root: Project root directory.
            config: Configuration dictionary, merged over DEFAULT_CONFIG.
            max_workers: Worker threads; overrides config scan.max_workers.
        """
        self.root = Path(root).expanduser()
        self.config = merge_config(config) if config else DEFAULT_CONFIG
        self.max_workers = max_workers or self.config["scan"].get(
            "max_workers", DEFAULT_CONFIG["scan"]["max_workers"]
        )
        self.extractor = LexicalExtractor()

    def scan(self) -> Snapshot:
        """
        Scan the project.

        Returns:
            A complete Snapshot.

        Raises:
            RootTraversalError: If the root cannot be traversed, or holds
                more candidate files than scan.max_files.
        """
        paths = DirectoryWalker(self.root, self.config).walk()
        root = self.root.resolve()

        files = [scanned for scanned in self._analyze_all(paths, root) if scanned is not None]

        relationships, providers = resolve(files)

        layout_config = {**DEFAULT_CONFIG["layout"], **self.config.get("layout", {})}
        positions = layout(
            files,
            node_width=layout_config["node_width"],
            node_height=layout_config["node_height"],
            spacing=layout_config["spacing"],
        )
        for scanned, position in zip(files, positions):
            scanned.position = position

        logger.info("Scanned %d files, %d relationships", len(files), len(relationships))
        return Snapshot(
            files=files,
            relationships=relationships,
            project_root=str(root),
            scanned_at=datetime.now(timezone.utc),
            providers=providers,
        )

    def _analyze_all(self, paths: list[Path], root: Path) -> list[ScannedFile | None]:
        """Analyze files in parallel. Results keep the walk order."""
        results: list[ScannedFile | None] = [None] * len(paths)
        if not paths:
            return results

        workers = max(1, min(self.max_workers, len(paths)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {
                executor.submit(self.analyze_file, path, root): i
                for i, path in enumerate(paths)
            }

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    results[index] = future.result()
                except PerFileReadError as e:
                    logger.warning("Skipping file: %s", e)
                    results[index] = None

        return results

    def analyze_file(self, path: Path, root: Path) -> ScannedFile:
        """
        Read, classify and extract one file.

        Args:
            path: Absolute path of the file.
            root: Resolved project root.

        Returns:
            ScannedFile. When extraction fails the file is kept with empty
            facts.

        Raises:
            PerFileReadError: If the file cannot be read or is not UTF-8.
        """
        relative_path = normalize_path(path.relative_to(root).as_posix())
        try:
            with open(path, "rb") as f:
                data = f.read()
            content = data.decode("utf-8")
        except (OSError, IOError, UnicodeDecodeError) as e:
            raise PerFileReadError(relative_path, str(e)) from e

        scanned = ScannedFile(
            id=make_file_id(relative_path),
            path=relative_path,
            name=path.stem,
            extension=path.suffix,
            role=classify(relative_path, content),
            content=content,
            size=len(data),
            line_count=count_lines(content),
        )

        try:
            self.extractor.extract(scanned)
        except PerFileExtractionError as e:
            logger.warning("Keeping %s without facts: %s", relative_path, e)
            scanned.clear_facts()

        return scanned


def scan(
    root: Path | str,
    config: dict[str, Any] | None = None,
    max_workers: int | None = None,
) -> Snapshot:
    """
    Scan a project directory.

    Args:
        root: Project root directory.
        config: Configuration dictionary, merged over DEFAULT_CONFIG.
        max_workers: Worker threads for per-file analysis.

    Returns:
        A complete Snapshot.

    Raises:
        RootTraversalError: If the root cannot be traversed.
    """
    return BackendScanner(root, config, max_workers).scan()
