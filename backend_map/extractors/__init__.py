"""
Lexical matchers for backend_map.

Each matcher extracts one kind of fact from a file's text. LexicalExtractor
runs them in MATCHERS order; new matchers can be added by inheriting from
BaseMatcher and appending an instance.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from backend_map.errors import PerFileExtractionError
from backend_map.extractors.base import BaseMatcher, estimate_end_line, language_of
from backend_map.extractors.calls import CallMatcher
from backend_map.extractors.code_blocks import CodeBlockMatcher
from backend_map.extractors.endpoints import EndpointMatcher
from backend_map.extractors.imports import ExportMatcher, ImportMatcher
from backend_map.extractors.symbols import SymbolMatcher

if TYPE_CHECKING:
    from backend_map.models import ScannedFile

logger = logging.getLogger(__name__)


class LexicalExtractor:
    """Run every matcher over a file."""

    def __init__(self, matchers: list[BaseMatcher] | None = None) -> None:
        """
        Initialize the extractor.

        Args:
            matchers: Matchers to run, in order. Defaults to the built-in set.
        """
        if matchers is None:
            matchers = [
                ImportMatcher(),
                ExportMatcher(),
                SymbolMatcher(),
                EndpointMatcher(),
                CodeBlockMatcher(),
                CallMatcher(),
            ]
        self.matchers = matchers

    def extract(self, scanned: ScannedFile) -> ScannedFile:
        """
        Fill in all lexical facts of a classified file.

        Args:
            scanned: File with path, role and content set.

        Returns:
            The same ScannedFile, with facts filled in.

        Raises:
            PerFileExtractionError: If a matcher raises.
        """
        for matcher in self.matchers:
            try:
                matcher.apply(scanned)
            except Exception as e:
                raise PerFileExtractionError(scanned.path, matcher.name, str(e)) from e
        logger.debug(
            "Extracted %s: %d functions, %d classes, %d blocks",
            scanned.path, len(scanned.functions), len(scanned.classes), len(scanned.code_blocks),
        )
        return scanned


__all__ = [
    "BaseMatcher",
    "LexicalExtractor",
    "ImportMatcher",
    "ExportMatcher",
    "SymbolMatcher",
    "EndpointMatcher",
    "CodeBlockMatcher",
    "CallMatcher",
    "estimate_end_line",
    "language_of",
]
