"""
HTTP endpoint matcher for backend_map.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from backend_map.extractors.base import BaseMatcher
from backend_map.models import Endpoint, Role

if TYPE_CHECKING:
    from backend_map.models import ScannedFile


# Only these roles are searched for endpoints
ENDPOINT_ROLES = frozenset({Role.ROUTE, Role.CONTROLLER})

# Each pattern captures (method, path)
ENDPOINT_PATTERNS = (
    # app.get('/users', ...), router.post("/users", ...), @app.get("/users")
    re.compile(r"\b(?:app|router)\.(get|post|put|delete|patch)\s*\(\s*['\"`]([^'\"`]+)['\"`]"),
    # @Get('/users'), @PostMapping("/users")
    re.compile(r"@(Get|Post|Put|Delete|Patch)(?:Mapping)?\s*\(\s*(?:value\s*=\s*)?['\"`]([^'\"`]+)['\"`]"),
)


def extract_endpoints(content: str) -> list[Endpoint]:
    """
    Find route registrations in source text.

    Args:
        content: File text.

    Returns:
        Endpoints in the order they appear in the file.
    """
    found: list[tuple[int, Endpoint]] = []
    for pattern in ENDPOINT_PATTERNS:
        for match in pattern.finditer(content):
            found.append((match.start(), Endpoint(method=match.group(1).upper(), path=match.group(2))))
    found.sort(key=lambda item: item[0])
    return [endpoint for _, endpoint in found]


class EndpointMatcher(BaseMatcher):
    """Collect endpoints from route and controller files."""

    name = "endpoints"

    def apply(self, scanned: ScannedFile) -> None:
        if scanned.role not in ENDPOINT_ROLES:
            scanned.endpoints = []
            return
        scanned.endpoints = extract_endpoints(scanned.content)
