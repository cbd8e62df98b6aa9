"""
File role classifier for backend_map.

A file's role comes from its path when any path pattern matches, otherwise
from its content. Both tables are ordered: the first role with a matching
pattern wins, so precedence is the row order (controller, model, route,
service, middleware, config).
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from backend_map.models import Role
from backend_map.utils import normalize_path

logger = logging.getLogger(__name__)


def _compile(*patterns: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


# Matched against "/" + the POSIX relative path, so top-level directories
# match the same "/dir/" patterns as nested ones.
ROLE_PATH_PATTERNS: tuple[tuple[str, tuple[re.Pattern, ...]], ...] = (
    (Role.CONTROLLER, _compile(
        r"/controllers?/",
        r"/api/.*controller",
        r"controller\.\w+$",
        r"/views?/",
        r"/views\.py$",
        r"/handlers?/",
    )),
    (Role.MODEL, _compile(
        r"/models?/",
        r"/schemas?/",
        r"/entities/",
        r"models?\.\w+$",
        r"schema\.\w+$",
        r"\.entity\.\w+$",
    )),
    (Role.ROUTE, _compile(
        r"/routes?/",
        r"/routers?/",
        r"/api/routes",
        r"route\.\w+$",
        r"routes\.\w+$",
        r"/urls\.py$",
    )),
    (Role.SERVICE, _compile(
        r"/services?/",
        r"service\.\w+$",
    )),
    (Role.MIDDLEWARE, _compile(
        r"/middlewares?/",
        r"middleware\.\w+$",
    )),
    (Role.CONFIG, _compile(
        r"/config/",
        r"config\.\w+$",
        r"/settings\.py$",
        r"\.env(\.|$)",
    )),
)

# Matched against the whole file content when no path pattern matched.
ROLE_CONTENT_PATTERNS: tuple[tuple[str, tuple[re.Pattern, ...]], ...] = (
    (Role.CONTROLLER, _compile(
        r"app\.(get|post|put|delete|patch)",
        r"router\.(get|post|put|delete|patch)",
        r"express\.Router",
        r"@Controller",
        r"@Get|@Post|@Put|@Delete",
        r"@RestController",
        r"@app\.route\(",
    )),
    (Role.MODEL, _compile(
        r"Schema",
        r"model\s*=",
        r"mongoose\.model",
        r"sequelize\.define",
        r"@Entity",
        r"@Table",
        r"models\.Model",
        r"__tablename__",
    )),
    (Role.ROUTE, _compile(
        r"router\.",
        r"app\.(use|get|post)",
        r"express\.Router",
        r"Route\.",
        r"urlpatterns\s*=",
    )),
    (Role.SERVICE, _compile(
        r"class.*Service",
        r"export.*Service",
        r"service",
    )),
    (Role.MIDDLEWARE, _compile(
        r"next\(\)",
        r"middleware",
        r"\(req,\s*res,\s*next\)",
    )),
    (Role.CONFIG, _compile(
        r"require\(\s*['\"]dotenv['\"]\s*\)",
        r"from\s+['\"]dotenv['\"]",
        r"load_dotenv\(",
    )),
)


def _first_match(text: str, table: tuple[tuple[str, tuple[re.Pattern, ...]], ...]) -> Optional[str]:
    for role, patterns in table:
        if any(pattern.search(text) for pattern in patterns):
            return role
    return None


def classify_path(relative_path: str) -> Optional[str]:
    """Role implied by the path alone, or None."""
    return _first_match("/" + normalize_path(relative_path), ROLE_PATH_PATTERNS)


def classify_content(content: str) -> Optional[str]:
    """Role implied by the content alone, or None."""
    return _first_match(content, ROLE_CONTENT_PATTERNS)


def classify(relative_path: str, content: str) -> str:
    """
    Assign an architectural role to a file.

    Args:
        relative_path: Path relative to the project root.
        content: File text.

    Returns:
        One of the Role values; Role.UNKNOWN when nothing matches.
    """
    role = classify_path(relative_path)
    if role is None:
        role = classify_content(content)
    if role is None:
        role = Role.UNKNOWN
    logger.debug("Classified %s as %s", relative_path, role)
    return role
