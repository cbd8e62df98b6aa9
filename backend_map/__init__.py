"""
Backend Map - scan a project's backend files into a dependency graph.

Files are found in conventional directories, given an architectural role,
and mined with regular expressions for imports, exports, functions,
classes, endpoints and third-party integrations.
"""

__version__ = "1.0.0"

from backend_map.scanner import BackendScanner, scan
from backend_map.config import DEFAULT_CONFIG, DEFAULT_EXCLUDE
from backend_map.errors import RootTraversalError, TraversalLimitError
from backend_map.files import read_file, save_file
from backend_map.models import Snapshot

__all__ = [
    "BackendScanner",
    "scan",
    "read_file",
    "save_file",
    "Snapshot",
    "RootTraversalError",
    "TraversalLimitError",
    "DEFAULT_CONFIG",
    "DEFAULT_EXCLUDE",
    "__version__",
]
