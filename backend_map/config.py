"""
Configuration constants and loading utilities for backend_map.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

# Optional YAML support
try:
    import yaml
    HAS_YAML = True
except ImportError:
    yaml = None  # type: ignore
    HAS_YAML = False


# Directory names never descended into
DEFAULT_EXCLUDE = [
    "node_modules",
    ".git",
    "dist",
    "build",
    ".next",
    "__pycache__",
    ".venv",
    "venv",
    "coverage",
    ".pytest_cache",
    ".mypy_cache",
]

# Order matters: the resolver probes extensions in this order
SUPPORTED_EXTENSIONS = (
    ".js", ".ts", ".jsx", ".tsx",
    ".py", ".php", ".go", ".rb",
    ".java", ".cs", ".cpp", ".c",
)

# Conventional directories searched for backend files, relative to the root.
# "." (the root itself) comes last; a file keeps its first position.
CANDIDATE_DIRS = (
    "api", "src/api", "app/api",
    "routes", "src/routes", "app/routes",
    "controllers", "src/controllers", "app/controllers",
    "models", "src/models", "app/models",
    "services", "src/services", "app/services",
    "middleware", "src/middleware", "app/middleware",
    "config", "src/config", "app/config",
    "server", "src/server",
    "backend", "src/backend",
    "src", "app", "pages", "components",
    "src/components", "app/components",
    "src/pages", "app/pages",
    "src/lib", "lib", "utils", "src/utils",
    ".",
)

# Well-known entry files checked at the project root
ROOT_ENTRY_FILES = (
    "server.js", "server.ts",
    "app.js", "app.ts",
    "index.js", "index.ts",
    "main.py", "app.py",
)

# Module file names a directory import may resolve to, in probe order
INDEX_FILENAMES = ("index", "__init__")


DEFAULT_CONFIG: dict[str, Any] = {
    # Scan execution
    "scan": {
        # Worker threads for per-file analysis (bounds simultaneous reads)
        "max_workers": 8,
        # Walking more files than this aborts the scan
        "max_files": 20000,
    },

    # Extra places to look, in addition to CANDIDATE_DIRS / ROOT_ENTRY_FILES
    "candidates": {
        "directories": [],
        "entry_files": [],
    },

    # Exclusion patterns (applied in addition to DEFAULT_EXCLUDE)
    "exclude": {
        "directories": [],  # e.g., ["vendor", "fixtures"]
        "extensions": [],   # e.g., [".c", ".cpp"]
    },

    # Default grid layout
    "layout": {
        "node_width": 220,
        "node_height": 120,
        "spacing": 50,
    },
}


def merge_config(user_config: dict[str, Any]) -> dict[str, Any]:
    """
    Merge a user config over DEFAULT_CONFIG, one level deep.

    Args:
        user_config: Partial configuration dictionary.

    Returns:
        New configuration dictionary.
    """
    config = {
        key: dict(value) if isinstance(value, dict) else value
        for key, value in DEFAULT_CONFIG.items()
    }
    for key, value in (user_config or {}).items():
        if value is None:
            continue
        if isinstance(value, dict) and key in config and isinstance(config[key], dict):
            config[key] = {**config[key], **value}
        else:
            config[key] = value
    return config


def load_config(config_path: Path) -> dict[str, Any]:
    """
    Load configuration from YAML file, merged with defaults.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Configuration dictionary with user values merged over defaults.

    Raises:
        SystemExit: If PyYAML is not installed.
        FileNotFoundError: If config file doesn't exist.
    """
    if not HAS_YAML:
        print("Error: PyYAML is required for config files. Install with: pip install pyyaml", file=sys.stderr)
        sys.exit(1)

    with open(config_path, "r", encoding="utf-8") as f:
        user_config = yaml.safe_load(f) or {}

    return merge_config(user_config)


def get_config_template() -> str:
    """Generate a documented YAML config template."""
    return '''# =============================================================================
# backend-map configuration
# =============================================================================
# Usage:
#   backend-map . --config backend-map.yaml -o snapshot.json -v
#
# The scanner is heuristic: it matches patterns, it does not parse. Files in
# unusual directories can be picked up by adding them under "candidates".
# =============================================================================

# =============================================================================
# SCAN EXECUTION
# =============================================================================
scan:
  # Worker threads used for per-file classification and extraction.
  # Also bounds how many files are open at the same time.
  max_workers: 8

  # A walk that discovers more files than this aborts the scan.
  max_files: 20000

# =============================================================================
# CANDIDATES
# =============================================================================
# Added to the built-in candidate directories (api, routes, controllers,
# models, services, middleware, config, server, backend, src, app, pages,
# components, lib, utils and the root) and root entry files.
# =============================================================================
candidates:
  directories:
    # - functions
    # - workers
  entry_files:
    # - worker.ts

# =============================================================================
# EXCLUSIONS
# =============================================================================
exclude:
  # Directory names to skip (node_modules, .git, dist, build... are built in)
  directories:
    # - vendor
    # - fixtures

  # File extensions to skip
  extensions:
    # - .c
    # - .cpp

# =============================================================================
# LAYOUT
# =============================================================================
# Default grid placement for graph nodes.
# =============================================================================
layout:
  node_width: 220
  node_height: 120
  spacing: 50
'''
