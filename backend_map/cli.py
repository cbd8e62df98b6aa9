"""
CLI interface for backend_map.

Provides the command-line interface for scanning a project into a snapshot.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from backend_map import __version__
from backend_map.config import DEFAULT_CONFIG, get_config_template, load_config, merge_config
from backend_map.errors import RootTraversalError
from backend_map.models import BlockKind, Importance, Role
from backend_map.scanner import BackendScanner

if TYPE_CHECKING:
    from typing import Any

    from backend_map.models import Snapshot

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="backend-map",
        description="Map the backend files of a project and how they depend on each other",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
QUICK START
  backend-map .                         # Scan current directory
  backend-map ./server -o graph.json    # Scan a project, output to file
  backend-map . --summary               # Role and relationship counts only

FILTERS
  --role service                        # Only files of one role
  --critical-only                       # Only critical code blocks
  --third-party-only                    # Only third-party integration blocks

DISCLAIMER
This tool matches patterns, it does not parse. Function end lines, call
sites and roles are estimates. Always verify against the source.
        """,
    )

    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project root to scan (default: current directory)",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output file (default: stdout)",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Only output summary",
    )
    parser.add_argument(
        "--exclude-dirs",
        nargs="+",
        metavar="DIR",
        help="Directory names to skip (e.g., vendor fixtures)",
    )
    parser.add_argument(
        "--exclude-ext",
        nargs="+",
        metavar="EXT",
        help="File extensions to skip (e.g., .c .cpp)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        metavar="N",
        help=f"Worker threads (default: {DEFAULT_CONFIG['scan']['max_workers']})",
    )

    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument(
        "--config",
        metavar="FILE",
        help="Load config from YAML file",
    )
    config_group.add_argument(
        "--init-config",
        action="store_true",
        help="Print a starter config file",
    )

    filter_group = parser.add_argument_group("Filters")
    filter_group.add_argument(
        "--role",
        choices=Role.ALL,
        help="Only include files with this role",
    )
    filter_group.add_argument(
        "--critical-only",
        action="store_true",
        help="Only include critical code blocks",
    )
    filter_group.add_argument(
        "--third-party-only",
        action="store_true",
        help="Only include third-party code blocks",
    )
    filter_group.add_argument(
        "--no-content",
        action="store_true",
        help="Leave file contents out of the output",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def build_config(args: argparse.Namespace) -> dict[str, Any]:
    """Combine the config file (if any) with command-line exclusions."""
    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file '{config_path}' does not exist", file=sys.stderr)
            sys.exit(1)
        config = load_config(config_path)
        if args.verbose:
            print(f"Loaded config: {config_path}", file=sys.stderr)
    else:
        config = merge_config({})

    exclude = dict(config.get("exclude", {}))
    if args.exclude_dirs:
        exclude["directories"] = list(exclude.get("directories") or []) + args.exclude_dirs
    if args.exclude_ext:
        exclude["extensions"] = list(exclude.get("extensions") or []) + args.exclude_ext
    config["exclude"] = exclude

    return config


def filter_snapshot(data: dict[str, Any], args: argparse.Namespace) -> dict[str, Any]:
    """
    Apply the view filters to a snapshot dictionary.

    Args:
        data: Output of Snapshot.to_dict().
        args: Parsed arguments.

    Returns:
        The filtered dictionary. Relationships are kept only when both
        ends are still present.
    """
    if args.role:
        data["files"] = [f for f in data["files"] if f["role"] == args.role]

    for scanned in data["files"]:
        blocks = scanned["code_blocks"]
        if args.critical_only:
            blocks = [b for b in blocks if b["importance"] == Importance.CRITICAL]
        if args.third_party_only:
            blocks = [b for b in blocks if b["kind"] == BlockKind.THIRD_PARTY]
        scanned["code_blocks"] = blocks

    if args.role or args.critical_only or args.third_party_only:
        file_ids = {f["id"] for f in data["files"]}
        provider_ids = {node["id"] for node in data["providers"]}
        data["relationships"] = [
            rel for rel in data["relationships"]
            if rel["source"] in file_ids and (rel["target"] in file_ids or rel["target"] in provider_ids)
        ]

    return data


def run_scan(args: argparse.Namespace, config: dict[str, Any]) -> Snapshot:
    """Scan the project, exiting with an error message if the root is unusable."""
    root = Path(args.path)
    if args.verbose:
        print(f"Scanning: {root.resolve()}", file=sys.stderr)

    scanner = BackendScanner(root, config=config, max_workers=args.workers)
    try:
        return scanner.scan()
    except RootTraversalError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    # Handle --init-config: just output the template and exit
    if args.init_config:
        print(get_config_template())
        return

    config = build_config(args)
    snapshot = run_scan(args, config)

    if args.summary:
        result = {
            "projectRoot": snapshot.project_root,
            "scannedAt": snapshot.scanned_at.isoformat(),
            "summary": snapshot.summary(),
        }
    else:
        result = filter_snapshot(snapshot.to_dict(include_content=not args.no_content), args)

    output = json.dumps(result, indent=2, default=str)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        if args.verbose:
            print(f"Output written to: {args.output}", file=sys.stderr)
    else:
        print(output)


if __name__ == "__main__":
    main()
