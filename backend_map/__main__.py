"""
Entry point for running backend_map as a module.

Usage: python -m backend_map [args]
"""

from backend_map.cli import main

if __name__ == "__main__":
    main()
