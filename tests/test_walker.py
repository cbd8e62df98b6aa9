"""Tests for the directory walker."""

import os
import logging
import pytest

from backend_map.errors import RootTraversalError, TraversalLimitError
from backend_map.walker import DirectoryWalker, walk


def relative(paths, root):
    return [p.relative_to(root.resolve()).as_posix() for p in paths]


class TestDiscovery:
    """Tests for which files are found and in what order."""

    def test_candidate_directories_come_first(self, make_project):
        """Test that candidate directories are walked in table order."""
        root = make_project({
            "src/b.ts": "",
            "api/a.ts": "",
            "zzz/c.ts": "",
        })

        found = relative(walk(root), root)

        assert found == ["api/a.ts", "src/b.ts", "zzz/c.ts"]

    def test_file_appears_once(self, make_project):
        """Test that a file reachable from two candidates is listed once."""
        root = make_project({"src/api/handler.ts": ""})

        found = relative(walk(root), root)

        assert found == ["src/api/handler.ts"]

    def test_skips_excluded_directories(self, make_project):
        """Test that node_modules and friends are not descended into."""
        root = make_project({
            "src/app.ts": "",
            "node_modules/pkg/index.js": "",
            "src/__pycache__/x.py": "",
        })

        found = relative(walk(root), root)

        assert found == ["src/app.ts"]

    def test_skips_unsupported_extensions(self, make_project):
        """Test that only supported source files are returned."""
        root = make_project({
            "src/app.ts": "",
            "src/README.md": "",
            "src/logo.png": b"\x89PNG",
        })

        found = relative(walk(root), root)

        assert found == ["src/app.ts"]

    def test_config_exclusions(self, make_project):
        """Test directory and extension exclusions from config."""
        root = make_project({
            "src/app.ts": "",
            "src/native.c": "",
            "vendor/lib.js": "",
        })
        config = {"exclude": {"directories": ["vendor"], "extensions": ["c"]}}

        found = relative(walk(root, config), root)

        assert found == ["src/app.ts"]

    def test_extra_candidate_directory_before_root(self, make_project):
        """Test that configured candidate directories precede the root catch-all."""
        root = make_project({
            "aaa/first.ts": "",
            "functions/handler.ts": "",
        })
        config = {"candidates": {"directories": ["functions"]}}

        found = relative(walk(root, config), root)

        assert found == ["functions/handler.ts", "aaa/first.ts"]

    def test_only_unsupported_files(self, make_project):
        """Test that a tree without source files yields nothing."""
        root = make_project({"notes.txt": "hi", "data/info.csv": "a,b"})

        assert walk(root) == []


class TestErrors:
    """Tests for walker failure modes."""

    def test_missing_root(self, tmp_path):
        """Test that a missing root is a RootTraversalError."""
        with pytest.raises(RootTraversalError):
            walk(tmp_path / "missing")

    def test_root_is_a_file(self, tmp_path):
        """Test that a file root is a RootTraversalError."""
        path = tmp_path / "file.ts"
        path.write_text("")

        with pytest.raises(RootTraversalError):
            walk(path)

    def test_root_error_is_oserror(self, tmp_path):
        """Test that callers can catch the root error as OSError."""
        with pytest.raises(OSError):
            walk(tmp_path / "missing")

    def test_file_limit(self, make_project):
        """Test that exceeding max_files aborts the walk."""
        root = make_project({"src/a.ts": "", "src/b.ts": ""})

        with pytest.raises(TraversalLimitError):
            DirectoryWalker(root, {"scan": {"max_files": 1}}).walk()

    def test_unreadable_subdirectory_is_skipped(self, make_project, monkeypatch, caplog):
        """Test that a subdirectory that cannot be listed does not stop the walk."""
        root = make_project({
            "services/api.ts": "",
            "services/secret/hidden.ts": "",
        })
        real_scandir = os.scandir

        def fake_scandir(path="."):
            if os.path.basename(str(path)) == "secret":
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", fake_scandir)

        with caplog.at_level(logging.WARNING, logger="backend_map.walker"):
            found = relative(walk(root), root)

        assert found == ["services/api.ts"]
        assert "Skipping unreadable directory" in caplog.text
