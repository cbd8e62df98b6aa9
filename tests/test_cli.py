"""Tests for the command-line interface."""

import json
import pytest

from backend_map import __version__
from backend_map.cli import create_parser, main
from backend_map.models import Role


def run(capsys, *argv):
    main(list(argv))
    return capsys.readouterr().out


class TestMain:
    """Tests for the backend-map command."""

    def test_json_output(self, users_project, capsys):
        """Test that a scan prints the snapshot as JSON."""
        data = json.loads(run(capsys, str(users_project)))

        assert [f["path"] for f in data["files"]] == ["routes/users.ts", "services/db.ts"]
        assert data["projectRoot"] == str(users_project.resolve())
        assert data["summary"]["total_files"] == 2

    def test_summary(self, users_project, capsys):
        """Test summary-only output."""
        data = json.loads(run(capsys, str(users_project), "--summary"))

        assert set(data) == {"projectRoot", "scannedAt", "summary"}

    def test_output_file(self, users_project, tmp_path, capsys):
        """Test writing the snapshot to a file."""
        output = tmp_path / "out" / "graph.json"
        output.parent.mkdir()

        run(capsys, str(users_project), "-o", str(output), "--no-content")

        data = json.loads(output.read_text(encoding="utf-8"))
        assert all("content" not in f for f in data["files"])

    def test_role_filter(self, users_project, capsys):
        """Test that --role drops other files and their edges."""
        data = json.loads(run(capsys, str(users_project), "--role", Role.SERVICE))

        assert [f["path"] for f in data["files"]] == ["services/db.ts"]
        assert data["relationships"] == []

    def test_third_party_only(self, users_project, capsys):
        """Test that --third-party-only keeps only provider blocks."""
        data = json.loads(run(capsys, str(users_project), "--third-party-only"))

        blocks = [b for f in data["files"] for b in f["code_blocks"]]
        assert blocks
        assert all(b["kind"] == "third_party" for b in blocks)

    def test_critical_only(self, make_project, capsys):
        """Test that --critical-only keeps only critical blocks."""
        root = make_project({
            "services/payment.ts": "await stripe.paymentIntents.create({});\nconst rows = db.query('x');\n",
        })

        data = json.loads(run(capsys, str(root), "--critical-only"))

        blocks = data["files"][0]["code_blocks"]
        assert blocks
        assert all(b["importance"] == "critical" for b in blocks)

    def test_exclude_dirs(self, make_project, capsys):
        """Test command-line directory exclusions."""
        root = make_project({"src/a.ts": "", "vendor/b.ts": ""})

        data = json.loads(run(capsys, str(root), "--exclude-dirs", "vendor"))

        assert [f["path"] for f in data["files"]] == ["src/a.ts"]

    def test_config_file(self, make_project, capsys):
        """Test loading a YAML config."""
        root = make_project({"src/a.ts": "", "src/b.c": ""})
        config = root / "backend-map.yaml"
        config.write_text("exclude:\n  extensions: ['.c']\n")

        data = json.loads(run(capsys, str(root), "--config", str(config)))

        assert [f["path"] for f in data["files"]] == ["src/a.ts"]

    def test_missing_root_exits(self, tmp_path, capsys):
        """Test exit status 1 when the root cannot be scanned."""
        with pytest.raises(SystemExit) as excinfo:
            main([str(tmp_path / "missing")])

        assert excinfo.value.code == 1
        assert "Error:" in capsys.readouterr().err

    def test_missing_config_exits(self, users_project):
        """Test exit status 1 for a missing config file."""
        with pytest.raises(SystemExit) as excinfo:
            main([str(users_project), "--config", str(users_project / "nope.yaml")])

        assert excinfo.value.code == 1

    def test_init_config(self, capsys):
        """Test printing the config template."""
        out = run(capsys, "--init-config")

        assert "max_workers" in out

    def test_version(self, capsys):
        """Test --version."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(["--version"])

        assert __version__ in capsys.readouterr().out
