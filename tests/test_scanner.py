"""Tests for the scan orchestrator and file helpers."""

import logging
import os
import pytest

from backend_map import read_file, save_file, scan
from backend_map.errors import RootTraversalError
from backend_map.extractors import BaseMatcher, ImportMatcher, LexicalExtractor
from backend_map.models import BlockKind, Endpoint, Importance, RelationshipKind, Role
from backend_map.scanner import BackendScanner


def without_timestamp(snapshot):
    data = snapshot.to_dict()
    data.pop("scannedAt")
    return data


class TestScenarios:
    """End-to-end scans of small projects."""

    def test_route_importing_service(self, users_project):
        """Test a route file importing a service file."""
        snapshot = scan(users_project)

        assert [(f.path, f.role) for f in snapshot.files] == [
            ("routes/users.ts", Role.ROUTE),
            ("services/db.ts", Role.SERVICE),
        ]
        route, service = snapshot.files
        imports = [r for r in snapshot.relationships if r.kind == RelationshipKind.IMPORT]
        assert [(r.source, r.target) for r in imports] == [(route.id, service.id)]
        assert route.endpoints == [Endpoint("GET", "/users")]
        assert service.exports == ["db"]

    def test_call_into_service(self, users_project):
        """Test that a call through an imported name links the two files."""
        snapshot = scan(users_project)
        calls = [r for r in snapshot.relationships if r.kind == RelationshipKind.FUNCTION_CALL]

        assert [(r.label, r.source_function, r.target) for r in calls] == [
            ("calls query", "GET /users", "services/db.ts"),
        ]

    def test_payment_call_is_critical(self, make_project):
        """Test that a payment intent line is a critical stripe block."""
        root = make_project({
            "services/payment.ts": "const intent = await stripe.paymentIntents.create({ amount: 1000 });\n",
        })

        snapshot = scan(root)
        blocks = [b for b in snapshot.files[0].code_blocks if b.kind == BlockKind.THIRD_PARTY]

        assert [(b.provider, b.importance) for b in blocks] == [("stripe", Importance.CRITICAL)]
        assert [p.id for p in snapshot.providers] == ["external-stripe"]

    def test_unreadable_subdirectory(self, make_project, monkeypatch):
        """Test that an unreadable directory does not abort the scan."""
        root = make_project({
            "services/api.ts": "export const api = 1;\n",
            "services/secret/hidden.ts": "export const hidden = 1;\n",
        })
        real_scandir = os.scandir

        def fake_scandir(path="."):
            if os.path.basename(str(path)) == "secret":
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", fake_scandir)

        snapshot = scan(root)

        assert [f.path for f in snapshot.files] == ["services/api.ts"]

    def test_only_unsupported_files(self, make_project):
        """Test that a tree without source files gives an empty snapshot."""
        root = make_project({"notes.txt": "hello", "data/table.csv": "a,b\n"})

        snapshot = scan(root)

        assert snapshot.files == []
        assert snapshot.relationships == []

    def test_missing_root(self, tmp_path):
        """Test that only the root error escapes."""
        with pytest.raises(RootTraversalError):
            scan(tmp_path / "missing")


class TestSnapshot:
    """Tests for snapshot-wide properties."""

    def test_idempotent(self, users_project):
        """Test that rescanning an unchanged tree gives the same snapshot."""
        assert without_timestamp(scan(users_project)) == without_timestamp(scan(users_project))

    def test_worker_count_does_not_change_result(self, users_project):
        """Test that results keep walk order regardless of parallelism."""
        assert without_timestamp(scan(users_project, max_workers=1)) == without_timestamp(
            scan(users_project, max_workers=8)
        )

    def test_relationship_endpoints_exist(self, users_project):
        """Test that edges only reference files or provider nodes of the snapshot."""
        snapshot = scan(users_project)
        ids = {f.id for f in snapshot.files} | {p.id for p in snapshot.providers}

        for relationship in snapshot.relationships:
            assert relationship.source in ids
            assert relationship.target in ids

    def test_similar_paths_stay_distinct(self, make_project):
        """Test that paths differing only in separators get their own id and cell."""
        root = make_project({
            "src/a_b.ts": "export const flat = 1;\n",
            "src/a/b.ts": "export const nested = 1;\n",
            "src/c.ts": "import { nested } from './a/b';\n",
        })

        snapshot = scan(root)

        assert len({f.id for f in snapshot.files}) == 3
        assert len({(f.position.x, f.position.y) for f in snapshot.files}) == 3
        assert (snapshot.files[0].position.x, snapshot.files[0].position.y) == (0, 0)
        imports = [r for r in snapshot.relationships if r.kind == RelationshipKind.IMPORT]
        assert [(r.source, r.target) for r in imports] == [
            (snapshot.file_by_path("src/c.ts").id, snapshot.file_by_path("src/a/b.ts").id),
        ]

    def test_line_ranges(self, users_project):
        """Test that every fact lies within its file."""
        snapshot = scan(users_project)

        for scanned in snapshot.files:
            for fact in scanned.functions + scanned.classes + scanned.code_blocks:
                assert 1 <= fact.start_line <= fact.end_line <= scanned.line_count

    def test_positions_assigned(self, users_project):
        """Test that layout runs as part of the scan."""
        snapshot = scan(users_project)

        assert [(f.position.x, f.position.y) for f in snapshot.files] == [(0, 0), (270, 0)]

    def test_layout_from_config(self, users_project):
        """Test layout geometry from configuration."""
        snapshot = scan(users_project, config={"layout": {"node_width": 100, "spacing": 0}})

        assert snapshot.files[1].position.x == 100

    def test_to_dict_shape(self, users_project):
        """Test the serialized top-level keys."""
        data = scan(users_project).to_dict(include_content=False)

        assert set(data) == {"files", "relationships", "providers", "projectRoot", "scannedAt", "summary"}
        assert "content" not in data["files"][0]
        assert data["files"][0]["endpoints"] == ["GET /users"]

    def test_summary(self, users_project):
        """Test aggregate counts."""
        summary = scan(users_project).summary()

        assert summary["total_files"] == 2
        assert summary["by_role"][Role.ROUTE] == 1
        assert summary["by_role"][Role.SERVICE] == 1
        assert summary["by_role"][Role.MODEL] == 0
        assert summary["by_relationship_kind"][RelationshipKind.IMPORT] == 1
        assert summary["total_endpoints"] == 1

    def test_scanned_at_is_utc(self, users_project):
        """Test the timestamp timezone."""
        assert scan(users_project).scanned_at.utcoffset().total_seconds() == 0


class TestPerFileFailures:
    """Tests for recovered per-file errors."""

    def test_undecodable_file_skipped(self, make_project, caplog):
        """Test that a non-UTF-8 file is left out and logged."""
        root = make_project({
            "src/good.ts": "export const ok = 1;\n",
            "src/bad.ts": b"\xff\xfe\x00binary",
        })

        with caplog.at_level(logging.WARNING, logger="backend_map.scanner"):
            snapshot = scan(root)

        assert [f.path for f in snapshot.files] == ["src/good.ts"]
        assert "src/bad.ts" in caplog.text

    def test_extraction_failure_keeps_file(self, make_project, caplog):
        """Test that a file whose matcher fails is kept without facts."""

        class Broken(BaseMatcher):
            name = "broken"

            def apply(self, scanned):
                raise RuntimeError("boom")

        root = make_project({"src/a.ts": "import b from './b';\n", "src/b.ts": ""})
        scanner = BackendScanner(root)
        scanner.extractor = LexicalExtractor([ImportMatcher(), Broken()])

        with caplog.at_level(logging.WARNING, logger="backend_map.scanner"):
            snapshot = scanner.scan()

        assert [f.path for f in snapshot.files] == ["src/a.ts", "src/b.ts"]
        assert snapshot.files[0].imports == []
        assert snapshot.relationships == []
        assert "broken" in caplog.text


class TestFileHelpers:
    """Tests for reading and saving project files."""

    def test_read_file(self, users_project):
        """Test reading a project file."""
        assert read_file(users_project, "services/db.ts").startswith("export const db")

    def test_save_file_rescans(self, users_project):
        """Test that saving returns a fresh snapshot including the change."""
        snapshot = save_file(users_project, "services/mail.ts", "export const send = () => 1;\n")

        mail = snapshot.file_by_path("services/mail.ts")
        assert mail is not None
        assert mail.exports == ["send"]

    @pytest.mark.parametrize("path", ["../outside.ts", "services/../../outside.ts"])
    def test_outside_root_rejected(self, users_project, path):
        """Test that paths escaping the root are refused."""
        with pytest.raises(ValueError):
            read_file(users_project, path)
        with pytest.raises(ValueError):
            save_file(users_project, path, "x")
