"""Tests for the file role classifier."""

import pytest

from backend_map.classifier import (
    ROLE_CONTENT_PATTERNS,
    ROLE_PATH_PATTERNS,
    classify,
    classify_content,
    classify_path,
)
from backend_map.models import Role


class TestPathRules:
    """Tests for classification by path."""

    @pytest.mark.parametrize("path,role", [
        ("controllers/user.ts", Role.CONTROLLER),
        ("src/api/userController.ts", Role.CONTROLLER),
        ("app/views.py", Role.CONTROLLER),
        ("models/user.ts", Role.MODEL),
        ("src/schemas/order.ts", Role.MODEL),
        ("routes/users.ts", Role.ROUTE),
        ("src/routers/items.py", Role.ROUTE),
        ("services/db.ts", Role.SERVICE),
        ("src/payment.service.ts", Role.SERVICE),
        ("middleware/auth.ts", Role.MIDDLEWARE),
        ("config/database.ts", Role.CONFIG),
        ("project/settings.py", Role.CONFIG),
    ])
    def test_conventional_paths(self, path, role):
        """Test conventional directory and file names."""
        assert classify_path(path) == role

    def test_windows_separators(self):
        """Test that backslash paths are normalized before matching."""
        assert classify_path("routes\\users.ts") == Role.ROUTE

    def test_no_path_match(self):
        """Test that an ordinary path implies nothing."""
        assert classify_path("lib/math.ts") is None


class TestContentRules:
    """Tests for classification by content."""

    def test_router_content(self):
        """Test that route registrations mark a controller."""
        assert classify_content("app.get('/health', handler)") == Role.CONTROLLER

    def test_schema_content(self):
        """Test that schema definitions mark a model."""
        assert classify_content("const s = new mongoose.Schema({})") == Role.MODEL

    def test_middleware_content(self):
        """Test that next() calls mark middleware."""
        assert classify_content("function check(req, res, nxt) { next(); }") == Role.MIDDLEWARE

    def test_dotenv_content(self):
        """Test that dotenv loading marks config."""
        assert classify_content("require('dotenv').config()") == Role.CONFIG


class TestClassify:
    """Tests for the combined classifier."""

    def test_path_takes_precedence(self):
        """Test that a controller path wins over model content."""
        content = "const User = mongoose.model('User', UserSchema);"

        assert classify("controllers/user.ts", content) == Role.CONTROLLER

    def test_content_fallback(self):
        """Test that content is used when the path says nothing."""
        assert classify("lib/thing.ts", "const s = new mongoose.Schema({})") == Role.MODEL

    def test_unknown(self):
        """Test the fallback role."""
        assert classify("lib/math.ts", "export const add = (a, b) => a + b;") == Role.UNKNOWN

    def test_deterministic(self):
        """Test that identical inputs give identical roles."""
        args = ("src/thing.ts", "class OrderService {}")

        assert classify(*args) == classify(*args) == Role.SERVICE

    def test_tables_are_in_precedence_order(self):
        """Test the row order of both pattern tables."""
        expected = [
            Role.CONTROLLER, Role.MODEL, Role.ROUTE,
            Role.SERVICE, Role.MIDDLEWARE, Role.CONFIG,
        ]

        assert [role for role, _ in ROLE_PATH_PATTERNS] == expected
        assert [role for role, _ in ROLE_CONTENT_PATTERNS] == expected
