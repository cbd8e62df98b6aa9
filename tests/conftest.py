"""Shared fixtures for backend_map tests."""

import pytest
from pathlib import Path


ROUTE_USERS = """\
import { db } from '../services/db';
import express from 'express';

const router = express.Router();

router.get('/users', async (req, res) => {
  const users = await db.query('SELECT * FROM users');
  res.json(users);
});

export default router;
"""

SERVICE_DB = """\
export const db = {
  query: async (sql: string) => [],
};
"""


@pytest.fixture
def make_project(tmp_path):
    """Return a builder that writes {relative path: content} under tmp_path."""

    def build(files):
        for relative_path, content in files.items():
            path = tmp_path / relative_path
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return tmp_path

    return build


@pytest.fixture
def users_project(make_project) -> Path:
    """A route file importing a service file."""
    return make_project({
        "routes/users.ts": ROUTE_USERS,
        "services/db.ts": SERVICE_DB,
    })
