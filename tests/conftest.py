"""Pytest configuration for test isolation.

Every test gets a clean environment: ``DATABASE_URL`` is unset (so nothing
can reach a developer database by accident), the working directory is a
per-test temporary directory (so the CLI never picks up a local ``.env``),
and the package log level is raised to WARNING to keep output quiet.

Tests that need a database request the ``db_url`` fixture, which bootstraps a
file-backed SQLite ledger under ``tmp_path``.
"""

# ruff: noqa: E402
from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Make the workspace packages importable without an install: `household_ledger`
# lives under packages/, `db` under libs/db/src, and `tests.helpers` at the root.
_ROOT = Path(__file__).resolve().parents[1]
_PATHS = [_ROOT / "packages", _ROOT / "libs" / "db" / "src", _ROOT]
sys.path[:0] = [str(p) for p in _PATHS if str(p) not in sys.path]

from db.client import dispose_engines
from tests.helpers.db import bootstrap_sqlite_db


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("HOUSEHOLD_LEDGER_LOG_LEVEL", "WARNING")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def db_url(tmp_path: Path) -> Iterator[str]:
    """URL of a fresh, schema-initialized SQLite ledger for this test."""

    url = bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")
    yield url
    dispose_engines()
