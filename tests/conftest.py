"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from obproxy.clients import SQLiteStore


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def record_store(tmp_path) -> SQLiteStore:
    """Fresh SQLite record store per test."""
    return SQLiteStore(str(tmp_path / "records.db"))
