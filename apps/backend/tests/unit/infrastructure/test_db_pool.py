"""
Name: Connection Pool Lifecycle Tests

Responsibilities:
  - get_pool() before init_pool() fails with a typed error
  - init_pool() is single-shot; close_pool() is idempotent
  - Connection failures surface as DatabaseConnectionError

Notes:
  - ConnectionPool is patched; no database is required.
"""

from unittest.mock import MagicMock, patch

import pytest

from research_repo.infrastructure.db import pool as db_pool
from research_repo.infrastructure.db.errors import (
    DatabaseConnectionError,
    PoolAlreadyInitializedError,
    PoolNotInitializedError,
)

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _fresh_pool():
    db_pool.reset_pool()
    yield
    db_pool.reset_pool()


def test_get_pool_requires_init():
    assert db_pool.is_pool_initialized() is False
    with pytest.raises(PoolNotInitializedError):
        db_pool.get_pool()


def test_init_once_then_close():
    fake = MagicMock()
    with patch.object(db_pool, "ConnectionPool", return_value=fake) as factory:
        assert db_pool.init_pool("postgresql://x/y", 1, 2) is fake
        with pytest.raises(PoolAlreadyInitializedError):
            db_pool.init_pool("postgresql://x/y", 1, 2)

    assert factory.call_args.kwargs["min_size"] == 1
    assert db_pool.get_pool() is fake

    db_pool.close_pool()
    db_pool.close_pool()
    fake.close.assert_called_once()
    assert db_pool.is_pool_initialized() is False


def test_connection_failure_is_typed():
    with patch.object(db_pool, "ConnectionPool", side_effect=OSError("refused")):
        with pytest.raises(DatabaseConnectionError):
            db_pool.init_pool("postgresql://x/y", 1, 2)
    assert db_pool.is_pool_initialized() is False


def test_statement_timeout_is_applied_per_connection():
    conn = MagicMock()
    db_pool._configure_connection(conn)
    conn.execute.assert_called_once_with("SET statement_timeout = 30000")
    conn.commit.assert_called_once()
