"""
===============================================================================
CRC CARD — infrastructure/db/pool.py
===============================================================================

Componente:
  Pool de conexiones PostgreSQL (singleton por proceso)

Responsabilidades:
  - Inicializar, exponer y cerrar el pool (lifespan de la app).
  - Configurar cada conexión nueva con statement_timeout.

Colaboradores:
  - psycopg_pool.ConnectionPool
  - api/main.py (lifespan: init_pool / close_pool)
  - infrastructure/repositories/postgres/research.py

Principios:
  - Fail-fast: doble init o uso sin init lanzan errores tipados.
  - El modelo de lectura es read-mostly: conexiones cortas, sin transacciones largas.
===============================================================================
"""

from __future__ import annotations

import threading
from typing import Optional

from psycopg_pool import ConnectionPool

from ...crosscutting.logger import logger
from .errors import (
    DatabaseConnectionError,
    PoolAlreadyInitializedError,
    PoolNotInitializedError,
)

_pool: Optional[ConnectionPool] = None
_pool_lock = threading.Lock()


def _configure_connection(conn) -> None:
    """Corre una vez por conexión creada por el pool."""
    from ...crosscutting.config import get_settings

    timeout_ms = int(get_settings().db_statement_timeout_ms)
    if timeout_ms > 0:
        conn.execute(f"SET statement_timeout = {timeout_ms}")
        conn.commit()


def init_pool(database_url: str, min_size: int, max_size: int) -> ConnectionPool:
    global _pool

    with _pool_lock:
        if _pool is not None:
            raise PoolAlreadyInitializedError("El pool ya fue inicializado.")

        logger.info(
            "Inicializando pool DB",
            extra={"min_size": min_size, "max_size": max_size},
        )
        try:
            _pool = ConnectionPool(
                conninfo=database_url,
                min_size=min_size,
                max_size=max_size,
                configure=_configure_connection,
                open=True,
            )
        except Exception as exc:
            raise DatabaseConnectionError("No se pudo abrir el pool DB.") from exc

        return _pool


def get_pool() -> ConnectionPool:
    if _pool is None:
        raise PoolNotInitializedError(
            "Pool no inicializado. Llamar init_pool() primero."
        )
    return _pool


def is_pool_initialized() -> bool:
    return _pool is not None


def close_pool() -> None:
    """Cierra el pool (idempotente)."""
    global _pool

    with _pool_lock:
        if _pool is None:
            return
        logger.info("Cerrando pool DB")
        try:
            _pool.close()
        finally:
            _pool = None


def reset_pool() -> None:
    """Solo tests: descarta el pool sin propagar errores de cierre."""
    global _pool

    with _pool_lock:
        pool, _pool = _pool, None
    if pool is not None:
        try:
            pool.close()
        except Exception as exc:
            logger.warning("reset_pool: error al cerrar", extra={"error": str(exc)})
