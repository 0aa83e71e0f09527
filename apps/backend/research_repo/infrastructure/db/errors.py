"""
===============================================================================
CRC CARD — infrastructure/db/errors.py
===============================================================================

Componente:
  Errores tipados del pool de conexiones

Responsabilidades:
  - Dar semántica clara al ciclo de vida del pool ("no inicializado",
    "ya inicializado", "no se pudo conectar").
  - Los repositorios los envuelven en crosscutting.exceptions.DatabaseError.
===============================================================================
"""


class DatabasePoolError(Exception):
    """Base de errores del pool de base de datos."""


class PoolAlreadyInitializedError(DatabasePoolError):
    """init_pool() llamado dos veces en el mismo proceso."""


class PoolNotInitializedError(DatabasePoolError):
    """get_pool() sin init_pool() previo."""


class DatabaseConnectionError(DatabasePoolError):
    """No se pudo abrir o validar una conexión."""
