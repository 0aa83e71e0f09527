"""
============================================================
TARJETA CRC
============================================================
Class: research_repo.infrastructure.repositories (Package exports)

Responsibilities:
- Exponer implementaciones concretas del modelo de lectura (Postgres e InMemory)
  en un único punto de importación.

Collaborators:
- Repositorio Postgres (SQL crudo vía psycopg)
- Repositorio InMemory (tests / desarrollo local)
============================================================
"""

from .in_memory import InMemoryResearchRepository
from .postgres import PostgresResearchRepository

__all__ = [
    "InMemoryResearchRepository",
    "PostgresResearchRepository",
]
