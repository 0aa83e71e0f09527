"""PostgreSQL Repository Implementations (psycopg, SQL parametrizado)."""

from .research import PostgresResearchRepository, compile_access_filter

__all__ = ["PostgresResearchRepository", "compile_access_filter"]
