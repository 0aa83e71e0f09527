"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/research.py
============================================================
Class: PostgresResearchRepository

Responsibilities:
- Implementar el modelo de lectura de documentos sobre PostgreSQL.
- Compilar el AccessFilter a un WHERE parametrizado (compile_access_filter),
  incluyendo la unión con los documentos propios del llamador.
- Agregar filtros del catálogo con AND (nunca amplían lo visible).
- Conteos de facetas sobre el mismo conjunto visible.
- Actualizar el estado de publicación (visibility/embargo/allow-list).

Collaborators:
- domain.access_rules: AccessFilter / VisibilityClause / Condition
- infrastructure.db.pool: get_pool() (ConnectionPool)
- crosscutting.logger / crosscutting.exceptions

Constraints / Notes:
- Este archivo es "infra": NO decide reglas; traduce las que recibe.
- Todas las queries son parametrizadas (no interpolar input de usuario).
- Visibilidad desconocida/ausente cae en la cláusula de fallback (campus).
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....crosscutting.pagination import PageRequest
from ....domain.access_rules import AccessFilter, Condition, VisibilityClause
from ....domain.entities import (
    CatalogQuery,
    DocumentStatus,
    Facets,
    ResearchDocument,
    Visibility,
)
from ....domain.visibility_policy import VisibilitySettings

TABLE = "research_documents"

# Allowlist de ORDER BY: evita inyección y mantiene un contrato estable de sorting.
_DOCUMENT_SORTS: dict[str, str] = {
    "latest": "updated_at DESC NULLS LAST, id ASC",
    "year": "year DESC NULLS LAST, updated_at DESC NULLS LAST, id ASC",
}

# R: mismo recorte que str.strip(): cualquier whitespace, no solo espacios.
_TRIM_PATTERN = r"^\s+|\s+$"


def _trimmed(expr: str) -> str:
    return f"regexp_replace({expr}, '{_TRIM_PATTERN}', '', 'g')"


def _normalized(expr: str) -> str:
    return f"lower({_trimmed(expr)})"


_NORMALIZED_VISIBILITY = _normalized("visibility")

_OWNER_COLUMNS = ("author", "student", "adviser", "uploaded_by")

_SELECT_COLUMNS = """
    id, title, status, visibility, embargo_until, allowed_viewers,
    author, student, adviser, uploaded_by, uploader_role,
    abstract, co_authors, year, keywords, category, categories, genre_tags,
    landing_page_url, storage_key, file_name, file_type,
    created_at, updated_at
"""


def escape_like(text: str) -> str:
    """Escapa comodines de LIKE (el input es texto, no patrón)."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# ============================================================
# AccessFilter -> SQL
# ============================================================


def _residual_sql(
    condition: Condition, identity: str, now: datetime
) -> tuple[str, list[object]]:
    if condition is Condition.EMBARGO_ELAPSED:
        return "(embargo_until IS NOT NULL AND embargo_until <= %s)", [now]
    if condition is Condition.LISTED_VIEWER:
        return (
            "EXISTS (SELECT 1 FROM unnest(allowed_viewers) AS v"
            f" WHERE {_normalized('v')} = %s)",
            [identity],
        )
    raise ValueError(f"{condition.value} has no SQL translation")


def _clause_sql(
    clause: VisibilityClause, identity: str, now: datetime
) -> tuple[str, list[object]]:
    params: list[object] = []
    if clause.visibility is None:
        known = [v.value for v in Visibility]
        placeholders = ", ".join(["%s"] * len(known))
        parts = [
            f"(visibility IS NULL OR {_NORMALIZED_VISIBILITY} NOT IN ({placeholders}))"
        ]
        params.extend(known)
    else:
        parts = [f"{_NORMALIZED_VISIBILITY} = %s"]
        params.append(clause.visibility.value)

    # R: orden estable de condiciones => SQL estable (tests / plan cache).
    for condition in sorted(clause.residual, key=lambda c: c.value):
        sql, extra = _residual_sql(condition, identity, now)
        parts.append(sql)
        params.extend(extra)

    return "(" + " AND ".join(parts) + ")", params


def compile_access_filter(
    access: AccessFilter, *, include_ownership: bool = True
) -> tuple[str, list[object]]:
    """
    Traduce el predicado a SQL parametrizado.

    Forma: status = 'approved' AND (cláusulas OR propiedad)
    """
    params: list[object] = [DocumentStatus.APPROVED.value]
    status_sql = "status = %s"

    if access.unrestricted:
        return status_sql, params

    branches: list[str] = []
    for clause in access.clauses:
        sql, extra = _clause_sql(clause, access.identity, access.now)
        branches.append(sql)
        params.extend(extra)

    if include_ownership and access.identity:
        owners = ", ".join(_normalized(col) for col in _OWNER_COLUMNS)
        branches.append(f"%s IN ({owners})")
        params.append(access.identity)

    if not branches:
        return "FALSE", []

    return f"{status_sql} AND (" + " OR ".join(branches) + ")", params


def compile_catalog_query(query: CatalogQuery) -> tuple[list[str], list[object]]:
    """Filtros del llamador (se agregan con AND)."""
    filters: list[str] = []
    params: list[object] = []

    if query.text:
        like = f"%{escape_like(query.text)}%"
        filters.append(
            "(title ILIKE %s OR author ILIKE %s OR year ILIKE %s OR category ILIKE %s"
            " OR EXISTS (SELECT 1 FROM unnest("
            "coalesce(co_authors, '{}') || coalesce(keywords, '{}')"
            " || coalesce(categories, '{}') || coalesce(genre_tags, '{}')"
            ") AS t WHERE t ILIKE %s))"
        )
        params.extend([like] * 5)

    if query.year:
        filters.append("year = %s")
        params.append(query.year)

    if query.categories:
        cats = list(query.categories)
        filters.append("(category = ANY(%s) OR categories && %s::text[])")
        params.extend([cats, cats])

    if query.genres:
        filters.append("genre_tags && %s::text[]")
        params.append(list(query.genres))

    if query.uploader_role is not None:
        filters.append("uploader_role = %s")
        params.append(query.uploader_role.value)

    return filters, params


class PostgresResearchRepository:
    """Repositorio PostgreSQL del modelo de lectura de documentos."""

    def __init__(self, pool: ConnectionPool | None = None):
        # Pool inyectable: tests pueden usar un pool fake.
        self._pool = pool

    def _get_pool(self) -> ConnectionPool:
        if self._pool is not None:
            return self._pool

        from ...db.pool import get_pool

        return get_pool()

    # ============================================================
    # Helpers DB (logging + exception wrapping consistente)
    # ============================================================
    def _fetchall(
        self,
        *,
        query: str,
        params: Iterable[object],
        context_msg: str,
        extra: dict,
    ) -> list[tuple]:
        try:
            pool = self._get_pool()
            with pool.connection() as conn:
                return conn.execute(query, tuple(params)).fetchall()
        except Exception as exc:
            logger.exception(context_msg, extra={**extra, "error": str(exc)})
            raise DatabaseError(context_msg, original_error=exc) from exc

    def _fetchone(
        self,
        *,
        query: str,
        params: Iterable[object],
        context_msg: str,
        extra: dict,
    ) -> tuple | None:
        try:
            pool = self._get_pool()
            with pool.connection() as conn:
                return conn.execute(query, tuple(params)).fetchone()
        except Exception as exc:
            logger.exception(context_msg, extra={**extra, "error": str(exc)})
            raise DatabaseError(context_msg, original_error=exc) from exc

    # ============================================================
    # Mapping (SQL row -> entidad)
    # ============================================================
    @staticmethod
    def _row_to_document(row: tuple) -> ResearchDocument:
        def _tuple(value) -> tuple[str, ...]:
            return tuple(value or ())

        return ResearchDocument(
            id=str(row[0]),
            title=row[1] or "",
            status=row[2] or "",
            visibility=row[3],
            embargo_until=row[4],
            allowed_viewers=_tuple(row[5]),
            author=row[6] or "",
            student=row[7] or "",
            adviser=row[8] or "",
            uploaded_by=row[9] or "",
            uploader_role=row[10] or "",
            abstract=row[11] or "",
            co_authors=_tuple(row[12]),
            year=row[13] or "",
            keywords=_tuple(row[14]),
            category=row[15] or "",
            categories=_tuple(row[16]),
            genre_tags=_tuple(row[17]),
            landing_page_url=row[18],
            storage_key=row[19] or "",
            file_name=row[20] or "",
            file_type=row[21] or "application/pdf",
            created_at=row[22],
            updated_at=row[23],
        )

    # ============================================================
    # Lectura
    # ============================================================
    def get_document(self, document_id: str) -> Optional[ResearchDocument]:
        row = self._fetchone(
            query=f"SELECT {_SELECT_COLUMNS} FROM {TABLE} WHERE id = %s",
            params=[document_id],
            context_msg="get_document failed",
            extra={"document_id": document_id},
        )
        return self._row_to_document(row) if row else None

    def list_documents(
        self,
        access: AccessFilter,
        query: CatalogQuery,
        page: PageRequest,
    ) -> tuple[list[ResearchDocument], int]:
        access_sql, access_params = compile_access_filter(access)
        filters, filter_params = compile_catalog_query(query)

        where = " AND ".join([f"({access_sql})", *filters])
        params = [*access_params, *filter_params]
        order_by = _DOCUMENT_SORTS.get(query.sort, _DOCUMENT_SORTS["latest"])

        count_row = self._fetchone(
            query=f"SELECT count(*) FROM {TABLE} WHERE {where}",
            params=params,
            context_msg="count_documents failed",
            extra={"sort": query.sort},
        )
        total = int(count_row[0]) if count_row else 0
        if total == 0:
            return [], 0

        rows = self._fetchall(
            query=(
                f"SELECT {_SELECT_COLUMNS} FROM {TABLE} WHERE {where}"
                f" ORDER BY {order_by} LIMIT %s OFFSET %s"
            ),
            params=[*params, page.limit, page.offset],
            context_msg="list_documents failed",
            extra={"sort": query.sort, "page": page.page, "limit": page.limit},
        )
        return [self._row_to_document(r) for r in rows], total

    def facet_counts(self, access: AccessFilter) -> Facets:
        access_sql, access_params = compile_access_filter(access)

        category_rows = self._fetchall(
            query=(
                "SELECT name, count(*) AS n FROM ("
                f" SELECT DISTINCT id, {_trimmed('cat')} AS name FROM {TABLE},"
                " unnest(array_append(coalesce(categories, '{}'), category)) AS cat"
                f" WHERE {access_sql}"
                ") s WHERE name IS NOT NULL AND name <> ''"
                " GROUP BY name ORDER BY n DESC, name ASC"
            ),
            params=access_params,
            context_msg="category facets failed",
            extra={},
        )
        genre_rows = self._fetchall(
            query=(
                "SELECT name, count(*) AS n FROM ("
                f" SELECT DISTINCT id, tag AS name FROM {TABLE},"
                " unnest(coalesce(genre_tags, '{}')) AS tag"
                f" WHERE {access_sql}"
                ") s WHERE name IS NOT NULL AND name <> ''"
                " GROUP BY name ORDER BY n DESC, name ASC"
            ),
            params=access_params,
            context_msg="genre facets failed",
            extra={},
        )
        return Facets(
            categories=[(str(r[0]), int(r[1])) for r in category_rows],
            genre_tags=[(str(r[0]), int(r[1])) for r in genre_rows],
        )

    # ============================================================
    # Escritura
    # ============================================================
    def update_visibility(
        self, document_id: str, settings: VisibilitySettings
    ) -> Optional[ResearchDocument]:
        row = self._fetchone(
            query=(
                f"UPDATE {TABLE} SET visibility = %s, embargo_until = %s,"
                " allowed_viewers = %s, updated_at = now()"
                f" WHERE id = %s RETURNING {_SELECT_COLUMNS}"
            ),
            params=[
                settings.visibility.value,
                settings.embargo_until,
                list(settings.allowed_viewers),
                document_id,
            ],
            context_msg="update_visibility failed",
            extra={"document_id": document_id},
        )
        return self._row_to_document(row) if row else None

    def ping(self) -> bool:
        try:
            row = self._fetchone(
                query="SELECT 1", params=[], context_msg="ping failed", extra={}
            )
        except DatabaseError:
            return False
        return bool(row)
