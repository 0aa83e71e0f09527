"""
===============================================================================
TARJETA CRC — dependencies.py (Helpers comunes de routers)
===============================================================================

Responsabilidades:
  - Parseo de query params del catálogo (CSV, rol de uploader).
  - Conversión de entidades del dominio a DTOs HTTP.
  - Base URL pública para los links firmados.

Colaboradores:
  - domain.entities (ResearchDocument, CatalogQuery, Facets, Role)
  - schemas.research
===============================================================================
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from research_repo.domain.entities import (
    CatalogQuery,
    Facets,
    ResearchDocument,
    Role,
)

from .schemas.research import (
    CatalogListQuery,
    FacetCountRes,
    FacetsRes,
    ResearchItemRes,
)


def split_csv(raw: Optional[str]) -> list[str]:
    """"a, b,,c" -> ["a", "b", "c"] (sin duplicados, orden estable)."""
    values: list[str] = []
    for part in (raw or "").split(","):
        value = part.strip()
        if value and value not in values:
            values.append(value)
    return values


def parse_uploader_role(raw: Optional[str]) -> Optional[Role]:
    """Rol desconocido => sin filtro (no es un error del cliente)."""
    value = (raw or "").strip().lower()
    if not value:
        return None
    try:
        return Role(value)
    except ValueError:
        return None


def to_catalog_query(params: CatalogListQuery) -> CatalogQuery:
    return CatalogQuery(
        text=params.q,
        year=params.year,
        categories=tuple(params.category),
        genres=tuple(params.genre),
        uploader_role=parse_uploader_role(params.role),
        sort=params.sort,
    )


def to_research_item(document: ResearchDocument) -> ResearchItemRes:
    return ResearchItemRes(
        id=document.id,
        title=document.title,
        author=document.author,
        co_authors=list(document.co_authors),
        year=document.year,
        abstract=document.abstract,
        keywords=list(document.keywords),
        category=document.category,
        categories=list(document.all_categories()),
        genre_tags=list(document.genre_tags),
        landing_page_url=document.landing_page_url,
        file_name=document.file_name,
        uploader_role=document.uploader_role,
        visibility=document.visibility,
        embargo_until=document.embargo_until,
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


def to_facets_res(facets: Facets) -> FacetsRes:
    return FacetsRes(
        categories=[FacetCountRes(name=n, count=c) for n, c in facets.categories],
        genre_tags=[FacetCountRes(name=n, count=c) for n, c in facets.genre_tags],
    )


def request_base_url(request: Request) -> str:
    return str(request.base_url).rstrip("/")
