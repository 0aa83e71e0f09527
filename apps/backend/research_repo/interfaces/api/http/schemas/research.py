"""
===============================================================================
TARJETA CRC — schemas/research.py
===============================================================================

Módulo:
    Schemas HTTP del repositorio (catálogo, detalle, links firmados, visibilidad)

Responsabilidades:
    - DTOs de request/response en camelCase (contrato del frontend).
    - Validar sort del catálogo y normalizar strings de entrada.
    - NUNCA exponer storage_key ni allowed_viewers en respuestas públicas.

Colaboradores:
    - domain.entities.CATALOG_SORTS
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from research_repo.domain.entities import CATALOG_SORTS


class _CamelModel(BaseModel):
    """Base: snake_case en Python, camelCase en JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class CatalogListQuery(_CamelModel):
    """Query params del catálogo ya parseados por el router."""

    q: str = ""
    year: str = ""
    category: list[str] = Field(default_factory=list)
    genre: list[str] = Field(default_factory=list)
    role: Optional[str] = None
    sort: str = "latest"

    @field_validator("q", "year")
    @classmethod
    def strip_text(cls, v: str | None) -> str:
        return (v or "").strip()

    @field_validator("sort")
    @classmethod
    def validate_sort(cls, v: str | None) -> str:
        value = (v or "latest").strip().lower()
        if value not in CATALOG_SORTS:
            raise ValueError("sort inválido")
        return value


class VisibilityUpdateReq(_CamelModel):
    """Cambio de visibilidad (staff/admin).

    embargoUntil y allowedViewers llegan crudos: la política del dominio los
    parsea y normaliza (fecha ISO / lista o CSV de e-mails).
    """

    visibility: str
    embargo_until: Optional[str] = None
    allowed_viewers: Union[list[str], str, None] = None


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------
class ResearchItemRes(_CamelModel):
    """Metadata pública de un documento."""

    id: str
    title: str
    author: str = ""
    co_authors: list[str] = Field(default_factory=list)
    year: str = ""
    abstract: str = ""
    keywords: list[str] = Field(default_factory=list)
    category: str = ""
    categories: list[str] = Field(default_factory=list)
    genre_tags: list[str] = Field(default_factory=list)
    landing_page_url: Optional[str] = None
    file_name: str = ""
    uploader_role: str = ""
    visibility: Optional[str] = None
    embargo_until: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ResearchListMeta(_CamelModel):
    total: int
    page: int
    limit: int
    pages: int
    sort: str
    query: str = ""
    year: str = ""
    category: list[str] = Field(default_factory=list)
    genre: list[str] = Field(default_factory=list)
    role: Optional[str] = None


class ResearchListRes(_CamelModel):
    """Response del catálogo: página + meta."""

    data: list[ResearchItemRes]
    meta: ResearchListMeta


class FacetCountRes(_CamelModel):
    name: str
    count: int


class FacetsRes(_CamelModel):
    categories: list[FacetCountRes] = Field(default_factory=list)
    genre_tags: list[FacetCountRes] = Field(default_factory=list)


class SignedLinkRes(_CamelModel):
    """Link de vista inline de vida corta."""

    url: str
    expires_in_seconds: int
