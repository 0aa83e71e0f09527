"""
===============================================================================
USE CASE: List Documents (catálogo del repositorio)
===============================================================================

Business Goal:
    Buscar y paginar el catálogo mostrando SOLO lo que el llamador puede ver.

Reglas:
    - Conjunto visible = AccessFilter(principal, now) ∪ documentos propios.
    - Filtros del llamador (q, year, category, genre, role) se intersectan:
      nunca amplían lo visible.
    - page >= 1; limit en [1, max_limit].

Collaborators:
    - identity.access_control.build_access_filter
    - domain.repositories.ResearchRepository
    - crosscutting.pagination
===============================================================================
"""

from __future__ import annotations

from datetime import datetime

from ....crosscutting.pagination import clamp_page, page_count
from ....domain.entities import CatalogQuery, Principal
from ....domain.repositories import ResearchRepository
from ....identity.access_control import build_access_filter
from .document_results import ListDocumentsResult


class ListDocumentsUseCase:
    def __init__(
        self,
        repository: ResearchRepository,
        *,
        default_limit: int = 20,
        max_limit: int = 100,
    ) -> None:
        self._documents = repository
        self._default_limit = default_limit
        self._max_limit = max_limit

    def execute(
        self,
        principal: Principal,
        query: CatalogQuery,
        now: datetime,
        *,
        page: int | None = None,
        limit: int | None = None,
    ) -> ListDocumentsResult:
        page_request = clamp_page(
            page,
            limit,
            default_limit=self._default_limit,
            max_limit=self._max_limit,
        )
        access = build_access_filter(principal, now)
        documents, total = self._documents.list_documents(access, query, page_request)
        return ListDocumentsResult(
            documents=documents,
            total=total,
            page=page_request,
            pages=page_count(total, page_request.limit),
        )
