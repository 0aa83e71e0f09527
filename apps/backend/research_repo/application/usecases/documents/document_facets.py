"""
===============================================================================
USE CASE: Document Facets
===============================================================================

Conteos de categorías y genre tags sobre el MISMO conjunto que ve el listado
(visibles ∪ propios), para que los filtros nunca revelen documentos ocultos.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime

from ....domain.entities import Principal
from ....domain.repositories import ResearchRepository
from ....identity.access_control import build_access_filter
from .document_results import FacetsResult


class DocumentFacetsUseCase:
    def __init__(self, repository: ResearchRepository) -> None:
        self._documents = repository

    def execute(self, principal: Principal, now: datetime) -> FacetsResult:
        access = build_access_filter(principal, now)
        return FacetsResult(facets=self._documents.facet_counts(access))
