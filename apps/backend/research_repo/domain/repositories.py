"""
===============================================================================
TARJETA CRC — domain/repositories.py
===============================================================================

Módulo:
    Puertos de Repositorio (Protocols)

Responsabilidades:
    - Definir el contrato de lectura del modelo de documentos de investigación.
    - Recibir el AccessFilter ya construido: el repositorio aplica el
      predicado, no decide reglas.

Colaboradores:
    - infrastructure/repositories: implementaciones (Postgres / in-memory).
    - application/usecases: consumen estos puertos.

Reglas:
    - SOLO interfaces: nada de implementación.
===============================================================================
"""

from __future__ import annotations

from typing import Optional, Protocol

from ..crosscutting.pagination import PageRequest
from .access_rules import AccessFilter
from .entities import CatalogQuery, Facets, ResearchDocument
from .visibility_policy import VisibilitySettings


class ResearchRepository(Protocol):
    """Contrato del modelo de lectura de documentos."""

    def get_document(self, document_id: str) -> Optional[ResearchDocument]:
        """Documento por id, sin filtrar por status (el caller decide)."""
        ...

    def list_documents(
        self,
        access: AccessFilter,
        query: CatalogQuery,
        page: PageRequest,
    ) -> tuple[list[ResearchDocument], int]:
        """Página de documentos visibles (access ∪ propios) ∩ query, y el total."""
        ...

    def facet_counts(self, access: AccessFilter) -> Facets:
        """Conteos de categorías y genre tags sobre el conjunto visible."""
        ...

    def update_visibility(
        self, document_id: str, settings: VisibilitySettings
    ) -> Optional[ResearchDocument]:
        """Aplica el nuevo estado de publicación; None si no existe."""
        ...

    def ping(self) -> bool: ...
