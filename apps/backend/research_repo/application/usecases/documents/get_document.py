"""
===============================================================================
USE CASE: Get Document (metadata)
===============================================================================

Business Goal:
    Devolver la ficha de un documento (sin bytes) aplicando el mismo
    evaluador que la entrega.

Error Mapping:
    - NOT_FOUND: ausente o no aprobado.
    - FORBIDDEN: el evaluador niega el acceso.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime

from ....domain.entities import Principal
from ....domain.repositories import ResearchRepository
from ....identity.access_control import can_access
from .document_results import GetDocumentResult, forbidden_error, not_found_error


class GetDocumentUseCase:
    def __init__(self, repository: ResearchRepository) -> None:
        self._documents = repository

    def execute(
        self, document_id: str, principal: Principal, now: datetime
    ) -> GetDocumentResult:
        document = self._documents.get_document(document_id)
        if document is None or not document.is_approved():
            return GetDocumentResult(error=not_found_error())

        if not can_access(document, principal, now):
            return GetDocumentResult(
                error=forbidden_error("No tenés permiso para ver este documento.")
            )

        return GetDocumentResult(document=document)
