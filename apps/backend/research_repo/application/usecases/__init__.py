"""
===============================================================================
USE CASES PACKAGE (Public API / Exports)
===============================================================================

Re-exporta los casos de uso de documentos para que container y routers
importen desde un único lugar.
===============================================================================
"""

from .documents import (
    CreateSignedLinkUseCase,
    DeliverDocumentUseCase,
    DocumentFacetsUseCase,
    GetDocumentUseCase,
    ListDocumentsUseCase,
    UpdateVisibilityUseCase,
)

__all__ = [
    "CreateSignedLinkUseCase",
    "DeliverDocumentUseCase",
    "DocumentFacetsUseCase",
    "GetDocumentUseCase",
    "ListDocumentsUseCase",
    "UpdateVisibilityUseCase",
]
