"""
===============================================================================
DOCUMENT USE CASES PACKAGE (Public API / Exports)
===============================================================================

Catálogo de capacidades del subdominio Documento:
    - entrega de bytes (gate de doble camino)
    - links firmados de vista inline
    - catálogo: listado, facetas, ficha
    - publicación: cambio de visibilidad (staff/admin)
===============================================================================
"""

from __future__ import annotations

# -----------------------------------------------------------------------------
# Use Cases
# -----------------------------------------------------------------------------
from .create_signed_link import CreateSignedLinkUseCase, build_signed_url
from .deliver_document import DeliverDocumentUseCase
from .document_facets import DocumentFacetsUseCase

# -----------------------------------------------------------------------------
# DTOs / Result models
# -----------------------------------------------------------------------------
from .document_results import (
    DeliveryResult,
    DocumentError,
    DocumentErrorCode,
    FacetsResult,
    GetDocumentResult,
    ListDocumentsResult,
    SignedLinkResult,
    UpdateVisibilityResult,
)
from .get_document import GetDocumentUseCase
from .list_documents import ListDocumentsUseCase
from .update_visibility import UpdateVisibilityUseCase

__all__ = [
    # Use Cases
    "CreateSignedLinkUseCase",
    "DeliverDocumentUseCase",
    "DocumentFacetsUseCase",
    "GetDocumentUseCase",
    "ListDocumentsUseCase",
    "UpdateVisibilityUseCase",
    "build_signed_url",
    # Results
    "DeliveryResult",
    "FacetsResult",
    "GetDocumentResult",
    "ListDocumentsResult",
    "SignedLinkResult",
    "UpdateVisibilityResult",
    # Errors
    "DocumentError",
    "DocumentErrorCode",
]
