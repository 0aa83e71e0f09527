"""
===============================================================================
DOCUMENT USE CASE RESULTS (Shared Result / Error Models)
===============================================================================

Name:
    Document Use Case Results

Business Goal:
    Proveer tipos consistentes de resultados y errores para los casos de uso
    de entrega, links firmados, catálogo y publicación.

Why (Context / Intención):
    - Los use cases devuelven resultados tipados en lugar de propagar excepciones.
    - Facilita:
        * mapeo uniforme a HTTP (status codes y payloads)
        * testeo de flujos por resultado (sin mocks de HTTP)
    - NOT_FOUND cubre ausente, no aprobado y bytes faltantes con UN mensaje:
      el cliente no puede distinguirlos.

-------------------------------------------------------------------------------
CRC CARD (Module-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Component:
    document_results models (module)

Responsibilities:
    - Definir DocumentErrorCode como conjunto estable de categorías de error.
    - Definir DocumentError como contrato mínimo de error.
    - Definir DTOs de resultados por caso de uso.

Collaborators:
    - domain.entities: ResearchDocument, Principal, Facets
    - crosscutting.streaming: ClosingStream
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ....crosscutting.exceptions import AuthErrorReason
from ....crosscutting.pagination import PageRequest
from ....crosscutting.streaming import ClosingStream
from ....domain.entities import Facets, Principal, ResearchDocument

MSG_DOCUMENT_NOT_FOUND = "Documento no encontrado."


class DocumentErrorCode(str, Enum):
    """
    Categorías de error de los casos de uso de documentos.

    Códigos:
      - VALIDATION_ERROR: input inválido/incompleto (422).
      - UNAUTHORIZED: ninguna credencial utilizable (401).
      - FORBIDDEN: principal válido sin acceso, o link de otro documento (403).
      - NOT_FOUND: ausente / no aprobado / bytes faltantes (404).
      - STORAGE_ERROR: fallo de storage antes de responder (500).
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    STORAGE_ERROR = "STORAGE_ERROR"


@dataclass(frozen=True)
class DocumentError:
    """
    Error de caso de uso.

    Campos:
      - code: DocumentErrorCode (categoría estable)
      - message: mensaje humano (UI/logs)
      - resource: nombre del recurso afectado (opcional)
      - auth_reason: motivo del 401 (solo UNAUTHORIZED)
    """

    code: DocumentErrorCode
    message: str
    resource: str | None = None
    auth_reason: AuthErrorReason | None = None


def not_found_error() -> DocumentError:
    return DocumentError(
        code=DocumentErrorCode.NOT_FOUND,
        message=MSG_DOCUMENT_NOT_FOUND,
        resource="Documento",
    )


def forbidden_error(message: str = "Acceso denegado.") -> DocumentError:
    return DocumentError(code=DocumentErrorCode.FORBIDDEN, message=message)


@dataclass
class DeliveryResult:
    """
    Resultado del gate de entrega.

    Contrato:
      - Éxito: document/principal != None; stream != None si se abrió el handle.
      - Falla: error != None y stream == None (nada queda abierto).
    """

    document: Optional[ResearchDocument] = None
    principal: Optional[Principal] = None
    stream: Optional[ClosingStream] = None
    error: DocumentError | None = None


@dataclass
class SignedLinkResult:
    url: str | None = None
    expires_in_seconds: int = 0
    error: DocumentError | None = None


@dataclass
class ListDocumentsResult:
    """
    Resultado para listar el catálogo.

    Campos:
      - documents: página de documentos visibles (posiblemente vacía).
      - total: total de coincidencias (todas las páginas).
      - page: page/limit efectivos tras normalizar.
    """

    documents: List[ResearchDocument] = field(default_factory=list)
    total: int = 0
    page: PageRequest | None = None
    pages: int = 0
    error: DocumentError | None = None


@dataclass
class FacetsResult:
    facets: Facets = field(default_factory=Facets)
    error: DocumentError | None = None


@dataclass
class GetDocumentResult:
    """
    Contrato:
      - Éxito: document != None y error == None
      - Falla: document == None y error != None
    """

    document: ResearchDocument | None = None
    error: DocumentError | None = None


@dataclass
class UpdateVisibilityResult:
    document: ResearchDocument | None = None
    error: DocumentError | None = None
