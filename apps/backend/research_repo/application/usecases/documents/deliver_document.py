"""
===============================================================================
USE CASE: Deliver Document (Delivery Gate)
===============================================================================

Name:
    Deliver Document Use Case

Business Goal:
    Entregar los bytes de un documento SOLO si la credencial presentada lo
    permite en este instante, por uno de dos caminos:
      - sesión (bearer): decisión fresca del evaluador en cada request
      - link firmado (capability): la firma ya prueba el Allow del momento
        de emisión; acá solo se verifica que sea para ESTE documento

Why (Context / Intención):
    - Los visores de PDF del navegador no pueden mandar headers: el link
      firmado existe para ellos, con vida corta y atado a un documento.
    - Ausente, no aprobado y bytes faltantes responden el mismo 404.
    - Un link de otro documento es 403 y se registra como manipulación.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    DeliverDocumentUseCase

Responsibilities:
    - authorize(): resolver principal (bearer primero, luego capability) y
      decidir Allow / 401 / 403 / 404.
    - execute(): authorize + abrir el handle de storage envuelto en
      ClosingStream (el caller hace el streaming y el cierre).
    - Métricas de decisión y auditoría de entrega / rechazo.

Collaborators:
    - identity.principal_resolver.PrincipalResolver
    - identity.access_control.can_access
    - domain.repositories.ResearchRepository
    - domain.services.FileStoragePort
    - crosscutting.streaming.ClosingStream
    - audit.emit_audit_event / crosscutting.metrics
===============================================================================
"""

from __future__ import annotations

from datetime import datetime

from ....audit import emit_audit_event
from ....context import set_provenance
from ....crosscutting.exceptions import AuthError, AuthErrorReason
from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_access_decision, record_capability_rejected
from ....crosscutting.streaming import ClosingStream
from ....domain.entities import Capability, Principal, ResearchDocument
from ....domain.repositories import ResearchRepository
from ....domain.services import FileStoragePort
from ....identity.access_control import can_access
from ....identity.principal_resolver import PrincipalResolver, RequestCredentials
from ....infrastructure.storage.errors import StorageError, StorageNotFoundError
from .document_results import (
    DeliveryResult,
    DocumentError,
    DocumentErrorCode,
    forbidden_error,
    not_found_error,
)

PATH_BEARER = "bearer"
PATH_CAPABILITY = "capability"
PATH_NONE = "none"

REASON_DOCUMENT_MISMATCH = "document_mismatch"


class DeliverDocumentUseCase:
    """
    Use Case (Application Service / Query):
        Gate de entrega de artefactos con doble camino de autenticación.
    """

    def __init__(
        self,
        repository: ResearchRepository,
        storage: FileStoragePort,
        resolver: PrincipalResolver,
    ) -> None:
        self._documents = repository
        self._storage = storage
        self._resolver = resolver

    # =========================================================================
    # Decisión
    # =========================================================================

    def authorize(
        self, document_id: str, credentials: RequestCredentials, now: datetime
    ) -> DeliveryResult:
        last_failure = AuthErrorReason.MISSING

        # ---------------------------------------------------------------------
        # 1) Camino sesión.
        # ---------------------------------------------------------------------
        if credentials.bearer:
            try:
                principal = self._resolver.resolve_bearer(credentials.bearer, now)
            except AuthError as exc:
                last_failure = exc.reason
                logger.info(
                    "credencial de sesión rechazada en entrega",
                    extra={"reason": exc.reason.value, "document_id": document_id},
                )
            else:
                return self._authorize_bearer(document_id, principal, now)

        # ---------------------------------------------------------------------
        # 2) Camino link firmado.
        # ---------------------------------------------------------------------
        if credentials.capability:
            try:
                principal, capability = self._resolver.resolve_capability(
                    credentials.capability, now
                )
            except AuthError as exc:
                last_failure = exc.reason
                record_capability_rejected(exc.reason.value)
                emit_audit_event(
                    "capability.rejected",
                    target_id=document_id,
                    metadata={"reason": exc.reason.value},
                )
            else:
                return self._authorize_capability(
                    document_id, principal, capability
                )

        # ---------------------------------------------------------------------
        # 3) Ningún camino sirvió.
        # ---------------------------------------------------------------------
        record_access_decision(PATH_NONE, "unauthorized")
        return DeliveryResult(
            error=DocumentError(
                code=DocumentErrorCode.UNAUTHORIZED,
                message=AuthError(last_failure).message,
                auth_reason=last_failure,
            )
        )

    def _load_deliverable(self, document_id: str) -> ResearchDocument | None:
        document = self._documents.get_document(document_id)
        if document is None or not document.is_approved():
            return None
        return document

    def _authorize_bearer(
        self, document_id: str, principal: Principal, now: datetime
    ) -> DeliveryResult:
        set_provenance(principal.provenance.value)

        document = self._load_deliverable(document_id)
        if document is None:
            record_access_decision(PATH_BEARER, "not_found")
            return DeliveryResult(error=not_found_error())

        if not can_access(document, principal, now):
            record_access_decision(PATH_BEARER, "deny")
            logger.info(
                "entrega denegada por visibilidad",
                extra={"document_id": document_id, "role": principal.role.value},
            )
            return DeliveryResult(error=forbidden_error())

        record_access_decision(PATH_BEARER, "allow")
        return DeliveryResult(document=document, principal=principal)

    def _authorize_capability(
        self, document_id: str, principal: Principal, capability: Capability
    ) -> DeliveryResult:
        set_provenance(principal.provenance.value)

        # R: se compara antes de cargar nada; un link ajeno no revela existencia.
        if not capability.binds(document_id):
            record_access_decision(PATH_CAPABILITY, "deny")
            record_capability_rejected(REASON_DOCUMENT_MISMATCH)
            logger.warning(
                "link firmado presentado contra otro documento",
                extra={
                    "document_id": document_id,
                    "capability_document_id": capability.document_id,
                },
            )
            emit_audit_event(
                "capability.rejected",
                actor=principal.identity,
                target_id=document_id,
                metadata={
                    "reason": REASON_DOCUMENT_MISMATCH,
                    "tampered": True,
                    "capability_document_id": capability.document_id,
                },
            )
            return DeliveryResult(
                error=forbidden_error("El link firmado no corresponde a este archivo.")
            )

        document = self._load_deliverable(document_id)
        if document is None:
            record_access_decision(PATH_CAPABILITY, "not_found")
            return DeliveryResult(error=not_found_error())

        record_access_decision(PATH_CAPABILITY, "allow")
        return DeliveryResult(document=document, principal=principal)

    # =========================================================================
    # Entrega
    # =========================================================================

    def execute(
        self, document_id: str, credentials: RequestCredentials, now: datetime
    ) -> DeliveryResult:
        """authorize() + apertura del handle. Sin error => stream abierto."""
        result = self.authorize(document_id, credentials, now)
        if result.error is not None:
            return result

        document, principal = result.document, result.principal

        try:
            handle = self._storage.open_stream(document.storage_key)
        except StorageNotFoundError:
            logger.warning(
                "bytes ausentes en storage", extra={"document_id": document.id}
            )
            return DeliveryResult(error=not_found_error())
        except StorageError as exc:
            logger.error(
                "no se pudo abrir el artefacto",
                extra={"document_id": document.id, "error": str(exc)},
            )
            return DeliveryResult(
                error=DocumentError(
                    code=DocumentErrorCode.STORAGE_ERROR,
                    message="No se pudo leer el archivo.",
                    resource="Documento",
                )
            )

        emit_audit_event(
            "document.delivered",
            actor=principal.identity,
            target_id=document.id,
            metadata={
                "provenance": principal.provenance.value,
                "role": principal.role.value,
            },
        )
        return DeliveryResult(
            document=document, principal=principal, stream=ClosingStream(handle)
        )
