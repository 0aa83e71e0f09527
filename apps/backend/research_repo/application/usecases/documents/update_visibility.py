"""
===============================================================================
USE CASE: Update Visibility
===============================================================================

Name:
    Update Visibility Use Case

Business Goal:
    Permitir a staff/admin cambiar la clase de visibilidad de un documento,
    validando el nuevo estado ANTES de persistirlo.

Reglas:
    - Solo roles operativos (staff/admin) con sesión.
    - embargo => embargoUntil parseable obligatorio.
    - private => al menos un e-mail en allowedViewers (lowercase, sin duplicados).
    - El resto de clases limpia fecha y allow-list.

Error Mapping:
    - FORBIDDEN: rol insuficiente.
    - VALIDATION_ERROR: combinación inválida (VisibilityPolicyError).
    - NOT_FOUND: el documento no existe.

Collaborators:
    - domain.visibility_policy.build_visibility_settings
    - domain.repositories.ResearchRepository
    - audit.emit_audit_event
===============================================================================
"""

from __future__ import annotations

from typing import Any

from ....audit import emit_audit_event
from ....domain.entities import Principal, Provenance
from ....domain.repositories import ResearchRepository
from ....domain.visibility_policy import (
    VisibilityPolicyError,
    build_visibility_settings,
)
from .document_results import (
    DocumentError,
    DocumentErrorCode,
    UpdateVisibilityResult,
    forbidden_error,
    not_found_error,
)


class UpdateVisibilityUseCase:
    def __init__(self, repository: ResearchRepository) -> None:
        self._documents = repository

    def execute(
        self,
        document_id: str,
        principal: Principal,
        *,
        visibility: Any,
        embargo_until: Any = None,
        allowed_viewers: Any = None,
    ) -> UpdateVisibilityResult:
        if principal.provenance is not Provenance.BEARER or not principal.is_operational:
            return UpdateVisibilityResult(error=forbidden_error("Rol insuficiente."))

        try:
            settings = build_visibility_settings(
                visibility,
                embargo_until=embargo_until,
                allowed_viewers=allowed_viewers,
            )
        except VisibilityPolicyError as exc:
            return UpdateVisibilityResult(
                error=DocumentError(
                    code=DocumentErrorCode.VALIDATION_ERROR,
                    message=str(exc),
                    resource="Documento",
                )
            )

        document = self._documents.update_visibility(document_id, settings)
        if document is None:
            return UpdateVisibilityResult(error=not_found_error())

        emit_audit_event(
            "document.visibility_updated",
            actor=principal.identity,
            target_id=document_id,
            metadata={
                "visibility": settings.visibility.value,
                "embargo_until": settings.embargo_until,
                "allowed_viewers_count": len(settings.allowed_viewers),
            },
        )
        return UpdateVisibilityResult(document=document)
