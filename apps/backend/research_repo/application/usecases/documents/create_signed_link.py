"""
===============================================================================
USE CASE: Create Signed Link
===============================================================================

Business Goal:
    Emitir una URL de vista inline de corta vida para un documento, para que
    el visor de PDF del navegador (que no manda headers) pueda pedir los bytes.

Reglas:
    - Solo con sesión (bearer): un link firmado no puede emitir otro.
    - Documento ausente o no aprobado => NOT_FOUND.
    - El minter invoca al evaluador UNA vez; Deny => FORBIDDEN, sin link.
    - Base de la URL: PUBLIC_API_BASE si está configurada, si no la del request.

Collaborators:
    - identity.capabilities.CapabilityMinter
    - domain.repositories.ResearchRepository
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from urllib.parse import quote, urlencode

from ....crosscutting.exceptions import AuthorizationError
from ....domain.entities import Principal
from ....domain.repositories import ResearchRepository
from ....identity.capabilities import CapabilityMinter
from .document_results import SignedLinkResult, forbidden_error, not_found_error

FILE_ROUTE_TEMPLATE = "/research/file/{document_id}"


def build_signed_url(base: str, document_id: str, token: str) -> str:
    path = FILE_ROUTE_TEMPLATE.format(document_id=quote(document_id, safe=""))
    return f"{base.rstrip('/')}{path}?{urlencode({'sig': token})}"


class CreateSignedLinkUseCase:
    def __init__(
        self,
        repository: ResearchRepository,
        minter: CapabilityMinter,
        *,
        public_base: str = "",
    ) -> None:
        self._documents = repository
        self._minter = minter
        self._public_base = (public_base or "").strip()

    def execute(
        self,
        document_id: str,
        principal: Principal,
        now: datetime,
        *,
        request_base: str = "",
    ) -> SignedLinkResult:
        document = self._documents.get_document(document_id)
        if document is None or not document.is_approved():
            return SignedLinkResult(error=not_found_error())

        try:
            minted = self._minter.mint(document, principal, now)
        except AuthorizationError as exc:
            return SignedLinkResult(error=forbidden_error(exc.message))

        base = self._public_base or request_base
        return SignedLinkResult(
            url=build_signed_url(base, document.id, minted.token),
            expires_in_seconds=minted.expires_in_seconds,
        )
