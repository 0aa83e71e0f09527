"""
===============================================================================
TARJETA CRC — error_mapping.py (UseCase Error -> HTTP RFC7807)
===============================================================================

Responsabilidades:
  - Traducir DocumentError de los casos de uso a HTTP Exceptions RFC7807.
  - Centralizar el mapeo para evitar duplicación en routers.
  - Mantener el dominio libre de HTTP.

Reglas:
  - NOT_FOUND sale siempre con el mismo detalle (ausente / no aprobado /
    bytes faltantes no se distinguen).
  - UNAUTHORIZED lleva WWW-Authenticate: Bearer.

Colaboradores:
  - application.usecases.documents (DocumentError, DocumentErrorCode)
  - crosscutting.error_responses (validation_error, forbidden, etc.)
===============================================================================
"""

from __future__ import annotations

from typing import NoReturn

from research_repo.application.usecases.documents import (
    DocumentError,
    DocumentErrorCode,
)
from research_repo.crosscutting.error_responses import (
    forbidden,
    internal_error,
    not_found,
    unauthorized,
    validation_error,
)


def raise_document_error(error: DocumentError) -> NoReturn:
    """Traduce DocumentErrorCode -> HTTP."""
    if error.code == DocumentErrorCode.VALIDATION_ERROR:
        raise validation_error(error.message)
    if error.code == DocumentErrorCode.UNAUTHORIZED:
        reason = error.auth_reason.value if error.auth_reason else None
        raise unauthorized(error.message, reason=reason)
    if error.code == DocumentErrorCode.FORBIDDEN:
        raise forbidden(error.message)
    if error.code == DocumentErrorCode.NOT_FOUND:
        raise not_found(error.resource or "Documento")

    # STORAGE_ERROR y cualquier código nuevo: 500 sin detalles internos.
    raise internal_error(error.message)
