# apps/backend/research_repo/crosscutting/exceptions.py
"""
===============================================================================
MÓDULO: Excepciones tipadas del backend (errores internos)
===============================================================================

Objetivo
--------
Tener excepciones internas coherentes, con:
- error_code estable
- error_id para correlación con logs
- message "humana" (sin filtrar secretos ni existencia de documentos)

Taxonomía de acceso:
  AuthError           -> 401  (Missing / Malformed / Expired / Invalid-Signature)
  AuthorizationError  -> 403  (Deny del evaluador, capability de otro documento)

Not-found (ausente, no aprobado o bytes faltantes) y fallas de storage no son
excepciones: los casos de uso devuelven DocumentErrorCode
(application/usecases/documents/document_results.py) y
interfaces/api/http/error_mapping.py los traduce a 404 / 500.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  AccessError + subclases

Responsabilidades:
  - Estandarizar errores internos que luego se mapean a HTTP
  - Generar error_id para rastreo

Colaboradores:
  - api/exception_handlers.py (mapea a AppHTTPException)
  - identity/* (lanza AuthError / AuthorizationError)
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from uuid import uuid4


class AccessError(Exception):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      AccessError

    Responsabilidades:
      - Base para errores internos del sistema
      - Proveer error_code + error_id + message

    Colaboradores:
      - api/exception_handlers.py
    ----------------------------------------------------------------------------
    """

    error_code: str = "ACCESS_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)


class AuthErrorReason(str, Enum):
    MISSING = "missing"
    MALFORMED = "malformed"
    EXPIRED = "expired"
    INVALID_SIGNATURE = "invalid_signature"


_AUTH_MESSAGES: dict[AuthErrorReason, str] = {
    AuthErrorReason.MISSING: "Autenticación requerida.",
    AuthErrorReason.MALFORMED: "Credencial inválida.",
    AuthErrorReason.EXPIRED: "Credencial expirada.",
    AuthErrorReason.INVALID_SIGNATURE: "Firma inválida.",
}


class AuthError(AccessError):
    """No se pudo resolver un principal (401)."""

    error_code: str = "UNAUTHORIZED"

    def __init__(self, reason: AuthErrorReason, message: str | None = None):
        self.reason = reason
        super().__init__(message or _AUTH_MESSAGES[reason])


class AuthorizationError(AccessError):
    """Principal válido sin permiso sobre el documento (403).

    tampered=True marca una capability presentada contra otro documento.
    """

    error_code: str = "FORBIDDEN"

    def __init__(self, message: str = "Acceso denegado.", *, tampered: bool = False):
        self.tampered = tampered
        super().__init__(message)


class DatabaseError(AccessError):
    """Errores de DB (conexión, query, timeout, pool)."""

    error_code: str = "DATABASE_ERROR"
