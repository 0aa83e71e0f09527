# apps/backend/research_repo/crosscutting/security.py
"""
===============================================================================
MÓDULO: Security headers (OWASP hardening)
===============================================================================

Objetivo
--------
Agregar headers de seguridad a todas las respuestas. Las previsualizaciones
inline (PDF en <iframe>) solo pueden embeberse desde los orígenes declarados
en FRAME_ANCESTORS; el resto de la API no se embebe nunca.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  SecurityHeadersMiddleware

Responsabilidades:
  - Añadir headers de hardening sin romper dev
  - frame-ancestors configurable para /research/file/*

Colaboradores:
  - crosscutting.config.get_settings
===============================================================================
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

_FILE_PATH_PREFIX = "/research/file/"


def _build_csp(frame_ancestors: str) -> str:
    return f"default-src 'none'; frame-ancestors {frame_ancestors}"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      SecurityHeadersMiddleware

    Responsabilidades:
      - Agregar headers de seguridad OWASP
      - HSTS solo si producción y request por HTTPS

    Colaboradores:
      - crosscutting.config
    ----------------------------------------------------------------------------
    """

    def __init__(self, app):
        super().__init__(app)
        from .config import get_settings

        settings = get_settings()
        self._is_production = settings.is_production()
        self._file_csp = _build_csp(settings.frame_ancestors.strip() or "'none'")
        self._api_csp = _build_csp("'none'")

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        embeddable = request.url.path.startswith(
            _FILE_PATH_PREFIX
        ) and not request.url.path.endswith("/signed")

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Content-Security-Policy"] = (
            self._file_csp if embeddable else self._api_csp
        )
        if not embeddable:
            response.headers["X-Frame-Options"] = "DENY"

        if self._is_production:
            proto = (
                request.headers.get("x-forwarded-proto") or request.url.scheme or ""
            ).lower()
            if proto == "https":
                response.headers["Strict-Transport-Security"] = (
                    "max-age=31536000; includeSubDomains"
                )

        return response
