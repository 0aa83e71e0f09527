"""
===============================================================================
TARJETA CRC — router.py (Router raíz / Composición)
===============================================================================

Responsabilidades:
  - Definir el APIRouter raíz que se incluye en FastAPI (app.include_router).
  - Centralizar responses RFC7807 para OpenAPI.
  - Componer routers por contexto (entrega/publicación, catálogo).

Patrones aplicados:
  - Composition over inheritance: router raíz compone sub-routers.
  - Factory: build_router() para testear composición sin side-effects.

Colaboradores:
  - crosscutting.error_responses.OPENAPI_ERROR_RESPONSES
  - routers.* (sub-routers por feature)

Notas:
  - Se incluye sin prefijo: /research/file/{id} es la URL que embebe el
    frontend y la que llevan los links firmados.
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from ....crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from .routers.repository import router as repository_router
from .routers.research import router as research_router


def build_router() -> APIRouter:
    """Construye el router raíz (se puede invocar en tests)."""
    api_router = APIRouter(responses=OPENAPI_ERROR_RESPONSES)

    api_router.include_router(research_router)
    api_router.include_router(repository_router)

    return api_router


router = build_router()

__all__ = ["router", "build_router"]
