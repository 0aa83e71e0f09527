"""
===============================================================================
TARJETA CRC — research_repo/interfaces/api/http/routers/__init__.py
===============================================================================

Name:
    Routers Package (HTTP)

Responsibilities:
    - Exponer routers segmentados (entrega/publicación y catálogo) para ser
      incluidos por el router principal.

Collaborators:
    - routers.research
    - routers.repository

Notas:
    - Este archivo NO define endpoints. Solo re-exporta routers.
===============================================================================
"""

from .repository import router as repository_router
from .research import router as research_router

__all__ = [
    "repository_router",
    "research_router",
]
