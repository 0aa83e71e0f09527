# apps/backend/research_repo/crosscutting/pagination.py
"""
===============================================================================
MÓDULO: Utilidades de paginación (page / limit)
===============================================================================

Objetivo
--------
Paginación simple y consistente para el catálogo del repositorio:
- page >= 1, limit en [1, max_page_size]
- offset derivado y total de páginas para el bloque `meta`
===============================================================================
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def clamp_page(
    page: int | None, limit: int | None, *, default_limit: int, max_limit: int
) -> PageRequest:
    """Normaliza page/limit recibidos del cliente (valores absurdos -> bordes)."""
    safe_page = max(1, int(page or 1))
    safe_limit = int(limit or default_limit)
    safe_limit = min(max(1, safe_limit), max_limit)
    return PageRequest(page=safe_page, limit=safe_limit)


def page_count(total: int, limit: int) -> int:
    if total <= 0:
        return 0
    return math.ceil(total / max(1, limit))
