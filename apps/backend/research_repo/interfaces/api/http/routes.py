"""
===============================================================================
TARJETA CRC — routes.py (Shim de compatibilidad)
===============================================================================

Responsabilidades:
  - Mantener el import que hace api/main.py:
      from ..interfaces.api.http.routes import router
  - NO contiene endpoints. Solo re-exporta el router raíz de router.py.
===============================================================================
"""

from .router import router

__all__ = ["router"]
