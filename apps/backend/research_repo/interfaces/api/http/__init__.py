"""
===============================================================================
TARJETA CRC — interfaces/api/http (Capa HTTP)
===============================================================================

Responsabilidades:
  - Schemas (DTOs), routers y mapeo de errores de casos de uso a RFC7807.

Reglas:
  - Los routers solo traducen HTTP <-> casos de uso; sin reglas de acceso acá.
===============================================================================
"""
