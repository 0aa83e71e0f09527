"""
===============================================================================
TARJETA CRC — research_repo/context.py (Contexto por request)
===============================================================================

Responsabilidades:
  - Mantener contexto "request-scoped" usando ContextVars (async-safe).
  - Correlacionar logs/métricas sin pasar parámetros por todo el stack.
  - Registrar cómo se autenticó el request (bearer / capability) para auditoría.

Colaboradores:
  - crosscutting.middleware: setea request_id/method/path al inicio del request.
  - crosscutting.logger: enriquece logs leyendo get_context_dict().
  - identity.dual_auth: setea la procedencia del principal resuelto.

Restricciones:
  - Solo strings (serialización segura).
  - Defaults vacíos ("") para evitar None en JSON.
  - Nunca guardar credenciales ni identidades acá.
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Final

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
http_method_var: ContextVar[str] = ContextVar("http_method", default="")
http_path_var: ContextVar[str] = ContextVar("http_path", default="")

# "bearer" | "capability" | "" (todavía no resuelto).
provenance_var: ContextVar[str] = ContextVar("provenance", default="")

_CTX_REQUEST_ID: Final[str] = "request_id"
_CTX_METHOD: Final[str] = "method"
_CTX_PATH: Final[str] = "path"
_CTX_PROVENANCE: Final[str] = "provenance"


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    """Setea el contexto mínimo del request (strings vacíos = no disponible)."""
    request_id_var.set(request_id or "")
    http_method_var.set(method or "")
    http_path_var.set(path or "")


def set_provenance(provenance: str) -> None:
    provenance_var.set(provenance or "")


def get_context_dict() -> dict[str, str]:
    """Devuelve el contexto actual como dict, omitiendo claves vacías."""
    ctx: dict[str, str] = {}

    if val := request_id_var.get():
        ctx[_CTX_REQUEST_ID] = val
    if val := http_method_var.get():
        ctx[_CTX_METHOD] = val
    if val := http_path_var.get():
        ctx[_CTX_PATH] = val
    if val := provenance_var.get():
        ctx[_CTX_PROVENANCE] = val

    return ctx


def clear_context() -> None:
    """
    Limpia el contexto al final del request.

    Evita filtración de contexto entre requests servidos por el mismo worker.
    """
    request_id_var.set("")
    http_method_var.set("")
    http_path_var.set("")
    provenance_var.set("")
