"""
===============================================================================
TARJETA CRC — research_repo/audit.py (Emisión de auditoría)
===============================================================================

Responsabilidades:
  - Construir eventos de auditoría con formato consistente (actor/action/target/metadata).
  - Emitirlos por un logger dedicado ("repo-api.audit"), un evento por línea.
  - "Best-effort": si falla la emisión, NO rompe el flujo de negocio.

Colaboradores:
  - identity.capabilities (capability.minted)
  - application.usecases.documents (document.delivered, capability.rejected,
    document.visibility_updated)
  - crosscutting.logger

Eventos:
  - capability.minted
  - capability.rejected
  - document.delivered
  - document.visibility_updated

Decisiones de seguridad:
  - Nunca se emite el token ni la firma del link; solo su jti.
  - Metadata se sanitiza a valores serializables; lo no serializable se stringifica.
===============================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from .crosscutting.logger import JSONFormatter, logger

AUDIT_LOGGER_NAME = "repo-api.audit"

audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
if not audit_logger.handlers:
    _handler = logging.StreamHandler()
    _handler.setFormatter(JSONFormatter())
    audit_logger.addHandler(_handler)
audit_logger.setLevel(logging.INFO)
audit_logger.propagate = False


def _sanitize(value: Any) -> Any:
    """
    Convierte valores a tipos serializables para JSON.
    - primitives -> OK
    - dict/list -> sanitiza recursivamente
    - otros -> str(value)
    """
    if value is None or isinstance(value, (str, int, float, bool)):
        return value

    if isinstance(value, dict):
        return {str(k): _sanitize(v) for k, v in value.items()}

    if isinstance(value, (list, tuple)):
        return [_sanitize(v) for v in value]

    return str(value)


def emit_audit_event(
    action: str,
    *,
    actor: str | None = None,
    target_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    """
    Emite un evento de auditoría.

    Regla clave:
      - Si falla la emisión, NO se lanza excepción.
    """
    event = {
        "event_id": str(uuid4()),
        "action": action,
        "actor": actor or "anonymous",
        "target_id": target_id or "",
        "occurred_at": datetime.now(timezone.utc).isoformat(),
        "audit": _sanitize(metadata or {}),
    }

    try:
        audit_logger.info(action, extra=event)
    except Exception as exc:
        # Best-effort: logueamos y seguimos.
        logger.warning(
            "Falló la emisión del evento de auditoría",
            extra={"action": action, "error": str(exc)},
        )
