"""
===============================================================================
TARJETA CRC — domain/visibility_policy.py
===============================================================================

Módulo:
    Normalización de publicación (visibility / embargoUntil / allowedViewers)

Responsabilidades:
    - Validar el cambio de visibilidad ANTES de persistirlo (write-time).
    - Garantizar el invariante embargo => embargoUntil presente.
    - Normalizar allowedViewers (strip + lower, sin duplicados, orden estable).
    - Dejar estado limpio: allow-list solo en private, fecha solo en embargo.

Colaboradores:
    - application.usecases.documents.update_visibility
    - domain.entities.Visibility

Notas:
    - Helper puro: no toca DB ni infraestructura.
    - Una lista private vacía es rechazada acá; si luego queda vacía por otra
      vía, el evaluador la trata como "nadie" (no como error).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

from .entities import Visibility, as_utc, normalize_identity


class VisibilityPolicyError(ValueError):
    """Cambio de visibilidad inválido (mensaje apto para el cliente)."""


@dataclass(frozen=True)
class VisibilitySettings:
    visibility: Visibility
    embargo_until: Optional[datetime] = None
    allowed_viewers: tuple[str, ...] = ()


def normalize_allowed_viewers(raw: Any) -> list[str]:
    """
    Normaliza allowedViewers.

    Formatos aceptados:
      - "a@x.edu, B@y.com"  (csv)
      - ["a@x.edu", "B@y.com"]  (tuplas/sets también)

    Regla:
      - strip + lower, sin duplicados, en orden de aparición.
      - Entradas sin "@" se descartan.
    """
    if raw is None:
        return []

    if isinstance(raw, str):
        candidates: Iterable[Any] = raw.split(",")
    elif isinstance(raw, (list, tuple, set, frozenset)):
        candidates = raw
    else:
        return []

    viewers: list[str] = []
    for item in candidates:
        if not isinstance(item, str):
            continue
        cleaned = normalize_identity(item)
        if "@" not in cleaned:
            continue
        if cleaned not in viewers:
            viewers.append(cleaned)
    return viewers


def _parse_instant(raw: Any) -> Optional[datetime]:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return as_utc(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return as_utc(datetime.fromisoformat(text))
        except ValueError as exc:
            raise VisibilityPolicyError(
                "embargoUntil must be a valid ISO-8601 date"
            ) from exc
    raise VisibilityPolicyError("embargoUntil must be a valid ISO-8601 date")


def build_visibility_settings(
    visibility: Any,
    *,
    embargo_until: Any = None,
    allowed_viewers: Any = None,
) -> VisibilitySettings:
    """Valida y arma el nuevo estado de publicación de un documento."""
    parsed = Visibility.parse(visibility)
    if parsed is None:
        raise VisibilityPolicyError("Invalid visibility value")

    if parsed is Visibility.EMBARGO:
        until = _parse_instant(embargo_until)
        if until is None:
            raise VisibilityPolicyError(
                "embargoUntil is required for 'embargo' visibility"
            )
        return VisibilitySettings(visibility=parsed, embargo_until=until)

    if parsed is Visibility.PRIVATE:
        viewers = normalize_allowed_viewers(allowed_viewers)
        if not viewers:
            raise VisibilityPolicyError(
                "Provide at least one allowed viewer email for 'private' visibility"
            )
        return VisibilitySettings(visibility=parsed, allowed_viewers=tuple(viewers))

    return VisibilitySettings(visibility=parsed)
