"""
===============================================================================
TARJETA CRC — identity/principal_resolver.py
===============================================================================

Módulo:
    Construcción del Principal (borde de identidad)

Responsabilidades:
    - Convertir una credencial de sesión verificada en un Principal BEARER.
    - Convertir una capability verificada en un Principal CAPABILITY.
    - Calcular campus_affiliated UNA sola vez: comparación exacta del dominio
      del e-mail contra el dominio institucional (sin sufijos ni subdominios).

Colaboradores:
    - identity.bearer.decode_access_token
    - identity.capabilities.decode_capability
    - identity.dual_auth (dependencias FastAPI)
    - application.usecases.documents.deliver_document (camino capability)

Notas:
    - El Principal nunca se extiende después de construido.
    - No hay fallback: si la credencial no verifica, sale AuthError.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..crosscutting.exceptions import AuthError, AuthErrorReason
from ..domain.entities import Capability, Principal, Provenance, Role, normalize_identity
from .bearer import decode_access_token
from .capabilities import MAX_CAPABILITY_TTL_SECONDS, decode_capability
from .keys import (
    BearerSigningKey,
    CapabilitySigningKey,
    require_bearer_key,
    require_capability_key,
)


@dataclass(frozen=True, slots=True)
class RequestCredentials:
    """Credenciales crudas presentadas en un request (sin verificar)."""

    bearer: Optional[str] = None
    capability: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.bearer and not self.capability


def is_campus_identity(identity: str, institutional_domain: str) -> bool:
    """True solo si el dominio del e-mail es exactamente el institucional.

    "a@g.msuiit.edu.ph"          -> True
    "a@x.g.msuiit.edu.ph"        -> False
    "a@g.msuiit.edu.ph.evil.com" -> False
    """
    domain = normalize_identity(institutional_domain).lstrip("@")
    local, at, host = normalize_identity(identity).rpartition("@")
    if not at or not local or not domain:
        return False
    return host == domain


class PrincipalResolver:
    """Fábrica de Principals a partir de credenciales crudas."""

    def __init__(
        self,
        bearer_key: BearerSigningKey,
        capability_key: CapabilitySigningKey,
        *,
        institutional_domain: str,
        skew_seconds: int = 10,
        max_capability_ttl: int = MAX_CAPABILITY_TTL_SECONDS,
    ) -> None:
        self._bearer_key = require_bearer_key(bearer_key)
        self._capability_key = require_capability_key(capability_key)
        self._domain = normalize_identity(institutional_domain).lstrip("@")
        self._skew_seconds = int(skew_seconds)
        self._max_capability_ttl = int(max_capability_ttl)

    @property
    def institutional_domain(self) -> str:
        return self._domain

    def resolve_bearer(self, credential: str | None, now: datetime) -> Principal:
        claims = decode_access_token(
            credential, self._bearer_key, now=now, skew_seconds=self._skew_seconds
        )
        return Principal(
            identity=claims.email,
            role=claims.role,
            campus_affiliated=is_campus_identity(claims.email, self._domain),
            provenance=Provenance.BEARER,
        )

    def resolve_capability(
        self, token: str | None, now: datetime
    ) -> tuple[Principal, Capability]:
        capability = decode_capability(
            token,
            self._capability_key,
            now=now,
            max_ttl_seconds=self._max_capability_ttl,
        )
        if "@" not in capability.subject:
            raise AuthError(AuthErrorReason.MALFORMED)

        principal = Principal(
            identity=capability.subject,
            role=capability.role or Role.STUDENT,
            campus_affiliated=is_campus_identity(capability.subject, self._domain),
            provenance=Provenance.CAPABILITY,
        )
        return principal, capability
