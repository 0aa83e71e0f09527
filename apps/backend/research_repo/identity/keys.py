"""
===============================================================================
TARJETA CRC — identity/keys.py
===============================================================================

Módulo:
    Llaves de firma tipadas (bearer vs capability)

Responsabilidades:
    - Modelar los dos secretos como TIPOS distintos, no como dos strings.
    - Fallar con TypeError si una función recibe la llave del otro dominio.
    - No exponer el secreto en repr/logs.

Colaboradores:
    - identity.bearer: firma/verifica credenciales de sesión (BearerSigningKey).
    - identity.capabilities: firma/verifica links firmados (CapabilitySigningKey).
    - container: construye ambas desde Settings.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field

BEARER_ISSUER_DEFAULT = "repo-api"
CAPABILITY_ISSUER_SUFFIX = "/capability"


@dataclass(frozen=True, slots=True)
class BearerSigningKey:
    """Secreto de credenciales de sesión (JWT_SECRET)."""

    secret: str = field(repr=False)
    issuer: str = BEARER_ISSUER_DEFAULT

    def __post_init__(self) -> None:
        if not (self.secret or "").strip():
            raise ValueError("bearer signing secret is required")


@dataclass(frozen=True, slots=True)
class CapabilitySigningKey:
    """Secreto de links firmados (SIGNED_URL_SECRET)."""

    secret: str = field(repr=False)
    issuer: str = BEARER_ISSUER_DEFAULT + CAPABILITY_ISSUER_SUFFIX

    def __post_init__(self) -> None:
        if not (self.secret or "").strip():
            raise ValueError("capability signing secret is required")


def require_bearer_key(key: object) -> BearerSigningKey:
    if not isinstance(key, BearerSigningKey):
        raise TypeError(f"expected BearerSigningKey, got {type(key).__name__}")
    return key


def require_capability_key(key: object) -> CapabilitySigningKey:
    if not isinstance(key, CapabilitySigningKey):
        raise TypeError(f"expected CapabilitySigningKey, got {type(key).__name__}")
    return key


def build_signing_keys(
    *, jwt_secret: str, signed_url_secret: str, issuer: str = BEARER_ISSUER_DEFAULT
) -> tuple[BearerSigningKey, CapabilitySigningKey]:
    """Arma el par de llaves; secretos iguales se rechazan."""
    if jwt_secret.strip() == signed_url_secret.strip():
        raise ValueError("bearer and capability secrets must differ")
    return (
        BearerSigningKey(secret=jwt_secret, issuer=issuer),
        CapabilitySigningKey(
            secret=signed_url_secret, issuer=issuer + CAPABILITY_ISSUER_SUFFIX
        ),
    )
