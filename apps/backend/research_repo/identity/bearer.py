"""
===============================================================================
TARJETA CRC — identity/bearer.py
===============================================================================

Módulo:
    Credenciales de sesión (JWT de acceso)

Responsabilidades:
    - Emitir JWT de acceso (helper para el servicio de identidad y para tests).
    - Decodificar y validar JWT de acceso (firma, issuer, exp/iat con tolerancia,
      claims mínimos, typ).
    - Devolver claims crudos validados; el Principal lo arma el resolver.

Colaboradores:
    - identity.keys.BearerSigningKey (nunca la llave de capabilities)
    - identity.tokens (PyJWT + mapeo de errores)
    - identity.principal_resolver

Decisiones de diseño:
    - Claims mínimos: sub, email, role, exp, iss.
    - typ opcional por compatibilidad; si viene debe ser "access".
    - No loguear tokens; solo el motivo del rechazo.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..crosscutting.exceptions import AuthError, AuthErrorReason
from ..domain.entities import Role, as_utc, normalize_identity
from .keys import BearerSigningKey, require_bearer_key
from .tokens import (
    CLAIM_EMAIL,
    CLAIM_EXP,
    CLAIM_IAT,
    CLAIM_ISS,
    CLAIM_ROLE,
    CLAIM_SUB,
    CLAIM_TYP,
    TOKEN_TYPE_ACCESS,
    check_times,
    decode_signed_claims,
    encode_claims,
)

_REQUIRED_CLAIMS = (CLAIM_SUB, CLAIM_EMAIL, CLAIM_ROLE, CLAIM_EXP, CLAIM_ISS)


@dataclass(frozen=True, slots=True)
class BearerClaims:
    """Payload mínimo validado de un access token."""

    subject: str
    email: str
    role: Role


def create_access_token(
    *,
    subject: str,
    email: str,
    role: Role,
    key: BearerSigningKey,
    ttl_seconds: int,
    now: datetime | None = None,
) -> tuple[str, int]:
    """Crea un JWT de acceso firmado.

    Retorna:
        (token, expires_in_seconds)
    """
    key = require_bearer_key(key)
    issued = as_utc(now or datetime.now(timezone.utc))

    payload: dict[str, object] = {
        CLAIM_SUB: str(subject),
        CLAIM_EMAIL: normalize_identity(email),
        CLAIM_ROLE: Role(role).value,
        CLAIM_IAT: int(issued.timestamp()),
        CLAIM_EXP: int((issued + timedelta(seconds=ttl_seconds)).timestamp()),
        CLAIM_ISS: key.issuer,
        CLAIM_TYP: TOKEN_TYPE_ACCESS,
    }
    return encode_claims(payload, secret=key.secret), int(ttl_seconds)


def decode_access_token(
    token: str | None,
    key: BearerSigningKey,
    *,
    now: datetime,
    skew_seconds: int,
) -> BearerClaims:
    """Decodifica y valida un JWT de acceso.

    Errores (AuthError):
        - MISSING: token vacío.
        - INVALID_SIGNATURE: firmado con otro secreto (p.ej. un link firmado).
        - EXPIRED: exp + skew <= now.
        - MALFORMED: claims faltantes/invalidos, issuer o typ incorrectos.
    """
    key = require_bearer_key(key)
    payload = decode_signed_claims(
        token, secret=key.secret, issuer=key.issuer, required=_REQUIRED_CLAIMS
    )
    check_times(payload, now=now, skew_seconds=skew_seconds)

    token_type = payload.get(CLAIM_TYP)
    if token_type is not None and token_type != TOKEN_TYPE_ACCESS:
        raise AuthError(AuthErrorReason.MALFORMED, "Tipo de token inválido.")

    subject = str(payload.get(CLAIM_SUB) or "").strip()
    email = normalize_identity(payload.get(CLAIM_EMAIL))
    if not subject or "@" not in email:
        raise AuthError(AuthErrorReason.MALFORMED)

    try:
        role = Role(str(payload.get(CLAIM_ROLE) or "").strip().lower())
    except ValueError as exc:
        raise AuthError(AuthErrorReason.MALFORMED) from exc

    return BearerClaims(subject=subject, email=email, role=role)
