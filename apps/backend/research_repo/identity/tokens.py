"""
===============================================================================
TARJETA CRC — identity/tokens.py
===============================================================================

Módulo:
    Helpers JWT compartidos (PyJWT, HS256)

Responsabilidades:
    - Centralizar algoritmo, nombres de claims y tipos de token.
    - Verificar firma + issuer + claims obligatorios con PyJWT.
    - Traducir excepciones de PyJWT a AuthError con motivo estable.
    - Validar exp/iat contra un `now` inyectado (tests deterministas).

Colaboradores:
    - identity.bearer / identity.capabilities
    - crosscutting.exceptions.AuthError

Decisiones:
    - exp/iat se verifican acá (no dentro de PyJWT) para que el reloj sea
      inyectable y la tolerancia sea explícita por tipo de token.
    - Cualquier fallo de decodificación es Deny (fail closed).
===============================================================================
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Iterable

import jwt

from ..crosscutting.exceptions import AuthError, AuthErrorReason
from ..domain.entities import as_utc

JWT_ALGORITHM: str = "HS256"

CLAIM_SUB: str = "sub"
CLAIM_EMAIL: str = "email"
CLAIM_ROLE: str = "role"
CLAIM_IAT: str = "iat"
CLAIM_EXP: str = "exp"
CLAIM_ISS: str = "iss"
CLAIM_TYP: str = "typ"
CLAIM_DOC: str = "doc"
CLAIM_CAMPUS: str = "campus"
CLAIM_JTI: str = "jti"

TOKEN_TYPE_ACCESS: str = "access"
TOKEN_TYPE_CAPABILITY: str = "capability"


def decode_signed_claims(
    token: str | None,
    *,
    secret: str,
    issuer: str,
    required: Iterable[str],
) -> dict[str, Any]:
    """Verifica firma/issuer/claims requeridos. No valida tiempos."""
    if not token or not token.strip():
        raise AuthError(AuthErrorReason.MISSING)

    try:
        return jwt.decode(
            token.strip(),
            secret,
            algorithms=[JWT_ALGORITHM],
            issuer=issuer,
            options={
                "require": list(required),
                "verify_exp": False,
                "verify_iat": False,
                "verify_nbf": False,
            },
        )
    except jwt.InvalidSignatureError as exc:
        raise AuthError(AuthErrorReason.INVALID_SIGNATURE) from exc
    except jwt.InvalidTokenError as exc:
        # DecodeError, InvalidIssuerError, MissingRequiredClaimError, alg inválido...
        raise AuthError(AuthErrorReason.MALFORMED) from exc


def _numeric_claim(payload: dict[str, Any], claim: str) -> float:
    value = payload.get(claim)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AuthError(AuthErrorReason.MALFORMED)
    try:
        number = float(value)
    except OverflowError as exc:
        raise AuthError(AuthErrorReason.MALFORMED) from exc
    if not math.isfinite(number):
        raise AuthError(AuthErrorReason.MALFORMED)
    return number


def check_times(
    payload: dict[str, Any], *, now: datetime, skew_seconds: int
) -> float:
    """
    exp obligatorio; iat opcional. Devuelve exp (epoch).

    - exp: vencido si now >= exp + skew.
    - iat: emitido "en el futuro" más allá de skew => malformado.
    """
    now_ts = as_utc(now).timestamp()
    exp = _numeric_claim(payload, CLAIM_EXP)
    if now_ts >= exp + skew_seconds:
        raise AuthError(AuthErrorReason.EXPIRED)

    if CLAIM_IAT in payload:
        iat = _numeric_claim(payload, CLAIM_IAT)
        if iat > now_ts + skew_seconds:
            raise AuthError(AuthErrorReason.MALFORMED)

    return exp


def encode_claims(payload: dict[str, Any], *, secret: str) -> str:
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)
