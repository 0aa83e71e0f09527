"""
===============================================================================
TARJETA CRC — identity/capabilities.py
===============================================================================

Módulo:
    Links firmados de corta vida (capabilities)

Responsabilidades:
    - Emitir una capability SOLO tras un Allow del evaluador (una invocación).
    - Firmarla con la llave de capabilities (nunca con la de sesión).
    - Decodificar/verificar una capability: firma, issuer, typ, sujeto,
      documento y vencimiento estricto (sin tolerancia).

Colaboradores:
    - identity.access_control.can_access (evaluador)
    - identity.keys.CapabilitySigningKey
    - identity.tokens (PyJWT)
    - crosscutting.metrics / audit (emisión)

Payload:
    sub (identidad), doc (id de documento), iat, exp, iss, typ="capability",
    jti, y snapshot de auditoría role/campus. Nada más: ni permisos ni
    claims renovables.
===============================================================================
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from ..audit import emit_audit_event
from ..crosscutting.exceptions import AuthError, AuthErrorReason, AuthorizationError
from ..crosscutting.logger import logger
from ..crosscutting.metrics import record_capability_minted
from ..domain.entities import (
    Capability,
    Principal,
    Provenance,
    ResearchDocument,
    Role,
    as_utc,
    normalize_identity,
)
from .access_control import can_access
from .keys import CapabilitySigningKey, require_capability_key
from .tokens import (
    CLAIM_CAMPUS,
    CLAIM_DOC,
    CLAIM_EXP,
    CLAIM_IAT,
    CLAIM_ISS,
    CLAIM_JTI,
    CLAIM_ROLE,
    CLAIM_SUB,
    CLAIM_TYP,
    TOKEN_TYPE_CAPABILITY,
    check_times,
    decode_signed_claims,
    encode_claims,
)

DEFAULT_CAPABILITY_TTL_SECONDS = 120
MAX_CAPABILITY_TTL_SECONDS = 600

_REQUIRED_CLAIMS = (CLAIM_SUB, CLAIM_DOC, CLAIM_EXP, CLAIM_ISS, CLAIM_TYP)

Evaluator = Callable[[ResearchDocument, Principal, datetime], bool]


@dataclass(frozen=True, slots=True)
class MintedCapability:
    token: str
    capability: Capability
    expires_in_seconds: int


def encode_capability(
    capability: Capability,
    key: CapabilitySigningKey,
    *,
    issued_at: datetime,
    token_id: str | None = None,
) -> str:
    key = require_capability_key(key)
    payload: dict[str, object] = {
        CLAIM_SUB: capability.subject,
        CLAIM_DOC: capability.document_id,
        CLAIM_IAT: int(as_utc(issued_at).timestamp()),
        CLAIM_EXP: int(as_utc(capability.expires_at).timestamp()),
        CLAIM_ISS: key.issuer,
        CLAIM_TYP: TOKEN_TYPE_CAPABILITY,
        CLAIM_JTI: token_id or uuid.uuid4().hex,
    }
    if capability.role is not None:
        payload[CLAIM_ROLE] = capability.role.value
    if capability.campus_affiliated is not None:
        payload[CLAIM_CAMPUS] = bool(capability.campus_affiliated)
    return encode_claims(payload, secret=key.secret)


def decode_capability(
    token: str | None,
    key: CapabilitySigningKey,
    *,
    now: datetime,
    max_ttl_seconds: int = MAX_CAPABILITY_TTL_SECONDS,
) -> Capability:
    """
    Verifica una capability.

    - Vencimiento estricto: now >= exp => EXPIRED (sin skew).
    - exp más lejos que max_ttl_seconds => MALFORMED (no renovable).
    - El chequeo de documento lo hace el gate (binds()).
    """
    key = require_capability_key(key)
    payload = decode_signed_claims(
        token, secret=key.secret, issuer=key.issuer, required=_REQUIRED_CLAIMS
    )
    if payload.get(CLAIM_TYP) != TOKEN_TYPE_CAPABILITY:
        raise AuthError(AuthErrorReason.MALFORMED)

    exp = check_times(payload, now=now, skew_seconds=0)
    if exp - as_utc(now).timestamp() > max_ttl_seconds:
        raise AuthError(AuthErrorReason.MALFORMED)

    subject = normalize_identity(payload.get(CLAIM_SUB))
    document_id = payload.get(CLAIM_DOC)
    if not subject or not isinstance(document_id, str) or not document_id:
        raise AuthError(AuthErrorReason.MALFORMED)

    role: Role | None = None
    raw_role = payload.get(CLAIM_ROLE)
    if raw_role is not None:
        try:
            role = Role(str(raw_role))
        except ValueError as exc:
            raise AuthError(AuthErrorReason.MALFORMED) from exc

    campus = payload.get(CLAIM_CAMPUS)
    return Capability(
        subject=subject,
        document_id=document_id,
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        role=role,
        campus_affiliated=campus if isinstance(campus, bool) else None,
    )


class CapabilityMinter:
    """
    Emisor de links firmados.

    mint() invoca el evaluador exactamente una vez; Deny no emite nada.
    """

    def __init__(
        self,
        key: CapabilitySigningKey,
        *,
        ttl_seconds: int = DEFAULT_CAPABILITY_TTL_SECONDS,
        evaluator: Evaluator = can_access,
    ) -> None:
        self._key = require_capability_key(key)
        if ttl_seconds <= 0 or ttl_seconds > MAX_CAPABILITY_TTL_SECONDS:
            raise ValueError("capability ttl out of range")
        self._ttl_seconds = int(ttl_seconds)
        self._evaluate = evaluator

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def mint(
        self, document: ResearchDocument, principal: Principal, now: datetime
    ) -> MintedCapability:
        if principal.provenance is not Provenance.BEARER:
            raise AuthorizationError("Un link firmado no puede emitir otro.")

        if not self._evaluate(document, principal, now):
            logger.info(
                "capability denegada por visibilidad",
                extra={"document_id": document.id, "role": principal.role.value},
            )
            raise AuthorizationError()

        issued = as_utc(now).replace(microsecond=0)
        capability = Capability(
            subject=principal.identity,
            document_id=document.id,
            expires_at=datetime.fromtimestamp(
                int(issued.timestamp()) + self._ttl_seconds, tz=timezone.utc
            ),
            role=principal.role,
            campus_affiliated=principal.campus_affiliated,
        )
        token_id = uuid.uuid4().hex
        token = encode_capability(
            capability, self._key, issued_at=issued, token_id=token_id
        )

        record_capability_minted()
        emit_audit_event(
            "capability.minted",
            actor=principal.identity,
            target_id=document.id,
            metadata={
                "jti": token_id,
                "role": principal.role.value,
                "campus_affiliated": principal.campus_affiliated,
                "expires_at": capability.expires_at.isoformat(),
            },
        )
        return MintedCapability(
            token=token, capability=capability, expires_in_seconds=self._ttl_seconds
        )
