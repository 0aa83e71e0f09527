"""
===============================================================================
TARJETA CRC — identity/dual_auth.py
===============================================================================

Módulo:
    Dual Auth (credencial de sesión + link firmado) — dependencias FastAPI

Responsabilidades:
    - Extraer credenciales crudas del request:
        (a) bearer: `Authorization: Bearer ...` o `?token=` (solo GET)
        (b) capability: SOLO `?sig=` (nunca desde un header)
    - Exponer dependencias FastAPI para:
        - get_request_credentials (sin resolver; lo usa el gate de entrega)
        - require_bearer_principal (rutas que exigen sesión)
        - require_roles (staff/admin para operaciones de catálogo)
        - require_metrics_access (/metrics protegido por configuración)

Colaboradores:
    - identity.principal_resolver.PrincipalResolver
    - container.get_principal_resolver / container.get_clock
    - crosscutting.error_responses: forbidden estándar.
    - context.set_provenance: procedencia para logs.

Patrones:
    - Strategy (en runtime elegimos el "camino" de auth disponible).
    - Adapter (depende de FastAPI pero expone modelos neutros/puros).
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from fastapi import Depends, Header, Request

from ..container import Clock, get_clock, get_principal_resolver
from ..context import set_provenance
from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import forbidden
from ..crosscutting.exceptions import AuthError, AuthErrorReason
from ..crosscutting.logger import logger
from ..domain.entities import Principal, Role
from .principal_resolver import PrincipalResolver, RequestCredentials

BEARER_QUERY_PARAM: str = "token"
CAPABILITY_QUERY_PARAM: str = "sig"

# R: una credencial de sesión en la URL solo se acepta en lecturas.
_READ_ONLY_METHODS = frozenset({"GET"})


# ---------------------------------------------------------------------------
# Extracción
# ---------------------------------------------------------------------------


def extract_bearer_credential(
    request: Request, authorization: str | None = None
) -> str | None:
    """Header primero; `?token=` solo para GET."""
    if authorization:
        scheme, _, value = authorization.strip().partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()

    if request.method.upper() in _READ_ONLY_METHODS:
        token = (request.query_params.get(BEARER_QUERY_PARAM) or "").strip()
        if token:
            return token

    return None


def extract_capability_token(request: Request) -> str | None:
    sig = (request.query_params.get(CAPABILITY_QUERY_PARAM) or "").strip()
    return sig or None


def resolve_request(
    credentials: RequestCredentials, resolver: PrincipalResolver, now: datetime
) -> Principal:
    """Principal de sesión para el request; AuthError si no hay uno válido."""
    if not credentials.bearer:
        raise AuthError(AuthErrorReason.MISSING)
    return resolver.resolve_bearer(credentials.bearer, now)


# ---------------------------------------------------------------------------
# Dependencias FastAPI
# ---------------------------------------------------------------------------


async def get_request_credentials(
    request: Request,
    authorization: str | None = Header(None, alias="Authorization"),
) -> RequestCredentials:
    return RequestCredentials(
        bearer=extract_bearer_credential(request, authorization),
        capability=extract_capability_token(request),
    )


async def require_bearer_principal(
    request: Request,
    credentials: RequestCredentials = Depends(get_request_credentials),
    resolver: PrincipalResolver = Depends(get_principal_resolver),
    clock: Clock = Depends(get_clock),
) -> Principal:
    """Dependency FastAPI: requiere credencial de sesión válida.

    Un link firmado (`?sig=`) no alcanza: acá se exige sesión.
    """
    try:
        principal = resolve_request(credentials, resolver, clock())
    except AuthError as exc:
        logger.info(
            "credencial de sesión rechazada",
            extra={"reason": exc.reason.value},
        )
        raise

    request.state.principal = principal
    set_provenance(principal.provenance.value)
    return principal


def require_roles(*roles: Role) -> Callable:
    """Dependency FastAPI: requiere sesión con uno de los roles."""
    allowed = {Role(r) for r in roles}

    async def dependency(
        principal: Principal = Depends(require_bearer_principal),
    ) -> Principal:
        if principal.role not in allowed:
            raise forbidden("Rol insuficiente.")
        return principal

    return dependency


def require_staff_or_admin() -> Callable:
    return require_roles(Role.STAFF, Role.ADMIN)


def require_metrics_access() -> Callable:
    """Dependency FastAPI para /metrics: staff/admin solo si METRICS_REQUIRE_AUTH."""

    async def dependency(
        request: Request,
        credentials: RequestCredentials = Depends(get_request_credentials),
        resolver: PrincipalResolver = Depends(get_principal_resolver),
        clock: Clock = Depends(get_clock),
    ) -> None:
        if not get_settings().metrics_require_auth:
            return None
        principal = await require_bearer_principal(
            request, credentials, resolver, clock
        )
        if not principal.is_operational:
            raise forbidden("Rol insuficiente.")
        return None

    return dependency
