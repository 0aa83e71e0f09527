"""
===============================================================================
TARJETA CRC — identity/access_control.py
===============================================================================

Módulo:
    Evaluador de visibilidad + constructor de predicados de listado

Responsabilidades:
    - can_access(doc, principal, now): decisión Allow/Deny pura y repetible.
    - build_access_filter(principal, now): predicado equivalente para listados
      (ramas que no son de propiedad).

Colaboradores:
    - domain.access_rules: tabla declarativa (ambas funciones derivan de ella).
    - domain.entities: ResearchDocument, Principal.
    - identity.capabilities: invoca can_access una vez al emitir un link.
    - application.usecases.documents: gate de entrega y catálogo.

Precedencia de can_access:
    1) status != approved          -> Deny
    2) principal de capability     -> Deny (un link no es insumo del evaluador)
    3) dueño (author/student/adviser/uploader) -> Allow
    4) staff / admin               -> Allow
    5) regla de la clase de visibilidad (desconocida => campus)

Notas:
    - Este módulo NO depende de FastAPI. Es lógica pura (fácil de testear).
===============================================================================
"""

from __future__ import annotations

from datetime import datetime

from ..domain.access_rules import (
    BYPASS_ROLES,
    FALLBACK_VISIBILITY,
    PRINCIPAL_CONDITIONS,
    VISIBILITY_RULES,
    AccessFilter,
    VisibilityClause,
    condition_holds,
    principal_condition_holds,
    rule_for,
)
from ..domain.entities import Principal, Provenance, ResearchDocument


def can_access(document: ResearchDocument, principal: Principal, now: datetime) -> bool:
    """True si el principal puede leer el documento en el instante `now`."""
    if not document.is_approved():
        return False

    if principal.provenance is not Provenance.BEARER:
        return False

    if document.is_owned_by(principal.identity):
        return True

    if principal.role in BYPASS_ROLES:
        return True

    conditions = rule_for(document.visibility_class)
    return all(condition_holds(c, document, principal, now) for c in conditions)


def build_access_filter(principal: Principal, now: datetime) -> AccessFilter:
    """
    Evalúa parcialmente la tabla para un principal.

    - Condiciones del principal se resuelven acá: si alguna falla, la fila se
      descarta entera.
    - Condiciones del documento quedan como residuo de la cláusula.
    - La fila de fallback (visibilidad desconocida) usa la regla de campus.
    """
    if principal.provenance is not Provenance.BEARER:
        return AccessFilter(identity="", now=now)

    if principal.role in BYPASS_ROLES:
        return AccessFilter(identity=principal.identity, now=now, unrestricted=True)

    rows = [*VISIBILITY_RULES.items(), (None, VISIBILITY_RULES[FALLBACK_VISIBILITY])]

    clauses: list[VisibilityClause] = []
    for visibility, conditions in rows:
        principal_side = conditions & PRINCIPAL_CONDITIONS
        if not all(principal_condition_holds(c, principal) for c in principal_side):
            continue
        clauses.append(
            VisibilityClause(
                visibility=visibility, residual=conditions - PRINCIPAL_CONDITIONS
            )
        )

    return AccessFilter(identity=principal.identity, now=now, clauses=tuple(clauses))
