"""
===============================================================================
TARJETA CRC — domain/access_rules.py
===============================================================================

Módulo:
    Tabla declarativa de visibilidad (única fuente de verdad)

Responsabilidades:
    - Declarar, por clase de visibilidad, el conjunto de condiciones que deben
      cumplirse para permitir el acceso (conjunción).
    - Clasificar cada condición como "del principal" (se resuelve al construir
      un predicado) o "del documento" (queda como cláusula residual).
    - Evaluar condiciones individuales contra (documento, principal, now).

Colaboradores:
    - identity.access_control: can_access() y build_access_filter() derivan de
      esta tabla; ninguno re-implementa reglas por su cuenta.
    - infrastructure.repositories.postgres.research: traduce las condiciones
      residuales a SQL.

Reglas:
    public   -> {}                                  (cualquier autenticado)
    campus   -> {CAMPUS_AFFILIATED}
    embargo  -> {EMBARGO_ELAPSED, CAMPUS_AFFILIATED} (candado de tiempo sobre campus)
    private  -> {LISTED_VIEWER}                      (lista vacía = nadie)
    desconocida / ausente -> regla de campus
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from .entities import Principal, ResearchDocument, Role, Visibility, as_utc


class Condition(str, Enum):
    CAMPUS_AFFILIATED = "campus_affiliated"
    EMBARGO_ELAPSED = "embargo_elapsed"
    LISTED_VIEWER = "listed_viewer"


# Condiciones que dependen solo del principal.
PRINCIPAL_CONDITIONS: frozenset[Condition] = frozenset({Condition.CAMPUS_AFFILIATED})

VISIBILITY_RULES: Mapping[Visibility, frozenset[Condition]] = MappingProxyType(
    {
        Visibility.PUBLIC: frozenset(),
        Visibility.CAMPUS: frozenset({Condition.CAMPUS_AFFILIATED}),
        Visibility.EMBARGO: frozenset(
            {Condition.EMBARGO_ELAPSED, Condition.CAMPUS_AFFILIATED}
        ),
        Visibility.PRIVATE: frozenset({Condition.LISTED_VIEWER}),
    }
)

FALLBACK_VISIBILITY: Visibility = Visibility.CAMPUS

# Roles operativos: ven todo documento aprobado.
BYPASS_ROLES: frozenset[Role] = frozenset({Role.STAFF, Role.ADMIN})


def rule_for(visibility: Optional[Visibility]) -> frozenset[Condition]:
    return VISIBILITY_RULES[visibility or FALLBACK_VISIBILITY]


def principal_condition_holds(condition: Condition, principal: Principal) -> bool:
    if condition is Condition.CAMPUS_AFFILIATED:
        return principal.campus_affiliated
    raise ValueError(f"{condition.value} is not a principal-side condition")


def document_condition_holds(
    condition: Condition,
    document: ResearchDocument,
    identity: str,
    now: datetime,
) -> bool:
    if condition is Condition.EMBARGO_ELAPSED:
        until = document.embargo_until_utc()
        return until is not None and as_utc(now) >= until
    if condition is Condition.LISTED_VIEWER:
        return bool(identity) and identity in document.viewer_identities()
    raise ValueError(f"{condition.value} is not a document-side condition")


def condition_holds(
    condition: Condition,
    document: ResearchDocument,
    principal: Principal,
    now: datetime,
) -> bool:
    if condition in PRINCIPAL_CONDITIONS:
        return principal_condition_holds(condition, principal)
    return document_condition_holds(condition, document, principal.identity, now)


# ---------------------------------------------------------------------------
# Predicado de listados (evaluación parcial de la tabla)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class VisibilityClause:
    """Una fila de la tabla ya resuelta para un principal.

    visibility=None representa "desconocida o ausente" (regla de fallback).
    residual son las condiciones del documento que siguen pendientes.
    """

    visibility: Optional[Visibility]
    residual: frozenset[Condition]

    def matches(self, document: ResearchDocument, identity: str, now: datetime) -> bool:
        if document.visibility_class is not self.visibility:
            return False
        return all(
            document_condition_holds(c, document, identity, now) for c in self.residual
        )


@dataclass(frozen=True, slots=True)
class AccessFilter:
    """
    Predicado de recuperación derivado de un Principal.

    - unrestricted: roles operativos (solo se exige status=approved).
    - clauses: OR de VisibilityClause; vacío y no unrestricted = nada visible.
    - identity: usada por LISTED_VIEWER y por la unión de propiedad.
    """

    identity: str
    now: datetime
    unrestricted: bool = False
    clauses: tuple[VisibilityClause, ...] = ()

    @property
    def denies_all(self) -> bool:
        return not self.unrestricted and not self.clauses

    def matches(self, document: ResearchDocument) -> bool:
        """Rama de visibilidad (sin propiedad)."""
        if not document.is_approved():
            return False
        if self.unrestricted:
            return True
        return any(c.matches(document, self.identity, self.now) for c in self.clauses)

    def matches_with_ownership(self, document: ResearchDocument) -> bool:
        """Predicado final de listados: visibilidad ∪ documentos propios."""
        if not document.is_approved():
            return False
        return self.matches(document) or document.is_owned_by(self.identity)
