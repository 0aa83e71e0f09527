"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Módulo:
    Entidades del Dominio (ResearchDocument, Principal, Capability)

Responsabilidades:
    - Definir la vista de solo lectura de un documento de investigación.
    - Definir el Principal: único tipo que describe "quién pide", construido
      una sola vez en el borde de identidad y nunca extendido después.
    - Definir la Capability: prueba firmada de acceso a UN documento por UN sujeto.

Colaboradores:
    - domain.access_rules: evalúa documentos contra principals.
    - identity/*: construye Principal y Capability.
    - infrastructure/repositories: materializan ResearchDocument.

Principios:
    - Sin dependencias a DB/FastAPI/JWT.
    - Identidades siempre en minúsculas antes de comparar.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

DEFAULT_CONTENT_TYPE = "application/pdf"


def as_utc(value: datetime) -> datetime:
    """Timestamps sin zona se interpretan como UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_identity(value: object) -> str:
    return str(value or "").strip().lower()


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Visibility(str, Enum):
    """Clase de visibilidad de un documento aprobado."""

    PUBLIC = "public"
    CAMPUS = "campus"
    PRIVATE = "private"
    EMBARGO = "embargo"

    @classmethod
    def parse(cls, raw: object) -> Optional["Visibility"]:
        """Valor conocido o None (desconocido / ausente)."""
        value = str(raw or "").strip().lower()
        try:
            return cls(value)
        except ValueError:
            return None


class DocumentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Role(str, Enum):
    STUDENT = "student"
    FACULTY = "faculty"
    STAFF = "staff"
    ADMIN = "admin"


class Provenance(str, Enum):
    """De dónde salió el principal: credencial de sesión o link firmado."""

    BEARER = "bearer"
    CAPABILITY = "capability"


# ---------------------------------------------------------------------------
# ResearchDocument
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResearchDocument:
    """
    Documento de investigación (vista de solo lectura).

    Importante:
      - Los bytes viven fuera: storage (storage_key nunca sale por la API).
      - `visibility` guarda el valor crudo; uno desconocido se evalúa como campus.
      - embargo_until es obligatorio si visibility=embargo (se valida al escribir).
    """

    id: str
    title: str
    status: str = DocumentStatus.PENDING.value
    visibility: Optional[str] = Visibility.CAMPUS.value
    embargo_until: Optional[datetime] = None
    allowed_viewers: tuple[str, ...] = ()

    # Identidades dueñas (e-mails).
    author: str = ""
    student: str = ""
    adviser: str = ""
    uploaded_by: str = ""
    uploader_role: str = ""

    # Metadata de catálogo
    abstract: str = ""
    co_authors: tuple[str, ...] = ()
    year: str = ""
    keywords: tuple[str, ...] = ()
    category: str = ""
    categories: tuple[str, ...] = ()
    genre_tags: tuple[str, ...] = ()
    landing_page_url: Optional[str] = None

    # Artefacto
    storage_key: str = ""
    file_name: str = ""
    file_type: str = DEFAULT_CONTENT_TYPE

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_approved(self) -> bool:
        return self.status == DocumentStatus.APPROVED.value

    @property
    def visibility_class(self) -> Optional[Visibility]:
        return Visibility.parse(self.visibility)

    def owner_identities(self) -> frozenset[str]:
        """author / student / adviser / uploader, en minúsculas (co-autores no)."""
        owners = (self.author, self.student, self.adviser, self.uploaded_by)
        return frozenset(o for o in map(normalize_identity, owners) if o)

    def is_owned_by(self, identity: str) -> bool:
        normalized = normalize_identity(identity)
        return bool(normalized) and normalized in self.owner_identities()

    def viewer_identities(self) -> frozenset[str]:
        return frozenset(
            v for v in map(normalize_identity, self.allowed_viewers or ()) if v
        )

    def embargo_until_utc(self) -> Optional[datetime]:
        return as_utc(self.embargo_until) if self.embargo_until else None

    def all_categories(self) -> tuple[str, ...]:
        """category legacy + categories, sin vacíos ni duplicados."""
        seen: list[str] = []
        for cat in (self.category, *self.categories):
            cat = (cat or "").strip()
            if cat and cat not in seen:
                seen.append(cat)
        return tuple(seen)


# ---------------------------------------------------------------------------
# Principal
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Sujeto de UNA decisión de autorización.

    Se construye una única vez (identity.principal_resolver) con exactamente
    estos campos.
    """

    identity: str
    role: Role
    campus_affiliated: bool
    provenance: Provenance

    def __post_init__(self) -> None:
        if not self.identity or self.identity != normalize_identity(self.identity):
            raise ValueError("Principal.identity must be a normalized e-mail")
        if not isinstance(self.role, Role):
            raise TypeError("Principal.role must be a Role")
        if not isinstance(self.provenance, Provenance):
            raise TypeError("Principal.provenance must be a Provenance")

    @property
    def is_operational(self) -> bool:
        return self.role in (Role.STAFF, Role.ADMIN)


# ---------------------------------------------------------------------------
# Capability
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Capability:
    """
    Link firmado de corta vida: un sujeto, un documento.

    role/campus_affiliated son snapshot para auditoría; no otorgan nada.
    """

    subject: str
    document_id: str
    expires_at: datetime
    role: Optional[Role] = None
    campus_affiliated: Optional[bool] = None

    def is_expired(self, now: datetime) -> bool:
        return as_utc(now) >= as_utc(self.expires_at)

    def binds(self, document_id: str) -> bool:
        """Comparación exacta de id (sin normalizar)."""
        return isinstance(document_id, str) and self.document_id == document_id


CATALOG_SORTS: tuple[str, ...] = ("latest", "year")


@dataclass(frozen=True)
class CatalogQuery:
    """
    Filtros del llamador para el catálogo.

    Siempre se intersectan con el AccessFilter: nunca amplían lo visible.
    """

    text: str = ""
    year: str = ""
    categories: tuple[str, ...] = ()
    genres: tuple[str, ...] = ()
    uploader_role: Optional[Role] = None
    sort: str = "latest"

    def matches(self, document: ResearchDocument) -> bool:
        if self.year and document.year != self.year:
            return False
        if self.categories and not set(self.categories) & set(
            document.all_categories()
        ):
            return False
        if self.genres and not set(self.genres) & set(document.genre_tags):
            return False
        if self.uploader_role and document.uploader_role != self.uploader_role.value:
            return False
        if self.text:
            needle = self.text.lower()
            haystack = (
                document.title,
                document.author,
                *document.co_authors,
                *document.keywords,
                document.year,
                *document.all_categories(),
                *document.genre_tags,
            )
            if not any(needle in (h or "").lower() for h in haystack):
                return False
        return True


@dataclass
class Facets:
    """Conteos por categoría y genre tag del conjunto visible."""

    categories: list[tuple[str, int]] = field(default_factory=list)
    genre_tags: list[tuple[str, int]] = field(default_factory=list)
