"""
===============================================================================
TARJETA CRC — research_repo/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer dependencias (repositorio, storage, llaves, resolver, minter,
    casos de uso) a partir de Settings.
  - Exponer factories para FastAPI (Depends).
  - Mantener singletons con caching (lru_cache) para recursos compartidos.
  - Exponer el reloj como dependencia (tests lo reemplazan por uno fijo).

Colaboradores:
  - crosscutting.config.get_settings
  - identity.* (llaves, resolver, minter)
  - infrastructure.* (repositorios, storage)
  - application.usecases.documents.*

Patrones aplicados:
  - Composition Root
  - Dependency Inversion (use cases dependen de puertos)
  - Lazy singletons con lru_cache

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO depende de FastAPI (solo expone factories).
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable

from .application.usecases import (
    CreateSignedLinkUseCase,
    DeliverDocumentUseCase,
    DocumentFacetsUseCase,
    GetDocumentUseCase,
    ListDocumentsUseCase,
    UpdateVisibilityUseCase,
)
from .crosscutting.config import get_settings
from .domain.repositories import ResearchRepository
from .domain.services import FileStoragePort
from .identity.capabilities import MAX_CAPABILITY_TTL_SECONDS, CapabilityMinter
from .identity.keys import BearerSigningKey, CapabilitySigningKey, build_signing_keys
from .identity.principal_resolver import PrincipalResolver
from .infrastructure.repositories import (
    InMemoryResearchRepository,
    PostgresResearchRepository,
)
from .infrastructure.storage import LocalFileStorage, S3Config, S3FileStorageAdapter

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_clock() -> Clock:
    """Reloj del request (inyectable: un solo `now` por decisión)."""
    return _utc_now


# =============================================================================
# Helpers internos
# =============================================================================


def _is_test_env() -> bool:
    """
    Determina si estamos en entorno de test.

    Regla:
      - app_env ∈ {"test", "testing", "ci"} => se favorecen in-memory adapters.
    """
    env = get_settings().app_env.strip().lower()
    return env in {"test", "testing", "ci"}


# =============================================================================
# Identidad (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_signing_keys() -> tuple[BearerSigningKey, CapabilitySigningKey]:
    settings = get_settings()
    return build_signing_keys(
        jwt_secret=settings.jwt_secret,
        signed_url_secret=settings.signed_url_secret,
        issuer=settings.jwt_issuer,
    )


@lru_cache(maxsize=1)
def get_principal_resolver() -> PrincipalResolver:
    settings = get_settings()
    bearer_key, capability_key = get_signing_keys()
    return PrincipalResolver(
        bearer_key,
        capability_key,
        institutional_domain=settings.institutional_domain,
        skew_seconds=settings.clock_skew_seconds,
        max_capability_ttl=MAX_CAPABILITY_TTL_SECONDS,
    )


@lru_cache(maxsize=1)
def get_capability_minter() -> CapabilityMinter:
    _, capability_key = get_signing_keys()
    return CapabilityMinter(
        capability_key, ttl_seconds=get_settings().capability_ttl_seconds
    )


# =============================================================================
# Repositorio y storage (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_research_repository() -> ResearchRepository:
    """In-memory en test o sin DATABASE_URL; Postgres en runtime."""
    settings = get_settings()
    if _is_test_env() or not settings.database_url.strip():
        return InMemoryResearchRepository()
    return PostgresResearchRepository()


@lru_cache(maxsize=1)
def get_file_storage() -> FileStoragePort:
    settings = get_settings()
    if settings.storage_backend == "s3":
        return S3FileStorageAdapter(
            S3Config(
                bucket=settings.s3_bucket,
                access_key=settings.s3_access_key,
                secret_key=settings.s3_secret_key,
                region=settings.s3_region or None,
                endpoint_url=settings.s3_endpoint_url or None,
            )
        )
    return LocalFileStorage(settings.storage_root)


# =============================================================================
# Casos de uso (factory por request)
# =============================================================================


def get_deliver_document_use_case() -> DeliverDocumentUseCase:
    """Caso de uso: gate de entrega de bytes."""
    return DeliverDocumentUseCase(
        repository=get_research_repository(),
        storage=get_file_storage(),
        resolver=get_principal_resolver(),
    )


def get_create_signed_link_use_case() -> CreateSignedLinkUseCase:
    """Caso de uso: link firmado de vista inline."""
    return CreateSignedLinkUseCase(
        repository=get_research_repository(),
        minter=get_capability_minter(),
        public_base=get_settings().public_api_base,
    )


def get_list_documents_use_case() -> ListDocumentsUseCase:
    settings = get_settings()
    return ListDocumentsUseCase(
        repository=get_research_repository(),
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
    )


def get_document_facets_use_case() -> DocumentFacetsUseCase:
    return DocumentFacetsUseCase(repository=get_research_repository())


def get_get_document_use_case() -> GetDocumentUseCase:
    return GetDocumentUseCase(repository=get_research_repository())


def get_update_visibility_use_case() -> UpdateVisibilityUseCase:
    """Caso de uso: cambio de visibilidad (staff/admin)."""
    return UpdateVisibilityUseCase(repository=get_research_repository())


def reset_container() -> None:
    """Solo tests: descarta singletons cacheados."""
    get_signing_keys.cache_clear()
    get_principal_resolver.cache_clear()
    get_capability_minter.cache_clear()
    get_research_repository.cache_clear()
    get_file_storage.cache_clear()
