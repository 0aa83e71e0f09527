"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/research.py
============================================================
Class: InMemoryResearchRepository

Responsibilities:
  - Almacenar documentos de investigación en memoria (tests / local dev).
  - Aplicar el AccessFilter recibido (visibilidad ∪ propios) y los filtros
    del llamador, igual que el repo Postgres.
  - Mantener ordering determinístico alineado con Postgres:
      latest: ORDER BY updated_at DESC NULLS LAST, id ASC
      year:   ORDER BY year DESC, updated_at DESC NULLS LAST, id ASC

Collaborators:
  - domain.access_rules.AccessFilter
  - domain.entities.ResearchDocument / CatalogQuery / Facets
  - domain.repositories.ResearchRepository (contrato a implementar)

Constraints / Notes:
  - Thread-safe: acceso protegido por Lock.
  - Repo puro: NO decide reglas; solo evalúa el predicado que le pasan.
============================================================
"""

from __future__ import annotations

from collections import Counter
from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Iterable, List, Optional

from ....crosscutting.pagination import PageRequest
from ....domain.access_rules import AccessFilter
from ....domain.entities import CatalogQuery, Facets, ResearchDocument, as_utc
from ....domain.visibility_policy import VisibilitySettings

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _updated_key(doc: ResearchDocument) -> datetime:
    """R: Emula NULLS LAST en orden DESC."""
    stamp = doc.updated_at or doc.created_at
    return as_utc(stamp) if stamp else _EPOCH


def _sorted(items: Iterable[ResearchDocument], sort: str) -> List[ResearchDocument]:
    ordered = sorted(items, key=lambda d: d.id)
    ordered.sort(key=_updated_key, reverse=True)
    if sort == "year":
        ordered.sort(key=lambda d: d.year or "", reverse=True)
    return ordered


def _ranked(counter: Counter) -> list[tuple[str, int]]:
    return sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))


class InMemoryResearchRepository:
    """Repositorio in-memory, thread-safe, para documentos de investigación."""

    def __init__(self, documents: Iterable[ResearchDocument] = ()) -> None:
        self._lock = Lock()
        self._documents: Dict[str, ResearchDocument] = {}
        for doc in documents:
            self._documents[doc.id] = doc

    def add(self, document: ResearchDocument) -> None:
        with self._lock:
            self._documents[document.id] = document

    def get_document(self, document_id: str) -> Optional[ResearchDocument]:
        with self._lock:
            return self._documents.get(document_id)

    def _visible(self, access: AccessFilter) -> List[ResearchDocument]:
        with self._lock:
            snapshot = list(self._documents.values())
        return [d for d in snapshot if access.matches_with_ownership(d)]

    def list_documents(
        self,
        access: AccessFilter,
        query: CatalogQuery,
        page: PageRequest,
    ) -> tuple[list[ResearchDocument], int]:
        matching = [d for d in self._visible(access) if query.matches(d)]
        ordered = _sorted(matching, query.sort)
        return ordered[page.offset : page.offset + page.limit], len(ordered)

    def facet_counts(self, access: AccessFilter) -> Facets:
        categories: Counter = Counter()
        genres: Counter = Counter()
        for doc in self._visible(access):
            categories.update(doc.all_categories())
            genres.update({t for t in doc.genre_tags if t})
        return Facets(categories=_ranked(categories), genre_tags=_ranked(genres))

    def update_visibility(
        self, document_id: str, settings: VisibilitySettings
    ) -> Optional[ResearchDocument]:
        with self._lock:
            current = self._documents.get(document_id)
            if current is None:
                return None
            updated = replace(
                current,
                visibility=settings.visibility.value,
                embargo_until=settings.embargo_until,
                allowed_viewers=tuple(settings.allowed_viewers),
                updated_at=datetime.now(timezone.utc),
            )
            self._documents[document_id] = updated
            return updated

    def ping(self) -> bool:
        return True
