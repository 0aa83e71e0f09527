"""
===============================================================================
TARJETA CRC — research_repo/interfaces/api/http/routers/repository.py
===============================================================================

Name:
    Repository Router (catálogo)

Responsibilities:
    - GET /repository: listado paginado con filtros del llamador, siempre
      intersectado con lo que el principal puede ver (o es suyo).
    - GET /repository/facets: conteos sobre el mismo conjunto.
    - GET /repository/{id}: detalle de metadata (sin bytes).
    - GET /repository/file/{id}/signed: alias del link firmado.

Collaborators:
    - application.usecases.documents: List / Facets / Get / CreateSignedLink
    - identity.dual_auth.require_bearer_principal
    - dependencies (parseo CSV, mapeo a DTOs)
===============================================================================
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError

from research_repo.application.usecases import (
    CreateSignedLinkUseCase,
    DocumentFacetsUseCase,
    GetDocumentUseCase,
    ListDocumentsUseCase,
)
from research_repo.container import (
    Clock,
    get_clock,
    get_create_signed_link_use_case,
    get_document_facets_use_case,
    get_get_document_use_case,
    get_list_documents_use_case,
)
from research_repo.crosscutting.error_responses import validation_error
from research_repo.domain.entities import Principal
from research_repo.identity.dual_auth import require_bearer_principal

from ..dependencies import (
    request_base_url,
    split_csv,
    to_catalog_query,
    to_facets_res,
    to_research_item,
)
from ..error_mapping import raise_document_error
from ..schemas.research import (
    CatalogListQuery,
    FacetsRes,
    ResearchItemRes,
    ResearchListMeta,
    ResearchListRes,
    SignedLinkRes,
)

router = APIRouter(prefix="/repository", tags=["repository"])


def catalog_params(
    q: Optional[str] = Query(None, max_length=200),
    year: Optional[str] = Query(None, max_length=16),
    category: Optional[str] = Query(None, description="CSV de categorías"),
    genre: Optional[str] = Query(None, description="CSV de genre tags"),
    role: Optional[str] = Query(None, description="Rol del uploader"),
    sort: str = Query("latest", description="latest | year"),
) -> CatalogListQuery:
    try:
        return CatalogListQuery(
            q=q or "",
            year=year or "",
            category=split_csv(category),
            genre=split_csv(genre),
            role=role,
            sort=sort,
        )
    except ValidationError as exc:
        raise validation_error(
            "Parámetros de catálogo inválidos.",
            errors=[
                {"field": ".".join(str(p) for p in e["loc"]), "message": e["msg"]}
                for e in exc.errors()
            ],
        )


@router.get("", response_model=ResearchListRes)
def list_research(
    params: CatalogListQuery = Depends(catalog_params),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    principal: Principal = Depends(require_bearer_principal),
    clock: Clock = Depends(get_clock),
    use_case: ListDocumentsUseCase = Depends(get_list_documents_use_case),
):
    result = use_case.execute(
        principal,
        to_catalog_query(params),
        clock(),
        page=page,
        limit=limit,
    )
    if result.error is not None:
        raise_document_error(result.error)

    return ResearchListRes(
        data=[to_research_item(d) for d in result.documents],
        meta=ResearchListMeta(
            total=result.total,
            page=result.page.page,
            limit=result.page.limit,
            pages=result.pages,
            sort=params.sort,
            query=params.q,
            year=params.year,
            category=params.category,
            genre=params.genre,
            role=params.role,
        ),
    )


# R: declarado antes de /{document_id} para que "facets" no se tome como id.
@router.get("/facets", response_model=FacetsRes)
def research_facets(
    principal: Principal = Depends(require_bearer_principal),
    clock: Clock = Depends(get_clock),
    use_case: DocumentFacetsUseCase = Depends(get_document_facets_use_case),
):
    result = use_case.execute(principal, clock())
    if result.error is not None:
        raise_document_error(result.error)
    return to_facets_res(result.facets)


@router.get("/file/{document_id}/signed", response_model=SignedLinkRes)
def create_signed_link_alias(
    document_id: str,
    request: Request,
    principal: Principal = Depends(require_bearer_principal),
    clock: Clock = Depends(get_clock),
    use_case: CreateSignedLinkUseCase = Depends(get_create_signed_link_use_case),
):
    result = use_case.execute(
        document_id,
        principal,
        clock(),
        request_base=request_base_url(request),
    )
    if result.error is not None:
        raise_document_error(result.error)
    return SignedLinkRes(url=result.url, expires_in_seconds=result.expires_in_seconds)


@router.get("/{document_id}", response_model=ResearchItemRes)
def get_research(
    document_id: str,
    principal: Principal = Depends(require_bearer_principal),
    clock: Clock = Depends(get_clock),
    use_case: GetDocumentUseCase = Depends(get_get_document_use_case),
):
    result = use_case.execute(document_id, principal, clock())
    if result.error is not None:
        raise_document_error(result.error)
    return to_research_item(result.document)
