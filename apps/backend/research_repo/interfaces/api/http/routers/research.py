"""
===============================================================================
TARJETA CRC — research_repo/interfaces/api/http/routers/research.py
===============================================================================

Name:
    Research Router (entrega de archivos + publicación)

Responsibilities:
    - GET /research/file/{id}: gate de entrega. Acepta sesión (header o
      ?token=) o link firmado (?sig=); bytes en streaming inline.
    - GET /research/file/{id}/signed: emite un link firmado (solo sesión).
    - PUT /research/{id}/visibility: cambio de visibilidad (staff/admin).
    - Mapeo de DocumentError -> RFC7807.

Collaborators:
    - application.usecases.documents: Deliver / CreateSignedLink / UpdateVisibility
    - identity.dual_auth: get_request_credentials, require_bearer_principal
    - crosscutting.streaming.inline_file_response
    - container factories
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from research_repo.application.usecases import (
    CreateSignedLinkUseCase,
    DeliverDocumentUseCase,
    UpdateVisibilityUseCase,
)
from research_repo.container import (
    Clock,
    get_clock,
    get_create_signed_link_use_case,
    get_deliver_document_use_case,
    get_update_visibility_use_case,
)
from research_repo.crosscutting.config import get_settings
from research_repo.crosscutting.streaming import inline_file_response
from research_repo.domain.entities import Principal
from research_repo.identity.dual_auth import (
    get_request_credentials,
    require_bearer_principal,
    require_staff_or_admin,
)
from research_repo.identity.principal_resolver import RequestCredentials

from ..dependencies import request_base_url, to_research_item
from ..error_mapping import raise_document_error
from ..schemas.research import ResearchItemRes, SignedLinkRes, VisibilityUpdateReq

router = APIRouter(prefix="/research")


@router.get(
    "/file/{document_id}",
    response_class=StreamingResponse,
    responses={200: {"content": {"application/pdf": {}}}},
    tags=["delivery"],
)
def stream_research_file(
    document_id: str,
    request: Request,
    credentials: RequestCredentials = Depends(get_request_credentials),
    clock: Clock = Depends(get_clock),
    use_case: DeliverDocumentUseCase = Depends(get_deliver_document_use_case),
):
    result = use_case.execute(document_id, credentials, clock())
    if result.error is not None:
        raise_document_error(result.error)

    document = result.document
    return inline_file_response(
        result.stream,
        file_name=document.file_name,
        content_type=document.file_type,
        request=request,
        chunk_size=get_settings().stream_chunk_bytes,
    )


@router.get(
    "/file/{document_id}/signed",
    response_model=SignedLinkRes,
    tags=["delivery"],
)
def create_signed_link(
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


@router.put(
    "/{document_id}/visibility",
    response_model=ResearchItemRes,
    tags=["publication"],
)
def update_visibility(
    document_id: str,
    req: VisibilityUpdateReq,
    principal: Principal = Depends(require_staff_or_admin()),
    use_case: UpdateVisibilityUseCase = Depends(get_update_visibility_use_case),
):
    result = use_case.execute(
        document_id,
        principal,
        visibility=req.visibility,
        embargo_until=req.embargo_until,
        allowed_viewers=req.allowed_viewers,
    )
    if result.error is not None:
        raise_document_error(result.error)

    return to_research_item(result.document)
