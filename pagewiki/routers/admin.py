from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from pagewiki.content_tree import render_tree_text
from pagewiki.core.auth import require_admin
from pagewiki.core.db import get_session
from pagewiki.core.services.pages_service import (
    create_page,
    delete_page,
    get_descendants,
    get_page,
    list_pages,
    page_tree,
    preview_visibility,
    publish_page,
    set_visibility,
    tree_out,
    unpublish_page,
    update_page,
)
from pagewiki.models import (
    CascadePreviewResponse,
    CascadeResponse,
    CreatePageRequest,
    DescendantsResponse,
    ErrorResponse,
    MessageResponse,
    PageResponse,
    PagesResponse,
    PageTreeResponse,
    UpdatePageRequest,
    Visibility,
    VisibilityRequest,
)

router = APIRouter(
    prefix="/admin/pages",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}

SessionDep = Annotated[Session, Depends(get_session)]


@router.get("", response_model=PagesResponse, responses=ERROR_RESPONSES)
def list_pages_endpoint(session: SessionDep) -> PagesResponse:
    return PagesResponse(pages=list_pages(session))


@router.get(
    "/tree",
    response_model=PageTreeResponse,
    responses=ERROR_RESPONSES,
    description="Page forest with effective visibility; `format=text` renders an ASCII tree.",
)
def page_tree_endpoint(session: SessionDep, format: Literal["json", "text"] = "json"):
    forest = page_tree(session)
    if format == "text":
        return PlainTextResponse(render_tree_text(forest))
    return PageTreeResponse(pages=[tree_out(node) for node in forest])


@router.post("", response_model=PageResponse, status_code=status.HTTP_201_CREATED, responses=ERROR_RESPONSES)
def create_page_endpoint(payload: CreatePageRequest, session: SessionDep) -> PageResponse:
    return PageResponse(page=create_page(session, payload))


@router.get("/{page_id}", response_model=PageResponse, responses=ERROR_RESPONSES)
def get_page_endpoint(page_id: str, session: SessionDep) -> PageResponse:
    return PageResponse(page=get_page(session, page_id))


@router.patch("/{page_id}", response_model=CascadeResponse, responses=ERROR_RESPONSES)
def update_page_endpoint(page_id: str, payload: UpdatePageRequest, session: SessionDep) -> CascadeResponse:
    return update_page(session, page_id, payload)


@router.delete("/{page_id}", response_model=MessageResponse, responses=ERROR_RESPONSES)
def delete_page_endpoint(page_id: str, session: SessionDep) -> MessageResponse:
    return delete_page(session, page_id)


@router.get("/{page_id}/descendants", response_model=DescendantsResponse, responses=ERROR_RESPONSES)
def descendants_endpoint(page_id: str, session: SessionDep) -> DescendantsResponse:
    return get_descendants(session, page_id)


@router.get("/{page_id}/visibility-preview", response_model=CascadePreviewResponse, responses=ERROR_RESPONSES)
def visibility_preview_endpoint(
    page_id: str,
    session: SessionDep,
    visibility: Visibility = Query(..., description="Visibility the page would be set to"),
) -> CascadePreviewResponse:
    return CascadePreviewResponse(plan=preview_visibility(session, page_id, visibility))


@router.put("/{page_id}/visibility", response_model=CascadeResponse, responses=ERROR_RESPONSES)
def set_visibility_endpoint(page_id: str, payload: VisibilityRequest, session: SessionDep) -> CascadeResponse:
    return set_visibility(session, page_id, payload.visibility)


@router.post("/{page_id}/publish", response_model=CascadeResponse, responses=ERROR_RESPONSES)
def publish_endpoint(page_id: str, session: SessionDep) -> CascadeResponse:
    return publish_page(session, page_id)


@router.post("/{page_id}/unpublish", response_model=CascadeResponse, responses=ERROR_RESPONSES)
def unpublish_endpoint(page_id: str, session: SessionDep) -> CascadeResponse:
    return unpublish_page(session, page_id)
