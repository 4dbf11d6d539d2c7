from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pagewiki.core.db import get_session
from pagewiki.core.services.public_service import get_published_page, list_published, navigation, navigation_tree
from pagewiki.models import ErrorResponse, NavResponse, PublicPageResponse, PublicPagesResponse

router = APIRouter(prefix="/pages", tags=["public"])

ERROR_RESPONSES = {
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}

SessionDep = Annotated[Session, Depends(get_session)]


@router.get("", response_model=PublicPagesResponse, responses=ERROR_RESPONSES)
def list_pages_endpoint(session: SessionDep) -> PublicPagesResponse:
    return PublicPagesResponse(pages=list_published(session))


@router.get("/nav", response_model=NavResponse, responses=ERROR_RESPONSES)
def nav_endpoint(session: SessionDep) -> NavResponse:
    return NavResponse(nav=navigation(session))


@router.get("/nav/tree", response_model=NavResponse, responses=ERROR_RESPONSES)
def nav_tree_endpoint(session: SessionDep) -> NavResponse:
    return NavResponse(nav=navigation_tree(session))


@router.get("/{slug}", response_model=PublicPageResponse, responses=ERROR_RESPONSES)
def get_page_endpoint(slug: str, session: SessionDep) -> PublicPageResponse:
    return PublicPageResponse(page=get_published_page(session, slug))
