from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pagewiki.core.paths import normalize_slug


Status = Literal["draft", "published"]
Visibility = Literal["public", "private", "inherit"]
EffectiveVisibility = Literal["public", "private"]
AuthorType = Literal["human", "ai"]


class ErrorResponse(BaseModel):
    error: str
    message: str


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: datetime


class ReadyResponse(BaseModel):
    ready: bool
    reason: str | None = None


# --- Requests -----------------------------------------------------------------


class CreatePageRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    slug: str = Field(..., min_length=1, max_length=200, description="Flat, globally unique slug")
    title: str = Field(..., min_length=1, max_length=500)
    content_md: str = Field(..., description="Markdown content of the first revision")
    status: Status = "draft"
    visibility: Visibility = "inherit"
    parent_id: Optional[str] = None
    sort_order: Optional[int] = None
    author_type: AuthorType = "human"

    @field_validator("slug")
    @classmethod
    def _normalize_slug(cls, value: str) -> str:
        slug = normalize_slug(value)
        if not slug:
            raise ValueError("slug must contain at least one letter or digit")
        return slug

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        title = value.strip()
        if not title:
            raise ValueError("title must not be blank")
        return title


class UpdatePageRequest(BaseModel):
    """Partial update; only fields present in the body are applied.

    `parent_id` may be sent as null to move a page to the root.
    """

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    content_md: Optional[str] = None
    visibility: Optional[Visibility] = None
    parent_id: Optional[str] = None
    sort_order: Optional[int] = None
    author_type: AuthorType = "human"

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str | None) -> str | None:
        if value is None:
            return None
        title = value.strip()
        if not title:
            raise ValueError("title must not be blank")
        return title


class VisibilityRequest(BaseModel):
    visibility: Visibility


# --- Responses ----------------------------------------------------------------


class PageOut(BaseModel):
    id: str
    slug: str
    title: str
    status: Status
    visibility: Visibility
    effective_visibility: EffectiveVisibility
    inherited_visibility: bool
    parent_id: str | None = None
    sort_order: int = 0
    current_published_revision_id: str | None = None
    current_draft_revision_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PageDetail(PageOut):
    draft_content_md: str | None = None
    published_content_md: str | None = None


class PageTreeNode(PageOut):
    depth: int
    children: list[PageTreeNode] = Field(default_factory=list)


class PublicPage(BaseModel):
    id: str
    slug: str
    title: str
    parent_id: str | None = None
    sort_order: int = 0
    updated_at: datetime | None = None


class PublicPageWithContent(PublicPage):
    content_md: str = ""


class NavItem(BaseModel):
    title: str
    href: str
    items: list[NavItem] = Field(default_factory=list)


class PagesResponse(BaseModel):
    pages: list[PageOut]


class PageTreeResponse(BaseModel):
    pages: list[PageTreeNode]


class PageResponse(BaseModel):
    page: PageDetail


class DescendantsResponse(BaseModel):
    descendants: list[PageOut]
    published_count: int


class CascadePlanOut(BaseModel):
    page_id: str
    action: str
    requires_confirmation: bool
    descendant_count: int
    affected: list[PageOut]


class CascadePreviewResponse(BaseModel):
    plan: CascadePlanOut


class CascadeResponse(BaseModel):
    message: str
    page: PageDetail
    affected: list[str] = Field(default_factory=list)


class PublicPagesResponse(BaseModel):
    pages: list[PublicPage]


class PublicPageResponse(BaseModel):
    page: PublicPageWithContent


class NavResponse(BaseModel):
    nav: list[NavItem]
