from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pagewiki.content_tree import TreeNode, build_forest, descendants, find_node, resolve_visibility, walk
from pagewiki.core import cascade
from pagewiki.core.db import store_errors, transaction
from pagewiki.core.errors import conflict, not_found, validation_error
from pagewiki.core.schema import STATUS_PUBLISHED, Page, PageRevision
from pagewiki.models import (
    CascadePlanOut,
    CascadeResponse,
    CreatePageRequest,
    DescendantsResponse,
    MessageResponse,
    PageDetail,
    PageOut,
    PageTreeNode,
    UpdatePageRequest,
)


logger = logging.getLogger("pagewiki")


def page_out(page: Any, effective_visibility: str, inherited_visibility: bool) -> PageOut:
    return PageOut(
        id=page.id,
        slug=page.slug,
        title=page.title,
        status=page.status,
        visibility=page.visibility,
        effective_visibility=effective_visibility,
        inherited_visibility=inherited_visibility,
        parent_id=page.parent_id,
        sort_order=page.sort_order or 0,
        current_published_revision_id=page.current_published_revision_id,
        current_draft_revision_id=page.current_draft_revision_id,
        created_at=page.created_at,
        updated_at=page.updated_at,
    )


def node_out(node: TreeNode) -> PageOut:
    return page_out(node.page, node.effective_visibility, node.inherited_visibility)


def tree_out(node: TreeNode) -> PageTreeNode:
    return PageTreeNode(
        **node_out(node).model_dump(),
        depth=node.depth,
        children=[tree_out(child) for child in node.children],
    )


def _forest(session: Session, action: str) -> list[TreeNode]:
    with store_errors(action):
        return build_forest(cascade.load_pages(session))


def _revision_content(session: Session, revision_id: str | None) -> str | None:
    if not revision_id:
        return None
    revision = session.get(PageRevision, revision_id)
    return revision.content_md if revision is not None else None


def _detail(session: Session, page_id: str) -> PageDetail:
    pages_by_id = {page.id: page for page in cascade.load_pages(session)}
    page = pages_by_id.get(page_id)
    if page is None:
        raise not_found()
    effective, inherited = resolve_visibility(page_id, pages_by_id)
    return PageDetail(
        **page_out(page, effective, inherited).model_dump(),
        draft_content_md=_revision_content(session, page.current_draft_revision_id),
        published_content_md=_revision_content(session, page.current_published_revision_id),
    )


def _get_or_404(session: Session, page_id: str) -> Page:
    page = session.get(Page, page_id)
    if page is None:
        raise not_found()
    return page


def _next_sort_order(session: Session, parent_id: str | None) -> int:
    condition = Page.parent_id.is_(None) if parent_id is None else Page.parent_id == parent_id
    current = session.scalar(select(func.max(Page.sort_order)).where(condition))
    return 0 if current is None else current + 1


def _add_revision(session: Session, page: Page, content_md: str, author_type: str) -> PageRevision:
    revision = PageRevision(page_id=page.id, content_md=content_md, author_type=author_type)
    session.add(revision)
    session.flush()
    page.current_draft_revision_id = revision.id
    return revision


# --- Queries ------------------------------------------------------------------


def list_pages(session: Session) -> list[PageOut]:
    return [node_out(node) for node in walk(_forest(session, "list pages"))]


def page_tree(session: Session) -> list[TreeNode]:
    return _forest(session, "load page tree")


def get_page(session: Session, page_id: str) -> PageDetail:
    with store_errors("get page"):
        return _detail(session, page_id)


def get_descendants(session: Session, page_id: str) -> DescendantsResponse:
    forest = _forest(session, "list descendants")
    if find_node(forest, page_id) is None:
        raise not_found()
    below = descendants(forest, page_id)
    index = {node.id: node for node in walk(forest)}
    return DescendantsResponse(
        descendants=[node_out(index[page.id]) for page in below],
        published_count=sum(1 for page in below if page.status == STATUS_PUBLISHED),
    )


def preview_visibility(session: Session, page_id: str, visibility: str) -> CascadePlanOut:
    with store_errors("preview visibility change"):
        pages = cascade.load_pages(session)
        plan = cascade.plan_visibility(pages, page_id, visibility)
        index = {node.id: node for node in walk(build_forest(pages))}
    return CascadePlanOut(
        page_id=page_id,
        action=plan.action,
        requires_confirmation=plan.requires_confirmation,
        descendant_count=plan.descendant_count,
        affected=[node_out(index[page.id]) for page in plan.affected],
    )


# --- Mutations ----------------------------------------------------------------


def create_page(session: Session, req: CreatePageRequest) -> PageDetail:
    with store_errors("create page"):
        with transaction(session):
            if session.scalar(select(Page.id).where(Page.slug == req.slug)) is not None:
                raise conflict(f"A page with slug '{req.slug}' already exists")
            if req.parent_id is not None and session.get(Page, req.parent_id) is None:
                raise validation_error(f"Parent page '{req.parent_id}' does not exist")

            sort_order = req.sort_order
            if sort_order is None:
                sort_order = _next_sort_order(session, req.parent_id)

            page = Page(
                slug=req.slug,
                title=req.title,
                status=req.status,
                visibility=req.visibility,
                parent_id=req.parent_id,
                sort_order=sort_order,
            )
            session.add(page)
            session.flush()

            revision = _add_revision(session, page, req.content_md, req.author_type)
            if req.status == STATUS_PUBLISHED:
                page.current_published_revision_id = revision.id
            session.flush()
            page_id = page.id
        logger.info("created page %s (%s)", page_id, req.slug)
        return _detail(session, page_id)


def update_page(session: Session, page_id: str, req: UpdatePageRequest) -> CascadeResponse:
    fields = req.model_fields_set
    with store_errors("update page"):
        with transaction(session):
            pages = cascade.load_pages(session)
            page = next((p for p in pages if p.id == page_id), None)
            if page is None:
                raise not_found()

            if "parent_id" in fields and req.parent_id != page.parent_id:
                _check_move(pages, page, req.parent_id)
                if req.sort_order is None:
                    page.sort_order = _next_sort_order(session, req.parent_id)
                page.parent_id = req.parent_id
                _touch_ancestry(pages, req.parent_id)
            if req.sort_order is not None:
                page.sort_order = req.sort_order
            if req.title is not None:
                page.title = req.title
            if req.content_md is not None:
                _add_revision(session, page, req.content_md, req.author_type)

            affected: list[str] = []
            if req.visibility is not None:
                affected = cascade.apply_visibility(pages, page_id, req.visibility).affected_ids
            session.flush()
        return CascadeResponse(message="Page updated", page=_detail(session, page_id), affected=affected)


def _check_move(pages: list[Page], page: Page, parent_id: str | None) -> None:
    if parent_id is None:
        return
    if parent_id == page.id:
        raise validation_error("A page cannot be its own parent")
    if not any(p.id == parent_id for p in pages):
        raise validation_error(f"Parent page '{parent_id}' does not exist")
    below = {p.id for p in descendants(build_forest(pages), page.id)}
    if parent_id in below:
        raise validation_error("A page cannot be moved under one of its descendants")


def _touch_ancestry(pages: list[Page], parent_id: str | None) -> None:
    """Write the new parent and its ancestors so their versions are checked on flush.

    A concurrent move anywhere on that chain then fails as a stale write
    instead of committing a parent cycle.
    """
    by_id = {p.id: p for p in pages}
    now = datetime.now(timezone.utc)
    seen: set[str] = set()
    while parent_id is not None and parent_id in by_id and parent_id not in seen:
        seen.add(parent_id)
        row = by_id[parent_id]
        row.updated_at = now
        parent_id = row.parent_id


def publish_page(session: Session, page_id: str) -> CascadeResponse:
    with store_errors("publish page"):
        with transaction(session):
            page = _get_or_404(session, page_id)
            if not page.current_draft_revision_id:
                raise validation_error("Page has no content to publish")
            page.current_published_revision_id = page.current_draft_revision_id
            page.status = STATUS_PUBLISHED
            session.flush()
        logger.info("published page %s", page_id)
        return CascadeResponse(message="Page published", page=_detail(session, page_id))


def unpublish_page(session: Session, page_id: str) -> CascadeResponse:
    plan = cascade.unpublish(session, page_id)
    with store_errors("get page"):
        detail = _detail(session, page_id)
    return CascadeResponse(message="Page unpublished", page=detail, affected=plan.affected_ids)


def set_visibility(session: Session, page_id: str, visibility: str) -> CascadeResponse:
    plan = cascade.change_visibility(session, page_id, visibility)
    with store_errors("get page"):
        detail = _detail(session, page_id)
    return CascadeResponse(message=f"Page visibility set to {visibility}", page=detail, affected=plan.affected_ids)


def delete_page(session: Session, page_id: str) -> MessageResponse:
    with store_errors("delete page"):
        with transaction(session):
            page = _get_or_404(session, page_id)
            children = session.scalar(select(func.count()).select_from(Page).where(Page.parent_id == page_id))
            if children:
                raise conflict(f"Page has {children} child page(s); move or delete them first")
            session.delete(page)
            session.flush()
    logger.info("deleted page %s", page_id)
    return MessageResponse(message="Page deleted")
