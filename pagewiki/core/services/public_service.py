from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from pagewiki.content_tree import TreeNode, build_forest, is_publicly_visible, public_forest, resolve_visibility, walk
from pagewiki.core import cascade
from pagewiki.core.config import home_slug
from pagewiki.core.db import store_errors
from pagewiki.core.errors import not_found
from pagewiki.core.paths import slug_href
from pagewiki.core.schema import Page, PageRevision
from pagewiki.models import NavItem, PublicPage, PublicPageWithContent


def _public_page(page: Page) -> PublicPage:
    return PublicPage(
        id=page.id,
        slug=page.slug,
        title=page.title,
        parent_id=page.parent_id,
        sort_order=page.sort_order or 0,
        updated_at=page.updated_at,
    )


def _nav_item(node: TreeNode, nested: bool) -> NavItem:
    return NavItem(
        title=node.page.title,
        href=slug_href(node.page.slug),
        items=[_nav_item(child, nested) for child in node.children] if nested else [],
    )


def _visible_forest(session: Session, action: str) -> list[TreeNode]:
    with store_errors(action):
        return public_forest(build_forest(cascade.load_pages(session)))


def list_published(session: Session) -> list[PublicPage]:
    with store_errors("list pages"):
        forest = build_forest(cascade.load_pages(session))
    visible = [node.page for node in walk(forest) if node.is_public]
    visible.sort(key=lambda page: (page.title or "", page.slug))
    return [_public_page(page) for page in visible]


def navigation(session: Session) -> list[NavItem]:
    """Top-level sections: children of the home page, else the roots."""
    forest = _visible_forest(session, "fetch navigation")
    home = home_slug()
    home_node = next((node for node in walk(forest) if node.page.slug == home), None)
    if home_node is not None:
        sections = home_node.children
    else:
        sections = [node for node in forest if node.page.slug != home]
    return [_nav_item(node, nested=False) for node in sections]


def navigation_tree(session: Session) -> list[NavItem]:
    """Nested navigation of public pages.

    A hidden page hides its whole subtree here, even descendants that are
    published and public on their own. Those still appear in
    :func:`list_published` and resolve through :func:`get_published_page`.
    """
    return [_nav_item(node, nested=True) for node in _visible_forest(session, "fetch navigation")]


def get_published_page(session: Session, slug: str) -> PublicPageWithContent:
    # Hidden and missing pages are indistinguishable to public callers.
    with store_errors("fetch page"):
        page = session.scalar(select(Page).where(Page.slug == slug))
        if page is None:
            raise not_found()
        pages_by_id = {p.id: p for p in cascade.load_pages(session)}
        effective, _ = resolve_visibility(page.id, pages_by_id)
        if not is_publicly_visible(page.status, effective):
            raise not_found()
        revision = None
        if page.current_published_revision_id:
            revision = session.get(PageRevision, page.current_published_revision_id)
    return PublicPageWithContent(
        **_public_page(page).model_dump(),
        content_md=revision.content_md if revision is not None else "",
    )
