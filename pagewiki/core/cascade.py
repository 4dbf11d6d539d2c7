"""Cascading unpublish and visibility changes.

Planning is pure and runs on a freshly built forest. The mutating entry
points load the pages, plan and write inside one transaction, so the set
of affected pages is always recomputed from committed state rather than
taken from an earlier preview.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from pagewiki.content_tree import PageRecord, build_forest, descendants, find_node, walk
from pagewiki.core.db import store_errors, transaction
from pagewiki.core.errors import not_found, validation_error
from pagewiki.core.schema import (
    STATUS_DRAFT,
    STATUS_PUBLISHED,
    VISIBILITIES,
    VISIBILITY_PRIVATE,
    Page,
)


logger = logging.getLogger("pagewiki")

ACTION_UNPUBLISH = "unpublish"
ACTION_VISIBILITY = "visibility"


@dataclass
class CascadePlan:
    action: str
    target: Any
    affected: list[Any] = field(default_factory=list)
    descendant_count: int = 0
    requires_confirmation: bool = False
    target_changes: bool = True

    @property
    def affected_ids(self) -> list[str]:
        return [page.id for page in self.affected]


def _record(page: Any) -> PageRecord:
    return PageRecord(
        id=page.id,
        slug=page.slug,
        title=page.title,
        status=page.status,
        visibility=page.visibility,
        parent_id=page.parent_id,
        sort_order=page.sort_order,
    )


def plan_unpublish(pages: Iterable[Any], page_id: str) -> CascadePlan:
    """Target plus every published descendant; draft pages are left alone."""
    forest = build_forest(pages)
    node = find_node(forest, page_id)
    if node is None:
        raise not_found()
    below = descendants(forest, page_id)
    return CascadePlan(
        action=ACTION_UNPUBLISH,
        target=node.page,
        affected=[page for page in below if page.status == STATUS_PUBLISHED],
        descendant_count=len(below),
        requires_confirmation=bool(below),
        target_changes=node.page.status == STATUS_PUBLISHED,
    )


def plan_visibility(pages: Iterable[Any], page_id: str, visibility: str) -> CascadePlan:
    """Descendants whose effective visibility changes if `page_id` is set to `visibility`.

    Descendant rows are never written; they change by inheritance only.
    """
    if visibility not in VISIBILITIES:
        raise validation_error(f"visibility must be one of {', '.join(VISIBILITIES)}")

    pages = list(pages)
    before = build_forest(pages)
    node = find_node(before, page_id)
    if node is None:
        raise not_found()

    shadow = [
        replace(_record(page), visibility=visibility) if page.id == page_id else _record(page)
        for page in pages
    ]
    after = {n.id: n.effective_visibility for n in walk(build_forest(shadow))}

    below = list(walk(node.children))
    affected = [n.page for n in below if after[n.id] != n.effective_visibility]
    return CascadePlan(
        action=ACTION_VISIBILITY,
        target=node.page,
        affected=affected,
        descendant_count=len(below),
        requires_confirmation=visibility == VISIBILITY_PRIVATE and bool(below),
        target_changes=node.page.visibility != visibility,
    )


def load_pages(session: Session) -> list[Page]:
    return list(session.scalars(select(Page)))


def apply_unpublish(pages: list[Page], page_id: str) -> CascadePlan:
    """Plan and apply on loaded rows; the caller owns the transaction."""
    plan = plan_unpublish(pages, page_id)
    if plan.target_changes:
        plan.target.status = STATUS_DRAFT
    for page in plan.affected:
        page.status = STATUS_DRAFT
    return plan


def apply_visibility(pages: list[Page], page_id: str, visibility: str) -> CascadePlan:
    plan = plan_visibility(pages, page_id, visibility)
    if plan.target_changes:
        plan.target.visibility = visibility
    return plan


def unpublish(session: Session, page_id: str) -> CascadePlan:
    with store_errors("unpublish page"), transaction(session):
        plan = apply_unpublish(load_pages(session), page_id)
        session.flush()
    logger.info("unpublished page %s, cascaded to %d descendant(s)", page_id, len(plan.affected))
    return plan


def change_visibility(session: Session, page_id: str, visibility: str) -> CascadePlan:
    with store_errors("change page visibility"), transaction(session):
        plan = apply_visibility(load_pages(session), page_id, visibility)
        session.flush()
    logger.info(
        "set visibility of page %s to %s, %d descendant(s) change effective visibility",
        page_id,
        visibility,
        len(plan.affected),
    )
    return plan
