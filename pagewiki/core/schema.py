"""SQLAlchemy models for the page store.

`pages.visibility` holds the page's own setting, one of ``public``,
``private`` or ``inherit``. Effective visibility is never stored; it is
resolved from the parent chain by ``pagewiki.content_tree``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


STATUS_DRAFT = "draft"
STATUS_PUBLISHED = "published"

VISIBILITY_PUBLIC = "public"
VISIBILITY_PRIVATE = "private"
VISIBILITY_INHERIT = "inherit"
VISIBILITIES = (VISIBILITY_PUBLIC, VISIBILITY_PRIVATE, VISIBILITY_INHERIT)

AUTHOR_HUMAN = "human"


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Page(Base):
    __tablename__ = "pages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    slug: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    title: Mapped[str] = mapped_column(String(500))
    status: Mapped[str] = mapped_column(String(20), default=STATUS_DRAFT, index=True)
    visibility: Mapped[str] = mapped_column(String(20), default=VISIBILITY_INHERIT)
    parent_id: Mapped[str | None] = mapped_column(
        ForeignKey("pages.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    # Plain columns: pages and revisions would otherwise reference each other.
    current_published_revision_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    current_draft_revision_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # Optimistic concurrency: every ORM UPDATE checks and bumps this column.
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    revisions: Mapped[list["PageRevision"]] = relationship(
        back_populates="page",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PageRevision.created_at",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Page {self.slug} status={self.status} visibility={self.visibility}>"


class PageRevision(Base):
    """Immutable snapshot of a page's markdown."""

    __tablename__ = "page_revisions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    page_id: Mapped[str] = mapped_column(
        ForeignKey("pages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content_md: Mapped[str] = mapped_column(Text, default="")
    author_type: Mapped[str] = mapped_column(String(20), default=AUTHOR_HUMAN)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    page: Mapped[Page] = relationship(back_populates="revisions")

    def __repr__(self) -> str:
        return f"<PageRevision {self.id} page={self.page_id}>"
