"""Page hierarchy resolution.

Works on any page-like records exposing ``id``, ``slug``, ``title``,
``status``, ``visibility``, ``parent_id`` and ``sort_order`` (ORM rows or
:class:`PageRecord`). Nothing here touches the store.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from pagewiki.core.schema import (
    STATUS_DRAFT,
    STATUS_PUBLISHED,
    VISIBILITY_INHERIT,
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
)


class HierarchyError(Exception):
    """The parent relation contains a cycle."""

    def __init__(self, page_ids: Iterable[str]):
        self.page_ids = sorted(page_ids)
        super().__init__(f"Pages not reachable from any root (cyclic parent chain): {', '.join(self.page_ids)}")


@dataclass(frozen=True)
class PageRecord:
    id: str
    slug: str
    title: str
    status: str = STATUS_DRAFT
    visibility: str = VISIBILITY_INHERIT
    parent_id: str | None = None
    sort_order: int = 0


@dataclass
class TreeNode:
    page: Any
    depth: int
    effective_visibility: str
    inherited_visibility: bool
    children: list[TreeNode] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.page.id

    @property
    def is_public(self) -> bool:
        return is_publicly_visible(self.page.status, self.effective_visibility)


def is_publicly_visible(status: str, effective_visibility: str) -> bool:
    return status == STATUS_PUBLISHED and effective_visibility == VISIBILITY_PUBLIC


def _own_visibility(page: Any) -> str | None:
    value = getattr(page, "visibility", None)
    if value in (VISIBILITY_PUBLIC, VISIBILITY_PRIVATE):
        return value
    return None


def _sort_key(page: Any) -> tuple[int, str, str]:
    return (page.sort_order or 0, page.title or "", page.id)


def build_forest(pages: Iterable[Any]) -> list[TreeNode]:
    """Assemble the ordered forest and resolve effective visibility top-down.

    A parent id that does not match any page makes the page a root. Pages
    that cannot be reached from a root sit on a parent cycle and are
    reported with :class:`HierarchyError`.
    """
    by_id = {page.id: page for page in pages}

    roots: list[Any] = []
    children: dict[str, list[Any]] = {}
    for page in by_id.values():
        parent_id = page.parent_id
        if parent_id is None or parent_id not in by_id:
            roots.append(page)
        else:
            children.setdefault(parent_id, []).append(page)

    forest: list[TreeNode] = []
    visited: set[str] = set()
    stack: list[tuple[Any, int, str, list[TreeNode]]] = [
        (page, 0, VISIBILITY_PUBLIC, forest) for page in sorted(roots, key=_sort_key, reverse=True)
    ]
    while stack:
        page, depth, parent_effective, siblings = stack.pop()
        if page.id in visited:
            raise HierarchyError([page.id])
        visited.add(page.id)

        own = _own_visibility(page)
        node = TreeNode(
            page=page,
            depth=depth,
            effective_visibility=own or parent_effective,
            inherited_visibility=own is None,
        )
        siblings.append(node)
        for child in sorted(children.get(page.id, []), key=_sort_key, reverse=True):
            stack.append((child, depth + 1, node.effective_visibility, node.children))

    if len(visited) != len(by_id):
        raise HierarchyError(set(by_id) - visited)
    return forest


def walk(nodes: Iterable[TreeNode]) -> Iterator[TreeNode]:
    """Pre-order traversal in tree assembly order."""
    stack = list(reversed(list(nodes)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def find_node(forest: Iterable[TreeNode], page_id: str) -> TreeNode | None:
    for node in walk(forest):
        if node.id == page_id:
            return node
    return None


def descendants(forest: Iterable[TreeNode], page_id: str) -> list[Any]:
    node = find_node(forest, page_id)
    if node is None:
        raise KeyError(page_id)
    return [child.page for child in walk(node.children)]


def resolve_visibility(page_id: str, pages_by_id: Mapping[str, Any]) -> tuple[str, bool]:
    """Effective visibility of one page and whether it was inherited."""
    page = pages_by_id[page_id]
    inherited = _own_visibility(page) is None
    seen: set[str] = set()
    current = page
    while current is not None:
        if current.id in seen:
            raise HierarchyError(seen)
        seen.add(current.id)
        own = _own_visibility(current)
        if own is not None:
            return own, inherited
        current = pages_by_id.get(current.parent_id) if current.parent_id else None
    return VISIBILITY_PUBLIC, inherited


def public_forest(forest: Iterable[TreeNode]) -> list[TreeNode]:
    """Copy of the forest holding only publicly visible pages.

    A hidden page hides its whole subtree.
    """
    kept: list[TreeNode] = []
    for node in forest:
        if not node.is_public:
            continue
        kept.append(
            TreeNode(
                page=node.page,
                depth=node.depth,
                effective_visibility=node.effective_visibility,
                inherited_visibility=node.inherited_visibility,
                children=public_forest(node.children),
            )
        )
    return kept


def render_tree_text(forest: list[TreeNode]) -> str:
    lines = ["."]

    def _label(node: TreeNode) -> str:
        marker = "*" if node.inherited_visibility else ""
        return f"{node.page.title} ({node.page.slug}) [{node.page.status}, {node.effective_visibility}{marker}]"

    def _walk(nodes: list[TreeNode], prefix: str) -> None:
        for idx, node in enumerate(nodes):
            is_last = idx == len(nodes) - 1
            branch = "`-- " if is_last else "|-- "
            lines.append(f"{prefix}{branch}{_label(node)}")
            child_prefix = f"{prefix}{'    ' if is_last else '|   '}"
            _walk(node.children, child_prefix)

    _walk(forest, "")
    return "\n".join(lines)
