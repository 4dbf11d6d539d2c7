import pytest

from pagewiki.content_tree import (
    HierarchyError,
    PageRecord,
    build_forest,
    descendants,
    find_node,
    public_forest,
    render_tree_text,
    resolve_visibility,
    walk,
)


def _page(id, parent_id=None, visibility="inherit", status="published", sort_order=0, title=None):
    return PageRecord(
        id=id,
        slug=id.lower(),
        title=title or id,
        status=status,
        visibility=visibility,
        parent_id=parent_id,
        sort_order=sort_order,
    )


def test_build_forest_keeps_every_page_once():
    pages = [
        _page("A"),
        _page("B", parent_id="A"),
        _page("C", parent_id="B"),
        _page("D", parent_id="A"),
        _page("E"),
    ]

    forest = build_forest(pages)

    ids = [node.id for node in walk(forest)]
    assert sorted(ids) == ["A", "B", "C", "D", "E"]
    assert len(ids) == len(set(ids)) == len(pages)
    assert [node.id for node in forest] == ["A", "E"]


def test_children_ordered_by_sort_order_then_title():
    pages = [
        _page("root"),
        _page("z", parent_id="root", sort_order=1, title="Zeta"),
        _page("a", parent_id="root", sort_order=2, title="Alpha"),
        _page("b", parent_id="root", sort_order=1, title="Beta"),
    ]

    root = build_forest(pages)[0]

    assert [child.id for child in root.children] == ["b", "z", "a"]
    assert [child.depth for child in root.children] == [1, 1, 1]


def test_private_page_hides_inheriting_descendants():
    pages = [
        _page("A", visibility="inherit"),
        _page("B", parent_id="A", visibility="private"),
        _page("C", parent_id="B", visibility="inherit"),
    ]

    nodes = {node.id: node for node in walk(build_forest(pages))}

    assert nodes["A"].effective_visibility == "public"
    assert nodes["A"].inherited_visibility is True
    assert nodes["B"].effective_visibility == "private"
    assert nodes["B"].inherited_visibility is False
    assert nodes["C"].effective_visibility == "private"
    assert nodes["C"].inherited_visibility is True


def test_explicit_public_under_private_parent_wins():
    pages = [
        _page("A", visibility="private"),
        _page("B", parent_id="A", visibility="public"),
        _page("C", parent_id="B"),
    ]

    nodes = {node.id: node for node in walk(build_forest(pages))}

    assert nodes["B"].effective_visibility == "public"
    assert nodes["C"].effective_visibility == "public"


def test_dangling_parent_is_treated_as_root():
    pages = [_page("A"), _page("B", parent_id="missing", visibility="inherit")]

    forest = build_forest(pages)

    assert sorted(node.id for node in forest) == ["A", "B"]
    assert find_node(forest, "B").depth == 0
    assert find_node(forest, "B").effective_visibility == "public"


def test_cycle_is_reported_not_looped():
    pages = [
        _page("root"),
        _page("X", parent_id="Y"),
        _page("Y", parent_id="X"),
    ]

    with pytest.raises(HierarchyError) as exc:
        build_forest(pages)

    assert exc.value.page_ids == ["X", "Y"]


def test_self_parent_is_a_cycle():
    with pytest.raises(HierarchyError):
        build_forest([_page("A", parent_id="A")])


def test_deep_chain_does_not_hit_recursion_limit():
    pages = [_page("p0")] + [_page(f"p{i}", parent_id=f"p{i - 1}") for i in range(1, 3000)]

    forest = build_forest(pages)

    assert len(list(walk(forest))) == 3000
    assert find_node(forest, "p2999").depth == 2999


def test_descendants_pre_order_excludes_self():
    pages = [
        _page("A"),
        _page("B", parent_id="A", sort_order=0),
        _page("C", parent_id="B"),
        _page("D", parent_id="A", sort_order=1),
    ]
    forest = build_forest(pages)

    assert [page.id for page in descendants(forest, "A")] == ["B", "C", "D"]
    assert descendants(forest, "C") == []
    with pytest.raises(KeyError):
        descendants(forest, "nope")


def test_resolve_visibility_walks_ancestors():
    pages = {
        page.id: page
        for page in [
            _page("A", visibility="private"),
            _page("B", parent_id="A"),
            _page("C", parent_id="B"),
        ]
    }

    assert resolve_visibility("C", pages) == ("private", True)
    assert resolve_visibility("A", pages) == ("private", False)


def test_resolve_visibility_detects_cycle():
    pages = {page.id: page for page in [_page("X", parent_id="Y"), _page("Y", parent_id="X")]}

    with pytest.raises(HierarchyError):
        resolve_visibility("X", pages)


def test_public_forest_hides_draft_and_private_subtrees():
    pages = [
        _page("A"),
        _page("B", parent_id="A", visibility="private"),
        _page("C", parent_id="B"),
        _page("D", parent_id="A", status="draft"),
        _page("E", parent_id="D"),
        _page("F", parent_id="A"),
    ]

    visible = public_forest(build_forest(pages))

    assert [node.id for node in walk(visible)] == ["A", "F"]


def test_render_tree_text():
    pages = [
        _page("A", title="Alpha"),
        _page("B", parent_id="A", title="Beta", visibility="private", status="draft"),
        _page("C", title="Gamma"),
    ]

    text = render_tree_text(build_forest(pages))

    assert text.splitlines() == [
        ".",
        "|-- Alpha (a) [published, public*]",
        "|   `-- Beta (b) [draft, private]",
        "`-- Gamma (c) [published, public*]",
    ]
