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
    unpublish_page,
    update_page,
)
from pagewiki.core.services.public_service import get_published_page, list_published, navigation, navigation_tree

__all__ = [
    "create_page",
    "delete_page",
    "get_descendants",
    "get_page",
    "list_pages",
    "page_tree",
    "preview_visibility",
    "publish_page",
    "set_visibility",
    "unpublish_page",
    "update_page",
    "get_published_page",
    "list_published",
    "navigation",
    "navigation_tree",
]
