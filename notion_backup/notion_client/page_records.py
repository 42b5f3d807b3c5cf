"""Conversion of raw Notion API page objects into PageRecord snapshots."""

from typing import Any, Dict, Optional

from ..page_tree.models import PageIcon, PageRecord, ParentKind, ParentRef

# Property names tried first when looking for the title property
TITLE_PROPERTY_NAMES = ("title", "Title", "Name", "name", "Page", "page")

UNTITLED = "Untitled"


def _plain_text(prop: Any) -> Optional[str]:
    if not isinstance(prop, dict):
        return None
    rich_text = prop.get('title')
    if not isinstance(rich_text, list) or not rich_text:
        return None
    return "".join(part.get('plain_text', '') for part in rich_text if isinstance(part, dict))


def extract_title(page: Dict[str, Any], default: str = UNTITLED) -> str:
    """Extract the plain-text title of a page object.

    Well-known property names are tried first, then any property holding a
    non-empty title.

    Args:
        page: Raw page object from the Notion API
        default: Value returned when no title property is found

    Returns:
        The page title
    """
    properties = page.get('properties') or {}

    for key in TITLE_PROPERTY_NAMES:
        title = _plain_text(properties.get(key))
        if title is not None:
            return title

    for value in properties.values():
        title = _plain_text(value)
        if title is not None:
            return title

    return default


def extract_icon(page: Dict[str, Any]) -> Optional[PageIcon]:
    """Extract the page icon (emoji, external URL or uploaded file URL)."""
    icon = page.get('icon')
    if not isinstance(icon, dict):
        return None

    icon_type = icon.get('type')
    if icon_type == 'emoji':
        return PageIcon(kind='emoji', value=icon.get('emoji', ''))
    if icon_type == 'external':
        return PageIcon(kind='external', value=icon.get('external', {}).get('url', ''))
    if icon_type == 'file':
        return PageIcon(kind='external', value=icon.get('file', {}).get('url', ''))
    return None


def extract_parent(page: Dict[str, Any]) -> ParentRef:
    """Map the Notion parent descriptor onto a ParentRef.

    Unknown parent types (blocks, teamspaces) are treated as root.
    """
    parent = page.get('parent') or {}
    parent_type = parent.get('type')

    if parent_type == 'page_id':
        return ParentRef(ParentKind.PAGE, parent.get('page_id'))
    if parent_type == 'database_id':
        return ParentRef(ParentKind.CONTAINER, parent.get('database_id'))
    return ParentRef(ParentKind.ROOT)


def record_from_page(page: Dict[str, Any]) -> PageRecord:
    """Build a PageRecord from a raw page object.

    Raises:
        ValueError: If the page object has no id
    """
    page_id = page.get('id')
    if not page_id:
        raise ValueError("Page object missing required 'id' field")

    return PageRecord(
        page_id=page_id,
        title=extract_title(page),
        parent=extract_parent(page),
        last_edited=page.get('last_edited_time', ''),
        is_container=page.get('object') == 'database',
        icon=extract_icon(page),
    )
