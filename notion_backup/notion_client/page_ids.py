"""Notion page id parsing.

Accepts page URLs (notion.so, notion.site, custom workspace domains), bare
32-character hex ids and dashed UUIDs.
"""

import re
from typing import Optional
from urllib.parse import urlparse

_UUID_RE = re.compile(
    r'^[0-9a-f]{8}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{12}$',
    re.IGNORECASE,
)
_TRAILING_HEX_RE = re.compile(r'([0-9a-f]{32})$')
_ANY_HEX_RE = re.compile(r'([0-9a-f]{32})')


def parse_page_id(url_or_id: str) -> Optional[str]:
    """Extract a page id from a Notion URL or raw id.

    Args:
        url_or_id: Page URL, 32-char hex id, or dashed UUID

    Returns:
        The extracted id (32-char hex for URLs, the input for dashed UUIDs),
        or None if no id can be found

    Examples:
        >>> parse_page_id("https://www.notion.so/My-Page-abc123def456789012345678901234ab")
        'abc123def456789012345678901234ab'
        >>> parse_page_id("not-a-valid-id") is None
        True
    """
    if not url_or_id:
        return None

    value = url_or_id.strip()
    parsed = urlparse(value)

    if parsed.scheme in ('http', 'https') and parsed.netloc:
        last_segment = parsed.path.rstrip('/').split('/')[-1]
        match = _TRAILING_HEX_RE.search(last_segment)
        if match:
            return match.group(1)
    else:
        match = _ANY_HEX_RE.search(value)
        if match:
            return match.group(1)

    if _UUID_RE.match(value):
        return value

    return None


def compact_page_id(page_id: str) -> str:
    """Normalize an id for comparison (lowercase, no dashes)."""
    return page_id.replace('-', '').lower()


def format_page_id(page_id: str) -> str:
    """Return the dashed 8-4-4-4-12 form of a 32-char hex id.

    Ids that are not 32 hex characters once compacted are returned unchanged.
    """
    compact = compact_page_id(page_id)
    if not re.fullmatch(r'[0-9a-f]{32}', compact):
        return page_id
    return f"{compact[:8]}-{compact[8:12]}-{compact[12:16]}-{compact[16:20]}-{compact[20:]}"
