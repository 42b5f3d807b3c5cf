"""Resolution of a page id into its sanitized folder path.

Paths are computed from the flat record list by following parent ids
upward; tree nodes are never consulted, so no parent pointers are needed.
"""

import logging
from typing import Dict, Iterable, List, Set

from .filesafe_converter import FilesafeConverter
from .models import PageRecord, ParentKind

logger = logging.getLogger(__name__)


def index_records(records: Iterable[PageRecord]) -> Dict[str, PageRecord]:
    """Index records by page id (last write wins on duplicate ids)."""
    return {record.page_id: record for record in records}


def path_for(page_id: str, records: Iterable[PageRecord]) -> List[str]:
    """Return the root-to-page list of sanitized titles for a page.

    The walk stops at a root-kind parent or at a parent id that is not in
    the record list. Corrupt data containing a parent cycle stops the walk
    at the first repeated id.

    Args:
        page_id: Id of the page to resolve
        records: The full flat record list

    Returns:
        Sanitized path segments, or an empty list if page_id is unknown

    Example:
        >>> path_for("c", [a, b, c])   # a is parent of b, b of c
        ['A', 'B', 'C']
    """
    by_id = index_records(records)

    segments: List[str] = []
    visited: Set[str] = set()
    current = by_id.get(page_id)

    while current is not None:
        if current.page_id in visited:
            logger.warning(f"Parent cycle detected while resolving path of page {page_id}")
            break
        visited.add(current.page_id)
        segments.append(FilesafeConverter.sanitize(current.title))

        parent = current.parent
        if parent.kind == ParentKind.ROOT or not parent.parent_id:
            break
        current = by_id.get(parent.parent_id)

    segments.reverse()
    return segments


def folder_path_for(page_id: str, records: Iterable[PageRecord]) -> str:
    """Return the path of a page joined with '/', as used inside archives."""
    return "/".join(path_for(page_id, records))
