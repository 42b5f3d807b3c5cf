"""Hierarchy builder turning the flat page listing into a page tree.

The Notion search endpoint returns a flat list of pages, each pointing at
its parent. This module materializes the tree in two passes: every record
is first indexed by id, then attached exactly once to the node of its
parent. Because attachment goes through the id index, a node can never
become its own ancestor and no cycle check is needed.
"""

import locale
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .filesafe_converter import FilesafeConverter
from .models import PageNode, PageRecord, ParentKind

logger = logging.getLogger(__name__)


def _title_sort_key(node: PageNode) -> Tuple[str, str]:
    """Case-insensitive, locale-aware collation key for sibling ordering.

    Titles equal once case-folded fall back to code-point order so the
    result is stable.
    """
    folded = node.title.casefold()
    try:
        return locale.strxfrm(folded), node.title
    except (ValueError, OSError):
        return folded, node.title


def _sort_nodes(nodes: List[PageNode]) -> None:
    nodes.sort(key=_title_sort_key)
    for node in nodes:
        _sort_nodes(node.children)


def build_tree(records: Iterable[PageRecord]) -> List[PageNode]:
    """Build the page forest from a flat list of records.

    A record is attached under its parent when the parent id is present in
    the list and the parent kind is not root; otherwise it becomes a root
    (pages whose parent was not shared with the integration end up here).
    Siblings are sorted by title at every level.

    Args:
        records: Flat page records with unique ids

    Returns:
        Root-level nodes sorted by title

    Example:
        >>> roots = build_tree(api.list_pages())
        >>> print(f"{len(roots)} top-level pages")
    """
    records = list(records)
    nodes: Dict[str, PageNode] = {}
    roots: List[PageNode] = []

    # First pass: one childless node per id
    for record in records:
        if record.page_id in nodes:
            logger.warning(f"Duplicate page id {record.page_id} in listing, keeping last")
        nodes[record.page_id] = PageNode(record=record)

    # Second pass: attach each record exactly once
    for record in records:
        node = nodes[record.page_id]
        if node.record is not record:
            # Shadowed duplicate
            continue

        parent = record.parent
        parent_node = None
        if parent.kind != ParentKind.ROOT and parent.parent_id and parent.parent_id != record.page_id:
            parent_node = nodes.get(parent.parent_id)

        if parent_node is not None:
            parent_node.children.append(node)
        else:
            if parent.kind != ParentKind.ROOT:
                logger.debug(
                    f"Parent {parent.parent_id} of page {record.page_id} not in listing, "
                    f"treating as root"
                )
            roots.append(node)

    _sort_nodes(roots)

    logger.debug(f"Built page tree: {len(records)} records, {len(roots)} roots")
    return roots


def find_page(roots: List[PageNode], page_id: str) -> Optional[PageNode]:
    """Depth-first search for a node by id; None if absent."""
    for node in roots:
        if node.page_id == page_id:
            return node
        found = find_page(node.children, page_id)
        if found is not None:
            return found
    return None


def descendant_ids(node: PageNode) -> List[str]:
    """Return the ids of every descendant of a node, in pre-order."""
    ids: List[str] = []
    for child in node.children:
        ids.append(child.page_id)
        ids.extend(descendant_ids(child))
    return ids


def flatten_with_paths(
    roots: List[PageNode],
    parent_path: Optional[List[str]] = None,
) -> List[Tuple[PageNode, List[str]]]:
    """Flatten the forest in pre-order, pairing every node with its path.

    Args:
        roots: Nodes to flatten
        parent_path: Sanitized path of the nodes' parent

    Returns:
        List of (node, sanitized path) tuples
    """
    parent_path = parent_path or []
    flattened: List[Tuple[PageNode, List[str]]] = []

    for node in roots:
        path = parent_path + [FilesafeConverter.sanitize(node.title)]
        flattened.append((node, path))
        flattened.extend(flatten_with_paths(node.children, path))

    return flattened


def count_nodes(roots: List[PageNode]) -> int:
    """Total number of nodes in the forest."""
    return sum(1 + count_nodes(node.children) for node in roots)
