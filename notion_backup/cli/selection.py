"""Resolve the pages a backup command was asked for."""

import logging
from typing import Dict, List, Sequence, Tuple

from notion_backup.notion_client.page_ids import compact_page_id, parse_page_id
from notion_backup.page_tree.hierarchy_builder import build_tree, descendant_ids, find_page, flatten_with_paths
from notion_backup.page_tree.models import PageRecord

logger = logging.getLogger(__name__)


def select_pages(
    records: Sequence[PageRecord],
    page_refs: Sequence[str],
    include_all: bool = False,
    with_children: bool = False,
) -> Tuple[List[PageRecord], List[str]]:
    """Pick the records named by URLs or ids.

    Args:
        records: Full workspace listing
        page_refs: Page URLs or ids given on the command line
        include_all: Select the whole workspace (parents before children)
        with_children: Also select every descendant of each named page

    Returns:
        (selected records without duplicates, refs that matched no page)
    """
    by_compact_id: Dict[str, PageRecord] = {compact_page_id(r.page_id): r for r in records}
    roots = build_tree(records)

    if include_all:
        return [node.record for node, _ in flatten_with_paths(roots)], []

    selected: Dict[str, PageRecord] = {}
    unresolved: List[str] = []

    for ref in page_refs:
        page_id = parse_page_id(ref)
        record = by_compact_id.get(compact_page_id(page_id)) if page_id else None
        if record is None:
            logger.warning(f"No page matches '{ref}'")
            unresolved.append(ref)
            continue

        selected.setdefault(record.page_id, record)
        if with_children:
            node = find_page(roots, record.page_id)
            for child_id in descendant_ids(node) if node else []:
                selected.setdefault(child_id, by_compact_id[compact_page_id(child_id)])

    return list(selected.values()), unresolved
