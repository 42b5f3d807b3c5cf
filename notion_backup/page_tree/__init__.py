"""Page hierarchy library.

Builds the page tree from the flat workspace listing and resolves each page
to a filesafe folder path.
"""

from .models import PageRecord, PageNode, ParentRef, ParentKind, PageIcon
from .filesafe_converter import FilesafeConverter, sanitize
from .hierarchy_builder import (
    build_tree,
    find_page,
    descendant_ids,
    flatten_with_paths,
    count_nodes,
)
from .path_resolver import path_for, folder_path_for

__all__ = [
    'PageRecord',
    'PageNode',
    'ParentRef',
    'ParentKind',
    'PageIcon',
    'FilesafeConverter',
    'sanitize',
    'build_tree',
    'find_page',
    'descendant_ids',
    'flatten_with_paths',
    'count_nodes',
    'path_for',
    'folder_path_for',
]
