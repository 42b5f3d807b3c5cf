"""Data models for the page hierarchy.

This module defines the flat, parent-referencing page records returned by
the workspace listing and the tree nodes built from them.
All models use dataclasses for clean, type-safe data structures.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ParentKind(str, Enum):
    """Kind of container a page is attached to.

    - ROOT: the page sits at the top of the workspace
    - PAGE: the page is a sub-page of another page
    - CONTAINER: the page is a row of a database (or similar container)
    """
    ROOT = "root"
    PAGE = "page"
    CONTAINER = "container"


@dataclass(frozen=True)
class ParentRef:
    """Reference from a page to its parent.

    Attributes:
        kind: Kind of the parent
        parent_id: Id of the parent page or container (None for ROOT)
    """
    kind: ParentKind
    parent_id: Optional[str] = None


@dataclass(frozen=True)
class PageIcon:
    """Page icon as shown in the workspace sidebar.

    Attributes:
        kind: Either "emoji" or "external"
        value: The emoji character or the icon URL
    """
    kind: str
    value: str


@dataclass(frozen=True)
class PageRecord:
    """Immutable snapshot of one page from the workspace listing.

    Attributes:
        page_id: Opaque unique identifier of the page
        title: Plain-text page title
        parent: Reference to the parent page or container
        last_edited: ISO 8601 timestamp of the last edit
        is_container: True if the record is itself a container (database)
        icon: Optional page icon
    """
    page_id: str
    title: str
    parent: ParentRef = field(default_factory=lambda: ParentRef(ParentKind.ROOT))
    last_edited: str = ""
    is_container: bool = False
    icon: Optional[PageIcon] = None


@dataclass
class PageNode:
    """A PageRecord with its materialized child nodes.

    Children are exclusively owned by their parent node. Nodes carry no
    reference back to their parent: upward traversal goes through the flat
    record list by id (see path_resolver).

    Attributes:
        record: The page snapshot this node wraps
        children: Child nodes sorted by title
    """
    record: PageRecord
    children: List['PageNode'] = field(default_factory=list)

    @property
    def page_id(self) -> str:
        return self.record.page_id

    @property
    def title(self) -> str:
        return self.record.title
