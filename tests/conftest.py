"""Root pytest configuration and shared fixtures."""

import pytest

from notion_backup.page_tree.models import PageRecord, ParentKind, ParentRef


def make_record(page_id, title, parent_id=None, kind=None):
    """Build a PageRecord; a parent_id implies a page parent unless kind says otherwise."""
    if parent_id is None:
        parent = ParentRef(kind or ParentKind.ROOT)
    else:
        parent = ParentRef(kind or ParentKind.PAGE, parent_id)
    return PageRecord(page_id=page_id, title=title, parent=parent)


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def chain_records():
    """Three pages nested A > B > C."""
    return [
        make_record("a", "Alpha"),
        make_record("b", "Beta", "a"),
        make_record("c", "Gamma", "b"),
    ]
