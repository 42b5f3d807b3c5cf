"""Unit tests for cli.output module."""

import pytest

from notion_backup.backup.progress import BackupProgress
from notion_backup.cli.output import OutputHandler
from notion_backup.models.backup_stats import ImageStats, PageStats
from notion_backup.page_tree.models import PageIcon, PageNode, PageRecord


@pytest.fixture
def handler():
    return OutputHandler(no_color=True)


class TestMessages:
    """Test cases for status messages."""

    def test_info_respects_verbosity(self, capsys):
        OutputHandler(verbosity=0, no_color=True).info("hidden")
        OutputHandler(verbosity=1, no_color=True).info("shown")

        out = capsys.readouterr().out
        assert "hidden" not in out
        assert "shown" in out

    def test_debug_requires_level_two(self, capsys):
        OutputHandler(verbosity=1, no_color=True).debug("quiet")
        OutputHandler(verbosity=2, no_color=True).debug("loud")

        out = capsys.readouterr().out
        assert "quiet" not in out
        assert "loud" in out

    def test_markup_in_messages_is_literal(self, handler, capsys):
        handler.warning("[bold]Q3 [draft][/bold]")

        assert "[bold]Q3 [draft][/bold]" in capsys.readouterr().out


class TestDescribeProgress:
    """Test cases for OutputHandler.describe_progress."""

    def test_with_page_label(self):
        snapshot = BackupProgress("downloading-images", 1, 2, 40, current_label="Home")

        assert OutputHandler.describe_progress(snapshot) == "Downloading images (1/2): Home"

    def test_without_label(self):
        snapshot = BackupProgress("converting", 0, 2, 0)

        assert OutputHandler.describe_progress(snapshot) == "Converting pages"


class TestPageTree:
    """Test cases for OutputHandler.print_page_tree."""

    def test_renders_icons_and_ids(self, handler, capsys):
        child = PageNode(PageRecord("child-id", "Projects"))
        root = PageNode(
            PageRecord("root-id", "Home", icon=PageIcon("emoji", "🏠")),
            children=[child],
        )

        handler.print_page_tree([root])

        out = capsys.readouterr().out
        assert "Workspace" in out
        assert "🏠 Home" in out
        assert "root-id" in out
        assert "Projects" in out


class TestBackupSummary:
    """Test cases for OutputHandler.print_backup_summary."""

    def test_clean_run(self, handler, capsys):
        snapshot = BackupProgress(
            "creating-zip", 1, 1, 100,
            image_stats=ImageStats(total=2, downloaded=2),
            page_stats=PageStats(total=3, converted=3),
        )

        handler.print_backup_summary(snapshot, "out/backup.zip")

        out = capsys.readouterr().out
        assert "Pages converted: 3/3" in out
        assert "Images downloaded: 2/2" in out
        assert "Backup written to out/backup.zip" in out

    def test_run_with_failures(self, handler, capsys):
        snapshot = BackupProgress(
            "creating-zip", 1, 1, 100,
            image_stats=ImageStats(total=2, downloaded=1, failed=1),
            page_stats=PageStats(total=3, converted=2, failed=1),
        )

        handler.print_backup_summary(snapshot, "backup.zip")

        out = capsys.readouterr().out
        assert "Pages failed: 1" in out
        assert "Images kept as remote links: 1" in out
        assert "completed with errors" in out
