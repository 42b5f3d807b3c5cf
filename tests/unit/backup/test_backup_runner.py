"""Unit tests for backup.backup_runner module."""

import io
import zipfile

import pytest
from unittest.mock import Mock, patch

from notion_backup.backup.backup_runner import BackupRunner
from notion_backup.backup.errors import ArchiveError
from notion_backup.batch.batch_converter import BatchConverter
from notion_backup.images.errors import ImageFetchError
from notion_backup.images.image_fetcher import FetchedImage
from notion_backup.images.image_processor import ImageDeduper

from conftest import make_record

IMAGE_URL = "https://files.example.com/diagram.png"


def _runner(pages_markdown, failing=()):
    """Runner over a fake exporter serving {page_id: markdown}."""
    def export(page_id):
        if page_id in failing:
            raise RuntimeError(f"cannot export {page_id}")
        return pages_markdown[page_id]

    exporter = Mock()
    exporter.export_markdown.side_effect = export

    fetcher = Mock()
    fetcher.fetch.side_effect = lambda url: FetchedImage(b"png", "image/png")

    converter = BatchConverter(exporter, max_attempts=1)
    return BackupRunner(converter, ImageDeduper(fetcher))


@patch('time.sleep')
class TestRunBackup:
    """Test cases for BackupRunner.run_backup."""

    def test_two_pages_without_images(self, mock_sleep, chain_records):
        emitted = []
        runner = _runner({"a": "# Alpha", "b": "# Beta"})

        data = runner.run_backup(chain_records[:2], chain_records, on_progress=emitted.append)

        converting = [e.overall_percent for e in emitted if e.phase == "converting"]
        assert converting and all(0 <= p <= 30 for p in converting)
        assert emitted[-1].overall_percent == 100
        percents = [e.overall_percent for e in emitted]
        assert percents == sorted(percents)

        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.read("Alpha/export.md") == b"# Alpha"
            assert archive.read("Alpha/Beta/export.md") == b"# Beta"

    def test_images_rewritten_and_packed(self, mock_sleep, chain_records):
        runner = _runner({"a": f"![d]({IMAGE_URL})\n![d]({IMAGE_URL})"})

        data = runner.run_backup(chain_records[:1], chain_records)

        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.read("Alpha/export.md") == b"![d](images/image-1.png)\n![d](images/image-1.png)"
            assert archive.read("Alpha/images/image-1.png") == b"png"

    def test_failed_page_skipped(self, mock_sleep, chain_records):
        emitted = []
        runner = _runner({"a": "ok", "b": "never"}, failing={"b"})

        data = runner.run_backup(chain_records[:2], chain_records, on_progress=emitted.append)

        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert "Alpha/export.md" in archive.namelist()
            assert "Alpha/Beta/export.md" not in archive.namelist()
        assert emitted[-1].page_stats.failed == 1
        assert emitted[-1].page_stats.converted == 1

    def test_page_outside_listing_uses_sanitized_title(self, mock_sleep):
        loose = make_record("z", "Loose: notes")
        runner = _runner({"z": "body"})

        data = runner.run_backup([loose], [])

        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.read("Loose- notes/export.md") == b"body"

    def test_failed_image_keeps_remote_url(self, mock_sleep, chain_records):
        runner = _runner({"a": f"![d]({IMAGE_URL})"})
        runner.deduper.fetcher.fetch.side_effect = ImageFetchError(IMAGE_URL, "HTTP 500")
        emitted = []

        data = runner.run_backup(chain_records[:1], chain_records, on_progress=emitted.append)

        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.read("Alpha/export.md").decode() == f"![d]({IMAGE_URL})"
        assert emitted[-1].image_stats.failed == 1

    @patch('notion_backup.backup.backup_runner.ArchiveBuilder.build', side_effect=ArchiveError("boom"))
    def test_archive_failure_propagates(self, mock_build, mock_sleep, chain_records):
        runner = _runner({"a": "x"})

        with pytest.raises(ArchiveError):
            runner.run_backup(chain_records[:1], chain_records)
