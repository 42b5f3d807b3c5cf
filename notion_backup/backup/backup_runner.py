"""End-to-end backup run: convert, stage images, archive."""

import logging
from typing import Iterable, Optional, Sequence, Union

from notion_backup.batch.batch_converter import BatchConverter, items_from_records
from notion_backup.images.image_processor import ImageDeduper
from notion_backup.page_tree.filesafe_converter import sanitize
from notion_backup.page_tree.models import PageNode, PageRecord

from .archive_builder import ArchiveBuilder
from .progress import ProgressAggregator, ProgressCallback

logger = logging.getLogger(__name__)


class BackupRunner:
    """Produces a ZIP backup of selected pages.

    Pages whose conversion failed are left out of the archive and counted
    in the page stats; images that cannot be downloaded keep their remote
    URL. Only a failure of the conversion batch itself or of the archive
    serialization propagates.

    Example:
        >>> runner = BackupRunner(BatchConverter(exporter), ImageDeduper(ImageFetcher()))
        >>> data = runner.run_backup(selected, all_pages, on_progress=print)
    """

    def __init__(self, converter: BatchConverter, deduper: ImageDeduper):
        self.converter = converter
        self.deduper = deduper

    def run_backup(
        self,
        selected: Sequence[Union[PageRecord, PageNode]],
        all_pages: Iterable[PageRecord],
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Back up the selected pages.

        Args:
            selected: Pages to back up, in order
            all_pages: Full workspace listing used to resolve folder paths
            on_progress: Receives a BackupProgress snapshot at every step

        Returns:
            The ZIP archive bytes

        Raises:
            ArchiveError: If the archive cannot be built
        """
        progress = ProgressAggregator(on_progress)
        items = items_from_records(selected, all_pages)

        # Phase 1: markdown conversion
        progress.start_converting(len(items))
        results = self.converter.convert(items)
        progress.finish_converting(results)

        # Phase 2: images, page by page
        archive = ArchiveBuilder()
        total = len(results)
        for index, result in enumerate(results):
            if not result.succeeded:
                logger.warning(f"Skipping '{result.title}': {result.error}")
                continue

            progress.begin_page(index, total, result.title)
            processed = self.deduper.process_for_backup(
                result.markdown,
                on_progress=lambda done, count, index=index, title=result.title: progress.image_progress(
                    index, total, title, done, count
                ),
            )
            progress.end_page(processed.stats)

            folder_path = result.path or sanitize(result.title)
            archive.add_page(folder_path, processed.markdown, processed.images)

        # Phase 3: archive
        progress.start_archive()
        data = archive.build()
        progress.finish()

        logger.info(
            f"Backup complete: {progress.page_stats.converted}/{progress.page_stats.total} pages, "
            f"{progress.image_stats.downloaded}/{progress.image_stats.total} images"
        )
        return data
