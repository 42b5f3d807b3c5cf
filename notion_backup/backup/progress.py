"""Progress reporting for a backup run.

A run goes through three weighted phases:

- converting: 0% to 30%
- downloading-images: 30% to 90%, split evenly between pages
- creating-zip: 90% to 100%

Every emission is a complete BackupProgress snapshot. Counters only grow
and the overall percentage never goes backwards.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from notion_backup.models.backup_stats import ImageStats, PageStats
from notion_backup.models.conversion_result import ConversionResult

logger = logging.getLogger(__name__)

PHASE_CONVERTING = "converting"
PHASE_DOWNLOADING_IMAGES = "downloading-images"
PHASE_CREATING_ZIP = "creating-zip"

CONVERT_END = 30
IMAGES_END = 90
ARCHIVE_END = 100
IMAGE_PHASE_WEIGHT = IMAGES_END - CONVERT_END


@dataclass(frozen=True)
class BackupProgress:
    """Snapshot of a running backup.

    Attributes:
        phase: One of converting, downloading-images, creating-zip
        current: Position within the phase (1-based page number while
            downloading images)
        total: Number of units in the phase
        overall_percent: Whole-run progress, 0 to 100
        current_label: Title of the page being processed, if any
        image_stats: Image counters accumulated so far
        page_stats: Page conversion counters
    """
    phase: str
    current: int
    total: int
    overall_percent: int
    current_label: Optional[str] = None
    image_stats: ImageStats = field(default_factory=ImageStats)
    page_stats: PageStats = field(default_factory=PageStats)


ProgressCallback = Callable[[BackupProgress], None]


def _round_half_up(value: float) -> int:
    # round() would bank 32.5 down to 32
    return int(math.floor(value + 0.5))


def image_phase_percent(page_index: int, total_pages: int, in_page: float = 0.0) -> float:
    """Overall percentage while processing the images of one page.

    Args:
        page_index: 0-based index of the page
        total_pages: Number of pages in the image phase
        in_page: Fraction of the page's images already settled (0 to 1)
    """
    if total_pages <= 0:
        return float(IMAGES_END)
    page_weight = IMAGE_PHASE_WEIGHT / total_pages
    return CONVERT_END + page_index * page_weight + in_page * page_weight


class ProgressAggregator:
    """Turns phase events of a backup run into BackupProgress emissions."""

    def __init__(self, on_progress: Optional[ProgressCallback] = None):
        self._on_progress = on_progress
        self._percent = 0
        self.page_stats = PageStats()
        self.image_stats = ImageStats()

    @property
    def overall_percent(self) -> int:
        return self._percent

    def _emit(
        self,
        phase: str,
        current: int,
        total: int,
        percent: float,
        label: Optional[str] = None,
        image_stats: Optional[ImageStats] = None,
    ) -> BackupProgress:
        self._percent = max(self._percent, min(_round_half_up(percent), ARCHIVE_END))
        progress = BackupProgress(
            phase=phase,
            current=current,
            total=total,
            overall_percent=self._percent,
            current_label=label,
            image_stats=image_stats or self.image_stats,
            page_stats=self.page_stats,
        )
        logger.debug(f"Progress {progress.overall_percent}% ({phase} {current}/{total})")
        if self._on_progress is not None:
            self._on_progress(progress)
        return progress

    def start_converting(self, total_pages: int) -> BackupProgress:
        self.page_stats = PageStats(total=total_pages)
        return self._emit(PHASE_CONVERTING, 0, total_pages, 0)

    def finish_converting(self, results: Sequence[ConversionResult]) -> BackupProgress:
        converted = sum(1 for result in results if result.succeeded)
        self.page_stats = PageStats(
            total=self.page_stats.total,
            converted=converted,
            failed=len(results) - converted,
        )
        return self._emit(PHASE_CONVERTING, len(results), len(results), CONVERT_END)

    def begin_page(self, page_index: int, total_pages: int, title: str) -> BackupProgress:
        return self._emit(
            PHASE_DOWNLOADING_IMAGES,
            page_index + 1,
            total_pages,
            image_phase_percent(page_index, total_pages),
            label=title,
        )

    def image_progress(
        self,
        page_index: int,
        total_pages: int,
        title: str,
        processed: int,
        page_image_total: int,
    ) -> BackupProgress:
        """Report that ``processed`` of ``page_image_total`` images of a page settled."""
        in_page = processed / page_image_total if page_image_total else 1.0
        pending = ImageStats(
            total=self.image_stats.total + page_image_total,
            downloaded=self.image_stats.downloaded,
            failed=self.image_stats.failed,
        )
        return self._emit(
            PHASE_DOWNLOADING_IMAGES,
            page_index + 1,
            total_pages,
            image_phase_percent(page_index, total_pages, in_page),
            label=title,
            image_stats=pending,
        )

    def end_page(self, stats: ImageStats) -> None:
        """Fold the counters of a finished page into the run totals."""
        self.image_stats = self.image_stats + stats

    def start_archive(self) -> BackupProgress:
        return self._emit(PHASE_CREATING_ZIP, 0, 1, IMAGES_END)

    def finish(self) -> BackupProgress:
        return self._emit(PHASE_CREATING_ZIP, 1, 1, ARCHIVE_END)
