"""Rate-limited batch conversion of pages to markdown.

The Notion API allows about three requests per second on average. Pages are
therefore converted in consecutive waves of ``concurrency`` parallel exports
with a fixed pause between waves. A failing page is recorded as an errored
ConversionResult and never stops its wave or the run.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Sequence, TypeVar, Union

from notion_backup.models.conversion_result import ConversionItem, ConversionResult
from notion_backup.notion_client.errors import ConversionError
from notion_backup.notion_client.exporter import PageExporter
from notion_backup.page_tree.models import PageNode, PageRecord
from notion_backup.page_tree.path_resolver import folder_path_for
from notion_backup.notion_client.retry_logic import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_MAX_ATTEMPTS,
    with_retry,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')

# Concurrent requests recommended by the Notion API
CONCURRENCY_LIMIT = 3
# Pause between waves, in milliseconds
BATCH_DELAY_MS = 350


def convert_batch(
    items: Sequence[T],
    processor: Callable[[T], R],
    concurrency: int = CONCURRENCY_LIMIT,
    delay_ms: int = BATCH_DELAY_MS,
) -> List[R]:
    """Process items in waves of at most ``concurrency`` parallel calls.

    Items are split into consecutive batches; each batch runs in parallel
    and must finish before the next starts. The run sleeps ``delay_ms``
    between batches but not after the last one.

    Args:
        items: Work items, in order
        processor: Function applied to each item; it should not raise, an
            exception propagates and aborts the run
        concurrency: Batch size (parallel calls per wave)
        delay_ms: Pause between batches, in milliseconds

    Returns:
        One result per item, in input order

    Raises:
        ValueError: If concurrency is smaller than 1
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")

    results: List[R] = []
    if not items:
        return results

    waves = (len(items) + concurrency - 1) // concurrency

    with ThreadPoolExecutor(max_workers=concurrency) as executor:
        for wave, start in enumerate(range(0, len(items), concurrency), 1):
            batch = items[start:start + concurrency]
            logger.debug(f"Processing wave {wave}/{waves} ({len(batch)} items)")

            # executor.map yields results in submission order
            results.extend(executor.map(processor, batch))

            if start + concurrency < len(items):
                time.sleep(delay_ms / 1000)

    return results


class BatchConverter:
    """Converts many pages to markdown within the API's request budget.

    Each export is retried with exponential backoff before being recorded
    as failed.

    Example:
        >>> converter = BatchConverter(exporter)
        >>> results = converter.convert([ConversionItem("abc", "Home", "Home")])
        >>> failed = [r for r in results if not r.succeeded]
    """

    def __init__(
        self,
        exporter: PageExporter,
        concurrency: int = CONCURRENCY_LIMIT,
        delay_ms: int = BATCH_DELAY_MS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
    ):
        """Initialize the converter.

        Args:
            exporter: Object rendering one page to markdown
            concurrency: Parallel exports per wave
            delay_ms: Pause between waves, in milliseconds
            max_attempts: Attempts per page export
            base_delay_ms: Initial retry delay, in milliseconds
        """
        self.exporter = exporter
        self.concurrency = concurrency
        self.delay_ms = delay_ms
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms

    def convert(self, items: Sequence[ConversionItem]) -> List[ConversionResult]:
        """Convert every item, preserving order.

        Args:
            items: Pages to convert

        Returns:
            One ConversionResult per item, in input order
        """
        logger.info(
            f"Converting {len(items)} pages "
            f"(concurrency {self.concurrency}, {self.delay_ms}ms between batches)"
        )
        results = convert_batch(items, self._convert_one, self.concurrency, self.delay_ms)

        failed = sum(1 for result in results if not result.succeeded)
        logger.info(f"Conversion complete: {len(results) - failed} converted, {failed} failed")
        return results

    def _export(self, page_id: str) -> str:
        markdown = self.exporter.export_markdown(page_id)
        if not isinstance(markdown, str):
            raise ConversionError(page_id, f"exporter returned {type(markdown).__name__}")
        return markdown

    def _convert_one(self, item: ConversionItem) -> ConversionResult:
        try:
            markdown = with_retry(
                lambda: self._export(item.page_id),
                max_attempts=self.max_attempts,
                base_delay_ms=self.base_delay_ms,
            )
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"Failed to convert '{item.title}' ({item.page_id}): {message}")
            return ConversionResult(
                page_id=item.page_id,
                title=item.title,
                path=item.path,
                markdown="",
                error=message,
            )

        return ConversionResult(
            page_id=item.page_id,
            title=item.title,
            path=item.path,
            markdown=markdown,
        )


def items_from_records(
    selected: Iterable[Union[PageRecord, PageNode]],
    all_records: Iterable[PageRecord],
) -> List[ConversionItem]:
    """Build ConversionItems for the selected pages with resolved paths.

    Args:
        selected: Selected records or tree nodes, in conversion order
        all_records: Full flat record list used for path resolution
    """
    all_records = list(all_records)
    return [
        ConversionItem(
            page_id=page.page_id,
            title=page.title,
            path=folder_path_for(page.page_id, all_records),
        )
        for page in selected
    ]
