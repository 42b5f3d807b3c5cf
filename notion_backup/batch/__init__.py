"""Rate-limited batch conversion of pages to markdown."""

from .batch_converter import (
    BatchConverter,
    convert_batch,
    items_from_records,
    CONCURRENCY_LIMIT,
    BATCH_DELAY_MS,
)

__all__ = [
    'BatchConverter',
    'convert_batch',
    'items_from_records',
    'CONCURRENCY_LIMIT',
    'BATCH_DELAY_MS',
]
