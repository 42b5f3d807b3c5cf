"""Counters reported while a backup runs."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ImageStats:
    """Image download counters.

    Attributes:
        total: Unique images discovered so far
        downloaded: Images fetched successfully
        failed: Images that could not be fetched
    """
    total: int = 0
    downloaded: int = 0
    failed: int = 0

    def __add__(self, other: 'ImageStats') -> 'ImageStats':
        return ImageStats(
            total=self.total + other.total,
            downloaded=self.downloaded + other.downloaded,
            failed=self.failed + other.failed,
        )


@dataclass(frozen=True)
class PageStats:
    """Page conversion counters.

    Attributes:
        total: Pages requested
        converted: Pages converted successfully
        failed: Pages whose conversion failed
    """
    total: int = 0
    converted: int = 0
    failed: int = 0
