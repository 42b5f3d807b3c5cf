"""Typed exceptions for image handling."""

from typing import Optional

from notion_backup.notion_client.errors import BackupError


class ImageError(BackupError):
    """Base exception for image handling errors."""
    pass


class ImageFetchError(ImageError):
    """Raised when an image cannot be downloaded."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        super().__init__(f"Failed to fetch image {url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code
