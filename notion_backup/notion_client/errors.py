"""Typed exception hierarchy for Notion-related errors.

This module defines the base exception for the whole tool and all custom
exceptions raised by the Notion client library. Every exception carries a
descriptive message with enough context to debug the failing call.
"""

from typing import Optional


class BackupError(Exception):
    """Base exception for all notion-backup errors.

    Use this to catch any application-level error from the backup tool.
    """
    pass


class NotionError(BackupError):
    """Base exception for all Notion API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidTokenError(NotionError):
    """Raised when the integration token is missing, invalid or expired."""

    def __init__(self, message: str = "Notion token is invalid or expired"):
        super().__init__(message, status_code=401)


class PermissionDeniedError(NotionError):
    """Raised when the integration has not been shared with a page."""

    def __init__(self, resource: str = "unknown"):
        super().__init__(
            f"Integration has no access to {resource}; "
            f"share the page with the integration and retry",
            status_code=403,
        )
        self.resource = resource


class PageNotFoundError(NotionError):
    """Raised when a requested page does not exist or is not shared."""

    def __init__(self, page_id: str):
        super().__init__(f"Page {page_id} not found", status_code=404)
        self.page_id = page_id


class BadRequestError(NotionError):
    """Raised when the Notion API rejects the request parameters."""

    def __init__(self, message: str):
        super().__init__(f"Invalid request: {message}", status_code=400)


class RateLimitedError(NotionError):
    """Raised when the Notion API answers 429 Too Many Requests."""

    def __init__(self, retry_after: Optional[float] = None):
        message = "Notion API rate limit hit"
        if retry_after is not None:
            message += f" (retry after {retry_after}s)"
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class ServerError(NotionError):
    """Raised when the Notion API answers with a 5xx status."""

    def __init__(self, status_code: int):
        super().__init__(
            f"Notion service temporarily unavailable (HTTP {status_code})",
            status_code=status_code,
        )


class APIUnreachableError(NotionError):
    """Raised when the Notion API cannot be reached (timeout, DNS, connection)."""

    def __init__(self, endpoint: str):
        super().__init__(f"API is not available at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(NotionError):
    """Raised for any other API failure."""

    def __init__(self, message: str = "Notion API failure", status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)


class ConversionError(NotionError):
    """Raised when a page cannot be exported to markdown."""

    def __init__(self, page_id: str, reason: str):
        super().__init__(f"Failed to convert page {page_id}: {reason}")
        self.page_id = page_id
        self.reason = reason


class ExporterLoadError(NotionError):
    """Raised when the page exporter plug-in cannot be loaded."""

    def __init__(self, reference: Optional[str], reason: str):
        super().__init__(f"Cannot load exporter '{reference}': {reason}")
        self.reference = reference
        self.reason = reason
