"""Notion client library for workspace backups.

This package provides Python abstractions over the Notion REST API: page
listing, page and block retrieval, retries with backoff and typed errors.
"""

from .errors import (
    BackupError,
    NotionError,
    InvalidTokenError,
    PermissionDeniedError,
    PageNotFoundError,
    BadRequestError,
    RateLimitedError,
    ServerError,
    APIUnreachableError,
    APIAccessError,
    ConversionError,
    ExporterLoadError,
)
from .retry_logic import with_retry, retrying

__all__ = [
    "BackupError",
    "NotionError",
    "InvalidTokenError",
    "PermissionDeniedError",
    "PageNotFoundError",
    "BadRequestError",
    "RateLimitedError",
    "ServerError",
    "APIUnreachableError",
    "APIAccessError",
    "ConversionError",
    "ExporterLoadError",
    "with_retry",
    "retrying",
]
