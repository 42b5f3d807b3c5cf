"""Data models for CLI operations."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): Config issues, bad input, archive failures
    - AUTH_ERROR (3): Missing or rejected token, page not shared
    - NETWORK_ERROR (4): Notion API unreachable, rate limited or failing
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 3
    NETWORK_ERROR = 4


@dataclass
class BackupConfig:
    """Runtime options read from notion-backup.yaml.

    Attributes:
        output_dir: Directory receiving archives and HTML files
        archive_prefix: File name prefix of backup archives
        concurrency: Parallel page exports per batch
        batch_delay_ms: Pause between export batches
        max_attempts: Attempts per Notion call and page export
        base_delay_ms: Initial retry backoff
        image_timeout: Per-image download timeout in seconds
        image_cache_ttl: Lifetime of cached images in seconds
        proxy_url: Forward proxy for outbound requests
        exporter: "module:attribute" reference of the page exporter factory
    """
    output_dir: str = "."
    archive_prefix: str = "notion-backup"
    concurrency: int = 3
    batch_delay_ms: int = 350
    max_attempts: int = 3
    base_delay_ms: int = 1000
    image_timeout: float = 30
    image_cache_ttl: float = 3600
    proxy_url: Optional[str] = None
    exporter: Optional[str] = None
