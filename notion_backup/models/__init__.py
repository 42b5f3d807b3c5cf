"""Data models shared across the backup pipeline."""

from notion_backup.models.backup_stats import ImageStats, PageStats
from notion_backup.models.conversion_result import ConversionItem, ConversionResult

__all__ = ['ConversionItem', 'ConversionResult', 'ImageStats', 'PageStats']
