"""Backup run orchestration, progress reporting and archive assembly."""

from .archive_builder import ArchiveBuilder, backup_filename
from .backup_runner import BackupRunner
from .errors import ArchiveError
from .progress import (
    PHASE_CONVERTING,
    PHASE_CREATING_ZIP,
    PHASE_DOWNLOADING_IMAGES,
    BackupProgress,
    ProgressAggregator,
)

__all__ = [
    'ArchiveBuilder',
    'ArchiveError',
    'BackupProgress',
    'BackupRunner',
    'PHASE_CONVERTING',
    'PHASE_CREATING_ZIP',
    'PHASE_DOWNLOADING_IMAGES',
    'ProgressAggregator',
    'backup_filename',
]
