"""Typed exceptions for archive assembly."""

from notion_backup.notion_client.errors import BackupError


class ArchiveError(BackupError):
    """Raised when the backup archive cannot be assembled or serialized."""

    def __init__(self, reason: str):
        super().__init__(f"Failed to build backup archive: {reason}")
        self.reason = reason
