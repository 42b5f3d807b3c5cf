"""Typed exception hierarchy for CLI-related errors.

All exceptions inherit from CLIError so the commands can catch them in one
place and map them to exit codes.
"""

from typing import Optional

from notion_backup.notion_client.errors import BackupError


class CLIError(BackupError):
    """Base exception for all CLI-related errors."""
    pass


class ConfigError(CLIError):
    """Raised when the configuration file is malformed or has invalid values."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Config error in field '{config_field}': {message}"
        else:
            full_message = f"Config error: {message}"
        super().__init__(full_message)
        self.config_field = config_field


class NoPagesSelectedError(CLIError):
    """Raised when a backup is requested without any resolvable page."""

    def __init__(self, message: str = "No pages selected for backup"):
        super().__init__(message)
