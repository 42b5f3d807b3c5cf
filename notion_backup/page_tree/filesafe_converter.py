"""Filesafe conversion of page titles into folder names.

This module converts Notion page titles to path segments that are valid on
every common file system while keeping the title readable (spaces and case
are preserved).
"""

import re

# Characters reserved on Windows and/or POSIX file systems
RESERVED_CHARS_RE = re.compile(r'[<>:"/\\|?*]')
WHITESPACE_RUN_RE = re.compile(r'\s+')
DASH_RUN_RE = re.compile(r'-+')

MAX_SEGMENT_LENGTH = 100
FALLBACK_SEGMENT = "untitled"


class FilesafeConverter:
    """Converts page titles to filesafe folder names.

    Conversion rules:
    - Reserved characters (< > : " / \\ | ? *) → hyphen (-)
    - Whitespace runs → single space
    - Hyphen runs → single hyphen
    - Leading/trailing hyphens and spaces → trimmed
    - Truncated to 100 characters
    - Empty results, "." and ".." → "untitled"

    Examples:
        - 'file<>:"/\\|?*name' → 'file-name'
        - 'hello   world' → 'hello world'
        - '-hello-world-' → 'hello-world'
    """

    @staticmethod
    def sanitize(name: str) -> str:
        """Convert a page title into a single filesafe path segment.

        Args:
            name: The page title

        Returns:
            A nonempty segment of at most 100 characters

        Examples:
            >>> FilesafeConverter.sanitize('file<>:"/\\\\|?*name')
            'file-name'
            >>> FilesafeConverter.sanitize('')
            'untitled'
        """
        segment = RESERVED_CHARS_RE.sub('-', name or '')
        segment = WHITESPACE_RUN_RE.sub(' ', segment)
        segment = DASH_RUN_RE.sub('-', segment)
        segment = segment.strip().strip('-').strip()
        # Truncation can expose a trailing space or hyphen
        segment = segment[:MAX_SEGMENT_LENGTH].strip().strip('-').strip()

        # A bare "." or ".." would escape the archive folder
        if not segment or not segment.strip('.'):
            return FALLBACK_SEGMENT
        return segment


def sanitize(name: str) -> str:
    """Module-level shortcut for FilesafeConverter.sanitize."""
    return FilesafeConverter.sanitize(name)
