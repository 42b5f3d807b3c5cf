"""In-memory assembly of the backup ZIP archive.

Layout, for a page whose folder path is ``Home/Projects``::

    Home/
    Home/Projects/
    Home/Projects/export.md
    Home/Projects/images/
    Home/Projects/images/image-1.png
"""

import io
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from .errors import ArchiveError

logger = logging.getLogger(__name__)

PAGE_DOCUMENT = "export.md"
IMAGES_FOLDER = "images"
DEFAULT_PREFIX = "notion-backup"


@dataclass
class StagedPage:
    """One page waiting to be written into the archive."""
    folder_path: str
    markdown: str
    images: Dict[str, bytes] = field(default_factory=dict)


def backup_filename(prefix: str = DEFAULT_PREFIX, now: Optional[datetime] = None) -> str:
    """Archive file name with a UTC timestamp at second precision.

    Example:
        >>> backup_filename(now=datetime(2024, 5, 1, 12, 30, 5, tzinfo=timezone.utc))
        'notion-backup-2024-05-01T12-30-05.zip'
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return f"{prefix}-{now.strftime('%Y-%m-%dT%H-%M-%S')}.zip"


def _folder_chain(folder_path: str) -> List[str]:
    """Every folder entry needed for a path: 'a/b' -> ['a/', 'a/b/']."""
    parts = [part for part in folder_path.split('/') if part]
    return ['/'.join(parts[:depth]) + '/' for depth in range(1, len(parts) + 1)]


class ArchiveBuilder:
    """Collects converted pages and serializes them into one DEFLATE ZIP.

    Nothing touches the disk: build() returns the archive bytes and a
    failure leaves no partial artifact behind.
    """

    def __init__(self):
        self._pages: Dict[str, StagedPage] = {}

    def __len__(self) -> int:
        return len(self._pages)

    @property
    def folder_paths(self) -> List[str]:
        return list(self._pages)

    def add_page(
        self,
        folder_path: str,
        markdown: str,
        images: Optional[Mapping[str, bytes]] = None,
    ) -> None:
        """Stage a page's markdown and images under its folder path.

        Args:
            folder_path: Sanitized folder path joined with '/'
            markdown: Page document (image references already rewritten)
            images: File name → image bytes for the images/ subfolder

        Raises:
            ArchiveError: If the folder path is empty
        """
        folder_path = folder_path.strip('/')
        if not folder_path:
            raise ArchiveError("page folder path is empty")

        if folder_path in self._pages:
            logger.warning(f"Two pages share the folder '{folder_path}'; keeping the last one")

        self._pages[folder_path] = StagedPage(folder_path, markdown, dict(images or {}))

    def build(self) -> bytes:
        """Serialize every staged page into ZIP bytes.

        Raises:
            ArchiveError: If serialization fails
        """
        buffer = io.BytesIO()
        written_folders = set()

        try:
            with zipfile.ZipFile(buffer, 'w', compression=zipfile.ZIP_DEFLATED) as archive:
                for page in self._pages.values():
                    for folder in _folder_chain(page.folder_path):
                        if folder not in written_folders:
                            archive.writestr(folder, b'')
                            written_folders.add(folder)

                    archive.writestr(f"{page.folder_path}/{PAGE_DOCUMENT}", page.markdown.encode('utf-8'))

                    if page.images:
                        images_folder = f"{page.folder_path}/{IMAGES_FOLDER}/"
                        if images_folder not in written_folders:
                            archive.writestr(images_folder, b'')
                            written_folders.add(images_folder)
                        for filename, data in page.images.items():
                            archive.writestr(images_folder + filename, data)
        except (OSError, ValueError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise ArchiveError(str(e)) from e

        data = buffer.getvalue()
        logger.info(f"Built archive with {len(self._pages)} pages ({len(data)} bytes)")
        return data
