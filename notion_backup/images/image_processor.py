"""Image deduplication, download and markdown rewriting.

Two staging modes share the same fetch-and-dedupe mechanics:

- Inbound staging keeps remote images available locally: every unique
  absolute image URL of a page is downloaded once into the ImageCache and
  the markdown is pointed at the cache entry (``image-cache://<id>``).
- Backup staging packs images next to the page: every unique URL is
  downloaded, given a sequential file name (``image-1.png``...) and the
  markdown is rewritten to ``images/<file name>``.

In both modes the markdown is rewritten only after every download of the
page has settled. A failed download leaves its URL untouched.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from notion_backup.models.backup_stats import ImageStats

from .image_cache import ImageCache
from .image_fetcher import FetchedImage, ImageFetcher

logger = logging.getLogger(__name__)

IMAGE_REF_RE = re.compile(r'!\[(.*?)\]\((.*?)\)')
ABSOLUTE_URL_RE = re.compile(r'^https?://', re.IGNORECASE)

CACHE_REF_PREFIX = "image-cache://"
IMAGES_FOLDER = "images"
DEFAULT_EXTENSION = "png"

# Subtypes that do not make a usable file extension as-is
_EXTENSION_ALIASES = {
    'svg+xml': 'svg',
    'x-icon': 'ico',
    'vnd.microsoft.icon': 'ico',
}

ImageProgressCallback = Callable[[int, int], None]


@dataclass
class ProcessedImages:
    """Outcome of backup staging for one page.

    Attributes:
        markdown: Markdown with fetched image URLs rewritten to images/<file>
        images: File name → image bytes, in first-appearance order
        stats: Download counters for this page
    """
    markdown: str
    images: Dict[str, bytes] = field(default_factory=dict)
    stats: ImageStats = field(default_factory=ImageStats)


def extract_image_urls(markdown: str) -> List[str]:
    """Return the unique image URLs of a markdown text, in order of appearance."""
    seen: Dict[str, None] = {}
    for match in IMAGE_REF_RE.finditer(markdown):
        seen.setdefault(match.group(2), None)
    return list(seen)


def extension_for(content_type: str) -> str:
    """Derive a file extension from an image MIME type ('png' by default)."""
    main_type, _, subtype = (content_type or '').partition('/')
    subtype = subtype.split(';')[0].strip().lower()
    if main_type.strip().lower() != 'image' or not subtype:
        return DEFAULT_EXTENSION
    return _EXTENSION_ALIASES.get(subtype, subtype)


def cache_reference(image_id: str) -> str:
    """Markdown reference pointing at an ImageCache entry."""
    return f"{CACHE_REF_PREFIX}{image_id}"


def cache_id_from_reference(src: str) -> Optional[str]:
    """Return the cache id of an image-cache:// reference, else None."""
    if src.startswith(CACHE_REF_PREFIX):
        return src[len(CACHE_REF_PREFIX):] or None
    return None


class ImageDeduper:
    """Downloads each unique image of a page once and rewrites the markdown.

    Downloads for one page run concurrently without a cap; pages are
    expected to hold a modest number of images.

    Example:
        >>> deduper = ImageDeduper(ImageFetcher(), ImageCache())
        >>> processed = deduper.process_for_backup(result.markdown)
        >>> processed.images.keys()
        dict_keys(['image-1.png', 'image-2.jpeg'])
    """

    def __init__(self, fetcher: ImageFetcher, cache: Optional[ImageCache] = None):
        """Initialize the deduper.

        Args:
            fetcher: Downloader used for every image
            cache: Image cache used by inbound staging
        """
        self.fetcher = fetcher
        self.cache = cache if cache is not None else ImageCache()

    def _fetch_all(
        self,
        urls: List[str],
        on_progress: Optional[ImageProgressCallback] = None,
    ) -> Dict[str, Optional[FetchedImage]]:
        """Fetch every URL concurrently; failed fetches map to None.

        on_progress(processed, total) is called after each fetch settles.
        """
        fetched: Dict[str, Optional[FetchedImage]] = {}
        if not urls:
            return fetched

        with ThreadPoolExecutor(max_workers=len(urls)) as executor:
            futures = {executor.submit(self.fetcher.fetch, url): url for url in urls}

            for processed, future in enumerate(as_completed(futures), 1):
                url = futures[future]
                try:
                    fetched[url] = future.result()
                except Exception as e:
                    logger.warning(f"Failed to download image {url}: {e}")
                    fetched[url] = None

                if on_progress is not None:
                    on_progress(processed, len(urls))

        return fetched

    def stage_inbound(self, markdown: str) -> str:
        """Copy a page's remote images into the cache and point the markdown at them.

        Only absolute http(s) URLs are staged. Each unique URL is fetched
        once however many times it appears.

        Args:
            markdown: Markdown as returned by the exporter

        Returns:
            Markdown whose staged images reference image-cache://<id>
        """
        urls = [url for url in extract_image_urls(markdown) if ABSOLUTE_URL_RE.match(url)]
        if not urls:
            return markdown

        url_to_id: Dict[str, str] = {}
        for url, image in self._fetch_all(urls).items():
            if image is not None:
                url_to_id[url] = self.cache.put(image.data, image.content_type)

        logger.info(f"Staged {len(url_to_id)}/{len(urls)} images into the cache")

        def _rewrite(match: 're.Match') -> str:
            image_id = url_to_id.get(match.group(2))
            if image_id is None:
                return match.group(0)
            return f"![{match.group(1)}]({cache_reference(image_id)})"

        return IMAGE_REF_RE.sub(_rewrite, markdown)

    def process_for_backup(
        self,
        markdown: str,
        on_progress: Optional[ImageProgressCallback] = None,
    ) -> ProcessedImages:
        """Download a page's images and rewrite them to local archive paths.

        Args:
            markdown: Page markdown
            on_progress: Called with (processed, total) after each download

        Returns:
            ProcessedImages with the rewritten markdown, the image files and
            the counters for this page
        """
        urls = extract_image_urls(markdown)
        if not urls:
            return ProcessedImages(markdown=markdown)

        base_names = {url: f"image-{index}" for index, url in enumerate(urls, 1)}
        fetched = self._fetch_all(urls, on_progress)

        images: Dict[str, bytes] = {}
        url_to_local: Dict[str, str] = {}
        failed = 0
        for url in urls:
            image = fetched.get(url)
            if image is None:
                failed += 1
                continue
            filename = f"{base_names[url]}.{extension_for(image.content_type)}"
            images[filename] = image.data
            url_to_local[url] = f"{IMAGES_FOLDER}/{filename}"

        # Every download has settled: rewrite each image reference by exact URL
        def _rewrite(match: 're.Match') -> str:
            local_path = url_to_local.get(match.group(2))
            if local_path is None:
                return match.group(0)
            return f"![{match.group(1)}]({local_path})"

        rewritten = IMAGE_REF_RE.sub(_rewrite, markdown)

        stats = ImageStats(total=len(urls), downloaded=len(images), failed=failed)
        logger.debug(f"Processed images: {stats.downloaded} downloaded, {stats.failed} failed")
        return ProcessedImages(markdown=rewritten, images=images, stats=stats)
