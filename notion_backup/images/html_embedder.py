"""Inline the images of a standalone HTML document as data URIs."""

import base64
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from .image_cache import ImageCache
from .image_fetcher import ImageFetcher
from .image_processor import ABSOLUTE_URL_RE, cache_id_from_reference

logger = logging.getLogger(__name__)

EMBED_CONCURRENCY = 4

# Sources that already point at something local or inline
SKIPPED_PREFIXES = ("data:", "blob:", "images/", "./", "../")


def should_skip(src: str) -> bool:
    """True when an <img> source must be left as-is."""
    return not src or src.startswith(SKIPPED_PREFIXES)


class HtmlImageEmbedder:
    """Makes an HTML document self-contained by embedding its images.

    Cached references (image-cache://<id>) are resolved from the
    ImageCache; remote http(s) sources are downloaded, at most four at a
    time. Anything that cannot be resolved keeps its original src.
    """

    def __init__(
        self,
        fetcher: ImageFetcher,
        cache: Optional[ImageCache] = None,
        concurrency: int = EMBED_CONCURRENCY,
    ):
        self.fetcher = fetcher
        self.cache = cache if cache is not None else ImageCache()
        self.concurrency = concurrency

    def _fetch_data_uri(self, src: str) -> Optional[str]:
        try:
            image = self.fetcher.fetch(src)
        except Exception as e:
            logger.warning(f"Could not embed image {src}: {e}")
            return None
        encoded = base64.b64encode(image.data).decode('ascii')
        return f"data:{image.content_type};base64,{encoded}"

    def _resolve(self, sources: List[str]) -> Dict[str, str]:
        resolved: Dict[str, str] = {}
        remote: List[str] = []

        for src in sources:
            if should_skip(src):
                continue
            image_id = cache_id_from_reference(src)
            if image_id is not None:
                data_uri = self.cache.get_as_data_uri(image_id)
                if data_uri is None:
                    logger.warning(f"Cached image {image_id} is missing or expired")
                else:
                    resolved[src] = data_uri
            elif ABSOLUTE_URL_RE.match(src):
                remote.append(src)
            else:
                logger.debug(f"Skipping image with unsupported source: {src}")

        if remote:
            with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
                for src, data_uri in zip(remote, executor.map(self._fetch_data_uri, remote)):
                    if data_uri is not None:
                        resolved[src] = data_uri

        return resolved

    def embed(self, html: str) -> str:
        """Return the document with every resolvable <img> inlined.

        Args:
            html: Standalone HTML document or fragment

        Returns:
            The document with resolved sources replaced by data URIs; the
            input unchanged when nothing could be embedded
        """
        soup = BeautifulSoup(html, "html.parser")
        tags = [tag for tag in soup.find_all('img') if tag.get('src')]

        unique_sources = list(dict.fromkeys(tag['src'] for tag in tags))
        if not unique_sources:
            return html

        resolved = self._resolve(unique_sources)
        if not resolved:
            return html

        for tag in tags:
            data_uri = resolved.get(tag['src'])
            if data_uri is not None:
                tag['src'] = data_uri

        logger.info(f"Embedded {len(resolved)}/{len(unique_sources)} images")
        return str(soup)
