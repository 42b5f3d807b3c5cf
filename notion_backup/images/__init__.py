"""Image download, caching, deduplication and embedding."""

from .errors import ImageError, ImageFetchError
from .html_embedder import HtmlImageEmbedder
from .image_cache import DEFAULT_TTL_SECONDS, ImageCache, ImageCacheEntry
from .image_fetcher import FETCH_TIMEOUT, FetchedImage, ImageFetcher
from .image_processor import (
    CACHE_REF_PREFIX,
    ImageDeduper,
    ProcessedImages,
    extract_image_urls,
)

__all__ = [
    'CACHE_REF_PREFIX',
    'DEFAULT_TTL_SECONDS',
    'FETCH_TIMEOUT',
    'FetchedImage',
    'HtmlImageEmbedder',
    'ImageCache',
    'ImageCacheEntry',
    'ImageDeduper',
    'ImageError',
    'ImageFetchError',
    'ImageFetcher',
    'ProcessedImages',
    'extract_image_urls',
]
