"""Outbound image downloads through an optional forward proxy."""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from .errors import ImageFetchError

logger = logging.getLogger(__name__)

# Seconds before an image download is abandoned
FETCH_TIMEOUT = 30
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class FetchedImage:
    """Downloaded image bytes with the MIME type (parameters stripped)."""
    data: bytes
    content_type: str


class ImageFetcher:
    """Downloads images, optionally through a forward proxy.

    Example:
        >>> fetcher = ImageFetcher(proxy_url="http://proxy:3128")
        >>> image = fetcher.fetch("https://example.com/a.png")
    """

    def __init__(
        self,
        proxy_url: Optional[str] = None,
        timeout: float = FETCH_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the fetcher.

        Args:
            proxy_url: Forward proxy for every download
            timeout: Per-download timeout in seconds
            session: Optional preconfigured requests session
        """
        self.timeout = timeout
        self._session = session or requests.Session()
        if proxy_url:
            self._session.proxies.update({'http': proxy_url, 'https': proxy_url})

    def fetch(self, url: str) -> FetchedImage:
        """Download one image.

        Args:
            url: Absolute http(s) URL

        Returns:
            FetchedImage with the body and content type

        Raises:
            ImageFetchError: On transport errors, timeouts and non-2xx answers
        """
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise ImageFetchError(url, str(e)) from e

        if not response.ok:
            raise ImageFetchError(
                url,
                f"HTTP {response.status_code} {response.reason or ''}".strip(),
                status_code=response.status_code,
            )

        content_type = response.headers.get('Content-Type') or DEFAULT_CONTENT_TYPE
        content_type = content_type.split(';')[0].strip() or DEFAULT_CONTENT_TYPE
        return FetchedImage(data=response.content, content_type=content_type)
