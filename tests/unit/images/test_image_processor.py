"""Unit tests for images.image_processor module."""

import re

import pytest
from unittest.mock import Mock

from notion_backup.images.errors import ImageFetchError
from notion_backup.images.image_cache import ImageCache
from notion_backup.images.image_fetcher import FetchedImage
from notion_backup.images.image_processor import (
    ImageDeduper,
    extension_for,
    extract_image_urls,
)

PNG_URL = "https://files.example.com/one.png?sig=abc"
JPEG_URL = "https://files.example.com/two.jpg"
BROKEN_URL = "https://files.example.com/gone.gif"


def _fetcher(images):
    """Fetcher mock serving a {url: FetchedImage} map; other URLs fail."""
    def fetch(url):
        if url not in images:
            raise ImageFetchError(url, "HTTP 404 Not Found", status_code=404)
        return images[url]

    fetcher = Mock()
    fetcher.fetch.side_effect = fetch
    return fetcher


@pytest.fixture
def fetcher():
    return _fetcher({
        PNG_URL: FetchedImage(b"png-bytes", "image/png"),
        JPEG_URL: FetchedImage(b"jpeg-bytes", "image/jpeg"),
    })


class TestHelpers:
    """Test cases for URL extraction and extensions."""

    def test_extract_unique_urls_in_order(self):
        markdown = f"![a]({JPEG_URL})\n![b]({PNG_URL})\n![c]({JPEG_URL})"

        assert extract_image_urls(markdown) == [JPEG_URL, PNG_URL]

    @pytest.mark.parametrize("content_type, extension", [
        ("image/png", "png"),
        ("image/jpeg", "jpeg"),
        ("image/svg+xml", "svg"),
        ("image/webp; q=1", "webp"),
        ("application/octet-stream", "png"),
        ("", "png"),
    ])
    def test_extension_for(self, content_type, extension):
        assert extension_for(content_type) == extension


class TestProcessForBackup:
    """Test cases for ImageDeduper.process_for_backup."""

    def test_repeated_url_rewritten_to_same_path(self, fetcher):
        markdown = f"![first]({PNG_URL})\n\nText\n\n![again]({PNG_URL})\n![jpg]({JPEG_URL})"

        processed = ImageDeduper(fetcher).process_for_backup(markdown)

        assert processed.markdown == (
            "![first](images/image-1.png)\n\nText\n\n"
            "![again](images/image-1.png)\n![jpg](images/image-2.jpeg)"
        )
        assert list(processed.images) == ["image-1.png", "image-2.jpeg"]
        assert processed.images["image-2.jpeg"] == b"jpeg-bytes"
        assert fetcher.fetch.call_count == 2

    def test_url_that_prefixes_another_url(self):
        short_url = "https://x.test/a.png"
        long_url = "https://x.test/a.png?v=2"
        fetcher = _fetcher({
            short_url: FetchedImage(b"one", "image/png"),
            long_url: FetchedImage(b"two", "image/png"),
        })
        markdown = f"![1]({short_url}) ![2]({long_url})"

        processed = ImageDeduper(fetcher).process_for_backup(markdown)

        assert processed.markdown == "![1](images/image-1.png) ![2](images/image-2.png)"
        assert processed.images == {"image-1.png": b"one", "image-2.png": b"two"}

    def test_failed_fetch_leaves_only_that_url(self, fetcher):
        markdown = f"![ok]({PNG_URL}) ![broken]({BROKEN_URL})"

        processed = ImageDeduper(fetcher).process_for_backup(markdown)

        assert processed.markdown == f"![ok](images/image-1.png) ![broken]({BROKEN_URL})"
        assert list(processed.images) == ["image-1.png"]
        assert processed.stats.total == 2
        assert processed.stats.downloaded == 1
        assert processed.stats.failed == 1

    def test_progress_reported_per_settled_fetch(self, fetcher):
        calls = []
        markdown = f"![a]({PNG_URL}) ![b]({JPEG_URL}) ![c]({BROKEN_URL})"

        ImageDeduper(fetcher).process_for_backup(markdown, on_progress=lambda p, t: calls.append((p, t)))

        assert calls == [(1, 3), (2, 3), (3, 3)]

    def test_markdown_without_images(self, fetcher):
        processed = ImageDeduper(fetcher).process_for_backup("# Just text")

        assert processed.markdown == "# Just text"
        assert processed.images == {}
        assert processed.stats.total == 0
        fetcher.fetch.assert_not_called()


class TestStageInbound:
    """Test cases for ImageDeduper.stage_inbound."""

    def test_remote_images_point_at_cache(self, fetcher):
        cache = ImageCache()
        markdown = f"![a]({PNG_URL}) and ![b]({PNG_URL})"

        staged = ImageDeduper(fetcher, cache).stage_inbound(markdown)

        refs = re.findall(r'\]\((image-cache://[0-9a-f]+)\)', staged)
        assert len(refs) == 2
        assert refs[0] == refs[1]
        image_id = refs[0][len("image-cache://"):]
        assert cache.get(image_id).data == b"png-bytes"
        fetcher.fetch.assert_called_once_with(PNG_URL)

    def test_relative_and_failed_images_untouched(self, fetcher):
        markdown = f"![local](images/x.png) ![gone]({BROKEN_URL})"

        staged = ImageDeduper(fetcher, ImageCache()).stage_inbound(markdown)

        assert staged == markdown
        fetcher.fetch.assert_called_once_with(BROKEN_URL)
