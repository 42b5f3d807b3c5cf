"""In-memory image cache with lazy time-based expiry.

Images downloaded while staging markdown are kept here under freshly
generated ids so later exports (standalone HTML) can embed them without
downloading again. Entries expire after a fixed TTL and are evicted the
first time they are looked up past expiry.
"""

import base64
import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

# One hour
DEFAULT_TTL_SECONDS = 60 * 60


@dataclass(frozen=True)
class ImageCacheEntry:
    """One cached image.

    Attributes:
        data: Raw image bytes
        content_type: MIME type reported by the server
        expires_at: Epoch seconds after which the entry is stale
    """
    data: bytes
    content_type: str
    expires_at: float


class ImageCache:
    """Process-wide image store owned by whoever creates it.

    Writers never collide because every put() generates a new id; the lock
    only guards the dictionary itself.

    Example:
        >>> cache = ImageCache()
        >>> image_id = cache.put(b"...", "image/png")
        >>> cache.get(image_id).content_type
        'image/png'
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize an empty cache.

        Args:
            ttl_seconds: Lifetime of each entry
            clock: Time source returning epoch seconds
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, ImageCacheEntry] = {}
        self._lock = threading.Lock()

    def put(self, data: bytes, content_type: str) -> str:
        """Store an image and return its new id."""
        image_id = uuid.uuid4().hex
        entry = ImageCacheEntry(
            data=data,
            content_type=content_type,
            expires_at=self._clock() + self.ttl_seconds,
        )
        with self._lock:
            self._entries[image_id] = entry
        logger.debug(f"Cached image {image_id} ({content_type}, {len(data)} bytes)")
        return image_id

    def get(self, image_id: str) -> Optional[ImageCacheEntry]:
        """Look up an image; stale entries are evicted and reported as a miss."""
        with self._lock:
            entry = self._entries.get(image_id)
            if entry is None:
                return None
            if entry.expires_at > self._clock():
                return entry
            del self._entries[image_id]

        logger.debug(f"Image {image_id} expired, evicted")
        return None

    def get_as_data_uri(self, image_id: str) -> Optional[str]:
        """Return the cached image as a base64 data URI, or None on a miss."""
        entry = self.get(image_id)
        if entry is None:
            return None
        encoded = base64.b64encode(entry.data).decode('ascii')
        return f"data:{entry.content_type};base64,{encoded}"

    def purge_expired(self) -> int:
        """Drop every stale entry; returns the number of entries removed."""
        now = self._clock()
        with self._lock:
            stale = [key for key, entry in self._entries.items() if entry.expires_at <= now]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, image_id: str) -> bool:
        return self.get(image_id) is not None
