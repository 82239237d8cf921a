"""In-memory TTL cache for provider responses.

The cache is an ordinary object with an explicit owner. The API application
creates one at startup (app.state.cache) and hands it to route handlers
through a FastAPI dependency, so tests can swap it out or clear it between
runs instead of sharing hidden module state.

Entries expire ttl_seconds after they were written. When the cache is full,
the oldest entry is dropped to make room for a new one.
"""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from typing import Any

logger = logging.getLogger(__name__)


class TTLCache:
    """Bounded key/value store whose entries expire after a fixed time.

    Args:
        ttl_seconds: lifetime of an entry
        max_size: maximum number of entries held at once
        clock: monotonic time source, replaceable in tests
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_size: int = 128,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_size <= 0:
            raise ValueError("max_size must be positive")

        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        # key -> (expires_at, value), oldest write first
        self._entries: OrderedDict[Hashable, tuple[float, Any]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Return the cached value, or default when missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return default

        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def set(self, key: Hashable, value: Any) -> None:
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_size:
            self.sweep_expired()
            if len(self._entries) >= self.max_size:
                oldest, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache full, evicted {oldest!r}")

        self._entries[key] = (self._clock() + self.ttl_seconds, value)

    def evict(self, key: Hashable) -> bool:
        """Remove one entry. Returns True if it was present."""
        return self._entries.pop(key, None) is not None

    def sweep_expired(self) -> int:
        """Drop every expired entry and return how many were dropped."""
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
