"""
Simple in-memory cache with TTL support for memoized cell aggregates.
"""
import time
from typing import Optional, Any, Dict, Tuple


class MemoryCache:
    """
    An in-memory cache with a time-to-live (TTL) and a size bound.

    Each controller owns its own instance; nothing is shared between
    controllers.
    """

    def __init__(self, ttl: int = 300, max_size: int = 10000):
        """
        Initialize the cache.

        Args:
            ttl: Default time-to-live for cache entries in seconds.
            max_size: Number of entries kept before expired and then oldest
                entries are evicted.
        """
        self._cache: Dict[str, Tuple[Any, float]] = {}
        self.default_ttl = ttl
        self.max_size = max_size
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        """
        Retrieve an item from the cache.

        Args:
            key: The key of the item to retrieve.

        Returns:
            The cached item, or None if the item is not found or expired.
        """
        if key not in self._cache:
            self.misses += 1
            return None

        value, expiry = self._cache[key]

        if time.time() > expiry:
            # Entry has expired
            del self._cache[key]
            self.misses += 1
            return None

        self.hits += 1
        return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None):
        """
        Add an item to the cache.

        Args:
            key: The key of the item to add.
            value: The item to add to the cache.
            ttl: Time-to-live for this specific entry. If None, use default.
        """
        if key not in self._cache and len(self._cache) >= self.max_size:
            self.purge_expired()
            # Still full: drop the oldest insertions
            while len(self._cache) >= self.max_size:
                del self._cache[next(iter(self._cache))]

        ttl_to_use = ttl if ttl is not None else self.default_ttl
        self._cache[key] = (value, time.time() + ttl_to_use)

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = time.time()
        expired = [k for k, (_, expiry) in self._cache.items() if now > expiry]
        for k in expired:
            del self._cache[k]
        return len(expired)

    def clear(self):
        """Clear all items from the cache."""
        self._cache.clear()

    def delete(self, key: str):
        """Delete a specific key from the cache."""
        self._cache.pop(key, None)

    def __len__(self) -> int:
        return len(self._cache)
