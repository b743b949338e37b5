"""Fixed capacity in-memory caches used by the reverse geocoder.

Entries are evicted least recently used first once the cache is full.
The caches are not locked themselves; the engine serializes all access.
"""
import logging
from collections import OrderedDict
from typing import Any, Hashable, Tuple


class LRUCache:
    """Bounded key/value cache with least-recently-used eviction."""
    
    def __init__(self, capacity: int, name: str = "cache"):
        """
        Initialize cache.
        
        Args:
            capacity: Maximum number of entries kept
            name: Cache name for logging
        """
        if capacity < 0:
            raise ValueError(f"Cache capacity must be non-negative: {capacity}")
        self.capacity = capacity
        self.name = name
        self.hits = 0
        self.misses = 0
        self._entries: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._logger = logging.getLogger(f"revgeo.cache.{name}")
    
    def read(self, key: Hashable) -> Tuple[bool, Any]:
        """
        Look up a key.
        
        Returns:
            Tuple of (found, value); value is None when not found
        """
        if key not in self._entries:
            self.misses += 1
            return False, None
        self._entries.move_to_end(key)
        self.hits += 1
        return True, self._entries[key]
    
    def put(self, key: Hashable, value: Any):
        """Store a value, evicting the least recently used entry if full."""
        if self.capacity == 0:
            return
        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = value
        while len(self._entries) > self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            self._logger.debug("Cache evicted entry %r", evicted)
    
    def clear(self) -> int:
        """Remove all entries; returns the number removed."""
        count = len(self._entries)
        self._entries.clear()
        if count:
            self._logger.debug("Cache %s cleared %d entries", self.name, count)
        return count
    
    def __len__(self) -> int:
        return len(self._entries)
