"""
Caching Module

In-memory TTL cache with LRU eviction. It backs the teacher session store:
a session lives until logout, until its TTL lapses, or until it is the
least recently used entry of a full store.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar


T = TypeVar('T')


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with TTL support."""
    value: T
    expires_at: float
    
    def is_expired(self) -> bool:
        """Check if the entry has expired."""
        return time.time() > self.expires_at


class TTLCache(Generic[T]):
    """
    TTL cache with LRU eviction.
    
    Features:
    - Time-based expiration
    - Maximum size limit with LRU eviction
    - Eviction callback, so owners can release resources held by a value
    - Cache statistics for monitoring
    """
    
    def __init__(
        self, 
        max_size: int = 1000, 
        default_ttl: int = 3600,
        on_evict: Optional[Callable[[str, T], None]] = None,
    ):
        """
        Initialize the cache.
        
        Args:
            max_size: Maximum number of entries.
            default_ttl: Default time-to-live in seconds.
            on_evict: Called with (key, value) when an entry expires or is
                pushed out by capacity. Not called for explicit deletes.
        """
        self._cache: OrderedDict[str, CacheEntry[T]] = OrderedDict()
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._on_evict = on_evict
        self._hits = 0
        self._misses = 0
    
    def _evict(self, key: str, entry: CacheEntry[T]) -> None:
        if self._on_evict is not None:
            self._on_evict(key, entry.value)
    
    def get(self, key: str) -> Optional[T]:
        """
        Get a value from the cache.
        
        Args:
            key: Cache key.
            
        Returns:
            Cached value or None if not found/expired.
        """
        entry = self._cache.get(key)
        
        if entry is None:
            self._misses += 1
            return None
        
        if entry.is_expired():
            del self._cache[key]
            self._evict(key, entry)
            self._misses += 1
            return None
        
        # Move to end (most recently used)
        self._cache.move_to_end(key)
        self._hits += 1
        return entry.value
    
    def set(self, key: str, value: T, ttl: Optional[int] = None) -> None:
        """
        Set a value in the cache.
        
        Args:
            key: Cache key.
            value: Value to cache.
            ttl: Optional TTL override in seconds.
        """
        ttl = ttl or self._default_ttl
        expires_at = time.time() + ttl
        
        self._cache.pop(key, None)
        
        # Remove oldest entries if at capacity
        while len(self._cache) >= self._max_size:
            old_key, old_entry = self._cache.popitem(last=False)
            self._evict(old_key, old_entry)
        
        self._cache[key] = CacheEntry(value=value, expires_at=expires_at)
    
    def pop(self, key: str) -> Optional[T]:
        """
        Remove a key and return its value without firing the eviction callback.
        
        Args:
            key: Cache key.
            
        Returns:
            The stored value, or None if not found.
        """
        entry = self._cache.pop(key, None)
        return entry.value if entry is not None else None
    
    def purge_expired(self) -> int:
        """
        Evict every expired entry, firing the eviction callback for each.

        Returns:
            Number of entries evicted.
        """
        expired = [(key, entry) for key, entry in self._cache.items() if entry.is_expired()]
        for key, entry in expired:
            del self._cache[key]
            self._evict(key, entry)
        return len(expired)

    def drain(self) -> List[T]:
        """Remove every entry and return the values that were stored."""
        values = [entry.value for entry in self._cache.values()]
        self._cache.clear()
        return values
    
    def __len__(self) -> int:
        return len(self._cache)
    
    def stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.
        
        Returns:
            Dict with hit/miss counts and hit rate.
        """
        total = self._hits + self._misses
        hit_rate = (self._hits / total * 100) if total > 0 else 0.0
        return {
            "size": len(self._cache),
            "max_size": self._max_size,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate_percent": round(hit_rate, 2),
        }
