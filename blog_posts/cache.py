"""
TTL-based in-memory post cache.
Pure stdlib. Entries expire lazily on read; there is no sweeper thread.
"""
import time
from typing import Callable, Dict, Optional, Tuple

from .models import Post


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class PostCache:
    """
    Post records keyed by post_id, each stamped with its insertion time.

    An entry is valid while now - stamp < ttl_ms. Expired entries read as
    absent but stay held until overwritten, removed or purged.
    Not thread-safe on its own; PostAccessService serializes access.
    """

    def __init__(self, ttl_ms: int = 300000, clock: Optional[Callable[[], float]] = None):
        self._ttl_ms = ttl_ms
        self._clock = clock or _monotonic_ms
        self._store: Dict[int, Tuple[Post, float]] = {}

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def _is_valid(self, stamp: float) -> bool:
        return self._clock() - stamp < self._ttl_ms

    def get(self, post_id: int) -> Optional[Post]:
        """Return cached post if still within TTL, else None."""
        entry = self._store.get(post_id)
        if entry is None:
            return None
        post, stamp = entry
        if self._is_valid(stamp):
            return post
        return None

    def peek(self, post_id: int) -> Optional[Post]:
        """Return the held post whether or not it has expired."""
        entry = self._store.get(post_id)
        return entry[0] if entry is not None else None

    def put(self, post_id: int, post: Post) -> None:
        """Store post with current timestamp."""
        self._store[post_id] = (post, self._clock())

    def touch(self, post_id: int, post: Post) -> bool:
        """
        Replace the post held under an existing key and restart its TTL window.
        Returns False without inserting when the key is not held.
        """
        if post_id not in self._store:
            return False
        self._store[post_id] = (post, self._clock())
        return True

    def remove(self, post_id: int) -> None:
        """Invalidate a single cache entry."""
        self._store.pop(post_id, None)

    def clear(self) -> None:
        """Invalidate all cached entries."""
        self._store.clear()

    def purge_expired(self) -> int:
        """Drop expired entries; returns how many were dropped."""
        expired = [pid for pid, (_, stamp) in self._store.items() if not self._is_valid(stamp)]
        for pid in expired:
            del self._store[pid]
        return len(expired)

    def size(self) -> int:
        """Entries held, valid or expired."""
        return len(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, post_id: int) -> bool:
        return post_id in self._store
