"""
PostAccessService: single entry point for reading and changing blog posts.

Single-post reads go through a TTL cache owned by the service:
  get_post()              → Post | None   (read-through, counts hits/misses)
  update_post()           → bool          (invalidates the cached entry)
  delete_post()           → bool          (invalidates the cached entry)
  increment_view_count()  → None          (bumps a cached entry in place)

Listings, search and sorting always go to storage:
  get_posts_page(), search_posts(), get_sorted_posts(), get_posts_by_tag(), ...

Storage errors are never caught here; the cache is a latency optimisation,
not a resilience layer.
"""
import dataclasses
import logging
import threading
import time
from typing import Callable, List, Optional

from .cache import PostCache
from .config import CACHE_TTL_MS, DEFAULT_PAGE_SIZE
from .models import CacheStats, Post, Tag
from .sorting import sort_posts
from .storage import PostStorage

logger = logging.getLogger(__name__)


class PostAccessService:
    """
    Post reads and writes with a consistent post cache.

    Instantiate once per storage backend and share the instance.
    One lock guards the cache and the hit/miss counters for the duration
    of each operation.
    """

    def __init__(
        self,
        storage: PostStorage,
        ttl_ms: int = CACHE_TTL_MS,
        clock: Optional[Callable[[], float]] = None,
        cache: Optional[PostCache] = None,
    ):
        self._storage = storage
        self._cache = cache if cache is not None else PostCache(ttl_ms=ttl_ms, clock=clock)
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    # ------------------------------------------------------------------
    # Cached single-post access
    # ------------------------------------------------------------------

    def get_post(self, post_id: int) -> Optional[Post]:
        """
        Return the post, from cache when a valid entry exists.
        None when storage has no such post.
        """
        with self._lock:
            cached = self._cache.get(post_id)
            if cached is not None:
                self._hits += 1
                logger.debug(f"Cache hit for post {post_id}")
                return cached

            self._misses += 1
            logger.debug(f"Cache miss for post {post_id}")
            post = self._storage.load_post_by_id(post_id)
            if post is not None:
                self._cache.put(post_id, post)
            return post

    def create_post(self, post: Post, tag_names: Optional[List[str]] = None) -> Post:
        """
        Create a post and attach tags, creating unknown tags on the way.
        The new post is not cached until first read.
        """
        created = self._storage.create_post(post)

        tag_names = tag_names or []
        for name in tag_names:
            tag = self._storage.find_tag_by_name(name)
            if tag is None:
                tag = self._storage.create_tag(name)
            self._storage.add_tag_to_post(created.post_id, tag.tag_id)

        logger.info(f"Created post {created.post_id} with {len(tag_names)} tags")
        return created

    def update_post(self, post: Post) -> bool:
        """Update storage, then drop the cached copy so the next read reloads it."""
        updated = self._storage.update_post(post)
        if updated:
            with self._lock:
                self._cache.remove(post.post_id)
        return updated

    def delete_post(self, post_id: int) -> bool:
        deleted = self._storage.delete_post(post_id)
        if deleted:
            with self._lock:
                self._cache.remove(post_id)
        return deleted

    def increment_view_count(self, post_id: int) -> None:
        """
        Count a view in storage. A cached copy, if one is held, gets the same
        +1 and a fresh TTL window instead of being reloaded. Posts that are
        not cached stay uncached.
        """
        self._storage.increment_view_count(post_id)

        with self._lock:
            cached = self._cache.peek(post_id)
            if cached is None:
                return
            bumped = dataclasses.replace(cached, view_count=cached.view_count + 1)
            self._cache.touch(post_id, bumped)
            logger.debug(f"Refreshed cached post {post_id} (views: {bumped.view_count})")

    # ------------------------------------------------------------------
    # Uncached listings
    # ------------------------------------------------------------------

    def get_posts_page(self, page: int, page_size: int = DEFAULT_PAGE_SIZE) -> List[Post]:
        """1-based page of posts, newest first."""
        if page < 1:
            raise ValueError(f"Page must be 1 or greater, got {page}")
        if page_size < 0:
            raise ValueError(f"Page size must be non-negative, got {page_size}")
        offset = (page - 1) * page_size
        return self._storage.load_posts_page(page_size, offset)

    def search_posts(self, keyword: str) -> List[Post]:
        start = time.perf_counter()
        results = self._storage.search_posts(keyword)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"Search for '{keyword}' returned {len(results)} results in {elapsed_ms:.1f}ms")
        return results

    def get_sorted_posts(self, limit: int, sort_by: str = "date") -> List[Post]:
        """
        Load up to limit posts and quicksort them.

        Args:
            limit:   Maximum posts to load (0 gives an empty list)
            sort_by: "date" (newest first), "views" (most first) or
                     "title" (A-Z, case-insensitive); unknown keys sort by date
        """
        posts = self._storage.load_posts_page(limit, 0)

        start = time.perf_counter()
        sort_posts(posts, sort_by)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"Sorted {len(posts)} posts by {sort_by} in {elapsed_ms:.1f}ms")
        return posts

    def get_posts_by_tag(self, tag_name: str) -> List[Post]:
        tag = self._storage.find_tag_by_name(tag_name)
        if tag is None:
            return []
        return self._storage.load_posts_by_tag(tag.tag_id)

    def get_posts_by_author(self, user_id: int) -> List[Post]:
        return self._storage.load_posts_by_author(user_id)

    def get_most_viewed_posts(self, limit: int) -> List[Post]:
        return self._storage.load_most_viewed(limit)

    def get_post_tags(self, post_id: int) -> List[Tag]:
        return self._storage.load_tags_for_post(post_id)

    def get_total_post_count(self) -> int:
        return self._storage.get_total_count()

    # ------------------------------------------------------------------
    # Cache maintenance and statistics
    # ------------------------------------------------------------------

    def get_cache_stats(self) -> CacheStats:
        """Cache size plus cumulative hits, misses and hit rate."""
        with self._lock:
            total = self._hits + self._misses
            hit_rate = self._hits / total * 100 if total > 0 else 0.0
            return CacheStats(
                size=self._cache.size(),
                hits=self._hits,
                misses=self._misses,
                hit_rate=f"{hit_rate:.2f}%",
            )

    def clear_cache(self) -> None:
        """Force-clear the cache; hit/miss counters are kept."""
        with self._lock:
            self._cache.clear()
        logger.info("PostAccessService: cache cleared.")

    def purge_expired_cache(self) -> int:
        """Drop expired entries to free memory; reads behave the same either way."""
        with self._lock:
            purged = self._cache.purge_expired()
        if purged:
            logger.info(f"PostAccessService: purged {purged} expired cache entries.")
        return purged
