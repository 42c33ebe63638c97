"""
Blog Post Access Service.

Usage:
    from blog_posts import PostAccessService
    from post_workbook import PostWorkbook

    service = PostAccessService(PostWorkbook())

    # Cached single-post reads
    post = service.get_post(42)
    service.increment_view_count(42)

    # Listings straight from storage
    page = service.get_posts_page(1, page_size=10)
    newest = service.get_sorted_posts(50, sort_by="date")

    # Cache effectiveness
    stats = service.get_cache_stats()
"""
from .models import CacheStats, Post, Tag
from .service import PostAccessService
from .storage import PostStorage, StorageError

__all__ = ["PostAccessService", "Post", "Tag", "CacheStats", "PostStorage", "StorageError"]
