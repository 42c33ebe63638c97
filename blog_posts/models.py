"""
Data models for the Post Access Service.
Pure Python dataclasses, no storage or UI dependencies.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Post:
    """
    One blog post as returned by storage.
    post_id is None until storage assigns it on creation.
    Edits go through dataclasses.replace, never in-place mutation.
    """
    user_id: int
    title: str
    content: str = ""
    post_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    view_count: int = 0
    author_name: Optional[str] = None  # joined from Users, read-only

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise ValueError("Post title must not be empty")
        if self.view_count < 0:
            raise ValueError(f"View count must be non-negative, got {self.view_count}")


@dataclass(frozen=True)
class Tag:
    """Tag attached to posts; names are stored lower-cased."""
    name: str
    tag_id: Optional[int] = None


@dataclass
class CacheStats:
    """Snapshot of post cache effectiveness."""
    size: int
    hits: int
    misses: int
    hit_rate: str              # e.g. "66.67%"

    def to_dict(self) -> dict:
        return {
            "cache_size": self.size,
            "cache_hits": self.hits,
            "cache_misses": self.misses,
            "hit_rate": self.hit_rate,
        }
