"""
Storage boundary for the Post Access Service.

Any backend that provides these methods can sit under PostAccessService;
post_workbook.PostWorkbook is the bundled one.
"""
from typing import List, Optional, Protocol

from .models import Post, Tag


class StorageError(Exception):
    """Raised by storage backends when a read or write cannot be completed."""
    pass


class PostStorage(Protocol):
    """Canonical post records. Missing rows come back as None, not errors."""

    def load_post_by_id(self, post_id: int) -> Optional[Post]: ...

    def load_posts_page(self, limit: int, offset: int) -> List[Post]:
        """Newest first."""
        ...

    def search_posts(self, keyword: str) -> List[Post]:
        """Case-insensitive substring match on title or content."""
        ...

    def create_post(self, post: Post) -> Post:
        """Returns the post with post_id, timestamps and view_count populated."""
        ...

    def update_post(self, post: Post) -> bool: ...

    def delete_post(self, post_id: int) -> bool:
        """Removes the post with its tag links and comments, all or nothing."""
        ...

    def increment_view_count(self, post_id: int) -> None: ...

    def get_total_count(self) -> int: ...

    def load_most_viewed(self, limit: int) -> List[Post]: ...

    def load_posts_by_author(self, user_id: int) -> List[Post]: ...

    def load_posts_by_tag(self, tag_id: int) -> List[Post]: ...

    def load_tags_for_post(self, post_id: int) -> List[Tag]: ...

    def find_tag_by_name(self, name: str) -> Optional[Tag]: ...

    def create_tag(self, name: str) -> Tag: ...

    def add_tag_to_post(self, post_id: int, tag_id: int) -> bool: ...
