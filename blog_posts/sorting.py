"""
In-place quicksort for post listings.

Three orderings:
  views → most viewed first
  title → A-Z, case-insensitive
  date  → newest first, undated posts last (default for any other key)

Lomuto partition with the last element as pivot. Not stable: posts that
compare equal may come out in any order the partitioning produces.
"""
from typing import List, Optional

from .models import Post

SORT_KEYS = ("date", "views", "title")


def _normalise_key(sort_by: Optional[str]) -> str:
    key = (sort_by or "date").lower()
    return key if key in SORT_KEYS else "date"


def compare_posts(p1: Post, p2: Post, sort_by: Optional[str] = "date") -> int:
    """Negative if p1 sorts before p2, positive if after, zero if tied."""
    key = _normalise_key(sort_by)

    if key == "views":
        return p2.view_count - p1.view_count

    if key == "title":
        t1, t2 = p1.title.lower(), p2.title.lower()
        return (t1 > t2) - (t1 < t2)

    d1, d2 = p1.created_at, p2.created_at
    if d1 is None and d2 is None:
        return 0
    if d1 is None:
        return 1
    if d2 is None:
        return -1
    return (d2 > d1) - (d2 < d1)


def _partition(posts: List[Post], low: int, high: int, key: str) -> int:
    pivot = posts[high]
    i = low - 1
    for j in range(low, high):
        if compare_posts(posts[j], pivot, key) <= 0:
            i += 1
            posts[i], posts[j] = posts[j], posts[i]
    posts[i + 1], posts[high] = posts[high], posts[i + 1]
    return i + 1


def _quicksort(posts: List[Post], low: int, high: int, key: str) -> None:
    # Recurse into the smaller side and loop on the larger one: same
    # permutation as plain double recursion, stack depth stays O(log n).
    while low < high:
        pi = _partition(posts, low, high, key)
        if pi - low < high - pi:
            _quicksort(posts, low, pi - 1, key)
            low = pi + 1
        else:
            _quicksort(posts, pi + 1, high, key)
            high = pi - 1


def sort_posts(posts: List[Post], sort_by: Optional[str] = "date") -> None:
    """Sort posts in place by "date", "views" or "title"."""
    _quicksort(posts, 0, len(posts) - 1, _normalise_key(sort_by))
