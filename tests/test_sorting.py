"""
Unit tests for the quicksort post ordering.
"""
import random
from datetime import datetime, timedelta

import pytest

from blog_posts.models import Post
from blog_posts.sorting import compare_posts, sort_posts


def make_post(post_id, title="Post", views=0, created_at=None) -> Post:
    return Post(post_id=post_id, user_id=1, title=title, view_count=views, created_at=created_at)


class TestCompare:
    """Comparator rules per sort key."""

    def test_views_descending(self):
        assert compare_posts(make_post(1, views=9), make_post(2, views=5), "views") < 0
        assert compare_posts(make_post(1, views=5), make_post(2, views=9), "views") > 0
        assert compare_posts(make_post(1, views=5), make_post(2, views=5), "views") == 0

    def test_title_ignores_case(self):
        assert compare_posts(make_post(1, "apple"), make_post(2, "Banana"), "title") < 0
        assert compare_posts(make_post(1, "APPLE"), make_post(2, "apple"), "title") == 0

    def test_date_nulls(self):
        dated = make_post(1, created_at=datetime(2024, 1, 1))
        undated = make_post(2)
        assert compare_posts(undated, dated, "date") > 0
        assert compare_posts(dated, undated, "date") < 0
        assert compare_posts(undated, make_post(3), "date") == 0

    def test_unknown_key_falls_back_to_date(self):
        older = make_post(1, created_at=datetime(2023, 1, 1))
        newer = make_post(2, created_at=datetime(2024, 1, 1))
        assert compare_posts(newer, older, "popularity") < 0
        assert compare_posts(newer, older, None) < 0

    def test_key_is_case_insensitive(self):
        assert compare_posts(make_post(1, views=1), make_post(2, views=2), "VIEWS") > 0


class TestSortPosts:
    """Test suite for sort_posts."""

    def test_views_non_increasing(self):
        posts = [make_post(1, views=5), make_post(2, views=9), make_post(3, views=9)]
        sort_posts(posts, "views")

        assert [p.view_count for p in posts] == [9, 9, 5]
        assert {p.post_id for p in posts[:2]} == {2, 3}

    def test_title_case_insensitive_ascending(self):
        posts = [make_post(1, "banana"), make_post(2, "Apple"), make_post(3, "cherry")]
        sort_posts(posts, "title")

        assert [p.title for p in posts] == ["Apple", "banana", "cherry"]

    @pytest.mark.parametrize("null_position", [0, 1, 2, 3])
    def test_date_puts_null_last(self, null_position):
        base = datetime(2024, 3, 1)
        posts = [make_post(i, created_at=base + timedelta(days=i)) for i in range(1, 4)]
        posts.insert(null_position, make_post(99))
        sort_posts(posts, "date")

        assert posts[-1].post_id == 99
        assert [p.post_id for p in posts[:-1]] == [3, 2, 1]

    def test_sorts_in_place_and_returns_none(self):
        posts = [make_post(1, views=1), make_post(2, views=2)]
        original = posts
        assert sort_posts(posts, "views") is None
        assert posts is original
        assert [p.post_id for p in posts] == [2, 1]

    def test_empty_and_single(self):
        empty = []
        sort_posts(empty)
        assert empty == []

        single = [make_post(1)]
        sort_posts(single, "title")
        assert [p.post_id for p in single] == [1]

    def test_already_sorted_large_input(self):
        """Presorted input is the worst case for a last-element pivot."""
        base = datetime(2020, 1, 1)
        posts = [make_post(i, created_at=base - timedelta(minutes=i)) for i in range(1500)]
        sort_posts(posts, "date")
        assert [p.post_id for p in posts] == list(range(1500))

    def test_matches_builtin_order_on_random_views(self):
        rng = random.Random(7)
        posts = [make_post(i, views=rng.randint(0, 50)) for i in range(200)]
        sort_posts(posts, "views")
        views = [p.view_count for p in posts]
        assert views == sorted(views, reverse=True)

    def test_lomuto_order_for_equal_views(self):
        """Equal keys come out in the order the partition scheme leaves them."""
        posts = [make_post(1, views=3), make_post(2, views=3), make_post(3, views=3)]
        sort_posts(posts, "views")
        # Every element is <= the pivot, so each pass leaves the range as-is.
        assert [p.post_id for p in posts] == [1, 2, 3]
