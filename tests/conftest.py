"""
Pytest configuration and fixtures.
"""
from dataclasses import replace
from datetime import datetime

import pytest

from blog_posts.models import Post, Tag
from blog_posts.service import PostAccessService


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float):
        self.now += ms


class FakePostStorage:
    """Dict-backed stand-in for the storage collaborator that counts reads."""

    def __init__(self):
        self.posts = {}
        self.tags = {}
        self.post_tags = set()
        self.load_calls = 0
        self.increment_calls = 0
        self._next_post_id = 1

    def seed(self, **fields) -> Post:
        post_id = fields.pop("post_id", self._next_post_id)
        self._next_post_id = max(self._next_post_id, post_id + 1)
        fields.setdefault("user_id", 1)
        fields.setdefault("title", f"Post {post_id}")
        fields.setdefault("created_at", datetime(2024, 1, post_id % 28 + 1))
        post = Post(post_id=post_id, **fields)
        self.posts[post_id] = post
        return post

    def load_post_by_id(self, post_id):
        self.load_calls += 1
        return self.posts.get(post_id)

    def load_posts_page(self, limit, offset):
        ordered = sorted(self.posts.values(), key=lambda p: p.created_at or datetime.min, reverse=True)
        return ordered[offset:offset + limit]

    def search_posts(self, keyword):
        needle = keyword.lower().strip()
        return [p for p in self.posts.values() if needle in p.title.lower() or needle in p.content.lower()]

    def create_post(self, post):
        created = replace(post, post_id=self._next_post_id, created_at=datetime(2024, 6, 1),
                          updated_at=datetime(2024, 6, 1), view_count=0)
        self.posts[created.post_id] = created
        self._next_post_id += 1
        return created

    def update_post(self, post):
        if post.post_id not in self.posts:
            return False
        self.posts[post.post_id] = post
        return True

    def delete_post(self, post_id):
        if post_id not in self.posts:
            return False
        del self.posts[post_id]
        self.post_tags = {(pid, tid) for pid, tid in self.post_tags if pid != post_id}
        return True

    def increment_view_count(self, post_id):
        self.increment_calls += 1
        post = self.posts.get(post_id)
        if post is not None:
            self.posts[post_id] = replace(post, view_count=post.view_count + 1)

    def get_total_count(self):
        return len(self.posts)

    def load_most_viewed(self, limit):
        return sorted(self.posts.values(), key=lambda p: p.view_count, reverse=True)[:limit]

    def load_posts_by_author(self, user_id):
        return [p for p in self.posts.values() if p.user_id == user_id]

    def load_posts_by_tag(self, tag_id):
        return [self.posts[pid] for pid, tid in sorted(self.post_tags) if tid == tag_id]

    def load_tags_for_post(self, post_id):
        return sorted((t for t in self.tags.values() if (post_id, t.tag_id) in self.post_tags),
                      key=lambda t: t.name)

    def find_tag_by_name(self, name):
        return self.tags.get(name.lower().strip())

    def create_tag(self, name):
        tag = Tag(tag_id=len(self.tags) + 1, name=name.lower().strip())
        self.tags[tag.name] = tag
        return tag

    def add_tag_to_post(self, post_id, tag_id):
        if (post_id, tag_id) in self.post_tags:
            return False
        self.post_tags.add((post_id, tag_id))
        return True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return FakePostStorage()


@pytest.fixture
def service(storage, clock):
    return PostAccessService(storage, ttl_ms=300000, clock=clock)
