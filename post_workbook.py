"""
Workbook-backed post storage with atomic writes and backup
"""
import pandas as pd
import shutil
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional
import logging

from config import (
    WORKBOOK_PATH, BACKUP_DIR, BACKUP_MAX_COUNT, BACKUP_RETENTION_DAYS, LOGS_DIR, LOG_LEVEL
)
from blog_posts.models import Post, Tag
from blog_posts.storage import StorageError

# Setup logging
LOGS_DIR.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOGS_DIR / 'blog_posts.log'),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

SHEET_COLUMNS = {
    'Posts': ['post_id', 'user_id', 'title', 'content', 'created_at', 'updated_at', 'view_count'],
    'Users': ['user_id', 'username'],
    'Tags': ['tag_id', 'tag_name'],
    'Post_Tags': ['post_id', 'tag_id'],
    'Comments': ['comment_id', 'post_id', 'user_id', 'content', 'created_at'],
}


def _empty_frame(sheet_name: str) -> pd.DataFrame:
    return pd.DataFrame(columns=SHEET_COLUMNS[sheet_name])


def _append_row(df: pd.DataFrame, row: dict) -> pd.DataFrame:
    """Append one row, keeping the sheet's column order"""
    new_row = pd.DataFrame([row], columns=df.columns)
    if df.empty:
        return new_row
    return pd.concat([df, new_row], ignore_index=True)


def _next_id(df: pd.DataFrame, column: str) -> int:
    """Next identifier in sequence (max + 1, starting at 1)"""
    if df.empty:
        return 1
    existing = pd.to_numeric(df[column], errors='coerce').dropna()
    if existing.empty:
        return 1
    return int(existing.max()) + 1


def _to_datetime(value) -> Optional[datetime]:
    if value is None or pd.isna(value):
        return None
    return pd.Timestamp(value).to_pydatetime()


def _to_text(value) -> str:
    # Empty strings come back from Excel as NaN
    if value is None or pd.isna(value):
        return ""
    return str(value)


def _now() -> datetime:
    # Excel keeps roughly millisecond precision; stay at whole seconds
    return datetime.now().replace(microsecond=0)


class PostWorkbook:
    """Posts, authors, tags and comments held in an Excel workbook"""

    def __init__(self, workbook_path: str = WORKBOOK_PATH, backup_dir: Path = BACKUP_DIR,
                 create: bool = False):
        self.workbook_path = Path(workbook_path)
        self.backup_dir = Path(backup_dir)

        if self.workbook_path.exists():
            self._frames = self._read_workbook()
        elif create:
            self.workbook_path.parent.mkdir(parents=True, exist_ok=True)
            self._frames = {name: _empty_frame(name) for name in SHEET_COLUMNS}
            self._write_workbook(self._frames)
            logger.info(f"Created workbook: {self.workbook_path}")
        else:
            raise FileNotFoundError(f"Workbook not found: {self.workbook_path}")

    # ------------------------------------------------------------------
    # Workbook I/O
    # ------------------------------------------------------------------

    def _read_workbook(self) -> Dict[str, pd.DataFrame]:
        """
        Read every sheet; sheets absent from the file start empty

        Only truly empty cells read as missing, so text such as "NA" or
        "null" in a title, tag or username comes back unchanged.

        Returns:
            dict of sheet name -> DataFrame
        """
        try:
            sheets = pd.read_excel(
                self.workbook_path,
                sheet_name=None,
                keep_default_na=False,
                na_values=[''],
            )
        except Exception as e:
            logger.error(f"Error reading workbook {self.workbook_path}: {e}")
            raise StorageError(f"Could not read workbook {self.workbook_path}") from e

        frames = {}
        for name in SHEET_COLUMNS:
            frames[name] = sheets[name] if name in sheets else _empty_frame(name)
        logger.info(f"Loaded {len(frames['Posts'])} posts from {self.workbook_path}")
        return frames

    def _write_workbook(self, frames: Dict[str, pd.DataFrame]):
        with pd.ExcelWriter(self.workbook_path, engine='openpyxl') as writer:
            for name, df in frames.items():
                df.to_excel(writer, sheet_name=name, index=False)

    def _prune_backups(self):
        """Keep the newest BACKUP_MAX_COUNT backups, none older than BACKUP_RETENTION_DAYS"""
        # Timestamped names sort oldest first
        backups = sorted(self.backup_dir.glob("blog_posts_backup_*.xlsx"))
        surplus = len(backups) - BACKUP_MAX_COUNT
        cutoff = datetime.now().timestamp() - (BACKUP_RETENTION_DAYS * 24 * 60 * 60)

        for i, path in enumerate(backups):
            if i < surplus or path.stat().st_mtime < cutoff:
                path.unlink()
                logger.debug(f"Pruned backup: {path}")

    def _commit(self, changes: Dict[str, pd.DataFrame]):
        """
        Write changed sheets together with the untouched ones, then swap them in

        The file on disk is copied aside first. If the write fails that copy
        is put back, and nothing in memory changes.
        """
        frames = {**self._frames, **changes}

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        backup_path = self.backup_dir / f"blog_posts_backup_{stamp}.xlsx"
        try:
            shutil.copy2(self.workbook_path, backup_path)
        except OSError as e:
            logger.error(f"Could not copy workbook to {backup_path}: {e}")
            raise StorageError(f"Could not back up workbook {self.workbook_path}") from e

        try:
            self._write_workbook(frames)
        except Exception as e:
            logger.error(f"Error writing workbook: {e}")
            shutil.copy2(backup_path, self.workbook_path)
            logger.warning(f"Put back workbook saved at {backup_path}")
            raise StorageError(f"Could not write workbook {self.workbook_path}") from e

        self._frames = frames
        self._prune_backups()

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    def _author_names(self) -> Dict[int, str]:
        users = self._frames['Users']
        return {int(uid): str(name) for uid, name in zip(users['user_id'], users['username'])}

    def _to_posts(self, df: pd.DataFrame) -> List[Post]:
        authors = self._author_names()
        posts = []
        for row in df.to_dict('records'):
            user_id = int(row['user_id'])
            view_count = row['view_count']
            posts.append(Post(
                post_id=int(row['post_id']),
                user_id=user_id,
                title=str(row['title']),
                content=_to_text(row['content']),
                created_at=_to_datetime(row['created_at']),
                updated_at=_to_datetime(row['updated_at']),
                view_count=0 if pd.isna(view_count) else int(view_count),
                author_name=authors.get(user_id),
            ))
        return posts

    def _newest_first(self, df: pd.DataFrame) -> pd.DataFrame:
        return df.sort_values(
            'created_at',
            ascending=False,
            na_position='last',
            kind='mergesort',
            key=lambda s: pd.to_datetime(s, errors='coerce'),
        )

    def _post_mask(self, post_id: int) -> pd.Series:
        return self._frames['Posts']['post_id'] == post_id

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    def add_author(self, user_id: int, username: str):
        """Register (or rename) the author shown on a user's posts"""
        users = self._frames['Users'].copy()
        mask = users['user_id'] == user_id
        if mask.any():
            users.loc[mask, 'username'] = username
        else:
            users = _append_row(users, {'user_id': user_id, 'username': username})
        self._commit({'Users': users})
        logger.info(f"Registered author {user_id}: {username}")

    def load_post_by_id(self, post_id: int) -> Optional[Post]:
        matches = self._frames['Posts'][self._post_mask(post_id)]
        if matches.empty:
            return None
        return self._to_posts(matches.head(1))[0]

    def load_posts_page(self, limit: int, offset: int) -> List[Post]:
        """
        Page of posts, newest first

        Args:
            limit: Maximum posts to return
            offset: Posts to skip from the newest
        """
        if limit < 0 or offset < 0:
            raise ValueError(f"limit and offset must be non-negative (got {limit}, {offset})")
        ordered = self._newest_first(self._frames['Posts'])
        return self._to_posts(ordered.iloc[offset:offset + limit])

    def search_posts(self, keyword: str) -> List[Post]:
        """Case-insensitive substring search over title and content"""
        pattern = keyword.lower().strip()
        posts = self._frames['Posts']
        titles = posts['title'].fillna('').astype(str).str.lower()
        contents = posts['content'].fillna('').astype(str).str.lower()
        mask = titles.str.contains(pattern, regex=False) | contents.str.contains(pattern, regex=False)
        return self._to_posts(self._newest_first(posts[mask]))

    def create_post(self, post: Post) -> Post:
        """
        Append a new post

        Returns:
            The post with post_id, timestamps and view_count filled in
        """
        posts = self._frames['Posts']
        post_id = _next_id(posts, 'post_id')
        now = _now()

        posts = _append_row(posts, {
            'post_id': post_id,
            'user_id': post.user_id,
            'title': post.title,
            'content': post.content,
            'created_at': now,
            'updated_at': now,
            'view_count': 0,
        })
        self._commit({'Posts': posts})

        logger.info(f"Created post with ID: {post_id}")
        return replace(
            post,
            post_id=post_id,
            created_at=now,
            updated_at=now,
            view_count=0,
            author_name=self._author_names().get(post.user_id),
        )

    def update_post(self, post: Post) -> bool:
        """Update title and content; False when no such post"""
        mask = self._post_mask(post.post_id)
        if not mask.any():
            logger.warning(f"Post {post.post_id} not found, nothing updated")
            return False

        posts = self._frames['Posts'].copy()
        posts.loc[mask, 'title'] = post.title
        posts.loc[mask, 'content'] = post.content
        posts.loc[mask, 'updated_at'] = _now()
        self._commit({'Posts': posts})

        logger.info(f"Updated post ID: {post.post_id}")
        return True

    def delete_post(self, post_id: int) -> bool:
        """
        Delete a post together with its tag links and comments

        All three sheets are written in one commit, so either everything
        goes or nothing does.
        """
        posts = self._frames['Posts']
        post_tags = self._frames['Post_Tags']
        comments = self._frames['Comments']

        remaining_posts = posts[posts['post_id'] != post_id]
        if len(remaining_posts) == len(posts):
            logger.warning(f"Post {post_id} not found, nothing deleted")
            return False

        self._commit({
            'Posts': remaining_posts.reset_index(drop=True),
            'Post_Tags': post_tags[post_tags['post_id'] != post_id].reset_index(drop=True),
            'Comments': comments[comments['post_id'] != post_id].reset_index(drop=True),
        })
        logger.info(f"Deleted post ID: {post_id}")
        return True

    def increment_view_count(self, post_id: int):
        mask = self._post_mask(post_id)
        if not mask.any():
            return
        posts = self._frames['Posts'].copy()
        posts.loc[mask, 'view_count'] = pd.to_numeric(posts.loc[mask, 'view_count']).fillna(0) + 1
        self._commit({'Posts': posts})

    def get_total_count(self) -> int:
        return len(self._frames['Posts'])

    def load_most_viewed(self, limit: int) -> List[Post]:
        posts = self._frames['Posts']
        ordered = posts.sort_values(
            'view_count',
            ascending=False,
            kind='mergesort',
            key=lambda s: pd.to_numeric(s, errors='coerce').fillna(0),
        )
        return self._to_posts(ordered.head(limit))

    def load_posts_by_author(self, user_id: int) -> List[Post]:
        posts = self._frames['Posts']
        return self._to_posts(self._newest_first(posts[posts['user_id'] == user_id]))

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def find_tag_by_name(self, name: str) -> Optional[Tag]:
        tags = self._frames['Tags']
        matches = tags[tags['tag_name'] == name.lower().strip()]
        if matches.empty:
            return None
        row = matches.iloc[0]
        return Tag(tag_id=int(row['tag_id']), name=str(row['tag_name']))

    def create_tag(self, name: str) -> Tag:
        tags = self._frames['Tags']
        tag = Tag(tag_id=_next_id(tags, 'tag_id'), name=name.lower().strip())
        self._commit({'Tags': _append_row(tags, {'tag_id': tag.tag_id, 'tag_name': tag.name})})
        logger.info(f"Created tag with ID: {tag.tag_id}")
        return tag

    def add_tag_to_post(self, post_id: int, tag_id: int) -> bool:
        """Link a tag to a post; False if the link already exists"""
        post_tags = self._frames['Post_Tags']
        exists = ((post_tags['post_id'] == post_id) & (post_tags['tag_id'] == tag_id)).any()
        if exists:
            return False
        self._commit({'Post_Tags': _append_row(post_tags, {'post_id': post_id, 'tag_id': tag_id})})
        logger.info(f"Added tag {tag_id} to post {post_id}")
        return True

    def load_posts_by_tag(self, tag_id: int) -> List[Post]:
        post_tags = self._frames['Post_Tags']
        post_ids = post_tags.loc[post_tags['tag_id'] == tag_id, 'post_id']
        posts = self._frames['Posts']
        return self._to_posts(self._newest_first(posts[posts['post_id'].isin(post_ids)]))

    def load_tags_for_post(self, post_id: int) -> List[Tag]:
        post_tags = self._frames['Post_Tags']
        tag_ids = post_tags.loc[post_tags['post_id'] == post_id, 'tag_id']
        tags = self._frames['Tags']
        linked = tags[tags['tag_id'].isin(tag_ids)].sort_values('tag_name')
        return [Tag(tag_id=int(row['tag_id']), name=str(row['tag_name'])) for row in linked.to_dict('records')]
