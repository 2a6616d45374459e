"""
posts/store.py -- SQLAlchemy Core persistence layer for posts.

Pattern: Repository + Data Mapper (same as auth/store.py).
PostStore is the repository; _row_to_post is the mapper.

Every operation is one statement, so each read or write is atomic on its
own. update_post() only ever writes title and body: owner_id and
created_date are fixed at creation.

owner_id references users.id. The reference is not declared as a foreign key
because the two tables are owned by different stores; posts are only created
for an authenticated (hence existing) user. There is no cascading delete.

Layer rule: no imports from api/ or web/.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, text
from sqlalchemy.engine import Engine

from auth.store import make_engine
from posts.models import Post

logger = logging.getLogger("inkwell.posts")

_DEFAULT_DB_URL = "sqlite:///inkwell.db"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_posts = Table(
    "posts",
    _metadata,
    Column("id", String(36), primary_key=True),  # UUID4 string
    Column("title", Text, nullable=False),
    Column("body", Text, nullable=False),
    Column("created_date", String(32), nullable=False),
    Column("owner_id", String(36), nullable=False, index=True),
)


class PostStore:
    """Repository for Post records.

    Usage:
        store = PostStore("sqlite:///inkwell.db")
        post = store.create_post(Post(title="Hi", body="world", owner_id=user.id))
        store.get_post(post.id)
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    def create_post(self, post: Post) -> Post:
        """Insert a post, assigning its id and creation timestamp. Returns the stored post."""
        stored = Post(
            id=str(uuid.uuid4()),
            title=post.title,
            body=post.body,
            owner_id=post.owner_id,
            created_date=datetime.now(timezone.utc).isoformat(),
        )
        with self.engine.connect() as conn:
            conn.execute(
                _posts.insert().values(
                    id=stored.id,
                    title=stored.title,
                    body=stored.body,
                    created_date=stored.created_date,
                    owner_id=stored.owner_id,
                )
            )
            conn.commit()
        logger.info("Post %s created by user %s", stored.id, stored.owner_id)
        return stored

    def get_post(self, post_id: str) -> Post | None:
        """Return the post with this id, or None."""
        with self.engine.connect() as conn:
            row = conn.execute(_posts.select().where(_posts.c.id == post_id)).fetchone()
        return _row_to_post(row) if row is not None else None

    def list_by_owner(self, owner_id: str) -> list[Post]:
        """Return one user's posts, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _posts.select().where(_posts.c.owner_id == owner_id).order_by(_posts.c.created_date.desc())
            ).fetchall()
        return [_row_to_post(r) for r in rows]

    def update_post(self, post_id: str, title: str, body: str) -> bool:
        """Replace title and body. Returns True if a row was updated."""
        with self.engine.connect() as conn:
            result = conn.execute(_posts.update().where(_posts.c.id == post_id).values(title=title, body=body))
            conn.commit()
        return result.rowcount > 0

    def delete_post(self, post_id: str) -> bool:
        """Delete a post. Returns True if deleted, False if not found.

        The ownership check is the caller's responsibility (see posts/access.py).
        """
        with self.engine.connect() as conn:
            result = conn.execute(_posts.delete().where(_posts.c.id == post_id))
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def close(self) -> None:
        self.engine.dispose()


def _row_to_post(row) -> Post:
    return Post(
        id=row.id,
        title=row.title,
        body=row.body,
        owner_id=row.owner_id,
        created_date=row.created_date,
    )
