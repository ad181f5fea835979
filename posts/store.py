"""
posts/store.py -- SQLAlchemy Core persistence for board posts.

Pattern: Repository + Data Mapper (same as auth/store.py).

Posts live in the same database as users. The users table is declared here
with only the columns the author join needs, and create_all() is restricted to
the posts table so this module never creates or alters users.

Reads always join the author summary, newest post first.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, ForeignKey, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from auth.models import UserSummary
from auth.store import create_sqlite_aware_engine
from posts.models import Post

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_authors = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("email", String(255)),
    Column("name", String(100)),
)

_posts = Table(
    "posts",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("title", String(200), nullable=False),
    Column("description", Text, nullable=False),
    Column("type", String(20), nullable=False),
    Column("category", String(20), nullable=False),
    Column("status", String(20), nullable=False, server_default="active"),
    Column("author_id", String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _select_with_author():
    return select(
        _posts,
        _authors.c.email.label("author_email"),
        _authors.c.name.label("author_name"),
    ).select_from(_posts.outerjoin(_authors, _posts.c.author_id == _authors.c.id))


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PostStore:
    def __init__(self, db_url: str) -> None:
        self.engine: Engine = create_sqlite_aware_engine(db_url)
        _metadata.create_all(self.engine, tables=[_posts])

    def create_post(self, post: Post) -> str:
        """Insert a new post and return its assigned id."""
        post_id = uuid.uuid4().hex
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _posts.insert().values(
                    id=post_id,
                    title=post.title,
                    description=post.description,
                    type=post.type,
                    category=post.category,
                    status=post.status,
                    author_id=post.author_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return post_id

    def get_post(self, post_id: str) -> Optional[Post]:
        with self.engine.connect() as conn:
            row = conn.execute(_select_with_author().where(_posts.c.id == post_id)).fetchone()
        return _row_to_post(row) if row is not None else None

    def list_posts(self, skip: int = 0, take: int = 10) -> list[Post]:
        """Return one page of posts, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _select_with_author().order_by(_posts.c.created_at.desc()).offset(skip).limit(take)
            ).fetchall()
        return [_row_to_post(r) for r in rows]

    def count_posts(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_posts)).scalar()
        return result or 0

    def list_by_author(self, author_id: str) -> list[Post]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                _select_with_author().where(_posts.c.author_id == author_id).order_by(_posts.c.created_at.desc())
            ).fetchall()
        return [_row_to_post(r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern -- DB row -> domain dataclass)
# ---------------------------------------------------------------------------


def _row_to_post(row) -> Post:
    author = None
    if row.author_name is not None:
        author = UserSummary(id=row.author_id, email=row.author_email, name=row.author_name)
    return Post(
        id=row.id,
        title=row.title,
        description=row.description,
        type=row.type,
        category=row.category,
        status=row.status,
        author_id=row.author_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        author=author,
    )
