"""SQLAlchemy table definitions for the relational backend."""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.engine import Engine

metadata = sa.MetaData()

users = sa.Table(
    "users",
    metadata,
    sa.Column("username", sa.String(255), primary_key=True),
    sa.Column("password_hash", sa.String(255), nullable=False),
)

# id provides the backend-defined feed order (insertion order).
posts = sa.Table(
    "posts",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("author", sa.String(255), nullable=False),
    sa.Column("recipient", sa.String(255), nullable=False, index=True),
    sa.Column("content", sa.Text, nullable=False),
)


def create_schema(engine: Engine) -> None:
    """Create the users and posts tables if they do not exist."""
    metadata.create_all(engine)
