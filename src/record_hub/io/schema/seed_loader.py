"""Seed data loader for both backends.

Seed files are YAML documents of the form:

    users:
      - username: alice
        password: wonderland        # hashed with the supplied hasher
      - username: bob
        password_hash: 5e8848...    # stored as-is
    posts:
      - author: bob
        recipient: alice
        content: hello alice

Posts are written in file order, which becomes the feed order of both
backends.

Usage:
    from record_hub.io.schema.seed_loader import load_seed_file, seed_relational

    seed = load_seed_file(Path("seeds/demo.yml"), hasher)
    seed_relational(engine, seed)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import yaml
from pydantic import ValidationError
from redis import RedisError
from sqlalchemy.exc import SQLAlchemyError

from record_hub.domain.exceptions import BackendError, ConfigurationError
from record_hub.domain.models import Post, User
from record_hub.io.connectors.key_value_adapter import posts_key, user_key
from record_hub.utils.logging import get_logger

from .tables import create_schema, posts, users

if TYPE_CHECKING:
    from redis import Redis
    from sqlalchemy.engine import Engine

    from record_hub.domain.protocols import PasswordHasher

logger = get_logger(__name__)


@dataclass
class SeedData:
    """Users and posts parsed from a seed file."""

    users: List[User] = field(default_factory=list)
    posts: List[Post] = field(default_factory=list)


def _build_user(entry: Dict[str, Any], hasher: Optional[PasswordHasher]) -> User:
    if "password_hash" not in entry and "password" in entry:
        if hasher is None:
            raise ConfigurationError(
                f"Seed user '{entry.get('username')}' has a plaintext password "
                "but no hasher was supplied"
            )
        entry = {**entry, "password_hash": hasher.hash(str(entry["password"]))}
    return User.model_validate(entry)


def parse_seed(raw: Any, hasher: Optional[PasswordHasher] = None) -> SeedData:
    """
    Validate a parsed seed document.

    Raises:
        ConfigurationError: If the document shape or any entry is invalid
    """
    if raw is None:
        return SeedData()
    if not isinstance(raw, dict):
        raise ConfigurationError("Seed document must be a mapping")

    try:
        seed_users = [_build_user(dict(u), hasher) for u in raw.get("users") or []]
        seed_posts = [Post.model_validate(p) for p in raw.get("posts") or []]
    except (ValidationError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid seed entry: {e}") from e

    return SeedData(users=seed_users, posts=seed_posts)


def load_seed_file(path: Path, hasher: Optional[PasswordHasher] = None) -> SeedData:
    """
    Load and validate a YAML seed file.

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigurationError: If the YAML is malformed or entries are invalid
    """
    if not path.exists():
        raise FileNotFoundError(f"Seed file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in seed file {path}: {e}") from e

    seed = parse_seed(raw, hasher)
    logger.info(
        "seed.loaded",
        path=str(path),
        user_count=len(seed.users),
        post_count=len(seed.posts),
    )
    return seed


def seed_relational(engine: Engine, seed: SeedData) -> int:
    """
    Create the schema and write the seed rows. Returns rows inserted.

    Seeding replaces data instead of appending to it: the seeded users and
    the feeds of every seeded recipient are deleted first, in the same
    transaction, so loading a file twice leaves one copy.

    Raises:
        BackendError: If the database rejects the schema or the writes
    """
    usernames = [u.username for u in seed.users]
    recipients = sorted({p.recipient for p in seed.posts})
    try:
        create_schema(engine)
        with engine.begin() as conn:
            if usernames:
                conn.execute(users.delete().where(users.c.username.in_(usernames)))
                conn.execute(
                    users.insert(),
                    [u.model_dump(include={"username", "password_hash"}) for u in seed.users],
                )
            if recipients:
                conn.execute(posts.delete().where(posts.c.recipient.in_(recipients)))
                conn.execute(posts.insert(), [p.model_dump() for p in seed.posts])
    except SQLAlchemyError as e:
        logger.error("seed.relational_failed", error=str(e))
        raise BackendError("relational", f"Seeding failed: {e}", e) from e

    inserted = len(seed.users) + len(seed.posts)
    logger.info("seed.relational_written", rows=inserted)
    return inserted


def seed_key_value(client: Redis, seed: SeedData, key_prefix: str = "") -> int:
    """
    Write the seed records as Redis hashes and lists. Returns keys touched.

    Every touched key is deleted before it is rewritten, inside one
    MULTI/EXEC pipeline, so loading a file twice does not duplicate feeds.

    Raises:
        BackendError: If Redis rejects the pipeline
    """
    touched = [user_key(key_prefix, u.username) for u in seed.users]
    for post in seed.posts:
        key = posts_key(key_prefix, post.recipient)
        if key not in touched:
            touched.append(key)

    pipe = client.pipeline(transaction=True)
    if touched:
        pipe.delete(*touched)
    for user in seed.users:
        pipe.hset(
            user_key(key_prefix, user.username),
            mapping=user.model_dump(include={"username", "password_hash"}),
        )
    for post in seed.posts:
        pipe.rpush(posts_key(key_prefix, post.recipient), json.dumps(post.model_dump()))
    try:
        pipe.execute()
    except RedisError as e:
        logger.error("seed.key_value_failed", error=str(e))
        raise BackendError("key_value", f"Seeding failed: {e}", e) from e

    logger.info("seed.key_value_written", keys=len(touched))
    return len(touched)
