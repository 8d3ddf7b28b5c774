"""Shared pytest fixtures: seed data, a seeded SQLite engine and a mocked Redis client."""

from __future__ import annotations

import json
import os
from typing import Any, Dict
from unittest.mock import Mock

import pytest
import redis
import sqlalchemy as sa
from sqlalchemy.pool import StaticPool

# Keep Settings() independent from any developer .env file.
os.environ.setdefault("RECORD_HUB_ENV_FILE", "tests/.env.test")

from record_hub.config import get_settings  # noqa: E402
from record_hub.domain.auth import HmacPasswordHasher  # noqa: E402
from record_hub.io.connectors.key_value_adapter import posts_key, user_key  # noqa: E402
from record_hub.io.schema.seed_loader import SeedData, parse_seed, seed_relational  # noqa: E402

TEST_SALT = "test-salt"

SEED_DOCUMENT: Dict[str, Any] = {
    "users": [
        {"username": "alice", "password": "wonderland"},
        {"username": "bob", "password": "builder"},
    ],
    "posts": [
        {"author": "bob", "recipient": "alice", "content": "P1"},
        {"author": "carol", "recipient": "alice", "content": "P2"},
        {"author": "alice", "recipient": "bob", "content": "hi bob"},
        {"author": "bob", "recipient": "alice", "content": "P3"},
    ],
}


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def hasher() -> HmacPasswordHasher:
    return HmacPasswordHasher(TEST_SALT)


@pytest.fixture
def seed_data(hasher) -> SeedData:
    return parse_seed(SEED_DOCUMENT, hasher)


@pytest.fixture
def sqlite_engine(seed_data):
    """In-memory SQLite database holding the seed data."""
    engine = sa.create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    seed_relational(engine, seed_data)
    yield engine
    engine.dispose()


@pytest.fixture
def redis_store(seed_data) -> Dict[str, Any]:
    """Raw Redis contents (bytes, as redis-py returns them) for the seed data."""
    store: Dict[str, Any] = {}
    for user in seed_data.users:
        store[user_key("", user.username)] = {
            b"username": user.username.encode(),
            b"password_hash": user.password_hash.encode(),
        }
    for post in seed_data.posts:
        store.setdefault(posts_key("", post.recipient), []).append(
            json.dumps(post.model_dump()).encode()
        )
    return store


@pytest.fixture
def redis_client(redis_store):
    """Mocked Redis client answering HGETALL/LRANGE from ``redis_store``."""
    client = Mock(spec=redis.Redis)
    client.hgetall.side_effect = lambda key: dict(redis_store.get(key, {}))
    client.lrange.side_effect = lambda key, start, end: list(redis_store.get(key, []))
    return client
