"""
Key-value adapters (Redis) implementing the Data Port in both contract shapes.

Key layout:
    <prefix>user:<username>     hash  {username, password_hash}
    <prefix>posts:<recipient>   list  of JSON documents {author, recipient, content}

Posts are read with ``LRANGE 0 -1`` so the list order is the feed order.

``KeyValueAdapter`` blocks the caller and returns records directly.
``AsyncKeyValueAdapter`` runs the same lookup on a worker thread and returns a
pending ``Deferred`` that the worker's completion signal settles exactly once.
"""

import json
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Tuple

import redis
from pydantic import ValidationError

from record_hub.config.settings import KeyValueConfig
from record_hub.domain.deferred import Deferred
from record_hub.domain.exceptions import BackendError, MappingError, NotFound
from record_hub.domain.models import Post, QueryDescriptor, User
from record_hub.utils.logging import get_logger

logger = get_logger(__name__)

BACKEND_NAME = "key_value"


def user_key(prefix: str, username: str) -> str:
    return f"{prefix}user:{username}"


def posts_key(prefix: str, recipient: str) -> str:
    return f"{prefix}posts:{recipient}"


def _encode(descriptor: QueryDescriptor, prefix: str) -> str:
    """Translate a query descriptor into the storage key it lives under."""
    if descriptor.resource == "users" and descriptor.field == "username":
        return user_key(prefix, descriptor.value)
    if descriptor.resource == "posts" and descriptor.field == "recipient":
        return posts_key(prefix, descriptor.value)
    raise ValueError(
        f"No key layout for {descriptor.resource} by '{descriptor.field}'"
    )


def _text(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def build_client(config: KeyValueConfig) -> redis.Redis:
    """Create a Redis client from explicit configuration."""
    return redis.Redis.from_url(
        config.url,
        socket_timeout=config.socket_timeout,
        socket_connect_timeout=config.socket_timeout,
    )


# ----------------------------------------------------------------------
# Lookups: raw payload retrieval, raising NotFound / BackendError
# ----------------------------------------------------------------------
def _fetch_user(client: redis.Redis, descriptor: QueryDescriptor, prefix: str) -> Dict[Any, Any]:
    key = _encode(descriptor, prefix)
    try:
        raw = client.hgetall(key)
    except redis.RedisError as e:
        logger.error("key_value.lookup_failed", key=key, error=str(e))
        raise BackendError(BACKEND_NAME, f"HGETALL {key} failed: {e}", e) from e
    if not raw:
        raise NotFound(descriptor.resource, descriptor.value)
    return dict(raw)


def _fetch_posts(client: redis.Redis, descriptor: QueryDescriptor, prefix: str) -> List[Any]:
    key = _encode(descriptor, prefix)
    try:
        raw = client.lrange(key, 0, -1)
    except redis.RedisError as e:
        logger.error("key_value.lookup_failed", key=key, error=str(e))
        raise BackendError(BACKEND_NAME, f"LRANGE {key} failed: {e}", e) from e
    if not raw:
        raise NotFound(descriptor.resource, descriptor.value)
    return list(raw)


# ----------------------------------------------------------------------
# Mapping: raw payload -> record types, raising MappingError
# ----------------------------------------------------------------------
def _map_user(raw: Dict[Any, Any]) -> User:
    try:
        return User.model_validate({_text(k): _text(v) for k, v in raw.items()})
    except (UnicodeDecodeError, ValidationError) as e:
        raise MappingError("users", raw, e) from e


def _map_posts(raw: List[Any]) -> Tuple[Post, ...]:
    try:
        return tuple(Post.model_validate(json.loads(_text(item))) for item in raw)
    except (UnicodeDecodeError, json.JSONDecodeError, TypeError, ValidationError) as e:
        raise MappingError("posts", raw, e) from e


class KeyValueAdapter:
    """Synchronous Data Port backed by Redis."""

    synchronous = True

    def __init__(self, config: KeyValueConfig, client: Optional[redis.Redis] = None):
        """
        Initialize the key-value adapter.

        Args:
            config: Explicit connection settings
            client: Pre-built Redis client; built from ``config.url`` when omitted
        """
        self.config = config
        self._client = client if client is not None else build_client(config)
        logger.info("key_value.adapter_initialized", mode="sync", key_prefix=config.key_prefix)

    def find_user_by_username(self, username: str) -> User:
        descriptor = QueryDescriptor.user_by_username(username)
        return _map_user(_fetch_user(self._client, descriptor, self.config.key_prefix))

    def find_posts_for_recipient(self, username: str) -> Tuple[Post, ...]:
        descriptor = QueryDescriptor.posts_for_recipient(username)
        return _map_posts(_fetch_posts(self._client, descriptor, self.config.key_prefix))

    def close(self) -> None:
        self._client.close()


class AsyncKeyValueAdapter:
    """
    Asynchronous Data Port backed by Redis and a worker thread pool.

    Every lookup submits exactly one job to the executor and returns a pending
    ``Deferred``. The job does not start until the handle has been created and
    the completion callback registered, so settlement always happens on the
    worker thread, never inline on the caller's stack.

    The gate opens just before ``_submit`` returns, so a very fast lookup may
    settle the handle before the caller receives it. Callers cannot observe
    the difference: a continuation attached to a settled ``Deferred`` runs at
    once with the stored outcome.
    """

    synchronous = False

    def __init__(
        self,
        config: KeyValueConfig,
        client: Optional[redis.Redis] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.config = config
        self._client = client if client is not None else build_client(config)
        self._executor = executor or ThreadPoolExecutor(
            max_workers=config.max_workers, thread_name_prefix="record-hub-kv"
        )
        logger.info(
            "key_value.adapter_initialized",
            mode="async",
            key_prefix=config.key_prefix,
            max_workers=config.max_workers,
        )

    def _submit(
        self,
        lookup: Callable[[], Any],
        mapper: Callable[[Any], Any],
    ) -> Deferred[Any]:
        deferred: Deferred[Any] = Deferred()
        issued = threading.Event()

        def _run() -> Any:
            issued.wait()
            return lookup()

        def _complete(future: Future) -> None:
            if future.cancelled():
                deferred.reject(BackendError(BACKEND_NAME, "Lookup cancelled"))
                return
            error = future.exception()
            if error is not None:
                deferred.reject(error)
                return
            try:
                record = mapper(future.result())
            except Exception as exc:
                deferred.reject(exc)
                return
            deferred.resolve(record)

        future = self._executor.submit(_run)
        future.add_done_callback(_complete)
        issued.set()
        return deferred

    def find_user_by_username(self, username: str) -> Deferred[User]:
        descriptor = QueryDescriptor.user_by_username(username)
        return self._submit(
            lambda: _fetch_user(self._client, descriptor, self.config.key_prefix),
            _map_user,
        )

    def find_posts_for_recipient(self, username: str) -> Deferred[Tuple[Post, ...]]:
        descriptor = QueryDescriptor.posts_for_recipient(username)
        return self._submit(
            lambda: _fetch_posts(self._client, descriptor, self.config.key_prefix),
            _map_posts,
        )

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self._client.close()
