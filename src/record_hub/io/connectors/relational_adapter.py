"""
Relational adapter implementing the synchronous Data Port.

Each lookup is translated into a parameterised SQL query, executed on a
connection that is acquired for the duration of the call (with retry and
exponential backoff) and always released afterwards, and mapped into the
corresponding record type.
"""

import time
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional, Tuple

import sqlalchemy as sa
from pydantic import ValidationError
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import SQLAlchemyError

from record_hub.config.settings import RelationalConfig
from record_hub.domain.exceptions import BackendError, MappingError, NotFound
from record_hub.domain.models import Post, QueryDescriptor, User
from record_hub.utils.logging import get_logger

logger = get_logger(__name__)

BACKEND_NAME = "relational"

# resource -> (selected columns, ORDER BY column)
_RESOURCE_COLUMNS: Dict[str, Tuple[Tuple[str, ...], Optional[str]]] = {
    "users": (("username", "password_hash"), None),
    "posts": (("author", "recipient", "content"), "id"),
}


def _connect_args(url: str, connect_timeout: int) -> Dict[str, Any]:
    """Translate the connect timeout into the driver-specific argument."""
    backend = make_url(url).get_backend_name()
    if backend == "sqlite":
        return {"timeout": connect_timeout}
    if backend in ("postgresql", "mysql"):
        return {"connect_timeout": connect_timeout}
    return {}


class RelationalAdapter:
    """
    Synchronous Data Port backed by a SQL database through SQLAlchemy.

    The engine is created once and treated as read-only shared state; every
    lookup checks out its own connection from the engine's pool.
    """

    synchronous = True

    def __init__(self, config: RelationalConfig, engine: Optional[Engine] = None):
        """
        Initialize the relational adapter.

        Args:
            config: Explicit connection settings
            engine: Pre-built engine (tests, shared pools); built from
                ``config.url`` when omitted
        """
        self.config = config
        self._engine = engine or sa.create_engine(
            config.url,
            echo=config.echo,
            pool_pre_ping=True,
            connect_args=_connect_args(config.url, config.connect_timeout),
        )
        logger.info(
            "relational.adapter_initialized",
            dialect=self._engine.dialect.name,
            database=self._engine.url.database,
            max_retries=config.max_retries,
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _connection(self) -> Generator[Connection, None, None]:
        """
        Check out a connection, retrying with exponential backoff.

        Raises:
            BackendError: If no connection could be established
        """
        last_error: Optional[SQLAlchemyError] = None
        conn: Optional[Connection] = None

        for attempt in range(1, self.config.max_retries + 1):
            try:
                conn = self._engine.connect()
                break
            except SQLAlchemyError as e:
                last_error = e
                logger.warning(
                    "relational.connect_failed",
                    attempt=attempt,
                    max_retries=self.config.max_retries,
                    error=str(e),
                )
                if attempt < self.config.max_retries:
                    time.sleep(self.config.retry_backoff_base**attempt)

        if conn is None:
            raise BackendError(
                BACKEND_NAME,
                f"Failed to connect after {self.config.max_retries} attempts",
                last_error,
            ) from last_error

        try:
            yield conn
        finally:
            conn.close()

    def _compile(self, descriptor: QueryDescriptor) -> sa.TextClause:
        if descriptor.resource not in _RESOURCE_COLUMNS:
            raise ValueError(f"Unknown resource: '{descriptor.resource}'")
        columns, order_by = _RESOURCE_COLUMNS[descriptor.resource]
        if descriptor.field not in columns:
            raise ValueError(
                f"Cannot filter {descriptor.resource} on '{descriptor.field}'"
            )

        query = (
            f"SELECT {', '.join(columns)} FROM {descriptor.resource} "
            f"WHERE {descriptor.field} = :value"
        )
        if order_by:
            query += f" ORDER BY {order_by}"
        return sa.text(query)

    def _fetch(self, descriptor: QueryDescriptor) -> List[Dict[str, Any]]:
        """
        Execute the descriptor and return the raw rows.

        Raises:
            NotFound: If the result set is empty
            BackendError: On connection or execution failure
        """
        statement = self._compile(descriptor)
        with self._connection() as conn:
            try:
                rows = [
                    dict(row)
                    for row in conn.execute(
                        statement, {"value": descriptor.value}
                    ).mappings()
                ]
            except SQLAlchemyError as e:
                logger.error(
                    "relational.query_failed",
                    resource=descriptor.resource,
                    error=str(e),
                )
                raise BackendError(BACKEND_NAME, f"Query failed: {e}", e) from e

        if not rows:
            raise NotFound(descriptor.resource, descriptor.value)
        return rows

    def find_user_by_username(self, username: str) -> User:
        descriptor = QueryDescriptor.user_by_username(username)
        rows = self._fetch(descriptor)
        try:
            return User.model_validate(rows[0])
        except ValidationError as e:
            raise MappingError("users", rows[0], e) from e

    def find_posts_for_recipient(self, username: str) -> Tuple[Post, ...]:
        descriptor = QueryDescriptor.posts_for_recipient(username)
        rows = self._fetch(descriptor)
        try:
            result = tuple(Post.model_validate(row) for row in rows)
        except ValidationError as e:
            raise MappingError("posts", rows, e) from e

        logger.debug("relational.posts_fetched", recipient=username, count=len(result))
        return result

    def close(self) -> None:
        self._engine.dispose()
        logger.debug("relational.engine_disposed")
