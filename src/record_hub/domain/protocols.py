"""Data Port contracts consumed by the domain services.

Two distinct contract shapes exist for the same capability set:

- ``DataPort``: lookups return records directly and raise on failure.
- ``AsyncDataPort``: lookups return a ``Deferred`` that later settles with the
  record or fails with the same error taxonomy.

An adapter implements exactly one shape and says which through its
``synchronous`` attribute. Consumer services depend on these protocols only,
never on a concrete adapter.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, Union, runtime_checkable

from .deferred import Deferred
from .exceptions import ConfigurationError
from .models import Post, User


@runtime_checkable
class DataPort(Protocol):
    """Synchronous retrieval contract."""

    synchronous: bool

    def find_user_by_username(self, username: str) -> User:
        """
        Fetch a user by its unique username.

        Raises:
            NotFound: No such user
            BackendError: Backend unreachable or query failed
            MappingError: Backend payload does not fit ``User``
        """
        ...

    def find_posts_for_recipient(self, username: str) -> Sequence[Post]:
        """
        Fetch the posts addressed to ``username`` in backend-defined order.

        Raises:
            NotFound: No posts for this recipient
            BackendError: Backend unreachable or query failed
            MappingError: A backend payload does not fit ``Post``
        """
        ...

    def close(self) -> None:
        """Release backend resources held by the adapter."""
        ...


@runtime_checkable
class AsyncDataPort(Protocol):
    """Asynchronous retrieval contract; failures arrive as failed settlements."""

    synchronous: bool

    def find_user_by_username(self, username: str) -> Deferred[User]:
        ...

    def find_posts_for_recipient(self, username: str) -> Deferred[Sequence[Post]]:
        ...

    def close(self) -> None:
        ...


AnyDataPort = Union[DataPort, AsyncDataPort]


@runtime_checkable
class PasswordHasher(Protocol):
    """External collaborator computing the stored form of a password."""

    def hash(self, plaintext: str) -> str:
        ...


def is_synchronous(port: AnyDataPort) -> bool:
    """
    Return True if ``port`` implements the synchronous contract shape.

    Raises:
        ConfigurationError: If the port does not declare ``synchronous``
    """
    try:
        return bool(port.synchronous)
    except AttributeError:
        raise ConfigurationError(
            f"{type(port).__name__} does not declare its contract shape "
            "(set synchronous = True or False)"
        ) from None


def deliver(port: AnyDataPort, outcome: Deferred[Any]) -> Any:
    """
    Hand ``outcome`` back in the contract shape of ``port``.

    Chains built on a synchronous port have already settled by the time this
    is called, so the value is returned (or the failure raised) directly.
    Asynchronous ports get the Deferred itself.
    """
    if is_synchronous(port):
        return outcome.result(timeout=0)
    return outcome
