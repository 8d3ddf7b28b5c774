"""Stub Data Ports for exercising the consumer services in isolation."""

from typing import Dict, List, Optional

import pytest

from record_hub.domain.deferred import Deferred
from record_hub.domain.exceptions import NotFound
from record_hub.domain.models import Post, User


class StubPort:
    """Synchronous port answering from in-memory records."""

    synchronous = True

    def __init__(self, users: Dict[str, User], posts: Dict[str, List[Post]]):
        self.users = users
        self.posts = posts
        self.error: Optional[Exception] = None
        self.calls: List[str] = []

    def find_user_by_username(self, username):
        self.calls.append(f"user:{username}")
        if self.error is not None:
            raise self.error
        if username not in self.users:
            raise NotFound("users", username)
        return self.users[username]

    def find_posts_for_recipient(self, username):
        self.calls.append(f"posts:{username}")
        if self.error is not None:
            raise self.error
        if username not in self.posts:
            raise NotFound("posts", username)
        return tuple(self.posts[username])

    def close(self):
        pass


class ManualAsyncPort:
    """
    Asynchronous port whose Deferreds stay pending until ``flush()``.

    Lets tests observe results before and after settlement deterministically.
    """

    synchronous = False

    def __init__(self, backing: StubPort):
        self.backing = backing
        self._pending = []

    def _defer(self, lookup, username):
        deferred = Deferred()
        self._pending.append((deferred, lookup, username))
        return deferred

    def find_user_by_username(self, username):
        return self._defer(self.backing.find_user_by_username, username)

    def find_posts_for_recipient(self, username):
        return self._defer(self.backing.find_posts_for_recipient, username)

    def flush(self):
        pending, self._pending = self._pending, []
        for deferred, lookup, username in pending:
            try:
                deferred.resolve(lookup(username))
            except Exception as exc:
                deferred.reject(exc)

    def close(self):
        pass


@pytest.fixture
def stub_port(seed_data):
    users = {u.username: u for u in seed_data.users}
    posts: Dict[str, List[Post]] = {}
    for post in seed_data.posts:
        posts.setdefault(post.recipient, []).append(post)
    return StubPort(users, posts)


@pytest.fixture
def async_port(stub_port):
    return ManualAsyncPort(stub_port)


@pytest.fixture(params=["sync", "async"])
def any_port(request, stub_port):
    """The same data behind both contract shapes."""
    if request.param == "sync":
        return stub_port
    return ManualAsyncPort(stub_port)


@pytest.fixture
def settle():
    """Resolve a service result regardless of the port's contract shape."""

    def _settle(port, value):
        if isinstance(port, ManualAsyncPort):
            assert isinstance(value, Deferred)
            assert not value.done()
            port.flush()
            return value.result(timeout=0)
        assert not isinstance(value, Deferred)
        return value

    return _settle
