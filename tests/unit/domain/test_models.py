"""Unit tests for record types and the query descriptor."""

import pytest
from pydantic import ValidationError

from record_hub.domain.models import FeedItem, Post, QueryDescriptor, User


@pytest.mark.unit
def test_user_is_immutable():
    user = User(username="alice", password_hash="abc")
    with pytest.raises(ValidationError):
        user.username = "mallory"


@pytest.mark.unit
def test_user_requires_password_hash():
    with pytest.raises(ValidationError):
        User.model_validate({"username": "alice"})


@pytest.mark.unit
def test_user_fields_are_not_rewritten():
    user = User.model_validate({"username": " alice ", "password_hash": "h \n"})
    assert user.username == " alice "
    assert user.password_hash == "h \n"


@pytest.mark.unit
def test_user_ignores_extra_backend_columns():
    user = User.model_validate({"username": "alice", "password_hash": "h", "id": 7})
    assert user == User(username="alice", password_hash="h")


@pytest.mark.unit
def test_feed_item_headline_from_post():
    post = Post(author="bob", recipient="alice", content="hello")
    item = FeedItem.from_post(post)
    assert item.author == "bob"
    assert item.headline == "bob: hello"


@pytest.mark.unit
def test_query_descriptor_factories():
    users = QueryDescriptor.user_by_username("alice")
    posts = QueryDescriptor.posts_for_recipient("alice")

    assert (users.resource, users.field, users.value) == ("users", "username", "alice")
    assert (posts.resource, posts.field, posts.value) == ("posts", "recipient", "alice")


@pytest.mark.unit
def test_query_descriptor_accepts_list_condition():
    descriptor = QueryDescriptor(resource="users", condition=["username", "bob"])
    assert descriptor.condition == ("username", "bob")
