"""
Pydantic v2 record types shared by every backend.

Adapters build these from backend-native rows (SQL result rows, Redis hashes
and JSON documents); consumer services only ever see these shapes.
"""

from typing import Any, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class User(BaseModel):
    """Account record keyed by username."""

    model_config = ConfigDict(
        frozen=True,
        from_attributes=True,
        extra="ignore",
    )

    username: str = Field(..., min_length=1, max_length=255)
    password_hash: str = Field(..., min_length=1)


class Post(BaseModel):
    """A single feed entry addressed to a recipient."""

    model_config = ConfigDict(
        frozen=True,
        from_attributes=True,
        extra="ignore",
    )

    author: str = Field(..., min_length=1)
    recipient: str = Field(..., min_length=1)
    content: str


class QueryDescriptor(BaseModel):
    """
    Backend-agnostic lookup request: a resource name plus a condition.

    The condition is a ``(field, value)`` pair. How it is encoded (SQL clause,
    storage key) is decided privately by each adapter.
    """

    model_config = ConfigDict(frozen=True)

    resource: str = Field(..., min_length=1)
    condition: Tuple[str, str]

    @field_validator("condition", mode="before")
    @classmethod
    def _coerce_condition(cls, v: Any) -> Any:
        if isinstance(v, list):
            return tuple(v)
        return v

    @property
    def field(self) -> str:
        return self.condition[0]

    @property
    def value(self) -> str:
        return self.condition[1]

    @classmethod
    def user_by_username(cls, username: str) -> "QueryDescriptor":
        return cls(resource="users", condition=("username", username))

    @classmethod
    def posts_for_recipient(cls, username: str) -> "QueryDescriptor":
        return cls(resource="posts", condition=("recipient", username))


class FeedItem(BaseModel):
    """Display-ready unit handed to the view layer."""

    model_config = ConfigDict(frozen=True)

    author: str
    content: str

    @computed_field  # type: ignore[prop-decorator]
    @property
    def headline(self) -> str:
        return f"{self.author}: {self.content}"

    @classmethod
    def from_post(cls, post: Post) -> "FeedItem":
        return cls(author=post.author, content=post.content)
