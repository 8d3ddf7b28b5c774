"""Domain layer: record types, the Data Port contracts and consumer services."""

from .deferred import Deferred, DeferredState
from .exceptions import (
    BackendError,
    ConfigurationError,
    InvalidStateError,
    MappingError,
    NotFound,
    RecordHubError,
)
from .models import FeedItem, Post, QueryDescriptor, User
from .protocols import AnyDataPort, AsyncDataPort, DataPort, PasswordHasher

__all__ = [
    "AnyDataPort",
    "AsyncDataPort",
    "BackendError",
    "ConfigurationError",
    "DataPort",
    "Deferred",
    "DeferredState",
    "FeedItem",
    "InvalidStateError",
    "MappingError",
    "NotFound",
    "PasswordHasher",
    "Post",
    "QueryDescriptor",
    "RecordHubError",
    "User",
]
