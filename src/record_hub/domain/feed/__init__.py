"""Feed domain."""

from .service import FeedService

__all__ = ["FeedService"]
