"""Feed service: posts for a recipient as display-ready items, in backend order."""

from typing import Sequence, Tuple, Union

from record_hub.domain.deferred import Deferred
from record_hub.domain.exceptions import BackendError, MappingError, NotFound
from record_hub.domain.models import FeedItem, Post
from record_hub.domain.protocols import AnyDataPort, deliver
from record_hub.utils.logging import get_logger

logger = get_logger(__name__)

FeedResult = Tuple[FeedItem, ...]


class FeedService:
    """Build a user's feed from posts retrieved through a Data Port."""

    def __init__(self, port: AnyDataPort):
        self._port = port

    def build_feed(self, username: str) -> Union[FeedResult, Deferred[FeedResult]]:
        """
        Return the feed for ``username``.

        A missing feed or an unavailable backend yields an empty tuple. The
        order of the posts reported by the backend is kept as is.
        """
        outcome = (
            Deferred.attempt(self._port.find_posts_for_recipient, username)
            .then(lambda posts: self._render(username, posts))
            .catch(lambda error: self._empty(username, error), NotFound, BackendError)
            .catch(self._report_mapping_error, MappingError)
        )
        return deliver(self._port, outcome)

    def _render(self, username: str, posts: Sequence[Post]) -> FeedResult:
        items = tuple(FeedItem.from_post(post) for post in posts)
        logger.debug("feed.built", username=username, count=len(items))
        return items

    def _empty(self, username: str, error: BaseException) -> FeedResult:
        if isinstance(error, BackendError):
            logger.warning("feed.backend_unavailable", username=username, **error.to_dict())
        else:
            logger.debug("feed.empty", username=username)
        return ()

    def _report_mapping_error(self, error: BaseException) -> FeedResult:
        payload = error.to_dict() if isinstance(error, MappingError) else {}
        logger.error("feed.mapping_error", **payload)
        raise error
