"""
Authentication service.

Checks a plaintext password against the stored hash of a user fetched through
the injected Data Port. The check is expressed as one Deferred chain, so it
runs unchanged over synchronous and asynchronous ports: a sync port yields a
plain ``bool``, an async port yields ``Deferred[bool]``.

Unknown users and backend outages deny the login; they never surface as
exceptions. A ``MappingError`` is logged and propagated unchanged.
"""

import hmac
from typing import Union

from record_hub.domain.deferred import Deferred
from record_hub.domain.exceptions import BackendError, MappingError, NotFound
from record_hub.domain.models import User
from record_hub.domain.protocols import AnyDataPort, PasswordHasher, deliver
from record_hub.utils.logging import get_logger

logger = get_logger(__name__)


class AuthenticationService:
    """Verify credentials against users retrieved through a Data Port."""

    def __init__(self, port: AnyDataPort, hasher: PasswordHasher):
        self._port = port
        self._hasher = hasher

    def authenticate(self, username: str, password: str) -> Union[bool, Deferred[bool]]:
        """
        Check ``password`` for ``username``.

        Returns:
            ``bool`` for a synchronous port, ``Deferred[bool]`` for an
            asynchronous one

        Raises:
            MappingError: The backend returned a malformed user (sync port);
                async ports fail the Deferred with it instead
        """
        outcome = (
            Deferred.attempt(self._port.find_user_by_username, username)
            .then(lambda user: self._verify(user, password))
            .catch(lambda error: self._deny(username, error), NotFound, BackendError)
            .catch(self._report_mapping_error, MappingError)
        )
        return deliver(self._port, outcome)

    def _verify(self, user: User, password: str) -> bool:
        candidate = self._hasher.hash(password)
        matched = hmac.compare_digest(
            candidate.encode("utf-8"), user.password_hash.encode("utf-8")
        )
        if matched:
            logger.info("auth.granted", username=user.username)
        else:
            logger.info("auth.denied", username=user.username, reason="password_mismatch")
        return matched

    def _deny(self, username: str, error: BaseException) -> bool:
        reason = "unknown_user" if isinstance(error, NotFound) else "backend_unavailable"
        logger.warning(
            "auth.denied",
            username=username,
            reason=reason,
            error_type=type(error).__name__,
        )
        return False

    def _report_mapping_error(self, error: BaseException) -> bool:
        payload = error.to_dict() if isinstance(error, MappingError) else {}
        logger.error("auth.mapping_error", **payload)
        raise error
