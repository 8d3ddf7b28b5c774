"""
Composition root.

The only place a concrete adapter is chosen. Exactly one adapter is built and
the same instance is injected into both consumer services; everything past
this module sees it as a Data Port.

Usage:
    >>> from record_hub.bootstrap import build_services
    >>> with build_services() as services:
    ...     services.auth.authenticate("alice", "wonderland")
"""

from dataclasses import dataclass
from typing import Any, Optional

from record_hub.config import Settings, get_settings
from record_hub.domain.auth import AuthenticationService, HmacPasswordHasher
from record_hub.domain.feed import FeedService
from record_hub.domain.protocols import AnyDataPort, PasswordHasher
from record_hub.io.connectors.adapter_factory import AdapterFactory
from record_hub.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Services:
    """Wired consumer services sharing one Data Port."""

    port: AnyDataPort
    auth: AuthenticationService
    feed: FeedService

    def close(self) -> None:
        self.port.close()
        logger.info("bootstrap.closed")

    def __enter__(self) -> "Services":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def build_services(
    settings: Optional[Settings] = None,
    backend: Optional[str] = None,
    hasher: Optional[PasswordHasher] = None,
    **adapter_kwargs: Any,
) -> Services:
    """
    Build the adapter and inject it into both consumer services.

    Args:
        settings: Application settings (defaults to ``get_settings()``)
        backend: Backend name overriding ``settings.backend``
        hasher: Password hasher (defaults to HMAC keyed by ``password_salt``)
        **adapter_kwargs: Forwarded to the adapter (``engine``, ``client``, ...)
    """
    settings = settings or get_settings()
    backend = backend or settings.backend
    hasher = hasher or HmacPasswordHasher(settings.password_salt)

    port = AdapterFactory.create(backend, settings, **adapter_kwargs)
    services = Services(
        port=port,
        auth=AuthenticationService(port, hasher),
        feed=FeedService(port),
    )
    logger.info("bootstrap.wired", backend=backend)
    return services
