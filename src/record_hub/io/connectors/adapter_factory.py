"""
Data Port adapter factory.

This module creates the concrete adapter selected by configuration. Callers
receive it typed as the abstract port; only the composition root ever names a
backend.
"""

from typing import Any

from record_hub.config.settings import Settings
from record_hub.domain.exceptions import ConfigurationError
from record_hub.domain.protocols import AnyDataPort
from record_hub.utils.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_BACKENDS = ("relational", "key_value", "key_value_async")


class AdapterFactory:
    """
    Factory for creating Data Port adapters.

    Supports the relational (SQLAlchemy) backend and the key-value (Redis)
    backend in synchronous and asynchronous form.
    """

    @classmethod
    def create(cls, backend: str, settings: Settings, **kwargs: Any) -> AnyDataPort:
        """
        Create a Data Port adapter for ``backend``.

        Args:
            backend: One of "relational", "key_value", "key_value_async"
            settings: Application settings the adapter config is built from
            **kwargs: Adapter-specific overrides (e.g. ``engine``, ``client``,
                ``executor``) forwarded to the adapter constructor

        Returns:
            Adapter implementing DataPort or AsyncDataPort

        Raises:
            ConfigurationError: If backend is unknown
        """
        adapter: AnyDataPort

        if backend == "relational":
            from record_hub.io.connectors.relational_adapter import RelationalAdapter

            adapter = RelationalAdapter(settings.relational_config(), **kwargs)

        elif backend == "key_value":
            from record_hub.io.connectors.key_value_adapter import KeyValueAdapter

            adapter = KeyValueAdapter(settings.key_value_config(), **kwargs)

        elif backend == "key_value_async":
            from record_hub.io.connectors.key_value_adapter import (
                AsyncKeyValueAdapter,
            )

            adapter = AsyncKeyValueAdapter(settings.key_value_config(), **kwargs)

        else:
            raise ConfigurationError(
                f"Unknown backend: '{backend}'. "
                f"Supported backends: {', '.join(SUPPORTED_BACKENDS)}"
            )

        logger.info(
            "adapter_factory.created",
            backend=backend,
            adapter=type(adapter).__name__,
            synchronous=adapter.synchronous,
        )
        return adapter
