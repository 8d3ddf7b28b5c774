"""Error taxonomy for record retrieval.

Adapters translate backend-native failures into these types. Consumer
services recover from ``NotFound`` and ``BackendError``; ``MappingError``
signals a contract violation between an adapter and a record type and must
reach the caller unchanged.
"""

from typing import Any, Dict, Optional


class RecordHubError(Exception):
    """Base class for all record_hub errors."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to structured dict for logging."""
        return {"error_type": type(self).__name__, "message": str(self)}


class NotFound(RecordHubError):
    """The requested record does not exist in the backend."""

    def __init__(self, resource: str, key: str):
        self.resource = resource
        self.key = key
        super().__init__(f"No {resource} record for key '{key}'")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": "NotFound",
            "resource": self.resource,
            "key": self.key,
            "message": str(self),
        }


class BackendError(RecordHubError):
    """The backend could not be reached or failed while executing a lookup."""

    def __init__(
        self,
        backend: str,
        message: str,
        original_error: Optional[BaseException] = None,
    ):
        self.backend = backend
        self.original_error = original_error
        super().__init__(message)

    def __str__(self) -> str:  # pragma: no cover - trivial string repr
        return f"Backend '{self.backend}' unavailable: {self.args[0]}"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "error_type": "BackendError",
            "backend": self.backend,
            "message": str(self),
        }
        if self.original_error is not None:
            payload["original_error_type"] = type(self.original_error).__name__
            payload["original_error_message"] = str(self.original_error)
        return payload


class MappingError(RecordHubError):
    """A backend payload does not match the shape of the expected record type."""

    def __init__(
        self,
        resource: str,
        payload: Any,
        original_error: Optional[BaseException] = None,
    ):
        self.resource = resource
        self.payload = payload
        self.original_error = original_error
        detail = f": {original_error}" if original_error is not None else ""
        super().__init__(f"Cannot map {resource} payload{detail}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": "MappingError",
            "resource": self.resource,
            "payload_type": type(self.payload).__name__,
            "message": str(self),
        }


class InvalidStateError(RecordHubError):
    """A deferred result was settled more than once."""


class ConfigurationError(RecordHubError):
    """Invalid adapter or backend configuration."""
