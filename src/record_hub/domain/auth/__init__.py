"""Authentication domain."""

from .hashing import HmacPasswordHasher
from .service import AuthenticationService

__all__ = ["AuthenticationService", "HmacPasswordHasher"]
