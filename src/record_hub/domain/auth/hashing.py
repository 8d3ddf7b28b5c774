"""Default password hasher.

The hashing algorithm is an external collaborator of the authentication
service; any object with ``hash(plaintext) -> str`` can be injected instead.
"""

import hashlib
import hmac


class HmacPasswordHasher:
    """HMAC-SHA256 keyed by an application salt, rendered as lowercase hex."""

    def __init__(self, salt: str = ""):
        self.salt = salt

    def hash(self, plaintext: str) -> str:
        return hmac.new(
            self.salt.encode("utf-8"),
            plaintext.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
