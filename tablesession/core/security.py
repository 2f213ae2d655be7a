"""
Security utilities for session identifiers

This module provides the keyed identifier generator and the user agent
fingerprint stored alongside each session row.
"""

import hashlib
import hmac
import re
import secrets
from typing import Optional

SESSION_ID_LENGTH = 64
UNKNOWN_USER_AGENT = "unknown"

_SESSION_ID_RE = re.compile(r"^[0-9a-f]{64}$")


class IdentifierGenerator:
    """
    Produces session identifiers that cannot be forged without the salt.

    Each identifier is an HMAC-SHA256 over fresh random bytes and a digest of
    the client's IP address fragment, keyed by the configured salt.
    """

    def __init__(self, salt: str):
        if not salt:
            raise ValueError("Identifier salt cannot be empty")
        self._key = salt.encode("utf-8")

    def generate(self, ip_address: Optional[str] = None) -> str:
        """
        Generate a new session identifier.

        Args:
            ip_address: Client address; only its first five characters are mixed in

        Returns:
            64 lowercase hexadecimal characters
        """
        # os.urandom backed; raises if no secure source exists
        nonce = secrets.token_bytes(32)
        fragment = hashlib.sha256((ip_address or "")[:5].encode("utf-8")).digest()
        return hmac.new(self._key, nonce + fragment, hashlib.sha256).hexdigest()


def fingerprint_user_agent(user_agent: Optional[str]) -> str:
    """Hash a user agent string into a fixed 64 character fingerprint"""
    return hashlib.sha256((user_agent or UNKNOWN_USER_AGENT).encode("utf-8")).hexdigest()


def is_session_id(value: Optional[str]) -> bool:
    """Check that a cookie value has the shape of a generated identifier"""
    return bool(value) and _SESSION_ID_RE.match(value) is not None
