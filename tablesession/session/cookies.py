"""
Outbound session cookie handling.

A response carries at most one session cookie; each bind replaces the
previous directive instead of adding another header.
"""

import logging
from dataclasses import dataclass
from email.utils import formatdate
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tablesession.session.context import ResponseContext

logger = logging.getLogger(__name__)

# Unix time used for cookies that must be dropped right away
EXPIRED_TIMESTAMP = 1

SAME_SITE_VALUES = {"lax": "Lax", "strict": "Strict", "none": "None"}


@dataclass(frozen=True)
class CookieDirective:
    """One Set-Cookie instruction for the session cookie"""

    name: str
    value: str
    expires: int
    secure: bool
    same_site: str = "Lax"
    path: str = "/"
    http_only: bool = True

    @property
    def is_session_cookie(self) -> bool:
        """Cookie without an expiry, dropped when the browser closes"""
        return self.expires == 0

    @property
    def is_deletion(self) -> bool:
        return 0 < self.expires <= EXPIRED_TIMESTAMP

    def header_value(self) -> str:
        """Render the value of a Set-Cookie header"""
        parts = [f"{self.name}={self.value}"]
        if not self.is_session_cookie:
            parts.append(f"Expires={formatdate(self.expires, usegmt=True)}")
        if self.is_deletion:
            parts.append("Max-Age=0")
        parts.append(f"Path={self.path}")
        if self.http_only:
            parts.append("HttpOnly")
        parts.append(f"SameSite={self.same_site}")
        if self.secure:
            parts.append("Secure")
        return "; ".join(parts)


class CookieBinder:
    """Translates lifecycle decisions into the response's cookie directive."""

    def __init__(self, response: "ResponseContext"):
        self.response = response

    def bind(
        self,
        name: str,
        value: str,
        expires: int,
        secure: bool,
        same_site: str = "lax",
        path: str = "/",
    ) -> None:
        """
        Set the session cookie for this response.

        Args:
            name: Cookie name
            value: Session identifier, or "" when deleting
            expires: Unix expiry time; 0 for a browser-session cookie
            secure: Whether to send the cookie over HTTPS only
            same_site: SameSite policy (lax, strict or none)
            path: Cookie path
        """
        try:
            policy = SAME_SITE_VALUES[same_site.lower()]
        except KeyError:
            raise ValueError(f"Invalid SameSite value: {same_site!r}") from None

        if self.response.headers_sent:
            # The session already exists server-side; the client keeps its old cookie
            logger.warning("Cannot set cookie %s: response headers already sent", name)
            return

        if self.response.cookie is not None:
            logger.debug("Replacing pending %s cookie", name)

        self.response.cookie = CookieDirective(
            name=name,
            value=value,
            expires=expires,
            secure=secure,
            same_site=policy,
            path=path,
        )

    def expire(self, name: str, secure: bool) -> None:
        """Instruct the client to drop the session cookie immediately"""
        self.bind(name, "", EXPIRED_TIMESTAMP, secure)
