"""Explicit per-request inputs and outputs of the session handler."""

from dataclasses import dataclass, field
from typing import Mapping, Optional

from tablesession.session.cookies import CookieDirective

DEFAULT_IP_ADDRESS = "0.0.0.0"


@dataclass(frozen=True)
class RequestContext:
    """What the session handler needs to know about the inbound request"""

    cookies: Mapping[str, str] = field(default_factory=dict)
    remote_addr: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def ip_address(self) -> str:
        return self.remote_addr or DEFAULT_IP_ADDRESS

    def cookie(self, name: str) -> Optional[str]:
        return self.cookies.get(name) or None


@dataclass
class ResponseContext:
    """Outbound state the session handler writes to"""

    cookie: Optional[CookieDirective] = None
    headers_sent: bool = False
