from .context import RequestContext, ResponseContext
from .cookies import CookieBinder, CookieDirective
from .janitor import Janitor
from .lifecycle import SessionHandler, SessionState
from .record import SessionRecord
from .store import SessionStore

__all__ = [
    "CookieBinder",
    "CookieDirective",
    "Janitor",
    "RequestContext",
    "ResponseContext",
    "SessionHandler",
    "SessionRecord",
    "SessionState",
    "SessionStore",
]
