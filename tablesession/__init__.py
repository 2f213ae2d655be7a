"""Database-backed HTTP sessions with cookie-bound identifiers"""

import logging

from tablesession.core.config import SessionSettings, load_settings
from tablesession.core.exceptions import (
    ConfigurationError,
    SessionConflictError,
    SessionNotFoundError,
    SessionStateError,
    StorageError,
)
from tablesession.session import RequestContext, ResponseContext, SessionHandler, SessionState

__version__ = "1.0.0"

# Silent unless the embedding application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ConfigurationError",
    "RequestContext",
    "ResponseContext",
    "SessionConflictError",
    "SessionHandler",
    "SessionNotFoundError",
    "SessionSettings",
    "SessionState",
    "SessionStateError",
    "StorageError",
    "load_settings",
]
