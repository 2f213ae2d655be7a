"""Exception types raised by the session manager."""


class ConfigurationError(ValueError):
    """Raised when a session option is missing or invalid"""
    pass


class StorageError(Exception):
    """Raised when the session table cannot be read or written"""
    pass


class SessionConflictError(StorageError):
    """Raised when inserting a session whose identifier already exists"""
    pass


class SessionNotFoundError(StorageError):
    """Raised when renewing a session row that no longer exists"""
    pass


class SessionStateError(RuntimeError):
    """Raised when the session API is used out of order"""
    pass
