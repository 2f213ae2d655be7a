"""Database models"""

from tablesession.db.models.session_table import get_session_table

__all__ = [
    "get_session_table",
]
