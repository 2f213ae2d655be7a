from typing import Optional

from sqlalchemy import CHAR, Column, Integer, MetaData, String, Table, Text

from tablesession.db.base import metadata as default_metadata


def get_session_table(name: str = "session", metadata: Optional[MetaData] = None) -> Table:
    """
    Return the session table definition for the given table name.

    The table name is configurable, so the definition is built on demand and
    registered once per metadata collection.
    """
    metadata = metadata if metadata is not None else default_metadata
    existing = metadata.tables.get(name)
    if existing is not None:
        return existing

    return Table(
        name,
        metadata,
        Column("session_id", CHAR(64), primary_key=True),
        # JSON-encoded {"data": ..., "flash": ...}
        Column("data", Text, nullable=True),
        Column("user_agent", CHAR(64), nullable=True),
        Column("ip_address", String(46), nullable=True),
        Column("time_updated", Integer, nullable=True, index=True),
    )
