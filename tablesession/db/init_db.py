#!/usr/bin/env python3
"""Create the session table"""

import logging

from sqlalchemy.engine import Engine

from tablesession.db.base import metadata
from tablesession.db.models.session_table import get_session_table

logger = logging.getLogger("tablesession.database")


def init_database(engine: Engine, table_name: str = "session") -> None:
    """Create the session table if it does not exist yet"""
    table = get_session_table(table_name)
    try:
        logger.info("Creating session table %s", table_name)
        metadata.create_all(bind=engine, tables=[table], checkfirst=True)
        logger.info("Session table ready", extra={"table": table_name})
    except Exception as e:
        logger.error(f"Error initializing database: {e}", extra={
            "error_type": type(e).__name__,
            "database_url": "[REDACTED]"  # Don't log connection strings
        })
        raise


if __name__ == "__main__":
    from tablesession.core.config import get_settings
    from tablesession.core.logging_config import setup_logging
    from tablesession.db.session import create_session_engine

    settings = get_settings()
    setup_logging(settings.log_level, enable_json=settings.json_logging)
    init_database(create_session_engine(settings.database_url), settings.table_name)
