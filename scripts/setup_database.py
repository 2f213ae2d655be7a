#!/usr/bin/env python3
"""
Database setup script for tablesession.

Creates the session table for the database configured in SESSION_DATABASE_URL.
"""

import sys

from sqlalchemy import inspect

from tablesession.core.config import get_settings
from tablesession.core.exceptions import ConfigurationError
from tablesession.db.init_db import init_database
from tablesession.db.session import create_session_engine


def main() -> bool:
    """Initialize the session table based on configuration"""
    print("tablesession database setup")
    print("=" * 40)

    try:
        settings = get_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return False

    engine = create_session_engine(settings.database_url)
    print(f"Database type: {engine.dialect.name}")
    print(f"Session table: {settings.table_name}")

    try:
        init_database(engine, settings.table_name)
    except Exception as e:
        print(f"Database initialization failed: {e}")
        return False

    tables = inspect(engine).get_table_names()
    print(f"Existing tables: {', '.join(sorted(tables))}")
    return settings.table_name in tables


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
