from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


def get_connect_args(database_url: str) -> Dict[str, Any]:
    """Get database-specific connection arguments"""
    if database_url.startswith("sqlite"):
        # Requests may hop between threadpool workers
        return {"check_same_thread": False}
    return {}


def create_session_engine(database_url: str, **kwargs: Any) -> Engine:
    """Create a database engine with appropriate connection args"""
    return create_engine(
        database_url,
        connect_args=get_connect_args(database_url),
        # Statement parameters carry session identifiers
        hide_parameters=True,
        **kwargs,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    """Create a DB session factory bound to the engine"""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_sync(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Get a synchronous DB session with proper resource management"""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
