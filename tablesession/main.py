import logging
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI
from pydantic import BaseModel
from sqlalchemy.engine import Engine

from tablesession import __version__
from tablesession.core.config import SessionSettings, get_settings
from tablesession.core.logging_config import setup_logging
from tablesession.db.init_db import init_database
from tablesession.db.session import create_session_engine, make_session_factory
from tablesession.middleware import SessionMiddleware, get_session
from tablesession.session import SessionHandler

logger = logging.getLogger("tablesession.main")


class SessionValue(BaseModel):
    value: Any


def create_app(
    settings: Optional[SessionSettings] = None,
    engine: Optional[Engine] = None,
    configure_logging: bool = False,
) -> FastAPI:
    """
    Build a small FastAPI app exposing the session API over HTTP.

    Args:
        settings: Session settings; loaded from the environment when omitted
        engine: Database engine; created from settings.database_url when omitted
        configure_logging: Whether to install the package's logging setup
    """
    settings = settings or get_settings()

    if configure_logging:
        setup_logging(settings.log_level, enable_json=settings.json_logging)

    engine = engine or create_session_engine(settings.database_url)
    init_database(engine, settings.table_name)

    app = FastAPI(
        title="tablesession",
        description="Database-backed HTTP sessions",
        version=__version__,
    )
    app.add_middleware(
        SessionMiddleware,
        settings=settings,
        session_factory=make_session_factory(engine),
    )

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "healthy", "version": __version__}

    @app.get("/session")
    def read_session(session: SessionHandler = Depends(get_session)) -> Dict[str, Any]:
        return {
            "data": session.get_data(),
            "flash": session.get_flash_data(),
            "renewed": session.renewed,
            "is_new": session.is_new,
        }

    @app.put("/session/{key}")
    def set_value(key: str, body: SessionValue, session: SessionHandler = Depends(get_session)):
        session.set_data(key, body.value)
        return {"ok": True}

    @app.delete("/session/{key}")
    def unset_value(key: str, session: SessionHandler = Depends(get_session)):
        session.unset_data(key)
        return {"ok": True}

    @app.delete("/session")
    def clear_values(session: SessionHandler = Depends(get_session)):
        session.unset_data()
        return {"ok": True}

    @app.put("/flash/{key}")
    def set_flash(key: str, body: SessionValue, session: SessionHandler = Depends(get_session)):
        session.set_flash_data(key, body.value)
        return {"ok": True}

    @app.post("/logout")
    def logout(session: SessionHandler = Depends(get_session)):
        session.destroy()
        return {"ok": True}

    logger.info(
        "Session app initialized",
        extra={"table": settings.table_name, "cookie": settings.cookie_name},
    )
    return app
