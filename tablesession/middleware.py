"""
Starlette middleware that runs one session handler per request.

The handler is attached to ``request.state.session``. Its data is written
back after the route returns, or raises, and the session cookie is added to
the response.
"""

import logging
import random
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from tablesession.core.config import SessionSettings
from tablesession.session import RequestContext, ResponseContext, SessionHandler

logger = logging.getLogger(__name__)


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Middleware providing database-backed sessions.

    Store calls are synchronous, so they run in the threadpool rather than
    on the event loop.
    """

    def __init__(
        self,
        app: ASGIApp,
        settings: SessionSettings,
        session_factory: sessionmaker,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(app)
        self.settings = settings
        self.session_factory = session_factory
        self.rng = rng

    async def dispatch(self, request: Request, call_next):
        request_ctx = RequestContext(
            cookies=dict(request.cookies),
            remote_addr=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
        response_ctx = ResponseContext()

        db = self.session_factory()
        try:
            handler = await run_in_threadpool(self._start, db, request_ctx, response_ctx)
            request.state.session = handler
            try:
                response = await call_next(request)
            finally:
                await run_in_threadpool(handler.close)
            logger.debug("Session request finished", extra={"outcome": handler.to_dict()})
        finally:
            await run_in_threadpool(db.close)

        self._send_cookie(response, response_ctx)
        return response

    def _start(
        self, db: Session, request_ctx: RequestContext, response_ctx: ResponseContext
    ) -> SessionHandler:
        handler = SessionHandler(db, self.settings, request_ctx, response_ctx, rng=self.rng)
        if not self.settings.auto_run_session:
            handler.run()
        return handler

    def _send_cookie(self, response: Response, response_ctx: ResponseContext) -> None:
        directive = response_ctx.cookie
        if directive is None:
            return
        try:
            response.headers.append("set-cookie", directive.header_value())
        except Exception as e:
            # The row already exists; the client just keeps its previous cookie
            logger.error(f"Failed to send session cookie: {e}")
        finally:
            response_ctx.headers_sent = True


def get_session(request: Request) -> SessionHandler:
    """Dependency returning the current request's session handler"""
    return request.state.session
