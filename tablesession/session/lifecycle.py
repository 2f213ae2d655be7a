"""
Session lifecycle management.

``SessionHandler`` decides, once per request, whether the inbound identifier
yields a valid session, whether to renew or destroy it, and when to create a
fresh one. Application code then reads and mutates the session data, and the
handler writes everything back when it is closed.

Typical use::

    with SessionHandler(db, settings, RequestContext(cookies, addr, ua), response) as session:
        session.set_data("user_id", 42)
"""

import logging
import random
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from tablesession.core.config import SessionSettings
from tablesession.core.exceptions import SessionNotFoundError, SessionStateError
from tablesession.core.logging_config import mask_token
from tablesession.core.security import IdentifierGenerator, fingerprint_user_agent, is_session_id
from tablesession.session.context import RequestContext, ResponseContext
from tablesession.session.cookies import CookieBinder
from tablesession.session.janitor import Janitor
from tablesession.session.record import SessionRecord
from tablesession.session.store import SessionStore


class SessionState(str, Enum):
    """States a session passes through during one request"""
    NO_SESSION = "no_session"
    PENDING = "pending"
    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"
    RENEWED = "renewed"
    DESTROYED = "destroyed"


class SessionHandler:
    """Runs the session state machine for a single request."""

    def __init__(
        self,
        db: Session,
        settings: SessionSettings,
        request: RequestContext,
        response: Optional[ResponseContext] = None,
        *,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the session handler.

        Args:
            db: Database session borrowed for this request; the caller owns it
            settings: Validated session settings
            request: Cookies, remote address and user agent of the request
            response: Receives the outbound cookie directive
            clock: Source of the current unix time, read exactly once
            rng: Random source for the expired-row sweep
            logger: Logger for session events; the module logger by default
        """
        self.settings = settings
        self.request = request
        self.response = response if response is not None else ResponseContext()
        self.logger = logger or logging.getLogger(__name__)

        # Every expiry and renewal decision in this request uses the same instant
        self.now = int(clock())

        self.store = SessionStore(db, settings.table_name)
        self.generator = IdentifierGenerator(settings.salt.get_secret_value())
        self.cookies = CookieBinder(self.response)
        self.janitor = Janitor(self.store, rng)

        self._ip_address = request.ip_address if settings.check_ip_address else None
        self._user_agent_hash = (
            fingerprint_user_agent(request.user_agent) if settings.check_user_agent else None
        )

        self.record: Optional[SessionRecord] = None
        self.state = SessionState.NO_SESSION
        self.history: List[SessionState] = []
        self.is_new = False
        self._started = False
        self._closed = False

        if settings.auto_run_session:
            self.run()

    def __enter__(self) -> "SessionHandler":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    @property
    def session_id(self) -> Optional[str]:
        return self.record.session_id if self.record is not None else None

    @property
    def renewed(self) -> bool:
        return SessionState.RENEWED in self.history

    def run(self) -> None:
        """Load or create the session, sweep expired rows, and bind the cookie."""
        if self.state is SessionState.DESTROYED:
            raise SessionStateError("Session has been destroyed for this request")
        if self._started:
            raise SessionStateError("Session has already been started for this request")
        self._started = True

        if not self._read():
            self._create()

        self.janitor.maybe_sweep(
            self.settings.gc_probability,
            self.now,
            self.settings.seconds_until_expiration,
        )
        self._set_cookie()

    # ------------------------------------------------------------------
    # Data API
    # ------------------------------------------------------------------

    def set_data(self, key: str, value: Any) -> None:
        """Store a single value in the session"""
        self._active_record().data[key] = value

    def set_many(self, values: Mapping[str, Any]) -> None:
        """Store several values in the session"""
        self._active_record().data.update(values)

    def get_data(self, key: Optional[str] = None, default: Any = None) -> Any:
        """Return one value, or a copy of all session data when no key is given"""
        data = self._active_record().data
        if key is None:
            return dict(data)
        return data.get(key, default)

    def unset_data(self, key: Optional[str] = None) -> None:
        """Remove one key, or all session data when no key is given"""
        data = self._active_record().data
        if key is None:
            data.clear()
        else:
            data.pop(key, None)

    def set_flash_data(self, key: str, value: Any) -> None:
        """Stage a value that is readable only on the next request"""
        self._active_record().flash_out[key] = value

    def set_flash_many(self, values: Mapping[str, Any]) -> None:
        """Stage several values for the next request"""
        self._active_record().flash_out.update(values)

    def get_flash_data(self, key: Optional[str] = None, default: Any = None) -> Any:
        """Return flash data staged by the previous request"""
        flash = self._active_record().flash_in
        if key is None:
            return dict(flash)
        return flash.get(key, default)

    def destroy(self) -> None:
        """Delete the session row and tell the client to drop its cookie."""
        if self.state is SessionState.DESTROYED:
            return

        if self.record is not None:
            self.store.delete(self.record.session_id)
            self.logger.info("Session %s destroyed", mask_token(self.record.session_id))
        self.cookies.expire(self.settings.cookie_name, self.settings.secure_cookie)
        self.record = None
        self._transition(SessionState.DESTROYED)

    def close(self) -> None:
        """
        Write session data back to the store.

        The full payload is written even when nothing changed. Runs at most
        once; a destroyed or never-started session writes nothing.
        """
        if self._closed:
            return
        self._closed = True

        if self.record is None:
            return
        # TODO: skip the write when data and flash_out are unchanged and flash_in was empty
        self.store.update_payload(self.record.session_id, self.record.data, self.record.flash_out)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _read(self) -> bool:
        """Validate the inbound identifier; True when a stored session was loaded."""
        session_id = self.request.cookie(self.settings.cookie_name)
        if not session_id:
            self._transition(SessionState.NO_SESSION)
            return False

        self._transition(SessionState.PENDING)

        record = self.store.find_by_id(session_id) if is_session_id(session_id) else None
        if record is None:
            self.logger.debug("No stored session for presented identifier")
            self._transition(SessionState.NO_SESSION)
            return False

        age = self.now - record.updated_at

        if not self.settings.expire_on_close and age > self.settings.seconds_until_expiration:
            self.logger.info("Session %s expired", mask_token(session_id))
            self._transition(SessionState.EXPIRED)
            self._discard(session_id)
            return False

        if self.settings.check_ip_address and record.ip_address != self._ip_address:
            self.logger.warning("Session %s rejected: IP address changed", mask_token(session_id))
            self._transition(SessionState.INVALID)
            self._discard(session_id)
            return False

        if self.settings.check_user_agent and record.user_agent_hash != self._user_agent_hash:
            self.logger.warning("Session %s rejected: user agent changed", mask_token(session_id))
            self._transition(SessionState.INVALID)
            self._discard(session_id)
            return False

        self.record = record

        if age > self.settings.renewal_time:
            if not self._regenerate_id():
                self.record = None
                self._transition(SessionState.NO_SESSION)
                return False

        self._transition(SessionState.VALID)
        return True

    def _create(self) -> None:
        """Insert a fresh, empty session row."""
        record = SessionRecord(
            session_id=self.generator.generate(self.request.ip_address),
            updated_at=self.now,
            user_agent_hash=self._user_agent_hash,
            ip_address=self._ip_address,
        )
        self.store.insert(record)
        self.record = record
        self.is_new = True
        self._transition(SessionState.VALID)
        self.logger.debug("Created session %s", mask_token(record.session_id))

    def _regenerate_id(self) -> bool:
        """Move the current row to a new identifier; False if the row vanished."""
        old_id = self.record.session_id
        new_id = self.generator.generate(self.request.ip_address)
        try:
            self.store.renew(old_id, new_id, self.now)
        except SessionNotFoundError:
            self.logger.info("Session %s disappeared during renewal", mask_token(old_id))
            return False

        self.record.session_id = new_id
        self.record.updated_at = self.now
        self._transition(SessionState.RENEWED)
        self.logger.debug("Renewed session %s as %s", mask_token(old_id), mask_token(new_id))
        return True

    def _discard(self, session_id: str) -> None:
        """Drop a rejected session before a new one is created."""
        self.store.delete(session_id)
        self.cookies.expire(self.settings.cookie_name, self.settings.secure_cookie)
        self.record = None

    def _set_cookie(self) -> None:
        expires = 0 if self.settings.expire_on_close else self.now + self.settings.seconds_until_expiration
        self.cookies.bind(
            self.settings.cookie_name,
            self.record.session_id,
            expires,
            self.settings.secure_cookie,
        )

    def _active_record(self) -> SessionRecord:
        if self.state is SessionState.DESTROYED:
            raise SessionStateError("Session has been destroyed")
        if self.record is None:
            raise SessionStateError("Session has not been started; call run() first")
        return self.record

    def _transition(self, state: SessionState) -> None:
        self.state = state
        self.history.append(state)

    def to_dict(self) -> Dict[str, Any]:
        """Summary of this request's session outcome, safe to log"""
        return {
            "state": self.state.value,
            "history": [s.value for s in self.history],
            "session": mask_token(self.session_id) if self.session_id else None,
            "is_new": self.is_new,
            "renewed": self.renewed,
        }
