"""
Server-side session storage on a relational database.

Every operation is keyed by session identifier against a single table and
commits its own unit of work on the caller's SQLAlchemy session.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, NoReturn, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tablesession.core.exceptions import (
    SessionConflictError,
    SessionNotFoundError,
    StorageError,
)
from tablesession.core.logging_config import mask_token
from tablesession.db.models.session_table import get_session_table
from tablesession.session.record import SessionRecord, decode_payload, encode_payload

logger = logging.getLogger(__name__)


class SessionStore:
    """Persistence boundary for session rows."""

    def __init__(self, db: Session, table_name: str = "session"):
        # Borrowed for the request; the caller closes it
        self.db = db
        self.table = get_session_table(table_name)

    def find_by_id(self, session_id: str) -> Optional[SessionRecord]:
        """Point lookup; returns None when no row exists."""
        t = self.table
        stmt = select(
            t.c.data, t.c.user_agent, t.c.ip_address, t.c.time_updated
        ).where(t.c.session_id == session_id)
        try:
            row = self.db.execute(stmt).first()
            # Reads also open a transaction; end it so later writes start clean
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("read", session_id, e)

        if row is None:
            return None

        data, flash = decode_payload(row.data)
        return SessionRecord(
            session_id=session_id,
            updated_at=row.time_updated or 0,
            user_agent_hash=row.user_agent,
            ip_address=row.ip_address,
            data=data,
            flash_in=flash,
        )

    def insert(self, record: SessionRecord) -> None:
        """
        Create a new row for the record.

        Raises:
            SessionConflictError: If the identifier already exists
            StorageError: On any other database failure
        """
        stmt = insert(self.table).values(
            session_id=record.session_id,
            data=None,
            user_agent=record.user_agent_hash,
            ip_address=record.ip_address,
            time_updated=record.updated_at,
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise SessionConflictError(
                f"Session {mask_token(record.session_id)} already exists"
            ) from e
        except SQLAlchemyError as e:
            self._fail("insert", record.session_id, e)

    def update_payload(
        self, session_id: str, data: Dict[str, Any], flash_out: Dict[str, Any]
    ) -> None:
        """Write back durable and staged flash data; time_updated is untouched."""
        stmt = (
            update(self.table)
            .where(self.table.c.session_id == session_id)
            .values(data=encode_payload(data, flash_out))
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("write", session_id, e)

    def renew(self, old_id: str, new_id: str, now: int) -> None:
        """
        Move a row to a new identifier and refresh its timestamp in one statement.

        Raises:
            SessionNotFoundError: If old_id no longer exists
            StorageError: On any other database failure
        """
        t = self.table
        stmt = (
            update(t)
            .where(t.c.session_id == old_id)
            .values(session_id=new_id, time_updated=now)
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("renew", old_id, e)

        if result.rowcount == 0:
            raise SessionNotFoundError(f"Session {mask_token(old_id)} no longer exists")

    def delete(self, session_id: str) -> None:
        """Remove a row; deleting a missing row is not an error."""
        stmt = delete(self.table).where(self.table.c.session_id == session_id)
        try:
            self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("delete", session_id, e)

    def delete_expired(self, cutoff: int) -> int:
        """Bulk delete rows last updated before cutoff; returns the row count."""
        stmt = delete(self.table).where(self.table.c.time_updated < cutoff)
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete expired sessions: {e}")
            raise StorageError(f"Failed to delete expired sessions: {e}") from e
        return result.rowcount

    def _fail(self, operation: str, session_id: str, error: SQLAlchemyError) -> NoReturn:
        self.db.rollback()
        logger.error(
            f"Session {operation} failed for {mask_token(session_id)}: {error}",
            extra={"error_type": type(error).__name__},
        )
        raise StorageError(f"Session {operation} failed: {error}") from error
