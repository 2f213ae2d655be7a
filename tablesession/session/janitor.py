"""Opportunistic cleanup of expired session rows."""

import logging
import random
from typing import Optional

from tablesession.core.exceptions import StorageError
from tablesession.session.store import SessionStore

logger = logging.getLogger(__name__)


class Janitor:
    """
    Deletes expired rows on a random fraction of requests.

    Sweeping is housekeeping only: expired rows are rejected at read time
    anyway, so a failed sweep is logged and otherwise ignored.
    """

    def __init__(self, store: SessionStore, rng: Optional[random.Random] = None):
        self.store = store
        self.rng = rng or random.Random()

    def maybe_sweep(self, probability: float, now: int, expiration_seconds: int) -> Optional[int]:
        """
        Sweep expired rows with the given probability.

        Returns:
            Number of rows deleted, or None when no sweep ran or it failed
        """
        if probability <= 0 or self.rng.random() >= probability:
            return None

        cutoff = now - expiration_seconds
        try:
            deleted = self.store.delete_expired(cutoff)
        except StorageError as e:
            logger.warning(f"Expired session sweep failed: {e}")
            return None

        if deleted:
            logger.info("Swept %d expired sessions", deleted)
        return deleted
