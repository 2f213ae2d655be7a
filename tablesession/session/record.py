"""In-memory state of one session."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class SessionRecord:
    """A session row plus the flash data that only lives for one request."""

    session_id: str
    updated_at: int
    user_agent_hash: Optional[str] = None
    ip_address: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    flash_in: Dict[str, Any] = field(default_factory=dict)
    flash_out: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<SessionRecord(session_id={self.session_id[:8]!r}..., updated_at={self.updated_at})>"


def encode_payload(data: Dict[str, Any], flash_out: Dict[str, Any]) -> str:
    """Serialize durable data and staged flash data into the payload column"""
    return json.dumps({"data": data, "flash": flash_out})


def decode_payload(raw: Optional[str]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Unpack a stored payload into (data, flash).

    The stored flash becomes the incoming flash for the current request.
    Anything that is not a JSON object decodes to empty mappings.
    """
    if not raw:
        return {}, {}

    try:
        payload = json.loads(raw)
    except ValueError:
        logger.warning("Discarding undecodable session payload")
        return {}, {}

    if not isinstance(payload, dict):
        return {}, {}

    data = payload.get("data")
    flash = payload.get("flash")
    return (
        data if isinstance(data, dict) else {},
        flash if isinstance(flash, dict) else {},
    )
