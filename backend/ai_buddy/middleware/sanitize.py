"""
Inbound message checks, applied before a turn enters the agent graph.

Frames on the chat socket are either raw user text or a JSON event
envelope ``{"event": "message", "data": "<text>"}``.
"""

import json

from ai_buddy.core.errors import InvalidMessageError
from ai_buddy.core.logging import get_logger

log = get_logger(__name__)


def parse_inbound(frame: str) -> str:
    """Extract the user text from a raw or enveloped frame."""
    stripped = frame.strip()
    if stripped.startswith("{"):
        try:
            envelope = json.loads(stripped)
        except json.JSONDecodeError:
            return frame
        if isinstance(envelope, dict) and envelope.get("event") == "message":
            data = envelope.get("data")
            if not isinstance(data, str):
                raise InvalidMessageError("Message data must be a string.")
            return data
    return frame


def sanitize_message(text: str, max_length: int) -> str:
    """
    Validate a user message.
    Raises InvalidMessageError when empty or over max_length characters.
    Returns the (unchanged) text if acceptable.
    """
    if not text.strip():
        raise InvalidMessageError("Message is empty.")

    if len(text) > max_length:
        log.warning("message_too_long", length=len(text), max_length=max_length)
        raise InvalidMessageError(
            f"Message too long ({len(text)} chars). Maximum is {max_length}."
        )

    return text
