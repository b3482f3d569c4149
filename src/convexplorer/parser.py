"""Parse exported conversation records and derive message text and dates."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from .config import INVALID_DATE_BUCKET
from .models import ChatMessage, Conversation

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Join policies for content parts
SEARCH_JOIN = " "
DISPLAY_JOIN = "\n\n"


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def extract_text(message: ChatMessage | Mapping[str, Any] | None, separator: str = SEARCH_JOIN) -> str:
    """Return a message's text.

    A non-empty ``text`` field wins. Otherwise the non-empty texts of the
    content parts are joined with ``separator``. Anything else yields "".
    """
    if message is None:
        return ""

    text = _field(message, "text")
    if isinstance(text, str) and text:
        return text

    parts = _field(message, "content")
    if not isinstance(parts, (list, tuple)):
        return ""

    texts: list[str] = []
    for part in parts:
        part_text = _field(part, "text")
        if isinstance(part_text, str) and part_text:
            texts.append(part_text)
    return separator.join(texts)


def is_empty_message(message: ChatMessage | Mapping[str, Any] | None) -> bool:
    return not extract_text(message).strip()


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 string or epoch seconds into an aware UTC datetime."""
    if value is None or isinstance(value, bool):
        return None

    try:
        if isinstance(value, datetime):
            dt = value
        elif isinstance(value, (int, float)):
            return datetime.fromtimestamp(value, tz=timezone.utc)
        elif isinstance(value, str):
            raw = value.strip()
            if not raw:
                return None
            dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        else:
            return None

        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def timestamp_or_epoch(value: Any) -> datetime:
    """Creation instant used by filtering and sorting; unparsable dates count as the epoch."""
    return parse_timestamp(value) or EPOCH


def month_key(value: Any) -> str:
    """Return the ``YYYY-MM`` bucket of a timestamp, or the invalid-date bucket."""
    dt = parse_timestamp(value)
    if dt is None:
        return INVALID_DATE_BUCKET
    return dt.strftime("%Y-%m")


def parse_conversation(raw: Any) -> Conversation | None:
    """Validate one raw record into a Conversation.

    Returns None if the record is not a JSON object.
    """
    if isinstance(raw, Conversation):
        return raw
    if not isinstance(raw, Mapping):
        logger.warning("Skipping non-object entry of type %s", type(raw).__name__)
        return None
    return Conversation.model_validate(dict(raw))


def parse_conversations(data: list[Any]) -> list[Conversation]:
    """Parse a full export array into Conversations, preserving order."""
    conversations: list[Conversation] = []

    for position, raw in enumerate(data):
        try:
            conv = parse_conversation(raw)
        except ValidationError:
            logger.warning("Failed to parse conversation at position %d", position, exc_info=True)
            continue
        if conv is not None:
            conversations.append(conv)

    skipped = len(data) - len(conversations)
    if skipped:
        logger.warning("Skipped %d of %d entries", skipped, len(data))

    return conversations
