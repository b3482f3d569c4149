"""Single-pass statistics over a conversation population."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from .config import MEDIUM_MESSAGE_MAX, SHORT_MESSAGE_MAX, UNKNOWN_LABEL
from .models import Conversation, MonthCounts, Statistics
from .parser import extract_text, month_key, parse_timestamp


def _present_fields(obj: Any) -> list[str]:
    """Names of the fields a record actually carried in the source."""
    if isinstance(obj, BaseModel):
        names = [name for name in type(obj).model_fields if name in obj.model_fields_set]
        names.extend(obj.model_extra or {})
        return names
    if isinstance(obj, Mapping):
        return list(obj.keys())
    return []


class FieldPresence:
    """Tallies how many records of each category carry each field."""

    def __init__(self):
        self.counts: dict[str, dict[str, int]] = {}

    def record(self, category: str, obj: Any):
        tally = self.counts.setdefault(category, {})
        for name in _present_fields(obj):
            tally[name] = tally.get(name, 0) + 1

    def as_dict(self) -> dict[str, dict[str, int]]:
        return {category: dict(tally) for category, tally in self.counts.items()}


def aggregate(records: Iterable[Conversation]) -> Statistics:
    """Compute statistics in one pass over conversations and their messages.

    Conversations whose creation date is missing or unparsable are counted
    under the ``invalid-date`` month. Message lengths are the trimmed length
    of the space-joined message text.
    """
    stats = Statistics()
    presence = FieldPresence()
    by_month: dict[str, MonthCounts] = {}
    by_sender: dict[str, int] = {}
    by_type: dict[str, int] = {}
    oldest: datetime | None = None
    newest: datetime | None = None

    for conv in records:
        stats.total_conversations += 1
        presence.record("conversations", conv)

        messages = conv.chat_messages
        month = by_month.setdefault(month_key(conv.created_at), MonthCounts())
        month.conversations += 1
        month.messages += len(messages)

        created = parse_timestamp(conv.created_at)
        if created is not None:
            if oldest is None or created < oldest:
                oldest = created
            if newest is None or created > newest:
                newest = created

        if not messages:
            stats.empty_conversations += 1
            continue

        stats.total_messages += len(messages)

        for msg in messages:
            presence.record("messages", msg)

            sender = msg.sender if msg.sender is not None else UNKNOWN_LABEL
            by_sender[sender] = by_sender.get(sender, 0) + 1

            length = len(extract_text(msg).strip())
            if length == 0:
                stats.empty_messages += 1
                stats.message_lengths.empty += 1
            elif length <= SHORT_MESSAGE_MAX:
                stats.message_lengths.short += 1
            elif length <= MEDIUM_MESSAGE_MAX:
                stats.message_lengths.medium += 1
            else:
                stats.message_lengths.long += 1

            if msg.attachments:
                stats.messages_with_attachments += 1
            if msg.files:
                stats.messages_with_files += 1

            stats.content_parts += len(msg.content)
            for part in msg.content:
                presence.record("content", part)
                part_type = part.type or UNKNOWN_LABEL
                by_type[part_type] = by_type.get(part_type, 0) + 1
                if part.citations is not None and not part.citations:
                    stats.empty_citations += 1

    stats.messages_by_sender = by_sender
    stats.by_month = dict(sorted(by_month.items()))
    stats.content_by_type = by_type
    stats.oldest_conversation = oldest.isoformat() if oldest else None
    stats.newest_conversation = newest.isoformat() if newest else None
    stats.field_presence = presence.as_dict()
    return stats
