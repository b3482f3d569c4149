"""In-memory store of the loaded conversations."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from pathlib import Path

from .loader import LoadError, load_conversations
from .models import ChatMessage, Conversation, LoadResult, Statistics
from .stats import aggregate

logger = logging.getLogger(__name__)


class ConversationIndex:
    """Owns the conversation list for one loaded file, with a uuid lookup.

    A load replaces the list and the lookup together, so a reader never sees
    a half-loaded state. Records are handed out by reference and are never
    copied or changed here.
    """

    def __init__(self, records: Iterable[Conversation] = ()):
        self._records: tuple[Conversation, ...] = ()
        self._positions: dict[str, int] = {}
        self._stats: Statistics | None = None
        self.source: Path | None = None
        self.load(records)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> tuple[Conversation, ...]:
        return self._records

    def load(self, records: Iterable[Conversation]):
        """Replace the held conversations and rebuild the uuid lookup.

        With duplicate uuids the last occurrence wins in the lookup; every
        record stays in the list.
        """
        staged = tuple(records)
        positions: dict[str, int] = {}
        for position, conv in enumerate(staged):
            if conv.uuid:
                positions[conv.uuid] = position

        self._records, self._positions, self._stats = staged, positions, None

    def load_file(self, path: str | Path) -> LoadResult:
        """Load an export file. On failure the current contents are kept."""
        start = time.perf_counter()
        try:
            conversations = load_conversations(path)
        except LoadError as exc:
            logger.error("Failed to load %s: %s", path, exc)
            return LoadResult(ok=False, path=str(path), error=str(exc))

        self.load(conversations)
        self.source = Path(path)

        return LoadResult(
            ok=True,
            path=str(path),
            conversations=len(self._records),
            messages=sum(conv.message_count for conv in self._records),
            elapsed_seconds=round(time.perf_counter() - start, 2),
        )

    def get(self, position: int) -> Conversation | None:
        if 0 <= position < len(self._records):
            return self._records[position]
        return None

    def find_by_identifier(self, uuid: str) -> int | None:
        return self._positions.get(uuid)

    def conversation(self, uuid: str) -> Conversation | None:
        position = self.find_by_identifier(uuid)
        return None if position is None else self._records[position]

    def messages(self, position: int) -> list[ChatMessage]:
        conv = self.get(position)
        return conv.chat_messages if conv is not None else []

    def statistics(self) -> Statistics:
        """Aggregate statistics, computed once per load."""
        if self._stats is None:
            self._stats = aggregate(self._records)
        return self._stats
