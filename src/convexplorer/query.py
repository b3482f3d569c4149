"""Filter, sort and paginate conversations."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timedelta
from typing import Any

from .config import SIZE_BASE_BYTES, SIZE_PER_MESSAGE_BYTES
from .models import Conversation, FilterSpec, Page, Query
from .parser import is_empty_message, parse_timestamp, timestamp_or_epoch
from .search import deep_search


def estimate_size(conv: Conversation) -> int:
    """Cheap size proxy in bytes, proportional to the message count."""
    return SIZE_BASE_BYTES + SIZE_PER_MESSAGE_BYTES * conv.message_count


def count_empty_messages(conv: Conversation) -> int:
    return sum(1 for msg in conv.chat_messages if is_empty_message(msg))


def has_empty_messages(conv: Conversation) -> bool:
    return any(is_empty_message(msg) for msg in conv.chat_messages)


def _in_date_range(conv: Conversation, start: datetime | None, end: datetime | None) -> bool:
    created = timestamp_or_epoch(conv.created_at)
    if start is not None and created < start:
        return False
    if end is not None and created > end:
        return False
    return True


def matches_filters(conv: Conversation, spec: FilterSpec) -> bool:
    if spec.has_date_range and not _in_date_range(conv, spec.date_start, spec.date_end):
        return False
    if spec.has_messages and not conv.chat_messages:
        return False
    if spec.has_empty_messages and not has_empty_messages(conv):
        return False
    if spec.search_term and not deep_search(conv, spec.search_term):
        return False
    return True


def filter_conversations(records: Iterable[Conversation], spec: FilterSpec) -> list[Conversation]:
    """Keep the conversations matching every active predicate, in input order."""
    return [conv for conv in records if matches_filters(conv, spec)]


_SORT_KEYS: dict[str, Callable[[Conversation], Any]] = {
    "date": lambda conv: timestamp_or_epoch(conv.created_at),
    "size": estimate_size,
    "messages": lambda conv: conv.message_count,
}


def sort_conversations(
    records: Iterable[Conversation],
    field: str = "date",
    direction: str = "desc",
) -> list[Conversation]:
    """Return a new list ordered by ``field``. Ties keep their input order."""
    if field not in _SORT_KEYS:
        raise ValueError(f"Unknown sort field: {field!r}")
    if direction not in ("asc", "desc"):
        raise ValueError(f"Unknown sort direction: {direction!r}")

    return sorted(records, key=_SORT_KEYS[field], reverse=direction == "desc")


def paginate(items: Sequence[Any], page_size: int, page_index: int) -> Page:
    """Slice one page out of ``items``.

    An out-of-range page index gives an empty page; clamping is up to the
    caller (see clamp_page).
    """
    if page_size < 1:
        raise ValueError("page_size must be at least 1")

    total = len(items)
    page_count = math.ceil(total / page_size)

    if 0 <= page_index < page_count:
        start = page_index * page_size
        end = min(start + page_size, total)
        page_items = list(items[start:end])
    else:
        start = end = min(max(page_index, 0) * page_size, total)
        page_items = []

    return Page(
        items=page_items,
        page_index=page_index,
        page_count=page_count,
        start_offset=start,
        end_offset=end,
        total_items=total,
    )


def clamp_page(page_index: int, page_count: int) -> int:
    if page_count <= 0:
        return 0
    return min(max(page_index, 0), page_count - 1)


def run_query(records: Iterable[Conversation], query: Query) -> Page:
    """Filter, then sort, then paginate."""
    filtered = filter_conversations(records, query.filters)
    ordered = sort_conversations(filtered, query.sort.field, query.sort.direction)
    return paginate(ordered, query.page_size, query.page)


def parse_date_range(text: str) -> tuple[datetime, datetime]:
    """Parse ``"2024-01-01 to 2024-02-01"`` or a single day ``"2024-01-01"``.

    A single day covers that day through the next midnight.
    Raises ValueError if a date cannot be parsed.
    """
    if " to " in text:
        start_text, end_text = (part.strip() for part in text.split(" to ", 1))
    else:
        start_text, end_text = text.strip(), None

    start = parse_timestamp(start_text)
    if start is None:
        raise ValueError(f"Invalid date: {start_text!r}")

    if end_text is None:
        return start, start + timedelta(days=1)

    end = parse_timestamp(end_text)
    if end is None:
        raise ValueError(f"Invalid date: {end_text!r}")
    return start, end
