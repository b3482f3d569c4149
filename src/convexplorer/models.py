"""Data models for conversation records, queries and results."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from .config import PAGE_SIZE

Timestamp = str | int | float


def _timestamp_or_none(value: Any) -> Timestamp | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        return value
    return None


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _label_or_none(value: Any) -> str | None:
    """Free-form labels keep any present value, as text."""
    if value is None or isinstance(value, str):
        return value
    return str(value)


def _record_list(value: Any) -> list[Any]:
    """Keep every entry of a list; entries that are not objects become empty records.

    The position count always matches the source list. Anything that is not a
    list becomes empty.
    """
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, (Mapping, BaseModel)) else {} for item in value]


class _Record(BaseModel):
    """Base for export records: unknown keys are kept, mistyped ones degrade.

    The mapping a record was validated from stays available as ``raw``, so
    whole-record search and schema checks see the values as exported.
    """

    model_config = ConfigDict(extra="allow")

    _raw: Mapping[str, Any] | None = PrivateAttr(default=None)

    @model_validator(mode="wrap")
    @classmethod
    def keep_raw(cls, data: Any, handler: Any) -> Any:
        record = handler(data)
        if isinstance(data, Mapping):
            record._raw = data
        return record

    @property
    def raw(self) -> Mapping[str, Any] | None:
        return self._raw


class Account(_Record):
    uuid: str | None = None

    @field_validator("uuid", mode="before")
    @classmethod
    def lenient_str(cls, v: Any) -> str | None:
        return _str_or_none(v)


class ContentPart(_Record):
    type: str | None = None
    text: str | None = None
    start_timestamp: Timestamp | None = None
    stop_timestamp: Timestamp | None = None
    citations: list[Any] | None = None

    @field_validator("type", mode="before")
    @classmethod
    def lenient_label(cls, v: Any) -> str | None:
        return _label_or_none(v)

    @field_validator("text", mode="before")
    @classmethod
    def lenient_str(cls, v: Any) -> str | None:
        return _str_or_none(v)

    @field_validator("start_timestamp", "stop_timestamp", mode="before")
    @classmethod
    def lenient_timestamp(cls, v: Any) -> Timestamp | None:
        return _timestamp_or_none(v)

    @field_validator("citations", mode="before")
    @classmethod
    def lenient_list(cls, v: Any) -> list[Any] | None:
        return v if isinstance(v, list) else None


class Attachment(_Record):
    """An attachment or file reference on a message."""

    file_name: str | None = None
    file_size: int | None = None
    file_type: str | None = None
    extracted_content: str | None = None

    @field_validator("file_name", "file_type", "extracted_content", mode="before")
    @classmethod
    def lenient_str(cls, v: Any) -> str | None:
        return _str_or_none(v)

    @field_validator("file_size", mode="before")
    @classmethod
    def lenient_size(cls, v: Any) -> int | None:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return None
        return int(v)


class ChatMessage(_Record):
    uuid: str | None = None
    sender: str | None = None
    created_at: Timestamp | None = None
    updated_at: Timestamp | None = None
    text: str | None = None
    content: list[ContentPart] = []
    attachments: list[Attachment] = []
    files: list[Attachment] = []

    @field_validator("uuid", "text", mode="before")
    @classmethod
    def lenient_str(cls, v: Any) -> str | None:
        return _str_or_none(v)

    @field_validator("sender", mode="before")
    @classmethod
    def lenient_label(cls, v: Any) -> str | None:
        return _label_or_none(v)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def lenient_timestamp(cls, v: Any) -> Timestamp | None:
        return _timestamp_or_none(v)

    @field_validator("content", "attachments", "files", mode="before")
    @classmethod
    def lenient_list(cls, v: Any) -> list[Any]:
        return _record_list(v)


class Conversation(_Record):
    uuid: str = ""
    name: str | None = None
    created_at: Timestamp | None = None
    updated_at: Timestamp | None = None
    account: Account | None = None
    chat_messages: list[ChatMessage] = []

    @field_validator("uuid", mode="before")
    @classmethod
    def lenient_uuid(cls, v: Any) -> str:
        return _label_or_none(v) or ""

    @field_validator("name", mode="before")
    @classmethod
    def lenient_str(cls, v: Any) -> str | None:
        return _str_or_none(v)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def lenient_timestamp(cls, v: Any) -> Timestamp | None:
        return _timestamp_or_none(v)

    @field_validator("account", mode="before")
    @classmethod
    def lenient_account(cls, v: Any) -> Any:
        return v if isinstance(v, (Mapping, Account)) else None

    @field_validator("chat_messages", mode="before")
    @classmethod
    def lenient_list(cls, v: Any) -> list[Any]:
        return _record_list(v)

    @property
    def message_count(self) -> int:
        return len(self.chat_messages)

    @property
    def display_title(self) -> str:
        return self.name or f"Conversation {self.uuid[:8]}"


# --- Query side -------------------------------------------------------------

SortField = Literal["date", "size", "messages"]
SortDirection = Literal["asc", "desc"]


class FilterSpec(BaseModel):
    """Active predicates; every enabled one must hold for a conversation to be kept."""

    model_config = ConfigDict(frozen=True)

    date_start: datetime | None = None
    date_end: datetime | None = None
    search_term: str = ""
    has_messages: bool = False
    has_empty_messages: bool = False

    @field_validator("date_start", "date_end")
    @classmethod
    def make_aware(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("search_term", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def has_date_range(self) -> bool:
        return self.date_start is not None or self.date_end is not None


class SortSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: SortField = "date"
    direction: SortDirection = "desc"


class Query(BaseModel):
    """One request against the loaded conversations."""

    model_config = ConfigDict(frozen=True)

    filters: FilterSpec = FilterSpec()
    sort: SortSpec = SortSpec()
    page: int = 0
    page_size: int = Field(default=PAGE_SIZE, ge=1)


class Page(BaseModel):
    items: list[Any] = []
    page_index: int = 0
    page_count: int = 0
    start_offset: int = 0
    end_offset: int = 0
    total_items: int = 0


# --- Results ----------------------------------------------------------------


class MonthCounts(BaseModel):
    conversations: int = 0
    messages: int = 0


class LengthBuckets(BaseModel):
    empty: int = 0
    short: int = 0
    medium: int = 0
    long: int = 0


class Statistics(BaseModel):
    total_conversations: int = 0
    total_messages: int = 0
    messages_by_sender: dict[str, int] = {}
    by_month: dict[str, MonthCounts] = {}
    message_lengths: LengthBuckets = Field(default_factory=LengthBuckets)
    empty_messages: int = 0
    empty_conversations: int = 0
    messages_with_attachments: int = 0
    messages_with_files: int = 0
    content_parts: int = 0
    content_by_type: dict[str, int] = {}
    empty_citations: int = 0
    oldest_conversation: str | None = None
    newest_conversation: str | None = None
    field_presence: dict[str, dict[str, int]] = {}


class LoadResult(BaseModel):
    ok: bool
    path: str
    conversations: int = 0
    messages: int = 0
    elapsed_seconds: float = 0.0
    error: str | None = None


class ExportResult(BaseModel):
    ok: bool
    path: str | None = None
    messages: int = 0
    error: str | None = None
