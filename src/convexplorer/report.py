"""Exploratory analysis report: schema checks, statistics and samples."""

from __future__ import annotations

import logging
import random
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from .config import REPORT_SAMPLE_SIZE
from .formatting import format_number, format_size
from .models import Conversation, Statistics
from .stats import aggregate

logger = logging.getLogger(__name__)

_MISSING = object()


class SchemaCheck(BaseModel):
    check: str
    expected: bool | str
    actual: bool | str
    description: str

    @property
    def passed(self) -> bool:
        return self.expected == self.actual


class AnalysisReport(BaseModel):
    summary: dict[str, Any]
    schema_checks: list[SchemaCheck]
    schema_issues: list[SchemaCheck]
    statistics: Statistics
    samples: list[dict[str, Any]] = []


def _plain(value: Any) -> Any:
    """The exported form of a record: its source mapping, or its set fields."""
    if isinstance(value, BaseModel):
        raw = getattr(value, "raw", None)
        return raw if raw is not None else value.model_dump(exclude_unset=True)
    return value


def _lookup(obj: Any, path: str) -> Any:
    current = obj
    for key in path.split("."):
        current = _plain(current)
        if not isinstance(current, Mapping) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _json_type(value: Any) -> str:
    if value is _MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


class _SchemaChecker:
    def __init__(self, prefix: str = ""):
        self.prefix = prefix
        self.checks: list[SchemaCheck] = []

    def exists(self, obj: Mapping[str, Any], path: str, description: str):
        self.checks.append(
            SchemaCheck(
                check=f"{self.prefix}{path} exists",
                expected=True,
                actual=_lookup(obj, path) is not _MISSING,
                description=description,
            )
        )

    def type_is(self, obj: Mapping[str, Any], path: str, expected: str, description: str):
        self.checks.append(
            SchemaCheck(
                check=f"{self.prefix}{path} is {expected}",
                expected=expected,
                actual=_json_type(_lookup(obj, path)),
                description=description,
            )
        )


def _first_object(checker: _SchemaChecker, items: Any, path: str, description: str) -> Mapping[str, Any] | None:
    """Check that the first entry of ``items`` is an object and return it."""
    if not isinstance(items, list) or not items:
        return None
    first = _plain(items[0])
    checker.type_is({path: first}, path, "object", description)
    return first if isinstance(first, Mapping) else None


def check_schema(records: Sequence[Conversation]) -> list[SchemaCheck]:
    """Check that the first conversation has the shape the explorer expects.

    The checks read the record as exported, before any field was coerced.
    """
    checker = _SchemaChecker()

    if not records:
        checker.checks.append(
            SchemaCheck(
                check="Has conversations",
                expected=True,
                actual=False,
                description="The export should contain at least one conversation",
            )
        )
        return checker.checks

    conv = _plain(records[0])
    checker.exists(conv, "uuid", "Conversation has UUID")
    checker.type_is(conv, "uuid", "string", "Conversation UUID is string")
    checker.exists(conv, "name", "Conversation has name")
    checker.type_is(conv, "name", "string", "Conversation name is string")
    checker.exists(conv, "created_at", "Conversation has created_at")
    checker.exists(conv, "updated_at", "Conversation has updated_at")
    checker.exists(conv, "account", "Conversation has account")
    checker.type_is(conv, "account", "object", "Conversation account is object")
    if isinstance(_plain(conv.get("account")), Mapping):
        checker.exists(conv, "account.uuid", "Account has UUID")
    checker.exists(conv, "chat_messages", "Conversation has chat_messages")
    checker.type_is(conv, "chat_messages", "array", "chat_messages is array")

    msg = _first_object(checker, conv.get("chat_messages"), "chat_messages[0]", "First message is object")
    if msg is None:
        return checker.checks

    checker.exists(msg, "uuid", "Message has UUID")
    checker.exists(msg, "sender", "Message has sender")
    checker.exists(msg, "created_at", "Message has created_at")
    checker.exists(msg, "updated_at", "Message has updated_at")
    checker.exists(msg, "text", "Message has text field")
    checker.exists(msg, "content", "Message has content field")
    checker.type_is(msg, "content", "array", "Message content is array")

    part = _first_object(checker, msg.get("content"), "content[0]", "First content part is object")
    if part is not None:
        checker.exists(part, "type", "Content has type")
        checker.exists(part, "text", "Content has text")
        checker.exists(part, "start_timestamp", "Content has start_timestamp")
        checker.exists(part, "stop_timestamp", "Content has stop_timestamp")
        checker.exists(part, "citations", "Content has citations")

    checker.exists(msg, "attachments", "Message has attachments field")
    checker.type_is(msg, "attachments", "array", "Message attachments is array")
    attachment = _first_object(checker, msg.get("attachments"), "attachments[0]", "First attachment is object")
    if attachment is not None:
        checker.exists(attachment, "file_name", "Attachment has file_name")
        checker.exists(attachment, "file_size", "Attachment has file_size")
        checker.exists(attachment, "file_type", "Attachment has file_type")
        checker.exists(attachment, "extracted_content", "Attachment has extracted_content")

    checker.exists(msg, "files", "Message has files field")
    checker.type_is(msg, "files", "array", "Message files is array")
    file = _first_object(checker, msg.get("files"), "files[0]", "First file is object")
    if file is not None:
        checker.exists(file, "file_name", "File has file_name")

    return checker.checks


def _join_counts(counts: dict[str, int]) -> str:
    return ", ".join(f"{key}: {format_number(count)}" for key, count in counts.items())


def build_report(
    records: Sequence[Conversation],
    file_size: int | None = None,
    sample_size: int = REPORT_SAMPLE_SIZE,
    seed: int | None = None,
    statistics: Statistics | None = None,
) -> AnalysisReport:
    """Build the analysis report for a loaded export.

    ``seed`` makes the random samples reproducible.
    """
    stats = statistics if statistics is not None else aggregate(records)
    checks = check_schema(records)
    issues = [check for check in checks if not check.passed]

    rng = random.Random(seed)
    count = min(max(sample_size, 0), len(records))
    samples = [
        {"index": index, "conversation": dict(_plain(records[index]))}
        for index in sorted(rng.sample(range(len(records)), count))
    ]

    summary = {
        "file_size": format_size(file_size) if file_size is not None else None,
        "total_conversations": format_number(stats.total_conversations),
        "total_messages": format_number(stats.total_messages),
        "schema_issues": len(issues),
        "date_range": f"{stats.oldest_conversation} to {stats.newest_conversation}",
        "messages_by_sender": _join_counts(stats.messages_by_sender),
        "content_types": _join_counts(stats.content_by_type),
        "empty_messages": format_number(stats.empty_messages),
        "with_attachments": format_number(stats.messages_with_attachments),
        "with_files": format_number(stats.messages_with_files),
    }

    return AnalysisReport(
        summary=summary,
        schema_checks=checks,
        schema_issues=issues,
        statistics=stats,
        samples=samples,
    )


def write_report(report: AnalysisReport, path: str | Path) -> Path:
    """Write the report as indented JSON. Raises OSError if the file cannot be written."""
    target = Path(path)
    target.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    logger.info("Wrote analysis report to %s", target)
    return target
