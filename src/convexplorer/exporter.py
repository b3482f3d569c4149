"""Export a single conversation to a Markdown document."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import UNKNOWN_LABEL
from .formatting import format_date, sender_of
from .models import Conversation, ExportResult
from .parser import DISPLAY_JOIN, extract_text

logger = logging.getLogger(__name__)


def default_export_path(conv: Conversation) -> Path:
    return Path(f"conversation_{conv.uuid[:8]}.md")


def format_conversation(conv: Conversation) -> str:
    """Render a conversation as Markdown: a header, then one section per message."""
    lines = [
        f"# {conv.display_title}",
        f"Date: {format_date(conv.created_at)}",
        f"UUID: {conv.uuid}",
        "",
    ]

    for index, msg in enumerate(conv.chat_messages, 1):
        lines.append(f"## Message {index} ({sender_of(msg)}) - {format_date(msg.created_at)}")
        lines.append("")
        text = extract_text(msg, DISPLAY_JOIN)
        lines.append(text if text.strip() else "(empty message)")
        lines.append("")

        if msg.attachments:
            lines.append("### Attachments")
            for attach in msg.attachments:
                lines.append(f"- {attach.file_name or 'Unnamed'} ({attach.file_type or UNKNOWN_LABEL})")
            lines.append("")

    return "\n".join(lines)


def export_conversation(conv: Conversation, path: str | Path | None = None) -> ExportResult:
    """Write a conversation to ``path`` (default ``conversation_<uuid[:8]>.md``)."""
    if not conv.chat_messages:
        return ExportResult(ok=False, error="No messages to export")

    target = Path(path) if path else default_export_path(conv)
    document = format_conversation(conv)

    try:
        target.write_text(document, encoding="utf-8")
    except OSError as exc:
        logger.error("Export to %s failed: %s", target, exc)
        return ExportResult(ok=False, path=str(target), error=f"Could not write {target}: {exc}")

    logger.info("Exported %d messages to %s", conv.message_count, target)
    return ExportResult(ok=True, path=str(target), messages=conv.message_count)
