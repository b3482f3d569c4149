"""Human-readable renderings shared by the CLI and the MCP server."""

from __future__ import annotations

from typing import Any

from .config import (
    DATE_FORMAT,
    MESSAGE_TEXT_LIMIT,
    PART_TEXT_LIMIT,
    PREVIEW_CHARS,
    PREVIEW_MESSAGES,
    TITLE_CHARS,
    UNKNOWN_LABEL,
)
from .models import ChatMessage, Conversation
from .parser import DISPLAY_JOIN, extract_text, parse_timestamp

_SIZE_UNITS = ("B", "KB", "MB", "GB")


def format_number(num: int) -> str:
    return f"{num:,}"


def format_size(num_bytes: int | float | None) -> str:
    """Format a byte count with one decimal, e.g. ``2.4 KB``."""
    if not num_bytes or num_bytes <= 0:
        return "0 B"

    size = float(num_bytes)
    unit = 0
    while size >= 1024 and unit < len(_SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.1f} {_SIZE_UNITS[unit]}"


def format_date(value: Any, fmt: str = DATE_FORMAT) -> str:
    if value is None or value == "":
        return "N/A"
    dt = parse_timestamp(value)
    if dt is None:
        return "Invalid date"
    return dt.strftime(fmt)


def sender_of(message: ChatMessage) -> str:
    return message.sender if message.sender is not None else UNKNOWN_LABEL


def _truncate(text: str, limit: int, marker: str) -> str:
    if len(text) > limit:
        return text[:limit] + marker
    return text


def conversation_row(conv: Conversation, size: int) -> str:
    """One listing line: date, message count, size estimate and title."""
    date = format_date(conv.created_at)
    return (
        f"{date} │ {conv.message_count:>3} msgs │ {format_size(size):>9} │ "
        f"{conv.display_title[:TITLE_CHARS]}"
    )


def conversation_detail(conv: Conversation) -> str:
    lines = [
        conv.display_title,
        "",
        f"UUID: {conv.uuid}",
        f"Created: {format_date(conv.created_at)}",
        f"Updated: {format_date(conv.updated_at)}",
        f"Messages: {conv.message_count}",
    ]
    if conv.account is not None and conv.account.uuid:
        lines.append(f"Account: {conv.account.uuid}")

    messages = conv.chat_messages
    if messages:
        lines.append("")
        lines.append("Message Preview:")
        for i, msg in enumerate(messages[:PREVIEW_MESSAGES], 1):
            text = extract_text(msg, DISPLAY_JOIN)
            if text.strip():
                preview = _truncate(text, PREVIEW_CHARS, "...")
                lines.append(f"{i}. {sender_of(msg)}: {preview}")
            else:
                lines.append(f"{i}. {sender_of(msg)}: (empty message)")
        if len(messages) > PREVIEW_MESSAGES:
            lines.append(f"... and {len(messages) - PREVIEW_MESSAGES} more messages")

    return "\n".join(lines)


def message_row(position: int, message: ChatMessage) -> str:
    text = extract_text(message).replace("\n", " ")
    preview = _truncate(text, PREVIEW_CHARS, "...") if text.strip() else "(empty message)"
    return f"{position + 1:>4}. {format_date(message.created_at)} │ {sender_of(message)}: {preview}"


def message_detail(message: ChatMessage) -> str:
    lines = [
        f"Message from {sender_of(message)}",
        "",
        f"UUID: {message.uuid or 'N/A'}",
        f"Created: {format_date(message.created_at)}",
        f"Updated: {format_date(message.updated_at)}",
        "",
        "Text:",
    ]

    text = extract_text(message, DISPLAY_JOIN)
    lines.append(_truncate(text, MESSAGE_TEXT_LIMIT, "...(truncated)") if text.strip() else "(empty)")

    if message.content:
        lines.append("")
        lines.append(f"Content ({len(message.content)} parts):")
        for i, part in enumerate(message.content, 1):
            lines.append(f"Part {i} ({part.type or UNKNOWN_LABEL}):")
            if part.text:
                lines.append(_truncate(part.text, PART_TEXT_LIMIT, "...(truncated)"))
            else:
                lines.append("(empty text)")
            if part.citations:
                lines.append(f"Citations: {len(part.citations)}")

    if message.attachments:
        lines.append("")
        lines.append("Attachments:")
        for i, attach in enumerate(message.attachments, 1):
            lines.append(
                f"{i}. {attach.file_name or 'Unnamed'} "
                f"({attach.file_type or UNKNOWN_LABEL}, {format_size(attach.file_size)})"
            )

    if message.files:
        lines.append("")
        lines.append("Files:")
        for i, file in enumerate(message.files, 1):
            lines.append(f"{i}. {file.file_name or 'Unnamed'}")

    return "\n".join(lines)
