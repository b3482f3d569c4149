"""FastMCP server exposing conversation browsing tools."""

from __future__ import annotations

import logging
import math
import sys
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .config import SOURCE_FILE
from .exporter import export_conversation as _export
from .formatting import conversation_detail, conversation_row, format_date, message_detail, message_row
from .index import ConversationIndex
from .models import FilterSpec, Query, SortSpec
from .query import clamp_page, estimate_size, paginate, parse_date_range, run_query

# Logging to stderr only: stdout is the MCP JSON-RPC transport
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)

mcp = FastMCP(
    "convexplorer",
    instructions=(
        "Browse the user's exported conversation history. "
        "Use search_conversations to find conversations containing some text. "
        "Use list_conversations to filter by date, sort and page through conversations. "
        "Use get_conversation and get_message to read a conversation. "
        "Use get_stats for an overview of the export."
    ),
)

# Loaded on first use; a failed load is retried on the next call
_source: Path = SOURCE_FILE
_index: ConversationIndex | None = None
_load_error: str | None = None


def configure(source: str | Path):
    """Point the server at an export file; it is loaded on the next tool call."""
    global _source, _index, _load_error
    _source = Path(source)
    _index = None
    _load_error = None


def _get_index() -> ConversationIndex | None:
    global _index, _load_error
    if _index is None:
        index = ConversationIndex()
        result = index.load_file(_source)
        if result.ok:
            _index, _load_error = index, None
        else:
            _load_error = result.error
    return _index


def _unavailable() -> str:
    return (
        f"No conversations loaded: {_load_error}\n"
        "Set CONVEXPLORER_FILE to the path of your conversation export."
    )


@mcp.tool()
def list_conversations(
    page: int = 1,
    page_size: int = 20,
    search: str | None = None,
    date_range: str | None = None,
    has_messages: bool = False,
    has_empty_messages: bool = False,
    sort: str = "date",
    direction: str = "desc",
) -> str:
    """Browse conversations with filters, sorting and pagination.

    Args:
        page: Page number, starting at 1
        page_size: Conversations per page (default 20)
        search: Optional text that must appear somewhere in the conversation
        date_range: Optional "2024-01-01 to 2024-02-01" or a single day "2024-01-01"
        has_messages: Only conversations with at least one message
        has_empty_messages: Only conversations containing an empty message
        sort: "date", "size" or "messages"
        direction: "asc" or "desc"
    """
    index = _get_index()
    if index is None:
        return _unavailable()

    date_start = date_end = None
    if date_range:
        try:
            date_start, date_end = parse_date_range(date_range)
        except ValueError as exc:
            return str(exc)

    if sort not in ("date", "size", "messages") or direction not in ("asc", "desc"):
        return f"Invalid sort: {sort} {direction}. Use date|size|messages and asc|desc."

    query = Query(
        filters=FilterSpec(
            date_start=date_start,
            date_end=date_end,
            search_term=search or "",
            has_messages=has_messages,
            has_empty_messages=has_empty_messages,
        ),
        sort=SortSpec(field=sort, direction=direction),
        page=page - 1,
        page_size=max(page_size, 1),
    )
    result = run_query(index.records, query)

    if not result.items:
        if result.total_items:
            return f"Page {page} is out of range; there are {result.page_count} pages."
        return "No conversations found."

    lines = [
        f"Conversations {result.start_offset + 1}–{result.end_offset} of {result.total_items:,}:\n"
    ]
    for conv in result.items:
        lines.append(f"- `{conv.uuid}` {conversation_row(conv, estimate_size(conv))}")

    if result.page_index + 1 < result.page_count:
        lines.append(f"\nMore available — use page={page + 1} to see the next page.")

    return "\n".join(lines)


@mcp.tool()
def search_conversations(query: str, limit: int = 10) -> str:
    """Find conversations containing some text (case-insensitive), newest first.

    Args:
        query: Text to look for anywhere in a conversation
        limit: Maximum number of results (default 10)
    """
    index = _get_index()
    if index is None:
        return _unavailable()
    if not query.strip():
        return "Please provide something to search for."

    result = run_query(
        index.records,
        Query(filters=FilterSpec(search_term=query), page_size=max(limit, 1)),
    )
    if not result.items:
        return f"No conversations found matching '{query}'."

    lines = [f"Found {result.total_items:,} conversations matching '{query}':\n"]
    for i, conv in enumerate(result.items, 1):
        lines.append(f"{i}. **{conv.display_title}**")
        lines.append(f"   ID: `{conv.uuid}`")
        lines.append(f"   Date: {format_date(conv.created_at)} | {conv.message_count} msgs")
        lines.append("")

    lines.append("Use get_conversation(conversation_id) to read the messages.")
    return "\n".join(lines)


@mcp.tool()
def get_conversation(conversation_id: str, page: int = 1, page_size: int = 50) -> str:
    """Show a conversation's details and one page of its messages.

    Args:
        conversation_id: The conversation UUID
        page: Page of messages, starting at 1
        page_size: Messages per page (default 50)
    """
    index = _get_index()
    if index is None:
        return _unavailable()

    conv = index.conversation(conversation_id)
    if conv is None:
        return f"Conversation not found: {conversation_id}"

    page_size = max(page_size, 1)
    page_count = math.ceil(conv.message_count / page_size)
    result = paginate(conv.chat_messages, page_size, clamp_page(page - 1, page_count))

    lines = [conversation_detail(conv), "", "---", ""]
    for offset, msg in enumerate(result.items):
        lines.append(message_row(result.start_offset + offset, msg))
    if result.page_count > 1:
        lines.append(f"\nPage {result.page_index + 1} of {result.page_count}.")

    return "\n".join(lines)


@mcp.tool()
def get_message(conversation_id: str, number: int) -> str:
    """Show one message in full.

    Args:
        conversation_id: The conversation UUID
        number: Message number within the conversation, starting at 1
    """
    index = _get_index()
    if index is None:
        return _unavailable()

    conv = index.conversation(conversation_id)
    if conv is None:
        return f"Conversation not found: {conversation_id}"
    if not 1 <= number <= conv.message_count:
        return f"Message {number} not found; the conversation has {conv.message_count} messages."

    return message_detail(conv.chat_messages[number - 1])


@mcp.tool()
def get_stats() -> str:
    """Get statistics about the loaded conversations.

    Shows totals, messages by sender, message length buckets and monthly counts.
    """
    index = _get_index()
    if index is None:
        return _unavailable()

    s = index.statistics()
    lengths = s.message_lengths
    lines = [
        "# Conversation Statistics",
        "",
        f"- **Conversations**: {s.total_conversations:,}",
        f"- **Messages**: {s.total_messages:,}",
        f"- **Empty messages**: {s.empty_messages:,}",
        f"- **Conversations without messages**: {s.empty_conversations:,}",
        f"- **Message lengths**: empty {lengths.empty:,}, short {lengths.short:,}, "
        f"medium {lengths.medium:,}, long {lengths.long:,}",
        "",
    ]

    if s.messages_by_sender:
        lines.append("## Messages by sender:")
        for sender, count in s.messages_by_sender.items():
            lines.append(f"- {sender}: {count:,}")
        lines.append("")

    if s.by_month:
        lines.append("## By month:")
        for month, counts in s.by_month.items():
            lines.append(f"- {month}: {counts.conversations:,} conversations, {counts.messages:,} messages")

    lines.append(f"\n*Source: {_source}*")
    return "\n".join(lines)


@mcp.tool()
def export_conversation(conversation_id: str, output_path: str | None = None) -> str:
    """Export a conversation to a Markdown file.

    Args:
        conversation_id: The conversation UUID
        output_path: Destination file (default conversation_<id prefix>.md)
    """
    index = _get_index()
    if index is None:
        return _unavailable()

    conv = index.conversation(conversation_id)
    if conv is None:
        return f"Conversation not found: {conversation_id}"

    result = _export(conv, output_path)
    if not result.ok:
        return f"Export failed: {result.error}"
    return f"Exported {result.messages} messages to {result.path}"
