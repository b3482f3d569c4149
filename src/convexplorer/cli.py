"""CLI interface for convexplorer."""

from __future__ import annotations

import logging
import math
import sys
from pathlib import Path

import click

from . import __version__
from .config import PAGE_SIZE, REPORT_FILE, REPORT_SAMPLE_SIZE, SOURCE_FILE, TITLE_CHARS
from .index import ConversationIndex
from .models import Conversation, FilterSpec, Query, SortSpec

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _load_index(path: Path) -> ConversationIndex:
    index = ConversationIndex()
    result = index.load_file(path)
    if not result.ok:
        raise click.ClickException(result.error or f"Could not load {path}")
    return index


def _find_conversation(index: ConversationIndex, conversation_id: str) -> Conversation:
    conv = index.conversation(conversation_id)
    if conv is None:
        raise click.ClickException(f"Conversation not found: {conversation_id}")
    return conv


def _page_footer(page_index: int, page_count: int, total: int, noun: str):
    click.echo()
    click.echo(f"Page {page_index + 1} of {max(page_count, 1)} ({total:,} {noun})")


@click.group()
@click.version_option(version=__version__, prog_name="convexplorer")
@click.option(
    "--file",
    "source",
    type=click.Path(dir_okay=False, path_type=Path),
    default=SOURCE_FILE,
    show_default=True,
    help="Conversation export (JSON array of conversations)",
)
@click.option("-v", "--verbose", is_flag=True, help="Log progress to stderr")
@click.pass_context
def cli(ctx: click.Context, source: Path, verbose: bool):
    """convexplorer — Browse, search and summarize a conversation export.

    Filter and sort conversations, page through messages, print statistics,
    and export a conversation to Markdown.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
    ctx.obj = {"source": source}


@cli.command("list")
@click.option("-s", "--search", "search_term", default="", help="Case-insensitive text anywhere in the conversation")
@click.option("--date", "date_range", help='Date range: "2024-01-01 to 2024-02-01" or a single day')
@click.option("--has-messages", is_flag=True, help="Only conversations with messages")
@click.option("--empty", "has_empty", is_flag=True, help="Only conversations containing empty messages")
@click.option(
    "--sort",
    "sort_field",
    type=click.Choice(["date", "size", "messages"]),
    default="date",
    show_default=True,
)
@click.option("--asc", "ascending", is_flag=True, help="Sort ascending (default descending)")
@click.option("--page", type=int, default=1, show_default=True, help="Page number (1-based)")
@click.option("--page-size", type=click.IntRange(min=1), default=PAGE_SIZE, show_default=True)
@click.pass_obj
def list_cmd(
    obj: dict,
    search_term: str,
    date_range: str | None,
    has_messages: bool,
    has_empty: bool,
    sort_field: str,
    ascending: bool,
    page: int,
    page_size: int,
):
    """List conversations, filtered, sorted and paginated.

    Example:
        convexplorer list --search python --date "2024-01-01 to 2024-03-31" --sort size
    """
    from .formatting import conversation_row
    from .query import clamp_page, estimate_size, filter_conversations, paginate, parse_date_range, sort_conversations

    date_start = date_end = None
    if date_range:
        try:
            date_start, date_end = parse_date_range(date_range)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--date") from exc

    query = Query(
        filters=FilterSpec(
            date_start=date_start,
            date_end=date_end,
            search_term=search_term,
            has_messages=has_messages,
            has_empty_messages=has_empty,
        ),
        sort=SortSpec(field=sort_field, direction="asc" if ascending else "desc"),
        page=page - 1,
        page_size=page_size,
    )

    index = _load_index(obj["source"])
    found = sort_conversations(
        filter_conversations(index.records, query.filters), query.sort.field, query.sort.direction
    )
    page_count = math.ceil(len(found) / query.page_size)
    result = paginate(found, query.page_size, clamp_page(query.page, page_count))

    if not result.items:
        click.echo("No conversations found.")
        return

    for conv in result.items:
        click.echo(f"{conv.uuid[:8]}  {conversation_row(conv, estimate_size(conv))}")

    _page_footer(result.page_index, result.page_count, result.total_items, "conversations")


@cli.command()
@click.argument("conversation_id")
@click.pass_obj
def show(obj: dict, conversation_id: str):
    """Show a conversation's details and a preview of its first messages."""
    from .formatting import conversation_detail

    index = _load_index(obj["source"])
    conv = _find_conversation(index, conversation_id)
    click.echo(conversation_detail(conv))


@cli.command()
@click.argument("conversation_id")
@click.option("--page", type=int, default=1, show_default=True, help="Page number (1-based)")
@click.option("--page-size", type=click.IntRange(min=1), default=PAGE_SIZE, show_default=True)
@click.pass_obj
def messages(obj: dict, conversation_id: str, page: int, page_size: int):
    """List the messages of a conversation, in order."""
    from .formatting import message_row
    from .query import clamp_page, paginate

    index = _load_index(obj["source"])
    conv = _find_conversation(index, conversation_id)

    page_count = math.ceil(conv.message_count / page_size)
    result = paginate(conv.chat_messages, page_size, clamp_page(page - 1, page_count))

    if not result.items:
        click.echo("This conversation has no messages.")
        return

    for offset, msg in enumerate(result.items):
        click.echo(message_row(result.start_offset + offset, msg))

    _page_footer(result.page_index, result.page_count, result.total_items, "messages")


@cli.command()
@click.argument("conversation_id")
@click.argument("number", type=click.IntRange(min=1))
@click.pass_obj
def message(obj: dict, conversation_id: str, number: int):
    """Show one message in full (NUMBER is 1-based)."""
    from .formatting import message_detail

    index = _load_index(obj["source"])
    conv = _find_conversation(index, conversation_id)
    if number > conv.message_count:
        raise click.ClickException(
            f"Message {number} not found; the conversation has {conv.message_count} messages."
        )
    click.echo(message_detail(conv.chat_messages[number - 1]))


@cli.command()
@click.pass_obj
def stats(obj: dict):
    """Show statistics about the loaded conversations."""
    index = _load_index(obj["source"])
    s = index.statistics()

    click.echo()
    click.echo(click.style("Conversation Statistics", bold=True))
    click.echo(f"  Conversations:  {s.total_conversations:,}")
    click.echo(f"  Messages:       {s.total_messages:,}")
    click.echo(f"  Empty messages: {s.empty_messages:,}")
    click.echo(f"  No messages:    {s.empty_conversations:,} conversations")
    if s.oldest_conversation:
        click.echo(f"  Date range:     {s.oldest_conversation[:10]} → {s.newest_conversation[:10]}")

    if s.messages_by_sender:
        click.echo("  Messages by sender:")
        for sender, count in sorted(s.messages_by_sender.items(), key=lambda item: item[1], reverse=True):
            click.echo(f"    {sender}: {count:,}")

    lengths = s.message_lengths
    click.echo("  Message lengths:")
    click.echo(f"    empty: {lengths.empty:,}")
    click.echo(f"    short (1-50): {lengths.short:,}")
    click.echo(f"    medium (51-500): {lengths.medium:,}")
    click.echo(f"    long (500+): {lengths.long:,}")

    if s.by_month:
        click.echo("  By month:")
        for month, counts in s.by_month.items():
            click.echo(f"    {month}: {counts.conversations:,} conversations, {counts.messages:,} messages")
    click.echo()


@cli.command()
@click.option("--page", type=int, default=1, show_default=True, help="Page number (1-based)")
@click.option("--page-size", type=click.IntRange(min=1), default=PAGE_SIZE, show_default=True)
@click.pass_obj
def empty(obj: dict, page: int, page_size: int):
    """List conversations that contain empty messages."""
    from .formatting import format_date
    from .query import clamp_page, count_empty_messages, filter_conversations, paginate, sort_conversations

    index = _load_index(obj["source"])
    found = sort_conversations(filter_conversations(index.records, FilterSpec(has_empty_messages=True)))

    if not found:
        click.echo("No conversations with empty messages.")
        return

    page_count = math.ceil(len(found) / page_size)
    result = paginate(found, page_size, clamp_page(page - 1, page_count))
    for conv in result.items:
        click.echo(
            f"{conv.uuid[:8]}  {format_date(conv.created_at)} │ "
            f"{count_empty_messages(conv)}/{conv.message_count} empty │ {conv.display_title[:TITLE_CHARS]}"
        )

    _page_footer(result.page_index, result.page_count, result.total_items, "conversations")


@cli.command()
@click.argument("conversation_id")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: conversation_<id prefix>.md)",
)
@click.pass_obj
def export(obj: dict, conversation_id: str, output: Path | None):
    """Export a conversation to Markdown."""
    from .exporter import export_conversation

    index = _load_index(obj["source"])
    conv = _find_conversation(index, conversation_id)
    result = export_conversation(conv, output)
    if not result.ok:
        raise click.ClickException(result.error or "Export failed")
    click.echo(f"Exported {result.messages} messages to {result.path}")


@cli.command()
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=REPORT_FILE,
    show_default=True,
)
@click.option("--samples", type=click.IntRange(min=0), default=REPORT_SAMPLE_SIZE, show_default=True)
@click.option("--seed", type=int, help="Seed for reproducible samples")
@click.pass_obj
def analyze(obj: dict, output: Path, samples: int, seed: int | None):
    """Write an exploratory analysis report (schema checks, statistics, samples)."""
    from .report import build_report, write_report

    source: Path = obj["source"]
    index = _load_index(source)
    report = build_report(
        index.records,
        file_size=source.stat().st_size,
        sample_size=samples,
        seed=seed,
        statistics=index.statistics(),
    )

    try:
        write_report(report, output)
    except OSError as exc:
        raise click.ClickException(f"Could not write {output}: {exc}") from exc

    summary = report.summary
    click.echo()
    click.echo(click.style("Conversation Data Analysis Summary", bold=True))
    click.echo(f"  File size:        {summary['file_size']}")
    click.echo(f"  Conversations:    {summary['total_conversations']}")
    click.echo(f"  Messages:         {summary['total_messages']}")
    click.echo(f"  Schema issues:    {summary['schema_issues']}")
    click.echo(f"  Date range:       {summary['date_range']}")
    click.echo(f"  By sender:        {summary['messages_by_sender']}")
    click.echo(f"  Content types:    {summary['content_types']}")
    click.echo(f"  Empty messages:   {summary['empty_messages']}")
    click.echo(f"  With attachments: {summary['with_attachments']}")
    click.echo(f"  With files:       {summary['with_files']}")
    click.echo()
    click.echo(f"Detailed report written to: {output}")


@cli.command()
@click.pass_obj
def serve(obj: dict):
    """Start the MCP server (stdio transport) over the export file."""
    from . import server

    server.configure(obj["source"])
    server.mcp.run(transport="stdio")
