"""Read a conversation export file: file → JSON → Conversation models."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path

from .formatting import format_size
from .models import Conversation
from .parser import parse_conversations

logger = logging.getLogger(__name__)


class LoadError(Exception):
    """The source file is missing, unreadable, or not a conversation export."""


def load_conversations(path: str | Path) -> list[Conversation]:
    """Read and parse an export file.

    Raises LoadError with a descriptive message on any failure.
    """
    source = Path(path)

    if not source.exists():
        raise LoadError(f"File not found: {source}")
    if not source.is_file():
        raise LoadError(f"Not a file: {source}")

    logger.info("Reading %s (%s)", source, format_size(source.stat().st_size))
    start = time.perf_counter()

    try:
        with source.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise LoadError(f"Invalid JSON in {source}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"Could not read {source}: {exc}") from exc

    logger.info("Parsed JSON in %.2fs", time.perf_counter() - start)

    # A lone conversation object is accepted as a one-element export
    if isinstance(data, dict):
        logger.warning("%s holds a single object, not an array; treating it as one conversation", source)
        data = [data]

    if not isinstance(data, list):
        raise LoadError(f"{source} does not contain an array of conversations.")

    conversations = parse_conversations(data)
    logger.info("Loaded %d conversations from %s", len(conversations), source)
    return conversations
