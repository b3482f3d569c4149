"""Case-insensitive substring search over arbitrarily nested values."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from .config import DEEP_SEARCH_MAX_DEPTH


def deep_search(value: Any, term: str | None, max_depth: int = DEEP_SEARCH_MAX_DEPTH) -> bool:
    """Return True if any string inside ``value`` contains ``term``, ignoring case.

    Strings are matched directly; lists and tuples match if any element does;
    mappings and pydantic models match if any of their values does (keys are
    not searched). A record validated from a mapping is searched through that
    mapping, so values its fields dropped still match. Numbers, booleans and
    None never match. Containers deeper than ``max_depth`` are not entered.
    An empty term matches nothing.
    """
    if not term:
        return False
    return _walk(value, term.lower(), max_depth)


def _walk(value: Any, needle: str, depth: int) -> bool:
    if isinstance(value, str):
        return needle in value.lower()
    if depth <= 0:
        return False
    if isinstance(value, BaseModel):
        raw = getattr(value, "raw", None)
        if raw is not None:
            return _walk(raw, needle, depth)
        # Iterating a model yields (name, value) for fields and extras
        return any(_walk(v, needle, depth - 1) for _, v in value)
    if isinstance(value, Mapping):
        return any(_walk(v, needle, depth - 1) for v in value.values())
    if isinstance(value, (list, tuple)):
        return any(_walk(item, needle, depth - 1) for item in value)
    return False
