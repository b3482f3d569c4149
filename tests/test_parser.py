from __future__ import annotations

from datetime import datetime, timezone

import pytest

from convexplorer.models import ChatMessage, Conversation
from convexplorer.parser import (
    DISPLAY_JOIN,
    EPOCH,
    extract_text,
    is_empty_message,
    month_key,
    parse_conversations,
    parse_timestamp,
    timestamp_or_epoch,
)


def test_content_used_when_text_is_empty():
    msg = ChatMessage.model_validate({"text": "", "content": [{"text": "hello"}]})
    assert extract_text(msg) == "hello"


def test_text_wins_over_content():
    msg = ChatMessage.model_validate({"text": "hi", "content": [{"text": "ignored"}]})
    assert extract_text(msg) == "hi"


def test_content_parts_joined_per_policy():
    msg = ChatMessage.model_validate(
        {"content": [{"text": "first"}, {"type": "tool_use"}, {"text": ""}, {"text": "second"}]}
    )
    assert extract_text(msg) == "first second"
    assert extract_text(msg, DISPLAY_JOIN) == "first\n\nsecond"


@pytest.mark.parametrize(
    "message",
    [
        None,
        {},
        {"text": None, "content": None},
        {"text": 42, "content": "not a list"},
        {"content": ["plain string part", 7, None]},
        ChatMessage(),
    ],
)
def test_extract_text_degrades_to_empty(message):
    assert extract_text(message) == ""


def test_extract_text_accepts_raw_mappings():
    assert extract_text({"content": [{"text": "a"}, {"text": "b"}]}) == "a b"


def test_whitespace_only_message_is_empty():
    assert is_empty_message({"text": "   "})
    assert is_empty_message({"content": [{"text": " \n "}]})
    assert not is_empty_message({"text": " x "})


def test_parse_timestamp_variants():
    assert parse_timestamp("2024-01-05T10:00:00Z") == datetime(2024, 1, 5, 10, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-05T12:00:00+02:00") == datetime(2024, 1, 5, 10, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-05") == datetime(2024, 1, 5, tzinfo=timezone.utc)
    assert parse_timestamp(0) == EPOCH
    assert parse_timestamp("2024-02-30") is None
    assert parse_timestamp("garbage") is None
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp(True) is None


def test_unparsable_timestamp_falls_back_to_epoch():
    assert timestamp_or_epoch(None) == EPOCH
    assert timestamp_or_epoch("nope") == EPOCH


def test_month_key():
    assert month_key("2024-03-15T08:30:00Z") == "2024-03"
    assert month_key("2023-12-31T23:30:00-02:00") == "2024-01"
    assert month_key(None) == "invalid-date"
    assert month_key("not a date") == "invalid-date"


def test_parse_conversations_skips_non_objects_and_keeps_order():
    convs = parse_conversations([{"uuid": "b"}, "junk", 3, {"uuid": "a"}])
    assert [c.uuid for c in convs] == ["b", "a"]


def test_mistyped_fields_degrade_instead_of_failing():
    conv = Conversation.model_validate(
        {
            "uuid": 12,
            "name": ["x"],
            "created_at": {"when": "now"},
            "account": "acct",
            "chat_messages": [
                {"sender": 5, "text": 1, "content": {"text": "x"}, "attachments": [{"file_size": "big"}]},
                "not a message",
            ],
        }
    )
    assert conv.uuid == "12"
    assert conv.name is None
    assert conv.created_at is None
    assert conv.account is None
    assert conv.message_count == 2
    msg = conv.chat_messages[0]
    assert msg.sender == "5"
    assert msg.text is None
    assert msg.content == []
    assert msg.attachments[0].file_size is None


def test_non_object_entries_keep_their_position():
    msg = ChatMessage.model_validate({"content": ["loose", {"type": "text", "text": "kept"}], "files": [None]})
    assert len(msg.content) == 2
    assert msg.content[0].type is None
    assert extract_text(msg) == "kept"
    assert len(msg.files) == 1

    conv = Conversation.model_validate({"uuid": "x", "chat_messages": [None, {"text": "hi"}]})
    assert conv.message_count == 2
    assert is_empty_message(conv.chat_messages[0])
    assert conv.chat_messages[0].sender is None


def test_sender_and_part_type_keep_present_values():
    msg = ChatMessage.model_validate({"sender": 7, "content": [{"type": 3}]})
    assert msg.sender == "7"
    assert msg.content[0].type == "3"
    assert ChatMessage.model_validate({"sender": ""}).sender == ""


def test_records_keep_the_exported_mapping():
    raw = {"uuid": "x", "account": "acct", "chat_messages": [{"content": ["loose"]}]}
    conv = Conversation.model_validate(raw)
    assert conv.raw == raw
    assert conv.account is None
    assert conv.chat_messages[0].raw == {"content": ["loose"]}
    assert Conversation(uuid="y").raw == {"uuid": "y"}


def test_missing_message_list_means_zero_messages():
    conv = Conversation.model_validate({"uuid": "x"})
    assert conv.chat_messages == []
    assert conv.message_count == 0
    assert conv.display_title == "Conversation x"


def test_unknown_keys_are_kept():
    conv = Conversation.model_validate({"uuid": "x", "project": {"name": "Atlas"}})
    assert conv.model_extra == {"project": {"name": "Atlas"}}
