from __future__ import annotations

import json

import pytest

from convexplorer.models import Conversation
from convexplorer.parser import parse_conversations


def conversation(uuid, created_at=None, messages=None, name=None, **extra) -> Conversation:
    raw = {"uuid": uuid, **extra}
    if name is not None:
        raw["name"] = name
    if created_at is not None:
        raw["created_at"] = created_at
    if messages is not None:
        raw["chat_messages"] = messages
    return Conversation.model_validate(raw)


def message(text=None, sender="human", content=None, **extra) -> dict:
    raw = {"uuid": extra.pop("uuid", "m"), "sender": sender, **extra}
    if text is not None:
        raw["text"] = text
    if content is not None:
        raw["content"] = content
    return raw


SAMPLE_EXPORT = [
    {
        "uuid": "aaaaaaaa-1111-4000-8000-000000000001",
        "name": "Python packaging",
        "created_at": "2024-01-05T10:00:00Z",
        "updated_at": "2024-01-05T11:00:00Z",
        "account": {"uuid": "acct-1"},
        "chat_messages": [
            {
                "uuid": "m1",
                "sender": "human",
                "created_at": "2024-01-05T10:00:00Z",
                "updated_at": "2024-01-05T10:00:00Z",
                "text": "How do I build a wheel?",
                "content": [
                    {
                        "type": "text",
                        "text": "How do I build a wheel?",
                        "start_timestamp": "2024-01-05T10:00:00Z",
                        "stop_timestamp": "2024-01-05T10:00:01Z",
                        "citations": [],
                    }
                ],
                "attachments": [
                    {
                        "file_name": "pyproject.toml",
                        "file_size": 2048,
                        "file_type": "text/plain",
                        "extracted_content": "[build-system]",
                    }
                ],
                "files": [],
            },
            {
                "uuid": "m2",
                "sender": "assistant",
                "created_at": "2024-01-05T10:00:05Z",
                "updated_at": "2024-01-05T10:00:05Z",
                "text": "",
                "content": [
                    {"type": "text", "text": "Run python -m build."},
                    {"type": "tool_use"},
                ],
                "attachments": [],
                "files": [{"file_name": "notes.txt"}],
            },
        ],
    },
    {
        "uuid": "bbbbbbbb-2222-4000-8000-000000000002",
        "name": "Empty reply",
        "created_at": "2024-03-15T08:30:00Z",
        "chat_messages": [
            {"uuid": "m3", "sender": "human", "text": "ping"},
            {"uuid": "m4", "sender": "assistant", "text": "   ", "content": []},
        ],
    },
    {
        "uuid": "cccccccc-3333-4000-8000-000000000003",
        "name": "No messages",
        "created_at": "not a date",
    },
]


@pytest.fixture
def sample_records():
    return parse_conversations(json.loads(json.dumps(SAMPLE_EXPORT)))


@pytest.fixture
def export_file(tmp_path):
    path = tmp_path / "conversations.json"
    path.write_text(json.dumps(SAMPLE_EXPORT), encoding="utf-8")
    return path
