from __future__ import annotations

from conftest import conversation

from convexplorer.exporter import default_export_path, export_conversation, format_conversation


def test_markdown_layout(sample_records):
    doc = format_conversation(sample_records[0])
    lines = doc.splitlines()

    assert lines[0] == "# Python packaging"
    assert lines[1] == "Date: 2024-01-05 10:00:00"
    assert lines[2] == "UUID: aaaaaaaa-1111-4000-8000-000000000001"
    assert "## Message 1 (human) - 2024-01-05 10:00:00" in lines
    assert "## Message 2 (assistant) - 2024-01-05 10:00:05" in lines
    assert "### Attachments" in lines
    assert "- pyproject.toml (text/plain)" in lines


def test_content_parts_joined_with_blank_line():
    conv = conversation(
        "x",
        "2024-01-01",
        [{"uuid": "m", "sender": "assistant", "content": [{"text": "one"}, {"text": "two"}]}],
    )
    assert "one\n\ntwo" in format_conversation(conv)


def test_empty_message_placeholder(sample_records):
    assert "(empty message)" in format_conversation(sample_records[1])


def test_export_writes_default_path(sample_records, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    conv = sample_records[0]

    result = export_conversation(conv)

    assert result.ok
    assert result.path == "conversation_aaaaaaaa.md"
    assert result.messages == 2
    written = (tmp_path / "conversation_aaaaaaaa.md").read_text(encoding="utf-8")
    assert written == format_conversation(conv)
    assert default_export_path(conv).name == "conversation_aaaaaaaa.md"


def test_export_to_explicit_path(sample_records, tmp_path):
    target = tmp_path / "out.md"
    result = export_conversation(sample_records[1], target)
    assert result.ok
    assert target.read_text(encoding="utf-8").startswith("# Empty reply")


def test_conversation_without_messages_is_not_exported(sample_records, tmp_path):
    result = export_conversation(sample_records[2], tmp_path / "none.md")
    assert not result.ok
    assert result.error == "No messages to export"
    assert not (tmp_path / "none.md").exists()


def test_unwritable_destination_is_reported(sample_records, tmp_path):
    result = export_conversation(sample_records[0], tmp_path / "missing-dir" / "out.md")
    assert not result.ok
    assert "Could not write" in result.error
