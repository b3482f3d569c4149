from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from convexplorer.cli import cli

FIRST = "aaaaaaaa-1111-4000-8000-000000000001"
SECOND = "bbbbbbbb-2222-4000-8000-000000000002"
THIRD = "cccccccc-3333-4000-8000-000000000003"


@pytest.fixture
def run(export_file):
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(cli, ["--file", str(export_file), *args])

    return invoke


def test_list_newest_first(run):
    result = run("list")
    assert result.exit_code == 0, result.output
    lines = [line for line in result.output.splitlines() if "│" in line]
    assert [line[:8] for line in lines] == ["bbbbbbbb", "aaaaaaaa", "cccccccc"]
    assert "Page 1 of 1 (3 conversations)" in result.output


def test_list_with_filters(run):
    result = run("list", "--search", "wheel", "--has-messages")
    assert result.exit_code == 0, result.output
    assert "Python packaging" in result.output
    assert "Empty reply" not in result.output


def test_list_date_range_and_sort(run):
    result = run("list", "--date", "2024-01-01 to 2024-12-31", "--sort", "messages", "--asc")
    assert result.exit_code == 0, result.output
    assert "No messages" not in result.output
    assert "Python packaging" in result.output


def test_list_bad_date(run):
    result = run("list", "--date", "someday")
    assert result.exit_code != 0
    assert "Invalid date" in result.output


def test_list_page_out_of_range_is_clamped(run):
    result = run("list", "--page", "9", "--page-size", "2")
    assert result.exit_code == 0, result.output
    assert "Page 2 of 2 (3 conversations)" in result.output


def test_list_nothing_found(run):
    result = run("list", "--search", "zzz-not-there")
    assert result.exit_code == 0
    assert "No conversations found." in result.output


def test_show(run):
    result = run("show", FIRST)
    assert result.exit_code == 0, result.output
    assert "Python packaging" in result.output
    assert "Account: acct-1" in result.output


def test_show_unknown_conversation(run):
    result = run("show", "missing")
    assert result.exit_code == 1
    assert "Conversation not found: missing" in result.output


def test_messages_and_message(run):
    result = run("messages", SECOND)
    assert result.exit_code == 0, result.output
    assert "human: ping" in result.output
    assert "assistant: (empty message)" in result.output

    result = run("message", FIRST, "2")
    assert result.exit_code == 0, result.output
    assert "Run python -m build." in result.output

    result = run("message", FIRST, "5")
    assert result.exit_code == 1
    assert "has 2 messages" in result.output


def test_messages_of_conversation_without_messages(run):
    result = run("messages", THIRD)
    assert result.exit_code == 0
    assert "no messages" in result.output


def test_stats(run):
    result = run("stats")
    assert result.exit_code == 0, result.output
    assert "Conversations:  3" in result.output
    assert "Messages:       4" in result.output
    assert "invalid-date: 1 conversations, 0 messages" in result.output


def test_empty(run):
    result = run("empty")
    assert result.exit_code == 0, result.output
    assert "1/2 empty" in result.output
    assert "Empty reply" in result.output


def test_export(run, tmp_path):
    target = tmp_path / "chat.md"
    result = run("export", FIRST, "-o", str(target))
    assert result.exit_code == 0, result.output
    assert "Exported 2 messages" in result.output
    assert target.read_text(encoding="utf-8").startswith("# Python packaging")


def test_export_without_messages_fails(run, tmp_path):
    result = run("export", THIRD, "-o", str(tmp_path / "x.md"))
    assert result.exit_code == 1
    assert "No messages to export" in result.output


def test_analyze(run, tmp_path):
    target = tmp_path / "report.json"
    result = run("analyze", "-o", str(target), "--samples", "1", "--seed", "1")
    assert result.exit_code == 0, result.output
    assert "Conversations:    3" in result.output
    data = json.loads(target.read_text(encoding="utf-8"))
    assert len(data["samples"]) == 1


def test_missing_file(tmp_path):
    result = CliRunner().invoke(cli, ["--file", str(tmp_path / "nope.json"), "stats"])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_out_of_range_page_filters_once(run, monkeypatch):
    from convexplorer import query

    calls = []
    original = query.filter_conversations

    def counting(records, spec):
        calls.append(spec)
        return original(records, spec)

    monkeypatch.setattr(query, "filter_conversations", counting)
    result = run("list", "--has-messages", "--page", "9", "--page-size", "1")
    assert result.exit_code == 0, result.output
    assert len(calls) == 1
    assert "Page 2 of 2" in result.output
