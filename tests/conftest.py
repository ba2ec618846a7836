"""Pytest configuration and fixtures."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from thread_flow.reducer import parse_db_messages, to_ui_messages
from thread_flow.renderer import ui_messages_to_dict

SAMPLE_THREAD = [
    {"type": "user", "model": "sonnet", "parts": [{"type": "text", "text": "fix the tests"}]},
    {"type": "agent", "parent_tool_use_id": None, "parts": [{"type": "text", "text": "On it."}]},
    {
        "type": "tool-call",
        "id": "bash-1",
        "name": "Bash",
        "parameters": {"command": "pytest"},
        "parent_tool_use_id": None,
    },
    {
        "type": "tool-result",
        "id": "bash-1",
        "result": "1 failed",
        "is_error": True,
        "parent_tool_use_id": None,
    },
    {
        "type": "tool-call",
        "id": "edit-1",
        "name": "Edit",
        "parameters": {"file_path": "app.py", "old_string": "a", "new_string": "b"},
        "parent_tool_use_id": None,
    },
]


@pytest.fixture
def reduce_log() -> Callable[..., list[dict]]:
    """Reduce raw DB message dicts and return the UI messages as wire dicts."""

    def _reduce(records: list[dict], agent: str = "claudeCode", thread_status: str | None = None):
        messages = to_ui_messages(parse_db_messages(records), agent, thread_status=thread_status)
        return ui_messages_to_dict(messages)

    return _reduce


@pytest.fixture
def write_log(tmp_path: Path) -> Callable[[list[dict]], Path]:
    """Write records to a JSONL thread log and return its path."""

    def _write(records: list[dict], name: str = "thread.jsonl") -> Path:
        path = tmp_path / name
        path.write_text("".join(json.dumps(r) + "\n" for r in records))
        return path

    return _write


@pytest.fixture
def sample_log(write_log: Callable[[list[dict]], Path]) -> Path:
    """Return path to a small thread log with one pending tool call."""
    return write_log(SAMPLE_THREAD)
