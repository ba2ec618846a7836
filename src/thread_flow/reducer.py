"""Fold a thread's DB message log into the UI messages of its chat transcript."""

import json
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Literal, assert_never

from pydantic import TypeAdapter, ValidationError

from .models import (
    AIAgent,
    DBAgentMessage,
    DBErrorMessage,
    DBGitDiffMessage,
    DBMessage,
    DBMetaMessage,
    DBStopMessage,
    DBSystemMessage,
    DBThreadContextMessage,
    DBThreadContextResultMessage,
    DBToolCall,
    DBToolResult,
    DBUserMessage,
    GitDiffPart,
    StopPart,
    TextPart,
    ToolPart,
    UIAgentMessage,
    UIMessage,
    UISystemMessage,
    UIUserMessage,
)

INTERRUPTED_TOOL_RESULT = "[Tool execution was interrupted]"

# Thread statuses during which the agent may still deliver tool results.
WORKING_THREAD_STATUSES = frozenset(
    {
        "queued",
        "queued-tasks-concurrency",
        "queued-sandbox-creation-rate-limit",
        "queued-agent-rate-limit",
        "booting",
        "working",
        "stopping",
        "checkpointing",
    }
)

_db_messages_adapter = TypeAdapter(list[DBMessage])
_db_message_adapter = TypeAdapter(DBMessage)


def is_thread_working(status: str) -> bool:
    """Check if a thread status means the agent is still actively running."""
    return status in WORKING_THREAD_STATUSES


def push_part(parts: list, part) -> None:
    """Append a part, dropping text parts that are empty after stripping."""
    if isinstance(part, TextPart) and part.text.strip() == "":
        return
    parts.append(part)


def push_tool_part(parts: list, tool_part: ToolPart) -> None:
    """Append a tool part; a TodoWrite directly after another TodoWrite replaces it."""
    if (
        tool_part.name == "TodoWrite"
        and parts
        and isinstance(parts[-1], ToolPart)
        and parts[-1].name == "TodoWrite"
    ):
        parts[-1] = tool_part
    else:
        push_part(parts, tool_part)


class _TranscriptState:
    """Mutable state for a single to_ui_messages call."""

    def __init__(self, agent: AIAgent) -> None:
        self.agent = agent
        self.ui_messages: list[UIMessage] = []
        self.current_agent_message: UIAgentMessage | None = None
        self.current_user_message: UIUserMessage | None = None
        # Every tool part created so far, at any nesting depth
        self.tool_parts_by_id: dict[str, ToolPart] = {}

    def mark_pending_tools_as_completed(self) -> None:
        for tool_part in self.tool_parts_by_id.values():
            if tool_part.status == "pending":
                tool_part.status = "completed"
                tool_part.result = INTERRUPTED_TOOL_RESULT

    def get_or_create_agent_message(self) -> UIAgentMessage:
        if self.current_agent_message is None:
            self.current_agent_message = UIAgentMessage(agent=self.agent, parts=[])
        return self.current_agent_message

    def get_or_create_user_message(self) -> UIUserMessage:
        if self.current_user_message is None:
            self.current_user_message = UIUserMessage(parts=[])
        return self.current_user_message

    def flush_user_message(self) -> None:
        if self.current_user_message is not None:
            self.ui_messages.append(self.current_user_message)
            self.current_user_message = None

    def flush_agent_message(self) -> None:
        if self.current_agent_message is not None:
            self.ui_messages.append(self.current_agent_message)
            self.current_agent_message = None

    def apply(self, message: DBMessage) -> None:
        if isinstance(message, DBMetaMessage):
            if message.subtype == "result-success":
                self.flush_agent_message()
                self.flush_user_message()
            elif message.subtype == "result-error-max-turns":
                self.mark_pending_tools_as_completed()
        elif isinstance(message, DBUserMessage):
            self.mark_pending_tools_as_completed()
            self.flush_agent_message()
            user_message = self.get_or_create_user_message()
            for part in message.parts:
                push_part(user_message.parts, part)
            user_message.timestamp = message.timestamp
            user_message.model = message.model
        elif isinstance(message, DBSystemMessage):
            self.flush_agent_message()
            self.flush_user_message()
            self.ui_messages.append(
                UISystemMessage(message_type=message.message_type, parts=list(message.parts))
            )
        elif isinstance(message, DBAgentMessage):
            self.flush_user_message()
            if message.parent_tool_use_id:
                parent = self.tool_parts_by_id.get(message.parent_tool_use_id)
                if parent is not None:
                    for part in message.parts:
                        push_part(parent.parts, part)
            else:
                agent_message = self.get_or_create_agent_message()
                for part in message.parts:
                    push_part(agent_message.parts, part)
        elif isinstance(message, DBToolCall):
            self.flush_user_message()
            tool_part = ToolPart(
                id=message.id,
                agent=self.agent,
                name=message.name,
                parameters=message.parameters,
                status="pending",
                parts=[],
            )
            if message.parent_tool_use_id:
                parent = self.tool_parts_by_id.get(message.parent_tool_use_id)
                if parent is not None:
                    push_tool_part(parent.parts, tool_part)
            else:
                push_tool_part(self.get_or_create_agent_message().parts, tool_part)
            # Registered even when the parent is unknown, so its result still resolves
            self.tool_parts_by_id[message.id] = tool_part
        elif isinstance(message, DBToolResult):
            tool_part = self.tool_parts_by_id.get(message.id)
            if tool_part is not None:
                tool_part.status = "error" if message.is_error else "completed"
                tool_part.result = message.result
        elif isinstance(message, DBGitDiffMessage):
            self.mark_pending_tools_as_completed()
            self.flush_agent_message()
            self.flush_user_message()
            git_diff_part = GitDiffPart(
                diff=message.diff,
                diff_stats=message.diff_stats or None,
                timestamp=message.timestamp,
                description=message.description,
            )
            self.ui_messages.append(UISystemMessage(message_type="git-diff", parts=[git_diff_part]))
        elif isinstance(message, DBStopMessage):
            self.mark_pending_tools_as_completed()
            self.flush_agent_message()
            self.flush_user_message()
            self.ui_messages.append(UISystemMessage(message_type="stop", parts=[StopPart()]))
        elif isinstance(message, DBErrorMessage):
            # Errors never show up in the transcript, only their interruption does
            self.mark_pending_tools_as_completed()
            self.flush_agent_message()
            self.flush_user_message()
        elif isinstance(message, (DBThreadContextMessage, DBThreadContextResultMessage)):
            pass
        else:
            assert_never(message)


def to_ui_messages(
    db_messages: Iterable[DBMessage],
    agent: AIAgent,
    thread_status: str | None = None,
) -> list[UIMessage]:
    """Convert a thread's DB messages into UI messages.

    DB messages store every interaction separately (user turns, agent text,
    tool calls, tool results), while UI messages group tool calls and their
    results as parts of agent messages. Inconsistent input (orphaned results,
    unknown parents) is dropped rather than raised.

    Args:
        db_messages: The thread's message log, in arrival order
        agent: Agent that produced the thread
        thread_status: When given and not a working status, tool calls still
            pending at the end of the log are reported as interrupted

    Returns:
        Ordered UI messages
    """
    state = _TranscriptState(agent)
    for message in db_messages:
        state.apply(message)

    state.flush_user_message()
    state.flush_agent_message()

    if thread_status and not is_thread_working(thread_status):
        state.mark_pending_tools_as_completed()

    return state.ui_messages


def get_pending_tool_call_error_messages(
    messages: Iterable[DBMessage],
    interruption_reason: Literal["user", "error"],
) -> list[DBToolResult]:
    """Build error results for tool calls that never received a result.

    Returned in call order, so they can be appended to the log before the
    thread resumes.
    """
    pending: dict[str, DBToolCall] = {}
    for message in messages:
        if isinstance(message, DBToolCall):
            pending[message.id] = message
        elif isinstance(message, DBToolResult):
            pending.pop(message.id, None)

    return [
        DBToolResult(
            id=call.id,
            is_error=True,
            parent_tool_use_id=call.parent_tool_use_id,
            result=f"Tool execution interrupted by {interruption_reason}",
        )
        for call in pending.values()
    ]


def parse_db_messages(records: list[dict]) -> list[DBMessage]:
    """Validate plain dicts (as stored in the database) into DB message models."""
    return _db_messages_adapter.validate_python(records)


def load_db_messages(path: Path) -> list[DBMessage]:
    """Load a JSONL message log, skipping malformed lines and unknown records."""
    messages: list[DBMessage] = []
    with open(path) as f:
        for line_num, line in enumerate(f, 1):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                print(f"Warning: Skipping malformed JSON at line {line_num}: {e}", file=sys.stderr)
                continue
            try:
                messages.append(_db_message_adapter.validate_python(record))
            except ValidationError as e:
                print(
                    f"Warning: Skipping invalid message at line {line_num}: "
                    f"{e.error_count()} validation error(s)",
                    file=sys.stderr,
                )
    return messages
