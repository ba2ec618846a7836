"""JSON and HTML renderers for reduced transcripts."""

import json
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

from .models import ToolPart, UIAgentMessage, UIMessage, UISystemMessage, UIUserMessage


def json_for_html(data: Any) -> str:
    """Safely encode JSON for embedding in HTML script tags."""
    json_str = json.dumps(data, ensure_ascii=False)
    # Escape </script> and <!-- to prevent HTML injection
    json_str = json_str.replace("</script>", "</scr\\u0069pt>")
    json_str = json_str.replace("<!--", "<\\u0021--")
    return json_str


def part_to_dict(part) -> dict:
    """Convert a part to its wire shape (camelCase keys, unset optionals omitted)."""
    if isinstance(part, ToolPart):
        data = {
            "type": "tool",
            "id": part.id,
            "agent": part.agent,
            "name": part.name,
            "parameters": part.parameters,
            "status": part.status,
            "parts": [part_to_dict(p) for p in part.parts],
        }
        if part.status != "pending":
            data["result"] = part.result
        return data
    return part.model_dump(by_alias=True, exclude_none=True)


def ui_message_to_dict(message: UIMessage) -> dict:
    """Convert a UI message to the dict shape consumed by transcript renderers."""
    if isinstance(message, UIUserMessage):
        data = {
            "role": "user",
            "parts": [part_to_dict(p) for p in message.parts],
            "model": message.model,
        }
        if message.timestamp is not None:
            data["timestamp"] = message.timestamp
        return data
    if isinstance(message, UIAgentMessage):
        return {
            "role": "agent",
            "agent": message.agent,
            "parts": [part_to_dict(p) for p in message.parts],
        }
    return {
        "role": "system",
        "message_type": message.message_type,
        "parts": [part_to_dict(p) for p in message.parts],
    }


def ui_messages_to_dict(messages: list[UIMessage]) -> list[dict]:
    return [ui_message_to_dict(m) for m in messages]


def iter_tool_parts(parts: list):
    """Yield every tool part in a parts list, including nested ones."""
    for part in parts:
        if isinstance(part, ToolPart):
            yield part
            yield from iter_tool_parts(part.parts)


def compute_metadata(messages: list[UIMessage], source_path: Path) -> dict:
    """Compute summary metadata for a transcript."""
    tool_parts = [
        tool
        for message in messages
        if isinstance(message, UIAgentMessage)
        for tool in iter_tool_parts(message.parts)
    ]

    return {
        "thread_id": source_path.stem,
        "total_messages": len(messages),
        "user_messages": sum(1 for m in messages if isinstance(m, UIUserMessage)),
        "agent_messages": sum(1 for m in messages if isinstance(m, UIAgentMessage)),
        "system_messages": sum(1 for m in messages if isinstance(m, UISystemMessage)),
        "tool_calls": len(tool_parts),
        "pending_tool_calls": sum(1 for t in tool_parts if t.status == "pending"),
    }


def render_json(messages: list[UIMessage], source_path: Path, compact: bool = False) -> str:
    """Render a transcript as JSON string."""
    ordered = {
        "metadata": compute_metadata(messages, source_path),
        "messages": ui_messages_to_dict(messages),
    }
    return json.dumps(ordered, indent=None if compact else 2)


def render(messages: list[UIMessage], title: str = "Transcript") -> str:
    """Render a transcript to a self-contained HTML string."""
    template_dir = Path(__file__).parent / "templates"
    env = Environment(loader=FileSystemLoader(template_dir), autoescape=True)
    env.filters["pretty_json"] = lambda value: json.dumps(value, indent=2, ensure_ascii=False)
    template = env.get_template("transcript.html.j2")

    data = ui_messages_to_dict(messages)
    return template.render(title=title, messages=data, transcript_json=json_for_html(data))
