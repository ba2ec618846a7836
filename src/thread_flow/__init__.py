"""thread-flow: Reduce coding-agent message logs into chat transcripts and manage automation schedules."""

from .cron import (
    MAX_HOURS_SCHEDULE_AUTOMATIONS,
    cron_to_human_readable,
    generate_cron,
    get_cron_description,
    get_next_run_time,
    is_supported_cron_expression,
    is_valid_cron_expression,
    parse_cron_to_state,
    validate_cron_expression,
)
from .models import DBMessage, ScheduleState, ToolPart, UIMessage
from .reducer import INTERRUPTED_TOOL_RESULT, load_db_messages, parse_db_messages, to_ui_messages
from .renderer import render, render_json

__all__ = [
    "DBMessage",
    "INTERRUPTED_TOOL_RESULT",
    "MAX_HOURS_SCHEDULE_AUTOMATIONS",
    "ScheduleState",
    "ToolPart",
    "UIMessage",
    "cron_to_human_readable",
    "generate_cron",
    "get_cron_description",
    "get_next_run_time",
    "is_supported_cron_expression",
    "is_valid_cron_expression",
    "load_db_messages",
    "parse_cron_to_state",
    "parse_db_messages",
    "render",
    "render_json",
    "to_ui_messages",
    "validate_cron_expression",
]
