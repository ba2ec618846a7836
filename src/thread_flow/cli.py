"""CLI entry point for thread-flow."""

import json
import tempfile
import webbrowser
from datetime import datetime
from pathlib import Path
from typing import get_args

import typer

APP_HELP = """
Inspect coding-agent threads and automation schedules.

\b
A thread log is a JSONL file with one DB message per line, for example:
  {"type": "user", "model": null, "parts": [{"type": "text", "text": "hi"}]}
  {"type": "tool-call", "id": "t1", "name": "Bash", "parameters": {"command": "ls"}}

\b
Defaults (agent, access tier, timezone) are read from:
  ~/.config/thread-flow/config.yaml
"""

TRANSCRIPT_HELP = """
Reduce a thread log into UI messages and output them as JSON.

Agent text and tool calls are grouped into agent messages, nested Task
activity is attached to its tool call, and consecutive user messages are
merged.

\b
Examples:
  # Every tool call still waiting for a result
  thread-flow transcript thread.jsonl | jq '[.messages[].parts[]? | select(.status == "pending")]'

  # Treat the thread as finished (pending tools become interrupted)
  thread-flow transcript thread.jsonl --status complete

  # Compact output for piping
  thread-flow transcript thread.jsonl --compact | jq '.metadata'
"""

HTML_HELP = """
Render a thread log as a self-contained HTML transcript and open it in a browser.

\b
Examples:
  thread-flow html thread.jsonl -o thread.html --no-open
"""

CRON_HELP = """
Validate, describe and evaluate automation cron expressions.

\b
Supported patterns (month must be *):
  M H * * *          daily (H may list up to 8 hours, pro tier only)
  M H * * D          weekly on day D (0-6)
  M H * * 1-5        weekdays
  M H * * D,D,...    custom weekly
  M H N * *          monthly on day N (1-28)
"""

app = typer.Typer(add_completion=False, help=APP_HELP)
cron_app = typer.Typer(add_completion=False, help=CRON_HELP)
app.add_typer(cron_app, name="cron")


def _load_transcript(log_path: Path, agent: str | None, status: str | None):
    from .config import load_config
    from .models import AIAgent
    from .reducer import load_db_messages, to_ui_messages

    if not log_path.exists():
        typer.echo(f"Error: File not found: {log_path}", err=True)
        raise typer.Exit(1)

    config = load_config()
    agent = agent or config.agent
    if agent not in get_args(AIAgent):
        known = ", ".join(get_args(AIAgent))
        typer.echo(f"Error: Unknown agent: {agent} (expected one of {known})", err=True)
        raise typer.Exit(1)

    db_messages = load_db_messages(log_path)
    return to_ui_messages(db_messages, agent=agent, thread_status=status)


@app.command(help=TRANSCRIPT_HELP)
def transcript(
    log_path: Path = typer.Argument(..., help="Path to JSONL thread log"),
    agent: str | None = typer.Option(None, "--agent", help="Agent that produced the thread"),
    status: str | None = typer.Option(None, "--status", help="Current thread status"),
    output: Path | None = typer.Option(None, "-o", "--output", help="Output JSON file path"),
    compact: bool = typer.Option(False, "--compact", help="No indentation (for piping)"),
) -> None:
    from .renderer import render_json

    messages = _load_transcript(log_path, agent, status)
    json_str = render_json(messages, log_path, compact=compact)

    if output is None:
        typer.echo(json_str)
    else:
        output.write_text(json_str)
        typer.echo(f"Written to {output}", err=True)


@app.command(help=HTML_HELP)
def html(
    log_path: Path = typer.Argument(..., help="Path to JSONL thread log"),
    agent: str | None = typer.Option(None, "--agent", help="Agent that produced the thread"),
    status: str | None = typer.Option(None, "--status", help="Current thread status"),
    output: Path | None = typer.Option(None, "-o", "--output", help="Output HTML file path"),
    no_open: bool = typer.Option(False, "--no-open", help="Don't auto-open in browser"),
) -> None:
    from .renderer import render

    messages = _load_transcript(log_path, agent, status)
    html_content = render(messages, title=log_path.stem)

    if output is None:
        output = Path(tempfile.mktemp(suffix=".html", prefix="thread-flow-"))

    output.write_text(html_content)
    typer.echo(f"Written to {output}")

    if not no_open:
        webbrowser.open(f"file://{output}")


@cron_app.command("validate")
def cron_validate(
    expression: str = typer.Argument(..., help="5-field cron expression"),
    tier: str | None = typer.Option(None, "--tier", help="Access tier (core or pro)"),
) -> None:
    """Check whether an expression can be used for an automation."""
    from .config import load_config
    from .cron import validate_cron_expression

    config = load_config()
    result = validate_cron_expression(expression, tier or config.access_tier)
    if not result.is_valid:
        typer.echo(f"Error: {result.error}", err=True)
        raise typer.Exit(1)
    typer.echo("ok")


@cron_app.command("describe")
def cron_describe(
    expression: str = typer.Argument(..., help="5-field cron expression"),
    tz: str | None = typer.Option(None, "--tz", help="Timezone to mention in the description"),
    verbose: bool = typer.Option(False, "--verbose", help="Longer description"),
) -> None:
    """Describe an expression in English."""
    from .cron import cron_to_human_readable, get_cron_description

    if verbose:
        typer.echo(cron_to_human_readable(expression))
    else:
        typer.echo(get_cron_description(expression, tz))


@cron_app.command("next")
def cron_next(
    expression: str = typer.Argument(..., help="5-field cron expression"),
    tz: str | None = typer.Option(None, "--tz", help="IANA timezone (default from config)"),
    tier: str | None = typer.Option(None, "--tier", help="Access tier (core or pro)"),
    after: datetime | None = typer.Option(None, "--after", help="Start after this time (UTC if naive)"),
    count: int = typer.Option(1, "--count", min=1, help="Number of runs to list"),
) -> None:
    """List the next run times of an expression."""
    from .config import load_config
    from .cron import get_next_run_time

    config = load_config()
    current = after
    for _ in range(count):
        current = get_next_run_time(
            expression,
            tier or config.access_tier,
            timezone=tz or config.timezone,
            after_date=current,
        )
        if current is None:
            typer.echo(f"Error: Cannot schedule {expression!r}", err=True)
            raise typer.Exit(1)
        typer.echo(current.isoformat())


@cron_app.command("parse")
def cron_parse(
    expression: str = typer.Argument(..., help="5-field cron expression"),
) -> None:
    """Print the schedule form state for an expression as JSON."""
    from .config import is_development, load_config
    from .cron import parse_cron_to_state

    state = parse_cron_to_state(expression, development=is_development(load_config()))
    typer.echo(json.dumps(state.model_dump(by_alias=True, exclude_none=True), indent=2))


if __name__ == "__main__":
    app()
