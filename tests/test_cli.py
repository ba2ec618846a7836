"""Tests for the command-line interface."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from thread_flow.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_user_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the user's real config file out of CLI runs."""
    monkeypatch.setattr("thread_flow.config.CONFIG_PATH", tmp_path / "missing.yaml")
    monkeypatch.delenv("THREAD_FLOW_ENV", raising=False)


class TestTranscriptCommand:
    """Tests for the transcript command."""

    def test_outputs_json(self, sample_log: Path) -> None:
        """The reduced transcript is printed as JSON."""
        result = runner.invoke(app, ["transcript", str(sample_log)])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["metadata"]["thread_id"] == "thread"
        assert [m["role"] for m in data["messages"]] == ["user", "agent"]

    def test_status_completes_pending_tools(self, sample_log: Path) -> None:
        """--status with a finished status interrupts pending tools."""
        result = runner.invoke(app, ["transcript", str(sample_log), "--status", "complete", "--compact"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        edit = data["messages"][1]["parts"][-1]
        assert edit["status"] == "completed"
        assert edit["result"] == "[Tool execution was interrupted]"

    def test_agent_option(self, sample_log: Path) -> None:
        """--agent sets the agent on agent messages and tool parts."""
        result = runner.invoke(app, ["transcript", str(sample_log), "--agent", "codex"])
        data = json.loads(result.output)
        assert data["messages"][1]["agent"] == "codex"

    def test_writes_output_file(self, sample_log: Path, tmp_path: Path) -> None:
        """-o writes the JSON to a file."""
        output = tmp_path / "out.json"
        result = runner.invoke(app, ["transcript", str(sample_log), "-o", str(output)])
        assert result.exit_code == 0
        assert json.loads(output.read_text())["metadata"]["tool_calls"] == 2

    def test_unknown_agent(self, sample_log: Path) -> None:
        """An agent name outside the known agents is a user error, not a traceback."""
        result = runner.invoke(app, ["transcript", str(sample_log), "--agent", "claude"])
        assert result.exit_code == 1
        assert "Error: Unknown agent: claude" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_unknown_agent_from_config(
        self, sample_log: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A bad agent in the config file is reported the same way."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("agent: gpt\n")
        monkeypatch.setattr("thread_flow.config.CONFIG_PATH", config_file)
        result = runner.invoke(app, ["html", str(sample_log), "--no-open", "-o", str(tmp_path / "t.html")])
        assert result.exit_code == 1
        assert "Error: Unknown agent: gpt" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing log is an error."""
        result = runner.invoke(app, ["transcript", str(tmp_path / "nope.jsonl")])
        assert result.exit_code == 1
        assert "Error: File not found" in result.output


class TestHtmlCommand:
    """Tests for the html command."""

    def test_writes_html(self, sample_log: Path, tmp_path: Path) -> None:
        """The HTML page is written without opening a browser."""
        output = tmp_path / "thread.html"
        result = runner.invoke(app, ["html", str(sample_log), "-o", str(output), "--no-open"])
        assert result.exit_code == 0
        assert "<!DOCTYPE html>" in output.read_text()

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["html", str(tmp_path / "nope.jsonl"), "--no-open"])
        assert result.exit_code == 1


class TestCronCommands:
    """Tests for the cron subcommands."""

    def test_validate_ok(self) -> None:
        result = runner.invoke(app, ["cron", "validate", "0 9 * * 1-5"])
        assert result.exit_code == 0
        assert "ok" in result.output

    def test_validate_pro_only(self) -> None:
        """Multi-hour schedules need the pro tier."""
        result = runner.invoke(app, ["cron", "validate", "0 9,12 * * *"])
        assert result.exit_code == 1
        assert "Error: pro-only" in result.output

        result = runner.invoke(app, ["cron", "validate", "0 9,12 * * *", "--tier", "pro"])
        assert result.exit_code == 0

    def test_validate_invalid(self) -> None:
        result = runner.invoke(app, ["cron", "validate", "not a cron"])
        assert result.exit_code == 1
        assert "invalid-syntax" in result.output

    def test_describe(self) -> None:
        result = runner.invoke(app, ["cron", "describe", "0 9 * * *", "--tz", "UTC"])
        assert result.exit_code == 0
        assert "9:00 AM" in result.output
        assert "(UTC)" in result.output

    def test_next(self) -> None:
        """Consecutive runs are listed from the --after time."""
        result = runner.invoke(
            app,
            ["cron", "next", "0 9 * * *", "--tz", "UTC", "--after", "2024-01-15T10:00:00", "--count", "2"],
        )
        assert result.exit_code == 0
        assert result.output.split() == ["2024-01-16T09:00:00+00:00", "2024-01-17T09:00:00+00:00"]

    def test_next_unschedulable(self) -> None:
        result = runner.invoke(app, ["cron", "next", "0 9 * 1 *"])
        assert result.exit_code == 1
        assert "Error: Cannot schedule" in result.output

    def test_parse(self) -> None:
        """The schedule state is printed with camelCase keys."""
        result = runner.invoke(app, ["cron", "parse", "0 8,13 * * 1"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "frequency": "weekly",
            "hour": "8:00",
            "dayOfWeek": "1",
            "selectedHours": ["8:00", "13:00"],
        }
