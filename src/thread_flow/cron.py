"""Cron expression validation and helpers for automation scheduling.

Automations store a 5-field cron expression. Only a restricted subset can be
edited by the schedule form (daily, weekly, weekdays, custom weekly, monthly,
up to MAX_HOURS_SCHEDULE_AUTOMATIONS hours a day), and that subset maps to
and from ScheduleState.
"""

import re
import sys
from datetime import datetime, timezone as dt_timezone
from zoneinfo import ZoneInfo

from croniter import CroniterError, croniter
from cron_descriptor import (
    ExpressionDescriptor,
    FormatException,
    MissingFieldException,
    Options,
    WrongArgumentException,
)

from .config import is_development
from .models import AccessTier, CronValidationResult, ScheduleFrequency, ScheduleState

# Maximum number of hours specified per schedule automation
MAX_HOURS_SCHEDULE_AUTOMATIONS = 8

INVALID_CRON_DESCRIPTION = "Invalid cron expression"

_MINUTE_RE = re.compile(r"^([0-5]?\d)$")
_HOUR_RE = re.compile(r"^([01]?\d|2[0-3])$")
_SINGLE_DAY_OF_WEEK_RE = re.compile(r"^[0-6]$")
_DAYS_OF_WEEK_RE = re.compile(r"^[0-6](,[0-6])*$")
_DAY_OF_MONTH_RE = re.compile(r"^([1-9]|1\d|2[0-8])$")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
# croniter-only tokens: R (random) and H (hashed)
_CRONITER_EXTENSION_RE = re.compile(r"(?<![A-Z])[RH](?![A-Z])", re.IGNORECASE)


def get_cron_parts(cron: str) -> list[str]:
    return cron.split()


def is_valid_cron_expression(cron: str) -> bool:
    """Check that a cron expression has exactly 5 fields and is syntactically correct."""
    if len(get_cron_parts(cron)) != 5:
        return False
    if _CRONITER_EXTENSION_RE.search(cron):
        return False
    return croniter.is_valid(cron)


def _is_supported_hour_field(hour: str) -> bool:
    if hour == "*":
        # Only meaningful together with the */5 minute pattern
        return True
    hour_parts = hour.split(",")
    if len(hour_parts) > MAX_HOURS_SCHEDULE_AUTOMATIONS:
        return False
    if len(set(hour_parts)) != len(hour_parts):
        return False
    return all(_HOUR_RE.match(part) for part in hour_parts)


def is_supported_cron_expression(cron: str) -> bool:
    """Check that a cron expression is valid and can be represented by the schedule form."""
    if not is_valid_cron_expression(cron):
        return False

    minute, hour, day_of_month, month, day_of_week = get_cron_parts(cron)

    # Month-based schedules are not supported
    if month != "*":
        return False

    # */5 is the development-only 5-minutely pattern
    if minute != "*/5" and not _MINUTE_RE.match(minute):
        return False

    if not _is_supported_hour_field(hour):
        return False

    if day_of_month == "*" and day_of_week == "*":
        return True

    if day_of_month == "*":
        if day_of_week == "1-5":
            return True
        if _SINGLE_DAY_OF_WEEK_RE.match(day_of_week):
            return True
        return bool(_DAYS_OF_WEEK_RE.match(day_of_week))

    if day_of_week == "*":
        # Days after the 28th don't exist in every month
        return bool(_DAY_OF_MONTH_RE.match(day_of_month))

    return False


def validate_cron_expression(cron: str, access_tier: AccessTier) -> CronValidationResult:
    """Validate a cron expression for a user on the given access tier."""
    if not is_valid_cron_expression(cron):
        return CronValidationResult(is_valid=False, error="invalid-syntax")
    if not is_supported_cron_expression(cron):
        return CronValidationResult(is_valid=False, error="unsupported-pattern")

    hour_parts = get_cron_parts(cron)[1].split(",")
    if len(hour_parts) > 1 and access_tier != "pro":
        return CronValidationResult(is_valid=False, error="pro-only")

    return CronValidationResult(is_valid=True)


def parse_cron_to_state(cron: str, development: bool | None = None) -> ScheduleState:
    """Parse a cron expression into schedule form state.

    Malformed or unsupported expressions fall back to daily at 9:00 rather
    than raising.
    """
    if development is None:
        development = is_development()

    parts = cron.split(" ")
    if len(parts) < 5:
        return ScheduleState(frequency="daily", hour="9:00")
    minute_part, hour_part, day_of_month_part, _, day_of_week_part = parts[:5]

    minute = "0" if minute_part == "*" else minute_part or "0"
    hour_field = "9" if hour_part == "*" else hour_part or "9"
    padded_minute = minute.rjust(2, "0")

    hours = hour_field.split(",")
    selected_hours = [f"{h}:{padded_minute}" for h in hours] if len(hours) > 1 else None
    hour = f"{hours[0]}:{padded_minute}"

    day_of_month = day_of_month_part or "*"
    day_of_week = day_of_week_part or "*"

    if day_of_month == "*" and day_of_week == "*":
        if minute_part == "*/5" and hour_part == "*" and development:
            return ScheduleState(frequency="5-minutely", hour="0:00")
        return ScheduleState(frequency="daily", hour=hour, selected_hours=selected_hours)

    if day_of_month == "*":
        if day_of_week == "1-5":
            return ScheduleState(
                frequency="weekdays",
                hour=hour,
                selected_hours=selected_hours,
                selected_days=["1", "2", "3", "4", "5"],
            )
        days = day_of_week.split(",")
        if len(days) == 1:
            return ScheduleState(
                frequency="weekly",
                hour=hour,
                selected_hours=selected_hours,
                day_of_week=day_of_week,
            )
        return ScheduleState(
            frequency="custom-weekly",
            hour=hour,
            selected_hours=selected_hours,
            selected_days=days,
        )

    if day_of_week == "*":
        return ScheduleState(
            frequency="monthly",
            hour=hour,
            selected_hours=selected_hours,
            day_of_month=day_of_month,
        )

    return ScheduleState(frequency="daily", hour="9:00")


def _strip_leading_zeros(value: str) -> str:
    """Drop leading zeros ("09" -> "9"); values without leading digits become "0"."""
    match = _LEADING_INT_RE.match(value)
    return str(int(match.group(1))) if match else "0"


def generate_cron(
    frequency: ScheduleFrequency,
    hour: str,
    day_of_week: str | None = None,
    day_of_month: str | None = None,
    selected_days: list[str] | None = None,
    selected_hours: list[str] | None = None,
    development: bool | None = None,
) -> str:
    """Generate a cron expression from schedule form state.

    With selected_hours, the minute comes from the first entry (multi-hour
    edits always come from the hour list) and the hour field lists every
    entry's hour in the given order.
    """
    if development is None:
        development = is_development()

    h, _, m = (hour or "9:00").partition(":")

    if selected_hours:
        minute = _strip_leading_zeros(selected_hours[0].partition(":")[2])
        hour_part = ",".join(
            _strip_leading_zeros(time_str.partition(":")[0]) for time_str in selected_hours
        )
    else:
        minute = _strip_leading_zeros(m)
        hour_part = h

    if frequency == "5-minutely" and development:
        return "*/5 * * * *"
    if frequency == "weekly":
        return f"{minute} {hour_part} * * {day_of_week or '1'}"
    if frequency == "monthly":
        return f"{minute} {hour_part} {day_of_month or '1'} * *"
    if frequency == "weekdays":
        return f"{minute} {hour_part} * * 1-5"
    if frequency == "custom-weekly":
        return f"{minute} {hour_part} * * {','.join(selected_days or []) or '1'}"
    # daily, 5-minutely outside development, and anything unknown
    return f"{minute} {hour_part} * * *"


def state_to_cron(state: ScheduleState, development: bool | None = None) -> str:
    return generate_cron(
        state.frequency,
        state.hour,
        state.day_of_week,
        state.day_of_month,
        state.selected_days,
        state.selected_hours,
        development=development,
    )


def _describe(cron: str, verbose: bool) -> str:
    options = Options()
    options.throw_exception_on_parse_error = True
    options.verbose = verbose
    options.locale_code = "en_US"
    options.use_24hour_time_format = False
    return ExpressionDescriptor(cron, options).get_description()


def get_cron_description(cron: str, timezone: str | None = None) -> str:
    """Get a short human-readable description, with the timezone appended if given."""
    if not is_valid_cron_expression(cron):
        return INVALID_CRON_DESCRIPTION
    try:
        description = _describe(cron, verbose=False)
    except (FormatException, MissingFieldException, WrongArgumentException, ValueError, IndexError):
        return INVALID_CRON_DESCRIPTION
    return f"{description} ({timezone})" if timezone else description


def cron_to_human_readable(cron: str) -> str:
    """Get a verbose human-readable description of a cron expression."""
    if not is_valid_cron_expression(cron):
        return INVALID_CRON_DESCRIPTION
    try:
        return _describe(cron, verbose=True)
    except (FormatException, MissingFieldException, WrongArgumentException, ValueError, IndexError):
        return INVALID_CRON_DESCRIPTION


def get_next_run_time(
    cron: str,
    access_tier: AccessTier,
    timezone: str | None = None,
    after_date: datetime | None = None,
) -> datetime | None:
    """Calculate the first run strictly after after_date (default: now).

    The expression is evaluated in ``timezone`` (default UTC). Naive
    ``after_date`` values are taken as UTC. Returns None for expressions the
    user may not schedule and for unknown timezones.
    """
    if not validate_cron_expression(cron, access_tier).is_valid:
        return None
    try:
        tz = ZoneInfo(timezone) if timezone else dt_timezone.utc
        start = after_date or datetime.now(dt_timezone.utc)
        if start.tzinfo is None:
            start = start.replace(tzinfo=dt_timezone.utc)
        return croniter(cron, start.astimezone(tz)).get_next(datetime)
    except (KeyError, ValueError, CroniterError) as e:
        # ZoneInfoNotFoundError is a KeyError
        print(f"Error calculating next run time: {e}", file=sys.stderr)
        return None
