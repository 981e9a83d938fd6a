"""
Time Window Resolver — Range label → concrete instant interval.

resolve_window(): label + now → TimeWindow (local-midnight anchored).
window_token(): label → range token understood by the transcript API.
parse_timestamp(): ISO-8601 string → aware datetime (naive = UTC).
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from question_analyzer.errors import InvalidRangeError
from question_analyzer.models.analysis import TimeRange, TimeWindow

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_WINDOW_TOKENS: dict[TimeRange, str] = {
    TimeRange.TODAY: "Today",
    TimeRange.YESTERDAY: "Yesterday",
    TimeRange.LAST_7: "Last 7 Days",
    TimeRange.LAST_30: "Last 30 days",
    # No month-to-date listing; the batcher trims to the window
    TimeRange.MONTH_TO_DATE: "Last 30 days",
    TimeRange.ALL_TIME: "All time",
}


def parse_range(label: str | TimeRange) -> TimeRange:
    """Coerce a label to TimeRange. Raises InvalidRangeError if unknown."""
    if isinstance(label, TimeRange):
        return label
    try:
        return TimeRange(label)
    except ValueError:
        raise InvalidRangeError(str(label)) from None


def window_token(label: str | TimeRange) -> str:
    """Range token for the transcript listing endpoint."""
    return _WINDOW_TOKENS[parse_range(label)]


def resolve_window(label: str | TimeRange, now: datetime | None = None) -> TimeWindow:
    """Map a range label to [start, end] relative to now.

    now defaults to the current local time. A naive now is treated as local.
    The alltime/today upper bound is now at resolution time; messages arriving
    after that are outside the window.
    """
    time_range = parse_range(label)
    if now is None:
        now = datetime.now().astimezone()
    elif now.tzinfo is None:
        now = now.astimezone()

    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if time_range is TimeRange.TODAY:
        return TimeWindow(start=midnight, end=now)
    if time_range is TimeRange.YESTERDAY:
        return TimeWindow(start=midnight - timedelta(days=1), end=midnight)
    if time_range is TimeRange.LAST_7:
        return TimeWindow(start=midnight - timedelta(days=7), end=now)
    if time_range is TimeRange.LAST_30:
        return TimeWindow(start=midnight - timedelta(days=30), end=now)
    if time_range is TimeRange.MONTH_TO_DATE:
        return TimeWindow(start=midnight.replace(day=1), end=now)
    return TimeWindow(start=_EPOCH, end=now)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an API timestamp. Returns None when missing or unparsable."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparsable timestamp: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
