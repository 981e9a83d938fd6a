"""
Tests for the Daily Batcher.

Covers: "today" single batch, per-day bucketing on the first in-window turn,
descending day order, window filtering, unparsable timestamps, empty buckets.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from question_analyzer.models.analysis import DialogTurn, TimeWindow
from question_analyzer.services.analysis.batcher import batch_questions

_WINDOW = TimeWindow(
    start=datetime(2026, 10, 12, tzinfo=timezone.utc),
    end=datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc),
)


def _ask(ts: str | None, query: str) -> DialogTurn:
    return DialogTurn(type="request", start_time=ts, query=query)


def _launch(ts: str | None) -> DialogTurn:
    return DialogTurn(type="request", start_time=ts)


# ===========================================================================
# TestTodayBatch
# ===========================================================================


@pytest.mark.unit
class TestTodayBatch:
    """The "today" range always yields exactly one batch."""

    def test_all_dialogs_in_one_batch(self) -> None:
        dialogs = [
            [_ask("2026-10-19T08:00:00Z", "How do I export data?")],
            [_ask("2026-10-19T09:00:00Z", "Is there a free plan?")],
            [_ask("2026-10-19T10:00:00Z", "How do I export data?")],
        ]
        batches = batch_questions(dialogs, _WINDOW, "today")

        assert len(batches) == 1
        assert batches[0].day is None
        assert batches[0].questions == [
            "How do I export data?",
            "Is there a free plan?",
            "How do I export data?",
        ]

    def test_no_dialogs_still_one_batch(self) -> None:
        batches = batch_questions([], _WINDOW, "today")
        assert len(batches) == 1
        assert batches[0].questions == []


# ===========================================================================
# TestDailyBatches
# ===========================================================================


@pytest.mark.unit
class TestDailyBatches:
    """Per-day grouping for multi-day ranges."""

    def test_groups_by_day_most_recent_first(self) -> None:
        dialogs = [
            [_ask("2026-10-13T10:00:00Z", "Question A?")],
            [_ask("2026-10-18T10:00:00Z", "Question B?")],
            [_ask("2026-10-13T16:00:00Z", "Question C?")],
        ]
        batches = batch_questions(dialogs, _WINDOW, "last7")

        assert [b.day for b in batches] == [date(2026, 10, 18), date(2026, 10, 13)]
        assert batches[0].questions == ["Question B?"]
        assert batches[1].questions == ["Question A?", "Question C?"]

    def test_dialog_spanning_midnight_uses_first_turn_day(self) -> None:
        dialogs = [
            [
                _ask("2026-10-17T23:59:00Z", "First?"),
                _ask("2026-10-18T00:01:00Z", "Second?"),
            ]
        ]
        batches = batch_questions(dialogs, _WINDOW, "last7")

        assert len(batches) == 1
        assert batches[0].day == date(2026, 10, 17)
        assert batches[0].questions == ["First?", "Second?"]

    def test_day_uses_timestamp_own_date(self) -> None:
        # 23:30 at -05:00 is already the 19th in UTC; the key stays the 18th.
        dialogs = [[_ask("2026-10-18T23:30:00-05:00", "Late question?")]]
        batches = batch_questions(dialogs, _WINDOW, "last7")
        assert batches[0].day == date(2026, 10, 18)

    def test_out_of_window_turns_dropped(self) -> None:
        dialogs = [
            [
                _ask("2026-10-01T10:00:00Z", "Too old?"),
                _ask("2026-10-14T10:00:00Z", "Recent?"),
            ],
            [_ask("2026-09-30T10:00:00Z", "Ancient?")],
        ]
        batches = batch_questions(dialogs, _WINDOW, "last7")

        assert len(batches) == 1
        assert batches[0].day == date(2026, 10, 14)
        assert batches[0].questions == ["Recent?"]

    def test_window_end_is_inclusive(self) -> None:
        dialogs = [[_ask("2026-10-19T15:30:00Z", "Right at the edge?")]]
        batches = batch_questions(dialogs, _WINDOW, "last7")
        assert batches[0].questions == ["Right at the edge?"]

    def test_unparsable_timestamps_dropped(self) -> None:
        dialogs = [
            [_ask("not-a-date", "Lost?")],
            [_ask("garbage", "Also lost?"), _ask("2026-10-15T10:00:00Z", "Kept?")],
        ]
        batches = batch_questions(dialogs, _WINDOW, "last30")

        assert len(batches) == 1
        assert batches[0].questions == ["Kept?"]

    def test_turns_without_timestamp_dropped(self) -> None:
        dialogs = [[_ask(None, "No time?"), _ask("2026-10-16T10:00:00Z", "Timed?")]]
        batches = batch_questions(dialogs, _WINDOW, "last7")
        assert batches[0].questions == ["Timed?"]

    def test_days_without_questions_omitted(self) -> None:
        dialogs = [
            [_launch("2026-10-16T10:00:00Z")],
            [_ask("2026-10-15T10:00:00Z", "Only question?")],
        ]
        batches = batch_questions(dialogs, _WINDOW, "last7")

        assert [b.day for b in batches] == [date(2026, 10, 15)]

    def test_no_dialogs_no_batches(self) -> None:
        assert batch_questions([], _WINDOW, "last7") == []
