"""
Daily Batcher — Group extracted questions by calendar day.

Turns outside the window (or with unparsable timestamps) are dropped first.
"today" collapses everything into a single batch; other ranges bucket each
dialog by the date of its first in-window turn, most recent day first.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime

from question_analyzer.models.analysis import (
    DialogTurn,
    QuestionBatch,
    TimeRange,
    TimeWindow,
)
from question_analyzer.services.analysis.extractor import extract_questions
from question_analyzer.services.analysis.time_window import parse_range, parse_timestamp

logger = logging.getLogger(__name__)


def _in_window_turns(
    turns: list[DialogTurn], window: TimeWindow
) -> tuple[list[tuple[datetime, DialogTurn]], int]:
    """Return (timestamp, turn) pairs inside the window and the unparsable count."""
    kept: list[tuple[datetime, DialogTurn]] = []
    unparsable = 0
    for turn in turns:
        if not turn.start_time:
            continue
        moment = parse_timestamp(turn.start_time)
        if moment is None:
            unparsable += 1
            continue
        if window.contains(moment):
            kept.append((moment, turn))
    return kept, unparsable


def batch_questions(
    dialogs: list[list[DialogTurn]],
    window: TimeWindow,
    time_range: TimeRange | str,
) -> list[QuestionBatch]:
    """Build question batches for the cluster engine."""
    time_range = parse_range(time_range)

    in_window: list[list[tuple[datetime, DialogTurn]]] = []
    for index, turns in enumerate(dialogs):
        kept, unparsable = _in_window_turns(turns, window)
        if unparsable:
            logger.warning(
                "Batcher: dialog %d has %d turns with unparsable timestamps",
                index,
                unparsable,
            )
        if kept:
            in_window.append(kept)

    if time_range is TimeRange.TODAY:
        questions: list[str] = []
        for kept in in_window:
            questions.extend(extract_questions(turn for _, turn in kept))
        return [QuestionBatch(day=None, questions=questions)]

    buckets: dict[date, list[str]] = defaultdict(list)
    for kept in in_window:
        first_moment = kept[0][0]
        buckets[first_moment.date()].extend(
            extract_questions(turn for _, turn in kept)
        )

    batches = [
        QuestionBatch(day=day, questions=questions)
        for day, questions in sorted(buckets.items(), reverse=True)
        if questions
    ]
    logger.debug(
        "Batcher: %d dialogs in window → %d daily batches", len(in_window), len(batches)
    )
    return batches
