"""
Transcript Ingestion — Summaries for a window, then each transcript's dialog.

Listing failures abort the job (CredentialError on 401/404). Individual
dialog fetches run one at a time with a fixed pause between them; a failed
fetch is logged and that transcript is skipped.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from question_analyzer.errors import AnalyzerError
from question_analyzer.models.analysis import (
    DialogTurn,
    TimeRange,
    TranscriptCredentials,
)
from question_analyzer.services import voiceflow
from question_analyzer.services.analysis.time_window import window_token

logger = logging.getLogger(__name__)

_DIALOG_FETCH_DELAY = 0.1


async def fetch_dialogs(
    http: httpx.AsyncClient,
    credentials: TranscriptCredentials,
    time_range: TimeRange | str,
    dialog_delay: float = _DIALOG_FETCH_DELAY,
) -> list[list[DialogTurn]]:
    """Fetch every transcript dialog for the range.

    Returns one turn list per successfully fetched transcript, in listing
    order.
    """
    summaries = await voiceflow.list_transcripts(
        http, credentials, window_token(time_range)
    )
    logger.info(
        "Ingestion: %d transcripts listed for project %s (%s)",
        len(summaries),
        credentials.project_id,
        time_range,
    )

    dialogs: list[list[DialogTurn]] = []
    skipped = 0

    for i, summary in enumerate(summaries):
        if i > 0 and dialog_delay > 0:
            await asyncio.sleep(dialog_delay)
        try:
            dialogs.append(await voiceflow.fetch_dialog(http, credentials, summary.id))
        except (httpx.HTTPError, AnalyzerError, ValueError) as e:
            skipped += 1
            logger.warning("Ingestion: skipping transcript %s: %s", summary.id, e)

    if skipped:
        logger.info(
            "Ingestion: fetched %d dialogs (skipped %d)", len(dialogs), skipped
        )
    return dialogs
