"""
Analysis Orchestrator — Submission state machine and the analysis pipeline.

submit_analysis():
  1. Validate range + top count (InvalidSubmissionError, nothing stored).
  2. Probe transcript credentials (CredentialError, nothing stored).
  3. Create the pending report and return it immediately.
  4. Spawn the pipeline task plus a finalizer that awaits it and writes
     exactly one terminal state (completed or failed).

analyze_questions(): ingest → batch by day → cluster each batch → aggregate.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta

import httpx

from question_analyzer.config import Settings
from question_analyzer.errors import InvalidSubmissionError, StoreError
from question_analyzer.models.analysis import (
    AnalysisConfig,
    ClusteringResult,
    TimeRange,
    TranscriptCredentials,
)
from question_analyzer.models.report import Report, ReportStatus
from question_analyzer.services import voiceflow
from question_analyzer.services.analysis.aggregator import aggregate_results
from question_analyzer.services.analysis.batcher import batch_questions
from question_analyzer.services.analysis.clustering import cluster_questions
from question_analyzer.services.analysis.ingestion import fetch_dialogs
from question_analyzer.services.analysis.time_window import parse_range, resolve_window
from question_analyzer.services.report_store import ReportStore

logger = logging.getLogger(__name__)

# Strong references to in-flight jobs; asyncio only keeps weak ones.
_jobs: set[asyncio.Task[None]] = set()


# =============================================================================
# VALIDATION
# =============================================================================


def validate_submission(
    range_label: str | None,
    top: str | int | None,
    settings: Settings,
) -> tuple[TimeRange, int]:
    """Parse the requested range and top count."""
    time_range = parse_range(range_label or settings.default_time_range)

    if top is None or top == "":
        top_n = settings.default_top_questions
    else:
        try:
            top_n = int(top)
        except (TypeError, ValueError):
            raise InvalidSubmissionError(f"top must be an integer, got {top!r}") from None

    if not 1 <= top_n <= settings.max_top_questions:
        raise InvalidSubmissionError(
            f"top must be between 1 and {settings.max_top_questions}, got {top_n}"
        )
    return time_range, top_n


def resolve_credentials(
    settings: Settings,
    api_key: str | None = None,
    project_id: str | None = None,
) -> TranscriptCredentials:
    """Merge per-call overrides over configured credentials."""
    key = api_key or settings.vf_api_key
    project = project_id or settings.project_id
    if not key or not project:
        raise InvalidSubmissionError("A Voiceflow API key and project id are required")
    return TranscriptCredentials(
        project_id=project,
        api_key=key,
        base_url=settings.voiceflow_api_url,
    )


# =============================================================================
# PIPELINE
# =============================================================================


async def analyze_questions(
    config: AnalysisConfig,
    now: datetime | None = None,
) -> ClusteringResult:
    """Run the full analysis for one job. Batches are clustered one at a time."""
    window = resolve_window(config.time_range, now)
    logger.info(
        "Analysis starting: range=%s top=%d window=[%s, %s]",
        config.time_range.value,
        config.top_n,
        window.start.isoformat(),
        window.end.isoformat(),
    )

    async with httpx.AsyncClient(timeout=config.transcript_timeout_seconds) as http:
        dialogs = await fetch_dialogs(
            http,
            config.credentials,
            config.time_range,
            dialog_delay=config.dialog_delay_seconds,
        )

    batches = batch_questions(dialogs, window, config.time_range)

    daily_results: list[ClusteringResult] = []
    for i, batch in enumerate(batches):
        if i > 0 and config.batch_delay_seconds > 0:
            await asyncio.sleep(config.batch_delay_seconds)
        # Empty results still carry the usage of their LLM call
        daily_results.append(
            await cluster_questions(batch.questions, config.top_n, config)
        )

    combined = aggregate_results(daily_results, config.top_n)
    logger.info(
        "Analysis finished: %d dialogs, %d batches, %d questions ranked",
        len(dialogs),
        len(batches),
        len(combined.questions),
    )
    return combined


# =============================================================================
# JOB LIFECYCLE
# =============================================================================


async def _finalize(
    report_id: str,
    pipeline: asyncio.Task[ClusteringResult],
    store: ReportStore,
) -> None:
    """Await the pipeline and write its single terminal state."""
    try:
        result = await pipeline
    except Exception as e:
        message = str(e) or type(e).__name__
        logger.error("Analysis failed - reportId: %s: %s", report_id, message)
        status, payload, error = ReportStatus.FAILED, None, message
    else:
        logger.info("Analysis completed - reportId: %s", report_id)
        status, payload, error = ReportStatus.COMPLETED, result, None

    try:
        await store.update(report_id, status, result=payload, error=error)
    except StoreError:
        # Pollers will see this report as pending forever.
        logger.critical(
            "Terminal write lost - reportId: %s (status %s)",
            report_id,
            status.value,
            exc_info=True,
        )


def start_job(report_id: str, config: AnalysisConfig, store: ReportStore) -> asyncio.Task[None]:
    """Detach the pipeline for an already-created pending report."""
    pipeline = asyncio.create_task(
        analyze_questions(config), name=f"analysis:{report_id}"
    )
    finalizer = asyncio.create_task(
        _finalize(report_id, pipeline, store), name=f"finalize:{report_id}"
    )
    _jobs.add(finalizer)
    finalizer.add_done_callback(_jobs.discard)
    return finalizer


async def wait_for_jobs() -> None:
    """Wait until every in-flight job has written its terminal state."""
    while True:
        pending = [job for job in _jobs if not job.done()]
        if not pending:
            return
        await asyncio.gather(*pending, return_exceptions=True)


def active_jobs() -> int:
    return sum(1 for job in _jobs if not job.done())


async def submit_analysis(
    range_label: str | None,
    top: str | int | None,
    store: ReportStore,
    settings: Settings,
    api_key: str | None = None,
    project_id: str | None = None,
) -> Report:
    """Validate, check credentials, create the pending report, start the job.

    Returns the pending report. Raises InvalidSubmissionError or
    CredentialError before anything is stored.
    """
    time_range, top_n = validate_submission(range_label, top, settings)
    credentials = resolve_credentials(settings, api_key=api_key, project_id=project_id)

    await voiceflow.validate_credentials(
        credentials, timeout=settings.transcript_timeout_seconds
    )

    report_id = str(uuid.uuid4())
    report = await store.create(report_id, time_range.value, top_n)

    logger.info(
        "Starting analysis - reportId: %s, range: %s, top: %d",
        report_id,
        time_range.value,
        top_n,
    )

    config = AnalysisConfig.from_settings(
        settings, credentials=credentials, time_range=time_range, top_n=top_n
    )
    start_job(report_id, config, store)
    return report


async def cleanup_reports(store: ReportStore, retention_hours: int) -> int:
    return await store.cleanup(timedelta(hours=retention_hours))
