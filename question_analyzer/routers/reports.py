"""
Reports Router — Submit analyses and poll their reports.

Endpoints:
  POST /api/analyze               — Validate credentials, start analysis
  GET  /api/reports/{report_id}   — Report status and result/error
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse

from question_analyzer.config import Settings, get_settings
from question_analyzer.models.report import (
    AnalyzeAccepted,
    AnalyzeRequestBody,
    AnalyzeResponse,
    ReportResponse,
    ReportView,
)
from question_analyzer.services.analysis.orchestrator import submit_analysis
from question_analyzer.services.report_store import ReportStore, get_report_store

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# ANALYZE
# =============================================================================


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    response_model_by_alias=True,
)
async def analyze(
    range_label: str | None = Query(None, alias="range"),
    top: str | None = Query(None),
    body: AnalyzeRequestBody | None = Body(None),
    store: ReportStore = Depends(get_report_store),
    settings: Settings = Depends(get_settings),
) -> AnalyzeResponse:
    """Start an analysis. Returns the pending report id immediately."""
    overrides = body or AnalyzeRequestBody()

    report = await submit_analysis(
        range_label,
        top,
        store=store,
        settings=settings,
        api_key=overrides.vf_api_key,
        project_id=overrides.project_id,
    )

    return AnalyzeResponse(
        data=AnalyzeAccepted(report_id=report.id, status=report.status)
    )


# =============================================================================
# REPORTS
# =============================================================================


@router.get(
    "/reports/{report_id}",
    response_model=ReportResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def get_report(
    report_id: str,
    store: ReportStore = Depends(get_report_store),
) -> ReportResponse | JSONResponse:
    """Report status; result only when completed, error only when failed."""
    report = await store.get(report_id)

    if report is None:
        logger.info("Report not found - reportId: %s", report_id)
        return JSONResponse(
            status_code=404, content={"success": False, "error": "Report not found"}
        )

    logger.debug("Report retrieved - reportId: %s, status: %s", report_id, report.status.value)
    return ReportResponse(data=ReportView.from_report(report))
