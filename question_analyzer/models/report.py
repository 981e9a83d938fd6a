"""
Report Models — Persisted report row and API request/response models.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from question_analyzer.models.analysis import ClusteringResult


class ReportStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ReportStatus.PENDING


# =============================================================================
# INTERNAL MODELS
# =============================================================================


class Report(BaseModel):
    """Row from the reports table.

    result is set iff completed, error is set iff failed; a pending report
    carries neither.
    """

    id: str
    status: ReportStatus
    time_range: str
    top_count: int
    result: ClusteringResult | None = None
    error: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @model_validator(mode="after")
    def _check_payload(self) -> Report:
        if self.status is ReportStatus.COMPLETED:
            if self.result is None or self.error is not None:
                raise ValueError("completed report must carry a result and no error")
        elif self.status is ReportStatus.FAILED:
            if self.error is None or self.result is not None:
                raise ValueError("failed report must carry an error and no result")
        elif self.result is not None or self.error is not None:
            raise ValueError("pending report cannot carry a result or error")
        return self


# =============================================================================
# REQUEST MODELS
# =============================================================================


class AnalyzeRequestBody(BaseModel):
    """Optional per-call credential overrides for POST /api/analyze."""

    model_config = ConfigDict(populate_by_name=True)

    vf_api_key: str | None = Field(None, alias="VF_API_KEY")
    project_id: str | None = Field(None, alias="PROJECT_ID")


# =============================================================================
# RESPONSE MODELS
# =============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeAccepted(_CamelModel):
    report_id: str
    status: ReportStatus
    message: str = "Analysis started. Use the reportId to check status and get results."


class AnalyzeResponse(BaseModel):
    success: bool = True
    data: AnalyzeAccepted


class ReportView(_CamelModel):
    """Public view of a report; result/error only appear in terminal states."""

    status: ReportStatus
    time_range: str
    created_at: datetime
    updated_at: datetime
    result: ClusteringResult | None = None
    error: str | None = None

    @classmethod
    def from_report(cls, report: Report) -> ReportView:
        return cls(
            status=report.status,
            time_range=report.time_range,
            created_at=report.created_at,
            updated_at=report.updated_at,
            result=report.result if report.status is ReportStatus.COMPLETED else None,
            error=report.error if report.status is ReportStatus.FAILED else None,
        )


class ReportResponse(BaseModel):
    success: bool = True
    data: ReportView
