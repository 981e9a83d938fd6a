"""
Test configuration: required env vars and shared fixtures.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

# Set dummy env vars so Settings() doesn't fail during test collection.
# All external services are mocked; these never reach a real backend.
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("VF_API_KEY", "VF.DM.test-key")
os.environ.setdefault("PROJECT_ID", "test-project")

import pytest  # noqa: E402

from question_analyzer.errors import DuplicateReportError, ReportNotFoundError  # noqa: E402
from question_analyzer.models.analysis import (  # noqa: E402
    AnalysisConfig,
    ClusteringResult,
    TimeRange,
    TranscriptCredentials,
)
from question_analyzer.models.report import Report, ReportStatus  # noqa: E402


class FakeReportStore:
    """In-memory stand-in for ReportStore with the same error contract."""

    def __init__(self) -> None:
        self.reports: dict[str, Report] = {}
        self.updates: list[tuple[str, ReportStatus]] = []

    async def create(self, report_id: str, time_range: str, top_count: int) -> Report:
        if report_id in self.reports:
            raise DuplicateReportError(report_id)
        now = datetime.now(timezone.utc)
        report = Report(
            id=report_id,
            status=ReportStatus.PENDING,
            time_range=time_range,
            top_count=top_count,
            created_at=now,
            updated_at=now,
        )
        self.reports[report_id] = report
        return report

    async def update(
        self,
        report_id: str,
        status: ReportStatus,
        result: ClusteringResult | None = None,
        error: str | None = None,
    ) -> Report:
        current = self.reports.get(report_id)
        if current is None:
            raise ReportNotFoundError(report_id)
        report = current.model_copy(
            update={
                "status": status,
                "result": result,
                "error": error,
                "updated_at": max(datetime.now(timezone.utc), current.created_at),
            }
        )
        self.reports[report_id] = report
        self.updates.append((report_id, status))
        return report

    async def get(self, report_id: str) -> Report | None:
        return self.reports.get(report_id)

    async def cleanup(self, max_age: timedelta) -> int:
        cutoff = datetime.now(timezone.utc) - max_age
        expired = [rid for rid, r in self.reports.items() if r.created_at < cutoff]
        for rid in expired:
            del self.reports[rid]
        return len(expired)


@pytest.fixture
def fake_store() -> FakeReportStore:
    return FakeReportStore()


@pytest.fixture
def analysis_config() -> AnalysisConfig:
    return AnalysisConfig(
        credentials=TranscriptCredentials(project_id="test-project", api_key="VF.DM.test-key"),
        time_range=TimeRange.LAST_7,
        top_n=5,
        model="openai/gpt-4",
        prompt_cost_per_1k=0.03,
        completion_cost_per_1k=0.06,
        dialog_delay_seconds=0,
        batch_delay_seconds=0,
    )
