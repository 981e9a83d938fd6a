"""
Report Store — Durable report rows in Supabase, keyed by report id.

Table (default name "reports"):
    id          text primary key
    status      text not null        -- pending | completed | failed
    time_range  text not null
    top_count   integer not null
    result      jsonb
    error       text
    created_at  timestamptz not null
    updated_at  timestamptz not null

update() is last-write-wins. Callers are responsible for writing a terminal
state exactly once. A single-row UPDATE is atomic, so readers see either the
old or the new row.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from supabase import AsyncClient, acreate_client

from question_analyzer.config import settings
from question_analyzer.errors import (
    DuplicateReportError,
    ReportNotFoundError,
    StoreError,
)
from question_analyzer.models.analysis import ClusteringResult
from question_analyzer.models.report import Report, ReportStatus

logger = logging.getLogger(__name__)

_client: AsyncClient | None = None


async def get_supabase_client() -> AsyncClient:
    """Get or create the async Supabase client."""
    global _client
    if _client is None:
        try:
            _client = await acreate_client(
                settings.supabase_url, settings.supabase_service_key
            )
        except Exception as e:
            logger.error("Failed to create Supabase client: %s", e)
            raise StoreError(f"Supabase unavailable: {e}") from e
    return _client


async def close_supabase() -> None:
    """Drop the cached client (call on shutdown)."""
    global _client
    _client = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_report(row: dict[str, Any]) -> Report:
    """Raises StoreError when the row cannot be read back as a Report."""
    try:
        result = row.get("result")
        if isinstance(result, str):
            result = json.loads(result)
        return Report(
            id=row["id"],
            status=row["status"],
            time_range=row["time_range"],
            top_count=row["top_count"],
            result=result,
            error=row.get("error"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
    except (KeyError, ValueError) as e:
        # ValueError covers pydantic ValidationError and JSONDecodeError
        raise StoreError(f"Malformed report row {row.get('id')}: {e}") from e


class ReportStore:
    """create / update / get / cleanup over the reports table."""

    def __init__(self, client: AsyncClient, table: str = "reports") -> None:
        self._client = client
        self._table = table

    async def _fetch_row(self, report_id: str) -> dict[str, Any] | None:
        try:
            result = await (
                self._client.table(self._table)
                .select("*")
                .eq("id", report_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Failed to read report {report_id}: {e}") from e
        data: list[dict[str, Any]] = result.data or []
        return data[0] if data else None

    async def create(self, report_id: str, time_range: str, top_count: int) -> Report:
        """Insert a pending report. Raises DuplicateReportError if the id exists."""
        if await self._fetch_row(report_id) is not None:
            raise DuplicateReportError(report_id)

        now = _now()
        report = Report(
            id=report_id,
            status=ReportStatus.PENDING,
            time_range=time_range,
            top_count=top_count,
            created_at=now,
            updated_at=now,
        )
        try:
            await (
                self._client.table(self._table)
                .insert(
                    {
                        "id": report.id,
                        "status": report.status.value,
                        "time_range": report.time_range,
                        "top_count": report.top_count,
                        "created_at": now.isoformat(),
                        "updated_at": now.isoformat(),
                    }
                )
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Failed to create report {report_id}: {e}") from e

        logger.debug("Report created: %s (%s, top %d)", report_id, time_range, top_count)
        return report

    async def update(
        self,
        report_id: str,
        status: ReportStatus,
        result: ClusteringResult | None = None,
        error: str | None = None,
    ) -> Report:
        """Write a status with its payload and refresh updated_at.

        Raises ReportNotFoundError if the report does not exist.
        """
        row = await self._fetch_row(report_id)
        if row is None:
            raise ReportNotFoundError(report_id)

        current = _row_to_report(row)
        updated_at = max(_now(), current.created_at)
        report = Report(
            id=current.id,
            status=status,
            time_range=current.time_range,
            top_count=current.top_count,
            result=result,
            error=error,
            created_at=current.created_at,
            updated_at=updated_at,
        )

        try:
            await (
                self._client.table(self._table)
                .update(
                    {
                        "status": report.status.value,
                        "result": (
                            report.result.model_dump(mode="json")
                            if report.result is not None
                            else None
                        ),
                        "error": report.error,
                        "updated_at": updated_at.isoformat(),
                    }
                )
                .eq("id", report_id)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Failed to update report {report_id}: {e}") from e

        logger.debug("Report updated: %s → %s", report_id, status.value)
        return report

    async def get(self, report_id: str) -> Report | None:
        row = await self._fetch_row(report_id)
        return _row_to_report(row) if row is not None else None

    async def cleanup(self, max_age: timedelta) -> int:
        """Delete reports created more than max_age ago. Returns rows removed."""
        cutoff = _now() - max_age
        try:
            result = await (
                self._client.table(self._table)
                .delete()
                .lt("created_at", cutoff.isoformat())
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Report cleanup failed: {e}") from e

        removed = len(result.data or [])
        if removed:
            logger.info("Report cleanup: removed %d reports older than %s", removed, max_age)
        return removed


async def get_report_store() -> ReportStore:
    """FastAPI dependency: report store bound to the shared client."""
    return ReportStore(await get_supabase_client(), table=settings.reports_table)
