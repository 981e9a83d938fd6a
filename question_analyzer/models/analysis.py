"""
Analysis Models — Pydantic models for the transcript → question → cluster pipeline.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from question_analyzer.config import Settings


class TimeRange(str, Enum):
    """Named analysis windows accepted by the API and CLI."""

    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_7 = "last7"
    LAST_30 = "last30"
    MONTH_TO_DATE = "monthToDate"
    ALL_TIME = "alltime"


# =============================================================================
# TRANSCRIPTS
# =============================================================================


class TranscriptCredentials(BaseModel):
    """Project-scoped access to the transcript API."""

    project_id: str
    api_key: str = Field(..., repr=False)
    base_url: str = "https://api.voiceflow.com"

    class Config:
        frozen = True


class TranscriptSummary(BaseModel):
    """Entry from the transcript listing; only drives per-transcript fetches."""

    id: str = Field(..., alias="_id")
    created_at: str | None = Field(None, alias="createdAt")

    class Config:
        populate_by_name = True
        extra = "ignore"


class DialogTurn(BaseModel):
    """A single turn of a transcript dialog."""

    type: str = ""
    start_time: str | None = None
    query: str | None = None

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> DialogTurn:
        """Build a turn from the transcript API shape.

        Request turns carry the user's text at payload.payload.query, or
        directly at payload.payload for plain text requests.
        """
        turn_type = raw.get("type") or ""
        query: str | None = None

        if turn_type == "request":
            payload = raw.get("payload")
            inner = payload.get("payload") if isinstance(payload, dict) else None
            if isinstance(inner, dict):
                candidate = inner.get("query")
            else:
                candidate = inner
            if isinstance(candidate, str) and candidate.strip():
                query = candidate

        start_time = raw.get("startTime")
        return cls(
            type=turn_type,
            start_time=start_time if isinstance(start_time, str) else None,
            query=query,
        )


class TimeWindow(BaseModel):
    """Resolved instant interval for a range label. Both ends inclusive."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class QuestionBatch(BaseModel):
    """Questions sent together to the cluster engine.

    day is None for the single whole-window batch used by the "today" range.
    """

    day: date | None = None
    questions: list[str] = Field(default_factory=list)


# =============================================================================
# CLUSTERING
# =============================================================================


class QuestionFrequency(BaseModel):
    question: str
    count: int = Field(..., ge=1)


class UsageAccount(BaseModel):
    """Token and cost accounting. Adds component-wise."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    estimated_cost_usd: float = 0.0

    def __add__(self, other: UsageAccount) -> UsageAccount:
        return UsageAccount(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
            estimated_cost_usd=self.estimated_cost_usd + other.estimated_cost_usd,
        )


class ClusteringResult(BaseModel):
    """Ranked questions plus usage. Stored as the report result payload."""

    questions: list[QuestionFrequency] = Field(default_factory=list)
    usage: UsageAccount = Field(default_factory=UsageAccount)


class ClusterResponse(BaseModel):
    """Expected JSON body of the clustering completion."""

    clusters: list[QuestionFrequency]


# =============================================================================
# JOB CONFIGURATION
# =============================================================================


class AnalysisConfig(BaseModel):
    """Everything one pipeline run needs. Built per job, never mutated."""

    credentials: TranscriptCredentials
    time_range: TimeRange
    top_n: int = Field(..., ge=1)
    model: str
    fallback_model: str | None = None
    prompt_cost_per_1k: float
    completion_cost_per_1k: float
    dialog_delay_seconds: float = 0.1
    batch_delay_seconds: float = 0.5
    transcript_timeout_seconds: float = 30.0
    llm_timeout_seconds: int = 60

    class Config:
        frozen = True

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        credentials: TranscriptCredentials,
        time_range: TimeRange,
        top_n: int,
    ) -> AnalysisConfig:
        return cls(
            credentials=credentials,
            time_range=time_range,
            top_n=top_n,
            model=settings.cluster_model,
            fallback_model=settings.cluster_fallback_model,
            prompt_cost_per_1k=settings.prompt_cost_per_1k,
            completion_cost_per_1k=settings.completion_cost_per_1k,
            dialog_delay_seconds=settings.dialog_fetch_delay_seconds,
            batch_delay_seconds=settings.batch_delay_seconds,
            transcript_timeout_seconds=settings.transcript_timeout_seconds,
            llm_timeout_seconds=settings.llm_timeout_seconds,
        )
