"""
Analyzer Errors — Exception taxonomy for submission, ingestion, clustering
and persistence.

Submission-time errors (InvalidSubmissionError, CredentialError) are raised
before any report exists. Everything raised inside the background pipeline
ends up as the report's error message.
"""

from __future__ import annotations


class AnalyzerError(Exception):
    """Base error for the question analyzer."""


class InvalidSubmissionError(AnalyzerError):
    """Malformed analyze request (range, top count, missing credentials)."""


class InvalidRangeError(InvalidSubmissionError):
    """Unrecognized time range label."""

    def __init__(self, label: str) -> None:
        super().__init__(f"Unknown time range: {label!r}")
        self.label = label


class CredentialError(AnalyzerError):
    """Transcript service rejected the API key or project id."""


class TranscriptServiceError(AnalyzerError):
    """Non-auth failure from the transcript service."""


class ClusterParseError(AnalyzerError):
    """Clustering response was not the expected JSON shape."""


class StoreError(AnalyzerError):
    """Report persistence failure."""


class DuplicateReportError(StoreError):
    def __init__(self, report_id: str) -> None:
        super().__init__(f"Report already exists: {report_id}")
        self.report_id = report_id


class ReportNotFoundError(StoreError):
    def __init__(self, report_id: str) -> None:
        super().__init__(f"Report not found: {report_id}")
        self.report_id = report_id
