"""
Question Analyzer CLI.

Usage:
    question-analyzer                          # run the API server
    question-analyzer --port 9000
    question-analyzer --analyze --range last30 --top 5
    question-analyzer --check <report_id>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from question_analyzer.config import get_settings
from question_analyzer.errors import AnalyzerError
from question_analyzer.models.analysis import AnalysisConfig, ClusteringResult, TimeRange
from question_analyzer.models.report import Report, ReportStatus

logger = logging.getLogger(__name__)


def format_result(result: ClusteringResult) -> str:
    lines = ["", "Top Questions:"]
    for i, item in enumerate(result.questions, start=1):
        lines.append(f"\n{i}. \"{item.question}\"")
        lines.append(f"   Asked {item.count} times")

    usage = result.usage
    lines.extend(
        [
            "",
            "Token Usage:",
            f"   Prompt tokens: {usage.prompt_tokens:,}",
            f"   Completion tokens: {usage.completion_tokens:,}",
            f"   Total tokens: {usage.total_tokens:,}",
            "",
            "Cost:",
            f"   Estimated cost: ${usage.estimated_cost_usd:.4f}",
            "",
        ]
    )
    return "\n".join(lines)


def format_report(report: Report) -> str:
    lines = [
        "",
        "Report Status:",
        f"   ID: {report.id}",
        f"   Status: {report.status.value}",
        f"   Time Range: {report.time_range}",
        f"   Created: {report.created_at.astimezone():%Y-%m-%d %H:%M:%S}",
        f"   Updated: {report.updated_at.astimezone():%Y-%m-%d %H:%M:%S}",
    ]
    if report.status is ReportStatus.COMPLETED and report.result is not None:
        lines.append(format_result(report.result))
    elif report.status is ReportStatus.FAILED and report.error:
        lines.append(f"\nError: {report.error}")
    return "\n".join(lines)


async def _check_report(report_id: str) -> int:
    from question_analyzer.services.report_store import get_report_store

    store = await get_report_store()
    report = await store.get(report_id)
    if report is None:
        print("\nError: Report not found", file=sys.stderr)
        return 1
    print(format_report(report))
    return 0


async def _run_analysis(range_label: str, top: str) -> int:
    from question_analyzer.services.analysis.orchestrator import (
        analyze_questions,
        resolve_credentials,
        validate_submission,
    )

    settings = get_settings()
    time_range, top_n = validate_submission(range_label, top, settings)
    config = AnalysisConfig.from_settings(
        settings,
        credentials=resolve_credentials(settings),
        time_range=time_range,
        top_n=top_n,
    )
    result = await analyze_questions(config)
    print(format_result(result))
    return 0


def _run_server(port: int) -> int:
    import uvicorn

    settings = get_settings()
    print(f"\nStarting server on http://{settings.host}:{port}")
    print("\nAvailable endpoints:")
    print("  GET  /health - Health check")
    print("  POST /api/analyze - Start analysis")
    print("  GET  /api/reports/{reportId} - Get report status and results")
    print("\nExample:")
    print(f'  curl -X POST "http://localhost:{port}/api/analyze?range=last7&top=5"\n')
    uvicorn.run("question_analyzer.main:app", host=settings.host, port=port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="question-analyzer",
        description="Analyze questions from Voiceflow transcripts",
    )
    parser.add_argument(
        "-r",
        "--range",
        default="last7",
        choices=[r.value for r in TimeRange],
        help="time range (default: last7)",
    )
    parser.add_argument(
        "-t", "--top", default="10", help="number of top questions to show (default: 10)"
    )
    parser.add_argument("-s", "--server", action="store_true", help="run in server mode")
    parser.add_argument(
        "-p", "--port", type=int, default=8000, help="port for server mode (default: 8000)"
    )
    parser.add_argument("-c", "--check", metavar="REPORT_ID", help="check a report")
    parser.add_argument("-a", "--analyze", action="store_true", help="run the analysis directly")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        if args.check:
            return asyncio.run(_check_report(args.check))
        if args.analyze:
            return asyncio.run(_run_analysis(args.range, args.top))
        return _run_server(args.port)
    except AnalyzerError as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
