"""
Aggregator — Merge per-day clustering results into one ranked list.

Questions merge on their trimmed, case-folded text, which is also what gets
displayed. Counts and usage add up, so merge order never matters.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable

from question_analyzer.models.analysis import (
    ClusteringResult,
    QuestionFrequency,
    UsageAccount,
)
from question_analyzer.services.analysis.clustering import rank_questions


def normalize_question(question: str) -> str:
    return question.strip().casefold()


def aggregate_results(
    results: Iterable[ClusteringResult],
    top_n: int,
) -> ClusteringResult:
    counts: Counter[str] = Counter()
    usages: list[UsageAccount] = []

    for result in results:
        usages.append(result.usage)
        for item in result.questions:
            key = normalize_question(item.question)
            if key:
                counts[key] += item.count

    usage = UsageAccount(
        prompt_tokens=sum(u.prompt_tokens for u in usages),
        completion_tokens=sum(u.completion_tokens for u in usages),
        total_tokens=sum(u.total_tokens for u in usages),
        # Exactly rounded: the same total for any batch order
        estimated_cost_usd=math.fsum(u.estimated_cost_usd for u in usages),
    )
    merged = [QuestionFrequency(question=q, count=c) for q, c in counts.items()]
    return ClusteringResult(questions=rank_questions(merged, top_n), usage=usage)
