"""
Cluster Engine — Group one batch of questions by intent via the LLM.

The model returns {"clusters": [{"question", "count"}]}. Ordering is
re-applied locally (count desc, question asc) so results are reproducible
regardless of what order the model emits.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import ValidationError

from question_analyzer.errors import ClusterParseError
from question_analyzer.models.analysis import (
    AnalysisConfig,
    ClusteringResult,
    ClusterResponse,
    QuestionFrequency,
    UsageAccount,
)
from question_analyzer.services import llm

logger = logging.getLogger(__name__)

_CLUSTER_PROMPT = """You are analyzing questions that users asked a conversational assistant.

Group the questions below by semantic intent and count how many questions fall into each group.

Rules:
- Return at most {top_n} groups, the most frequent first.
- When the same question is asked with identical wording, keep that exact wording as the group's question.
- Do not over-generalize: questions with distinct intents belong in separate groups even if they share a topic.
- Preserve specific product names, feature names and technical terms exactly as the users wrote them.
- Each group's "question" should be a single representative question a user actually could have asked.

Return a JSON object with exactly this shape and nothing else:
{{"clusters": [{{"question": "<representative question>", "count": <number of questions in the group>}}]}}

Questions:
{questions}"""


def rank_questions(
    questions: Iterable[QuestionFrequency], top_n: int
) -> list[QuestionFrequency]:
    """Sort by count desc, then question text asc, and keep the first top_n."""
    ranked = sorted(questions, key=lambda q: (-q.count, q.question))
    return ranked[:top_n]


def estimate_cost(
    prompt_tokens: int,
    completion_tokens: int,
    prompt_cost_per_1k: float,
    completion_cost_per_1k: float,
) -> float:
    return (prompt_tokens / 1000) * prompt_cost_per_1k + (
        completion_tokens / 1000
    ) * completion_cost_per_1k


def build_prompt(questions: list[str], top_n: int) -> str:
    numbered = "\n".join(f"{i}. {q}" for i, q in enumerate(questions, start=1))
    return _CLUSTER_PROMPT.format(top_n=top_n, questions=numbered)


def parse_clusters(content: str) -> list[QuestionFrequency]:
    """Validate the completion body. Raises ClusterParseError on any mismatch."""
    try:
        parsed = ClusterResponse.model_validate_json(content)
    except ValidationError as e:
        raise ClusterParseError(f"Malformed clustering response: {e}") from e
    return parsed.clusters


async def cluster_questions(
    questions: list[str],
    top_n: int,
    config: AnalysisConfig,
) -> ClusteringResult:
    """Cluster one batch. Empty input short-circuits without an LLM call."""
    if not questions:
        return ClusteringResult()

    response = await llm.complete(
        messages=[{"role": "user", "content": build_prompt(questions, top_n)}],
        model=config.model,
        fallback_model=config.fallback_model,
        temperature=0.0,
        response_format={"type": "json_object"},
        timeout=config.llm_timeout_seconds,
    )

    clusters = parse_clusters(response.content)

    usage = UsageAccount(
        prompt_tokens=response.usage.prompt_tokens,
        completion_tokens=response.usage.completion_tokens,
        total_tokens=response.usage.total_tokens,
        estimated_cost_usd=estimate_cost(
            response.usage.prompt_tokens,
            response.usage.completion_tokens,
            config.prompt_cost_per_1k,
            config.completion_cost_per_1k,
        ),
    )

    logger.info(
        "Clustering: %d questions → %d clusters (%d tokens, $%.4f)",
        len(questions),
        len(clusters),
        usage.total_tokens,
        usage.estimated_cost_usd,
    )
    return ClusteringResult(questions=rank_questions(clusters, top_n), usage=usage)
