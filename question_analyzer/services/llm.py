"""
LLM Service — Thin wrapper around LiteLLM for clustering calls.

Provides complete() with a simple fallback chain and the provider-reported
token usage alongside the text.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import litellm
from pydantic import BaseModel

from question_analyzer.config import settings

logger = logging.getLogger(__name__)

# Suppress LiteLLM's noisy logging
litellm.suppress_debug_info = True


class LLMUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class LLMResponse(BaseModel):
    content: str = ""
    model: str
    usage: LLMUsage = LLMUsage()


def _get_api_key(model: str) -> str | None:
    """Resolve API key from model identifier."""
    if model.startswith("openai/") or model.startswith("gpt-"):
        return settings.openai_api_key
    if model.startswith("gemini/"):
        return settings.google_ai_api_key
    if model.startswith("groq/"):
        return settings.groq_api_key
    return None


def _read_usage(response: Any) -> LLMUsage:
    """Token counts from a LiteLLM response; missing fields count as zero."""
    usage = getattr(response, "usage", None)
    if usage is None:
        return LLMUsage()
    return LLMUsage(
        prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
        completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
        total_tokens=getattr(usage, "total_tokens", 0) or 0,
    )


async def _acompletion(
    model: str,
    messages: list[dict[str, Any]],
    temperature: float,
    max_tokens: int | None,
    response_format: dict[str, Any] | None,
    timeout: int,
) -> LLMResponse:
    response = await litellm.acompletion(
        model=model,
        messages=messages,
        temperature=temperature,
        max_tokens=max_tokens,
        response_format=response_format,
        api_key=_get_api_key(model),
        timeout=timeout,
    )
    return LLMResponse(
        content=response.choices[0].message.content or "",
        model=model,
        usage=_read_usage(response),
    )


async def complete(
    messages: list[dict[str, Any]],
    model: str | None = None,
    fallback_model: str | None = None,
    temperature: float = 1.0,
    max_tokens: int | None = None,
    response_format: dict[str, Any] | None = None,
    timeout: int = 60,
) -> LLMResponse:
    """Get a completion from the LLM. Falls back on failure."""
    resolved = model or settings.cluster_model
    start = time.perf_counter()

    try:
        result = await _acompletion(
            resolved, messages, temperature, max_tokens, response_format, timeout
        )
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(
            "LLM complete (%s): %.0fms, %d tokens",
            resolved, elapsed, result.usage.total_tokens,
        )
        return result

    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        logger.error("LLM complete failed (%s, %.0fms): %s", resolved, elapsed, e)

        if fallback_model and fallback_model != resolved:
            logger.info("Falling back: %s → %s", resolved, fallback_model)
            try:
                return await _acompletion(
                    fallback_model,
                    messages,
                    temperature,
                    max_tokens,
                    response_format,
                    timeout,
                )
            except Exception as fb_err:
                logger.error("Fallback also failed (%s): %s", fallback_model, fb_err)

        raise
