"""
Tests for the LLM service wrapper.

Covers: content + usage extraction, fallback chain, API key routing.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from question_analyzer.services import llm as llm_mod


def _completion(content: str | None, usage: object = None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=usage,
    )


@pytest.mark.unit
class TestComplete:
    """litellm.acompletion wrapper."""

    @pytest.mark.asyncio
    async def test_returns_content_and_usage(self) -> None:
        response = _completion(
            '{"clusters": []}',
            SimpleNamespace(prompt_tokens=12, completion_tokens=3, total_tokens=15),
        )
        acompletion = AsyncMock(return_value=response)
        with patch.object(llm_mod.litellm, "acompletion", acompletion):
            result = await llm_mod.complete(
                [{"role": "user", "content": "hi"}], model="openai/gpt-4", temperature=0.0
            )

        assert result.content == '{"clusters": []}'
        assert result.model == "openai/gpt-4"
        assert result.usage.prompt_tokens == 12
        assert result.usage.total_tokens == 15
        assert acompletion.call_args.kwargs["api_key"] == "test-openai-key"

    @pytest.mark.asyncio
    async def test_missing_usage_is_zero(self) -> None:
        with patch.object(
            llm_mod.litellm, "acompletion", AsyncMock(return_value=_completion(None))
        ):
            result = await llm_mod.complete([{"role": "user", "content": "hi"}])

        assert result.content == ""
        assert result.usage == llm_mod.LLMUsage()

    @pytest.mark.asyncio
    async def test_falls_back_on_failure(self) -> None:
        acompletion = AsyncMock(
            side_effect=[RuntimeError("rate limited"), _completion("ok")]
        )
        with patch.object(llm_mod.litellm, "acompletion", acompletion):
            result = await llm_mod.complete(
                [{"role": "user", "content": "hi"}],
                model="openai/gpt-4",
                fallback_model="groq/llama-3.1-8b-instant",
            )

        assert result.content == "ok"
        assert result.model == "groq/llama-3.1-8b-instant"
        assert acompletion.call_args_list[1].kwargs["model"] == "groq/llama-3.1-8b-instant"

    @pytest.mark.asyncio
    async def test_raises_without_fallback(self) -> None:
        with patch.object(
            llm_mod.litellm, "acompletion", AsyncMock(side_effect=RuntimeError("down"))
        ):
            with pytest.raises(RuntimeError):
                await llm_mod.complete([{"role": "user", "content": "hi"}])

    @pytest.mark.asyncio
    async def test_raises_original_when_fallback_fails(self) -> None:
        acompletion = AsyncMock(
            side_effect=[RuntimeError("primary down"), RuntimeError("fallback down")]
        )
        with patch.object(llm_mod.litellm, "acompletion", acompletion):
            with pytest.raises(RuntimeError, match="primary down"):
                await llm_mod.complete(
                    [{"role": "user", "content": "hi"}],
                    model="openai/gpt-4",
                    fallback_model="openai/gpt-4o-mini",
                )
