"""Anthropic Claude Messages API provider."""

from __future__ import annotations

from ..models.provider import CompletionResult, FinishReason, ModelTier
from .base import BaseProvider


class AnthropicProvider(BaseProvider):
    name = "anthropic"
    API_URL = "https://api.anthropic.com/v1/messages"
    API_VERSION = "2023-06-01"
    DEFAULT_API_KEY_ENV = "ANTHROPIC_API_KEY"
    DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
    STOP_REASONS = {
        "end_turn": FinishReason.STOP,
        "stop_sequence": FinishReason.STOP,
        "max_tokens": FinishReason.MAX_TOKENS,
        "refusal": FinishReason.SAFETY,
    }

    def parse_response(self, data: dict) -> CompletionResult:
        blocks = [b for b in data.get("content") or [] if b.get("type") == "text"]
        usage = data.get("usage") or {}
        return CompletionResult(
            success=True,
            text="".join(b.get("text", "") for b in blocks),
            finish_reason=self.map_finish_reason(data.get("stop_reason")),
            tokens_used={
                "input": usage.get("input_tokens", 0),
                "output": usage.get("output_tokens", 0),
            },
        )

    async def complete(
        self,
        prompt: str,
        max_output_tokens: int,
        temperature: float,
        tier: ModelTier = ModelTier.HIGH_QUALITY,
    ) -> CompletionResult:
        api_key = self._get_api_key()
        if not api_key:
            return self._missing_key_result()

        return await self._post(
            self.config.get("endpoint", self.API_URL),
            body={
                "model": self._resolve_model(tier),
                "max_tokens": max_output_tokens,
                "temperature": temperature,
                "messages": [{"role": "user", "content": prompt}],
            },
            headers={
                "x-api-key": api_key,
                "anthropic-version": self.API_VERSION,
                "content-type": "application/json",
            },
        )
