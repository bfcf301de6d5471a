"""OpenAI Chat Completions provider."""

from __future__ import annotations

from ..models.provider import CompletionResult, FinishReason, ModelTier
from .base import BaseProvider


class OpenAIProvider(BaseProvider):
    name = "openai"
    API_URL = "https://api.openai.com/v1/chat/completions"
    DEFAULT_API_KEY_ENV = "OPENAI_API_KEY"
    DEFAULT_MODEL = "gpt-4o"
    STOP_REASONS = {
        "stop": FinishReason.STOP,
        "length": FinishReason.MAX_TOKENS,
        "content_filter": FinishReason.SAFETY,
    }

    def parse_response(self, data: dict) -> CompletionResult:
        choice = (data.get("choices") or [{}])[0]
        usage = data.get("usage") or {}
        return CompletionResult(
            success=True,
            text=(choice.get("message") or {}).get("content") or "",
            finish_reason=self.map_finish_reason(choice.get("finish_reason")),
            tokens_used={
                "input": usage.get("prompt_tokens", 0),
                "output": usage.get("completion_tokens", 0),
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
            headers={"Authorization": f"Bearer {api_key}"},
        )
