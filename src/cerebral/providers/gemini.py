"""Google Gemini generateContent provider."""

from __future__ import annotations

from ..models.provider import CompletionResult, FinishReason, ModelTier
from .base import BaseProvider


class GeminiProvider(BaseProvider):
    name = "gemini"
    API_URL = "https://generativelanguage.googleapis.com"
    DEFAULT_API_KEY_ENV = "GEMINI_API_KEY"
    DEFAULT_MODEL = "gemini-3-pro-preview"
    STOP_REASONS = {
        "STOP": FinishReason.STOP,
        "MAX_TOKENS": FinishReason.MAX_TOKENS,
        "SAFETY": FinishReason.SAFETY,
        "PROHIBITED_CONTENT": FinishReason.SAFETY,
        "BLOCKLIST": FinishReason.SAFETY,
        "SPII": FinishReason.SAFETY,
    }

    def _url(self, model: str) -> str:
        endpoint = self.config.get("endpoint", self.API_URL).rstrip("/")
        return f"{endpoint}/v1beta/models/{model}:generateContent"

    def parse_response(self, data: dict) -> CompletionResult:
        candidates = data.get("candidates") or []
        if not candidates:
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            return CompletionResult(
                success=True,
                text="",
                finish_reason=FinishReason.SAFETY if block_reason else FinishReason.OTHER,
            )

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if not p.get("thought"))

        usage = data.get("usageMetadata", {})
        tokens = {
            "input": usage.get("promptTokenCount", 0),
            "output": usage.get("candidatesTokenCount", 0),
        }
        return CompletionResult(
            success=True,
            text=text,
            finish_reason=self.map_finish_reason(candidate.get("finishReason")),
            tokens_used=tokens,
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

        model = self._resolve_model(tier)
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "maxOutputTokens": max_output_tokens,
                "temperature": temperature,
            },
        }
        headers = {
            "x-goog-api-key": api_key,
            "content-type": "application/json",
        }

        return await self._post(self._url(model), body=body, headers=headers)
