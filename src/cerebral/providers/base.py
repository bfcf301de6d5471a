"""Language-model provider abstraction."""

from __future__ import annotations

import os
from typing import Optional, Protocol, runtime_checkable

import httpx

from ..models.provider import CompletionResult, FinishReason, ModelTier


@runtime_checkable
class AIProvider(Protocol):
    """Protocol that all AI providers must implement."""

    name: str

    def is_configured(self) -> bool: ...

    async def complete(
        self,
        prompt: str,
        max_output_tokens: int,
        temperature: float,
        tier: ModelTier = ModelTier.HIGH_QUALITY,
    ) -> CompletionResult: ...


class BaseProvider:
    """Base class with shared config handling.

    Subclasses report failures through ``CompletionResult(success=False)``
    instead of raising, and map their native stop reason with
    ``STOP_REASONS``.
    """

    name: str = "base"
    DEFAULT_API_KEY_ENV: str = ""
    DEFAULT_MODEL: str = ""
    STOP_REASONS: dict[str, FinishReason] = {}

    def __init__(self, provider_config: dict, common_config: dict):
        self.config = provider_config
        self.common = common_config
        self.timeout = common_config.get("timeout_seconds", 180)

    def _api_key_env(self) -> str:
        return self.config.get("api_key_env", self.DEFAULT_API_KEY_ENV)

    def _get_api_key(self) -> Optional[str]:
        return os.environ.get(self._api_key_env())

    def _missing_key_result(self) -> CompletionResult:
        return CompletionResult(
            success=False,
            error=f"API key not found in environment variable: {self._api_key_env()}",
        )

    def is_configured(self) -> bool:
        return bool(self._get_api_key())

    def _resolve_model(self, tier: ModelTier) -> str:
        if tier == ModelTier.FAST and self.config.get("fast_model"):
            return self.config["fast_model"]
        return self.config.get("model", self.DEFAULT_MODEL)

    @classmethod
    def map_finish_reason(cls, raw: Optional[str]) -> Optional[FinishReason]:
        if raw is None:
            return None
        return cls.STOP_REASONS.get(raw, FinishReason.OTHER)

    def parse_response(self, data: dict) -> CompletionResult:
        raise NotImplementedError

    async def _post(self, url: str, body: dict, headers: dict) -> CompletionResult:
        """POST ``body`` and parse the reply. Transport and HTTP errors become failed results."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=body, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            return CompletionResult(
                success=False,
                error=f"{e.response.status_code} | {e.response.text}",
            )
        except httpx.HTTPError as e:
            return CompletionResult(success=False, error=f"{type(e).__name__}: {e}")
        except ValueError as e:
            return CompletionResult(success=False, error=f"Invalid JSON from {self.name}: {e}")
        return self.parse_response(data)

    async def complete(
        self,
        prompt: str,
        max_output_tokens: int,
        temperature: float,
        tier: ModelTier = ModelTier.HIGH_QUALITY,
    ) -> CompletionResult:
        raise NotImplementedError


PROVIDER_NAMES = ("gemini", "anthropic", "openai")


def get_ai_provider(
    config: dict,
    provider_override: Optional[str] = None,
    model_override: Optional[str] = None,
) -> BaseProvider:
    """Build the configured provider. Sub-sections of ``ai`` hold per-provider settings."""
    ai_config = config.get("ai", {})
    provider_name = provider_override or ai_config.get("provider", "gemini")
    if provider_name not in PROVIDER_NAMES:
        raise ValueError(f"Unknown AI provider: {provider_name}")

    provider_config = dict(ai_config.get(provider_name) or {})
    if model_override:
        provider_config["model"] = model_override
    common_config = {k: v for k, v in ai_config.items() if k not in PROVIDER_NAMES}

    if provider_name == "gemini":
        from .gemini import GeminiProvider
        return GeminiProvider(provider_config, common_config)
    if provider_name == "anthropic":
        from .anthropic import AnthropicProvider
        return AnthropicProvider(provider_config, common_config)
    from .openai_provider import OpenAIProvider
    return OpenAIProvider(provider_config, common_config)
