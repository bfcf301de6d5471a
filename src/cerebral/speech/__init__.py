"""Speech-synthesis clients."""

from __future__ import annotations

from .base import NullSpeechClient, SpeechClient


def get_speech_client(config: dict) -> SpeechClient:
    """Factory for the configured speech-synthesis client."""
    speech_config = config.get("speech", {})
    if not speech_config.get("enabled", True):
        return NullSpeechClient()

    provider_name = speech_config.get("provider", "minimax")
    if provider_name == "minimax":
        from .minimax import MinimaxSpeechClient
        return MinimaxSpeechClient(
            speech_config.get("minimax", {}),
            timeout=speech_config.get("timeout_seconds", 60),
        )
    raise ValueError(f"Unknown speech provider: {provider_name}")
