"""Speech-synthesis client protocol and voice profiles."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ..models.agent import VoiceProfile

DEFAULT_VOICE_ROLE = "architect"


@runtime_checkable
class SpeechClient(Protocol):
    """Protocol that all speech clients must implement.

    Returns raw audio bytes, or None when synthesis is not possible.
    """

    name: str

    async def synthesize(self, text: str, voice: VoiceProfile) -> Optional[bytes]: ...


class NullSpeechClient:
    """Used when speech is disabled in config."""

    name = "none"

    async def synthesize(self, text: str, voice: VoiceProfile) -> Optional[bytes]:
        return None


def load_voice_profiles(config: dict) -> dict[str, VoiceProfile]:
    voices = config.get("speech", {}).get("voices", {})
    return {role: VoiceProfile(**profile) for role, profile in voices.items()}


def voice_for_role(voices: dict[str, VoiceProfile], role: str) -> VoiceProfile:
    """Role-specific voice, falling back to the architect's, then the default."""
    return voices.get(role) or voices.get(DEFAULT_VOICE_ROLE) or VoiceProfile()
