"""Minimax text-to-speech (t2a_v2) client."""

from __future__ import annotations

import logging
import os
from typing import Optional

import httpx

from ..core.errors import SpeechSynthesisError
from ..models.agent import VoiceProfile

logger = logging.getLogger(__name__)


class MinimaxSpeechClient:
    name = "minimax"
    API_URL = "https://api.minimax.io/v1/t2a_v2"

    def __init__(self, config: dict, timeout: float = 60):
        self.config = config
        self.timeout = timeout

    def _get_credentials(self) -> tuple[Optional[str], Optional[str]]:
        api_key = os.environ.get(self.config.get("api_key_env", "MINIMAX_API_KEY"))
        group_id = os.environ.get(self.config.get("group_id_env", "MINIMAX_GROUP_ID"))
        return api_key, group_id

    def build_body(self, text: str, voice: VoiceProfile) -> dict:
        return {
            "model": self.config.get("model", "speech-02-turbo"),
            "text": text,
            "stream": False,
            "voice_setting": {
                "voice_id": voice.voice_id,
                "speed": voice.speed,
                "vol": 1.0,
                "pitch": 0,
            },
            "audio_setting": {
                "sample_rate": 32000,
                "bitrate": 128000,
                "format": "mp3",
                "channel": 1,
            },
        }

    @staticmethod
    def extract_audio(data: dict) -> bytes:
        """Decode the hex audio payload from a t2a_v2 response body."""
        base_resp = data.get("base_resp") or {}
        if base_resp and base_resp.get("status_code", 0) != 0:
            raise SpeechSynthesisError(
                f"Minimax error {base_resp.get('status_code')}: {base_resp.get('status_msg', '')}"
            )

        audio_hex = (
            (data.get("data") or {}).get("audio")
            or data.get("audio")
            or (data.get("extra_info") or {}).get("audio_file")
        )
        if not audio_hex:
            raise SpeechSynthesisError(
                f"No audio data in response (keys: {', '.join(sorted(data))})"
            )
        try:
            return bytes.fromhex(audio_hex)
        except ValueError as e:
            raise SpeechSynthesisError(f"Audio payload is not valid hex: {e}") from e

    async def synthesize(self, text: str, voice: VoiceProfile) -> Optional[bytes]:
        api_key, group_id = self._get_credentials()
        if not api_key or not group_id:
            logger.warning("Minimax credentials not configured, skipping speech synthesis")
            return None

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        body = self.build_body(text, voice)
        logger.debug("Synthesizing %d chars with voice %s", len(text), voice.voice_id)

        url = self.config.get("endpoint", self.API_URL)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(url, json=body, headers=headers)
            response.raise_for_status()
            data = response.json()

        audio = self.extract_audio(data)
        logger.debug("Generated %d bytes of audio", len(audio))
        return audio
