"""Agent data models."""

from __future__ import annotations

import base64
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from .provider import FinishReason
from .research import ResearchData


class AgentRole(str, Enum):
    ARCHITECT = "architect"
    BACKEND = "backend"
    FRONTEND = "frontend"
    QA = "qa"


ALL_AGENT_ROLES = [role.value for role in AgentRole]


class ContextEntry(BaseModel):
    """A prior agent's full response, threaded into later prompts."""

    role: str
    message: str


class TokenInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    prompt_tokens: int
    allocated_output_tokens: int
    finish_reason: Optional[FinishReason] = None


class AgentResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    warning: Optional[str] = None
    truncated: bool = False
    research_data: Optional[ResearchData] = None
    audio_data: Optional[bytes] = None
    token_info: Optional[TokenInfo] = None

    @field_serializer("audio_data")
    def _encode_audio(self, value: Optional[bytes]) -> Optional[str]:
        if value is None:
            return None
        return base64.b64encode(value).decode("ascii")


class VoiceProfile(BaseModel):
    voice_id: str = "male-qn-qingse"
    emotion: str = "neutral"
    speed: float = Field(default=1.0, gt=0)
