"""AI provider data models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class FinishReason(str, Enum):
    STOP = "stop"
    MAX_TOKENS = "max_tokens"
    SAFETY = "safety"
    OTHER = "other"


class ModelTier(str, Enum):
    FAST = "fast"
    HIGH_QUALITY = "high_quality"


class CompletionResult(BaseModel):
    success: bool
    text: Optional[str] = None
    finish_reason: Optional[FinishReason] = None
    tokens_used: Optional[dict] = None
    error: Optional[str] = None
