"""Persisted command data models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class AgentMessage(BaseModel):
    role: str
    message: str


class Command(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    transcript: str
    timestamp: datetime
    agent_responses: list[AgentMessage] = []
