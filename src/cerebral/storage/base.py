"""Command store protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from ..models.command import AgentMessage, Command


@runtime_checkable
class CommandStore(Protocol):
    """Persistence for completed turns.

    ``save`` assigns the id and timestamp; a caller-supplied timestamp is
    ignored. ``search`` ranks by relevance and falls back to ``list_recent``
    when the index cannot answer.
    """

    async def init(self) -> None: ...

    async def save(
        self,
        transcript: str,
        agent_responses: list[AgentMessage],
        timestamp: Optional[datetime] = None,
    ) -> Command: ...

    async def list_all(self) -> list[Command]: ...

    async def list_recent(self, limit: int) -> list[Command]: ...

    async def search(self, query: str, limit: int = 10) -> list[Command]: ...
