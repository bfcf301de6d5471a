"""Pipeline driver: architect, then backend + frontend together, then qa."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from ..models.agent import AgentResponse, AgentRole, ContextEntry
from ..models.command import AgentMessage, Command
from ..models.research import ResearchData
from ..storage.base import CommandStore
from .agents import context_label
from .errors import PersistenceError
from .orchestrator import AgentOrchestrator

logger = logging.getLogger(__name__)

# Backend and frontend run concurrently but are always appended in this order.
PARALLEL_ROLES = (AgentRole.BACKEND, AgentRole.FRONTEND)


@dataclass
class TurnResult:
    transcript: str
    responses: dict[AgentRole, AgentResponse] = field(default_factory=dict)
    context: list[ContextEntry] = field(default_factory=list)
    research_data: Optional[ResearchData] = None
    research_only: bool = False
    command: Optional[Command] = None
    persistence_error: Optional[str] = None

    @property
    def warnings(self) -> list[tuple[AgentRole, str]]:
        return [(role, r.warning) for role, r in self.responses.items() if r.warning]


async def run_turn(
    orchestrator: AgentOrchestrator,
    transcript: str,
    demo_mode: bool = False,
    previous_research: Optional[ResearchData] = None,
) -> TurnResult:
    """Run the four agents for one user transcript.

    Ends after the architect when it returns research findings and no
    ``previous_research`` was supplied.
    """
    turn = TurnResult(transcript=transcript)

    architect = await orchestrator.run_agent(
        transcript,
        AgentRole.ARCHITECT,
        prior_context=list(turn.context),
        demo_mode=demo_mode,
        previous_research=previous_research,
    )
    turn.responses[AgentRole.ARCHITECT] = architect
    if architect.research_data is not None and previous_research is None:
        turn.research_data = architect.research_data
        turn.research_only = True
        return turn
    turn.context.append(ContextEntry(role=context_label(AgentRole.ARCHITECT), message=architect.message))

    architect_context = list(turn.context)
    tasks = [
        asyncio.create_task(
            orchestrator.run_agent(
                transcript,
                role,
                prior_context=architect_context,
                demo_mode=demo_mode,
                previous_research=previous_research,
            )
        )
        for role in PARALLEL_ROLES
    ]
    try:
        parallel = await asyncio.gather(*tasks)
    except BaseException:
        # Either agent failing ends the turn; stop the other model call.
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    for role, response in zip(PARALLEL_ROLES, parallel):
        turn.responses[role] = response
        turn.context.append(ContextEntry(role=context_label(role), message=response.message))

    turn.responses[AgentRole.QA] = await orchestrator.run_agent(
        transcript,
        AgentRole.QA,
        prior_context=list(turn.context),
        demo_mode=demo_mode,
        previous_research=previous_research,
    )
    return turn


async def save_turn(store: CommandStore, turn: TurnResult) -> TurnResult:
    """Persist a completed turn.

    A storage failure is recorded on the result and logged; the agent
    responses are kept either way. Research-only turns are not saved.
    """
    if turn.research_only:
        return turn

    agent_responses = [
        AgentMessage(role=role.value, message=turn.responses[role].message)
        for role in AgentRole
        if role in turn.responses
    ]
    try:
        turn.command = await store.save(turn.transcript, agent_responses)
    except PersistenceError as e:
        logger.error("History not saved: %s", e)
        turn.persistence_error = str(e)
    return turn
