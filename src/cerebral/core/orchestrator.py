"""Agent orchestrator: one role-specific model call per invocation.

Each ``run_agent`` call walks a fixed state machine::

    IDLE -> PROMPT_BUILDING -> [RESEARCH_GATE] -> MODEL_INVOCATION
         -> SPEECH_SYNTHESIS -> RESULT_READY

with two exits: RESULT_READY_RESEARCH_ONLY when the research gate produced
findings (no model call), and FAILED on invalid input or a model error.
History lookup, research and speech are auxiliary; their failures degrade the
response and never fail the turn.

The orchestrator holds no per-turn state. Every collaborator is injected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

from pydantic import BaseModel

from ..models.agent import ALL_AGENT_ROLES, AgentResponse, AgentRole, ContextEntry, TokenInfo, VoiceProfile
from ..models.command import Command
from ..models.provider import CompletionResult, FinishReason, ModelTier
from ..models.research import ResearchData
from ..providers.base import AIProvider
from ..search.base import SearchClient
from ..speech.base import SpeechClient, load_voice_profiles, voice_for_role
from ..storage.base import CommandStore
from ..utils.sanitize import sanitize_error
from .agents import build_prompt, load_agent_instructions
from .errors import CerebralError, InvalidInputError, ModelInvocationError
from .research import perform_research, research_only_message, should_research
from .summarize import truncate_for_speech
from .tokens import BudgetPolicy, TokenBudget, load_budget_policies, plan_budget

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "I apologize, but I couldn't generate a response."
LARGE_AUDIO_BYTES = 768 * 1024  # ~1 MiB once base64 encoded


class TurnState(str, Enum):
    IDLE = "idle"
    PROMPT_BUILDING = "prompt_building"
    RESEARCH_GATE = "research_gate"
    MODEL_INVOCATION = "model_invocation"
    SPEECH_SYNTHESIS = "speech_synthesis"
    RESULT_READY = "result_ready"
    RESULT_READY_RESEARCH_ONLY = "result_ready_research_only"
    FAILED = "failed"


class OrchestratorSettings(BaseModel):
    temperature: float = 0.7
    history_limit: int = 5
    history_entries: int = 3
    history_summary_chars: int = 150
    context_summary_chars: int = 250
    research_summary_chars: int = 600
    demo_research_summary_chars: int = 300
    research_count: int = 5
    speech_max_chars: int = 1000
    prompts_dir: Optional[Path] = None
    budgets: dict[ModelTier, BudgetPolicy]
    voices: dict[str, VoiceProfile] = {}

    @classmethod
    def from_config(cls, config: dict) -> "OrchestratorSettings":
        context = config.get("context", {})
        return cls(
            temperature=config.get("ai", {}).get("temperature", 0.7),
            history_limit=context.get("history_limit", 5),
            history_entries=context.get("history_entries", 3),
            history_summary_chars=context.get("history_summary_chars", 150),
            context_summary_chars=context.get("context_summary_chars", 250),
            research_summary_chars=context.get("research_summary_chars", 600),
            demo_research_summary_chars=context.get("demo_research_summary_chars", 300),
            research_count=config.get("search", {}).get("count", 5),
            speech_max_chars=config.get("speech", {}).get("max_chars", 1000),
            prompts_dir=context.get("prompts_dir"),
            budgets=load_budget_policies(config),
            voices=load_voice_profiles(config),
        )


@dataclass
class _Turn:
    transcript: str
    role: AgentRole
    demo_mode: bool
    previous_research: Optional[ResearchData]
    prior_context: list[ContextEntry] = field(default_factory=list)
    state: TurnState = TurnState.IDLE

    @property
    def tier(self) -> ModelTier:
        return ModelTier.FAST if self.demo_mode else ModelTier.HIGH_QUALITY


def validate_request(transcript: Optional[str], role: Optional[str]) -> AgentRole:
    """Check transcript and role, returning the parsed role."""
    if not transcript or not transcript.strip() or not role:
        raise InvalidInputError(
            "Missing required fields: transcript and agentRole", ALL_AGENT_ROLES
        )
    try:
        return AgentRole(role)
    except ValueError:
        raise InvalidInputError(
            f"Invalid agentRole. Must be one of: {', '.join(ALL_AGENT_ROLES)}",
            ALL_AGENT_ROLES,
        ) from None


class AgentOrchestrator:
    def __init__(
        self,
        provider: AIProvider,
        search_client: Optional[SearchClient],
        speech_client: Optional[SpeechClient],
        store: Optional[CommandStore],
        settings: OrchestratorSettings,
    ):
        self.provider = provider
        self.search_client = search_client
        self.speech_client = speech_client
        self.store = store
        self.settings = settings

    @classmethod
    def from_config(cls, config: dict, store: Optional[CommandStore] = None) -> "AgentOrchestrator":
        """Build an orchestrator with the configured clients. Call once per process."""
        from ..providers.base import get_ai_provider
        from ..search import get_search_client
        from ..speech import get_speech_client

        return cls(
            provider=get_ai_provider(config),
            search_client=get_search_client(config),
            speech_client=get_speech_client(config),
            store=store,
            settings=OrchestratorSettings.from_config(config),
        )

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    async def run_agent(
        self,
        transcript: str,
        role: AgentRole | str,
        prior_context: Sequence[ContextEntry] = (),
        demo_mode: bool = False,
        previous_research: Optional[ResearchData] = None,
    ) -> AgentResponse:
        """Run one agent role against the transcript.

        Raises:
            InvalidInputError: transcript empty or role unknown. No external
                calls are made.
            ModelInvocationError: the language-model call failed.
        """
        agent_role = validate_request(
            transcript, role.value if isinstance(role, AgentRole) else role
        )
        turn = _Turn(
            transcript=transcript,
            role=agent_role,
            demo_mode=demo_mode,
            previous_research=previous_research,
            prior_context=list(prior_context),
        )

        try:
            return await self._run(turn)
        except CerebralError:
            self._advance(turn, TurnState.FAILED)
            raise

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _advance(self, turn: _Turn, state: TurnState) -> None:
        logger.debug("[%s] %s -> %s", turn.role.value, turn.state.value, state.value)
        turn.state = state

    async def _run(self, turn: _Turn) -> AgentResponse:
        self._advance(turn, TurnState.PROMPT_BUILDING)
        history = await self._lookup_history(turn.transcript)

        if self._research_gate_applies(turn):
            self._advance(turn, TurnState.RESEARCH_GATE)
            research = await self._research(turn.transcript)
            if research is not None:
                self._advance(turn, TurnState.RESULT_READY_RESEARCH_ONLY)
                logger.info("[%s] Returning research findings without a model call", turn.role.value)
                return AgentResponse(
                    message=research_only_message(research, turn.transcript),
                    research_data=research,
                )
            self._advance(turn, TurnState.PROMPT_BUILDING)

        prompt = self._build_prompt(turn, history)
        policy = self.settings.budgets[turn.tier]
        budget = plan_budget(prompt, policy)
        warning = self._complexity_warning(turn, budget) if budget.over_threshold else None
        logger.info(
            "[%s] Mode: %s, prompt %d chars (~%d tokens), allocating %d output tokens",
            turn.role.value,
            "DEMO" if turn.demo_mode else "PRODUCTION",
            len(prompt),
            budget.prompt_tokens,
            budget.allocated_output_tokens,
        )
        if warning:
            logger.warning("[%s] Large prompt (%d tokens)", turn.role.value, budget.prompt_tokens)

        self._advance(turn, TurnState.MODEL_INVOCATION)
        result = await self._invoke_model(turn, prompt, budget)

        truncated = result.finish_reason == FinishReason.MAX_TOKENS
        if truncated:
            logger.warning("[%s] Response truncated at %d tokens", turn.role.value, budget.allocated_output_tokens)
            warning = (
                f"The {turn.role.value} agent's response was truncated due to output length "
                "limits. The analysis may be incomplete. Consider simplifying your request."
            )

        message = (result.text or "").strip()
        if not message:
            logger.warning("[%s] Empty response from model (finish reason: %s)", turn.role.value, result.finish_reason)
            message = APOLOGY_MESSAGE

        self._advance(turn, TurnState.SPEECH_SYNTHESIS)
        audio = await self._synthesize(turn.role, message)

        self._advance(turn, TurnState.RESULT_READY)
        return AgentResponse(
            message=message,
            warning=warning,
            truncated=truncated,
            research_data=None,
            audio_data=audio,
            token_info=TokenInfo(
                prompt_tokens=budget.prompt_tokens,
                allocated_output_tokens=budget.allocated_output_tokens,
                finish_reason=result.finish_reason,
            ),
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _lookup_history(self, transcript: str) -> list[Command]:
        """Relevant past commands; recency listing if search fails; else nothing."""
        if self.store is None:
            return []
        limit = self.settings.history_limit
        try:
            history = await self.store.search(transcript, limit)
            logger.debug("Found %d relevant commands", len(history))
            return history
        except Exception as e:
            logger.warning("Command search failed, falling back to recent commands: %s", e)
        try:
            return await self.store.list_recent(limit)
        except Exception as e:
            logger.warning("Failed to fetch recent commands, continuing without history: %s", e)
        return []

    def _research_gate_applies(self, turn: _Turn) -> bool:
        return (
            turn.role == AgentRole.ARCHITECT
            and turn.previous_research is None
            and self.search_client is not None
            and should_research(turn.transcript)
        )

    async def _research(self, transcript: str) -> Optional[ResearchData]:
        try:
            return await perform_research(self.search_client, transcript, self.settings.research_count)
        except Exception as e:
            logger.warning("Research failed, continuing without research data: %s", e)
            return None

    def _build_prompt(self, turn: _Turn, history: list[Command]) -> str:
        s = self.settings
        instructions = load_agent_instructions(turn.role.value, turn.demo_mode, s.prompts_dir)
        return build_prompt(
            role=turn.role,
            transcript=turn.transcript,
            instructions=instructions,
            history=history,
            research=turn.previous_research,
            research_applied=turn.previous_research is not None,
            prior_context=turn.prior_context,
            demo_mode=turn.demo_mode,
            history_entries=s.history_entries,
            history_summary_chars=s.history_summary_chars,
            research_summary_chars=(
                s.demo_research_summary_chars if turn.demo_mode else s.research_summary_chars
            ),
            context_summary_chars=s.context_summary_chars,
        )

    def _complexity_warning(self, turn: _Turn, budget: TokenBudget) -> str:
        if turn.demo_mode:
            return (
                "Your request is complex. Demo mode uses a faster model with a smaller "
                "context. Switch to production mode for better handling of complex requests."
            )
        return (
            f"Your request is extremely complex ({budget.prompt_tokens // 1000}K tokens). "
            "Consider breaking it into smaller requests if issues occur."
        )

    async def _invoke_model(self, turn: _Turn, prompt: str, budget: TokenBudget) -> CompletionResult:
        try:
            result = await self.provider.complete(
                prompt=prompt,
                max_output_tokens=budget.allocated_output_tokens,
                temperature=self.settings.temperature,
                tier=turn.tier,
            )
        except Exception as e:
            raise ModelInvocationError(sanitize_error(str(e))) from e

        if not result.success:
            detail = sanitize_error(result.error or "unknown provider error")
            logger.error("[%s] Model call failed: %s", turn.role.value, detail)
            raise ModelInvocationError(detail)
        return result

    async def _synthesize(self, role: AgentRole, message: str) -> Optional[bytes]:
        if self.speech_client is None:
            return None

        text = truncate_for_speech(message, self.settings.speech_max_chars)
        if len(text) < len(message):
            logger.debug("Truncated text from %d to %d chars for speech", len(message), len(text))

        try:
            audio = await self.speech_client.synthesize(text, voice_for_role(self.settings.voices, role.value))
        except Exception as e:
            logger.warning("[%s] Speech synthesis failed, continuing without audio: %s", role.value, e)
            return None

        if audio and len(audio) > LARGE_AUDIO_BYTES:
            logger.warning("[%s] Large audio response (%d KB) may delay response", role.value, len(audio) // 1024)
        return audio or None
