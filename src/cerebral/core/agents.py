"""Agent definitions, instruction loading, and prompt assembly.

Defines the 4 build agents and their properties.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import Optional, Sequence

from ..models.agent import AgentRole, ContextEntry
from ..models.command import Command
from ..models.research import ResearchData
from .summarize import summarize_response

AGENT_DEFS: dict[str, dict] = {
    "architect": {"name": "ARCHITECT", "label": "Architect", "color": "blue"},
    "backend": {"name": "BACKEND", "label": "Backend", "color": "green"},
    "frontend": {"name": "FRONTEND", "label": "Frontend", "color": "magenta"},
    "qa": {"name": "QA", "label": "QA", "color": "yellow"},
}

ALL_AGENT_KEYS = list(AGENT_DEFS.keys())


def context_label(role: AgentRole | str) -> str:
    key = role.value if isinstance(role, AgentRole) else role
    return AGENT_DEFS.get(key, {}).get("label", key)


def load_agent_instructions(
    agent_key: str,
    demo_mode: bool = False,
    prompts_dir: Optional[Path] = None,
) -> str:
    """Load agent instruction markdown.

    Checks the configured prompts directory first, then falls back to bundled
    data. Demo mode reads ``<agent>-demo.md``.
    """
    filename = f"{agent_key}-demo.md" if demo_mode else f"{agent_key}.md"

    if prompts_dir:
        override = Path(prompts_dir) / filename
        if override.exists():
            return override.read_text(encoding="utf-8").strip()

    try:
        data_pkg = resources.files("cerebral.data.agents")
        return (data_pkg / filename).read_text(encoding="utf-8").strip()
    except Exception:
        return f"You are the {agent_key} agent. Analyze the request within your specialty."


def _render_history(history: Sequence[Command], entries: int, summary_chars: int) -> str:
    lines = ["RELEVANT COMMAND HISTORY (found via search):"]
    for idx, cmd in enumerate(history[:entries], start=1):
        lines.append(f'{idx}. "{cmd.transcript}" ({cmd.timestamp:%Y-%m-%d %H:%M})')
        if cmd.agent_responses:
            last = cmd.agent_responses[-1]
            lines.append(f"   Last response: {summarize_response(last.message, summary_chars)}")
    lines.append("")
    lines.append(
        "These are similar commands from the past. Use this context to understand "
        "the user's ongoing work and maintain continuity."
    )
    return "\n".join(lines)


def _render_research(research: ResearchData, applied: bool, summary_chars: int) -> str:
    lines = [
        "RESEARCH FINDINGS (web search):",
        summarize_response(research.summary, summary_chars),
        "",
    ]
    if applied:
        lines.append(
            "The user has reviewed these research findings and is now asking you "
            "to implement based on this information."
        )
    lines.append("Use these research findings to inform your decisions and recommendations.")
    return "\n".join(lines)


def _render_context(prior_context: Sequence[ContextEntry], summary_chars: int) -> str:
    lines = ["Previous agent summaries:"]
    for entry in prior_context:
        lines.append(f"- {entry.role}: {summarize_response(entry.message, summary_chars)}")
    return "\n".join(lines)


def build_prompt(
    role: AgentRole,
    transcript: str,
    instructions: str,
    history: Sequence[Command] = (),
    research: Optional[ResearchData] = None,
    research_applied: bool = False,
    prior_context: Sequence[ContextEntry] = (),
    demo_mode: bool = False,
    history_entries: int = 3,
    history_summary_chars: int = 150,
    research_summary_chars: int = 600,
    context_summary_chars: int = 250,
) -> str:
    """Assemble the single-text prompt sent to the model.

    Section order: system instructions, user request, command history,
    research findings, previous agents, closing instruction. Empty sections
    are omitted.
    """
    sections = [instructions, f'User request: "{transcript}"']

    if history and history_entries > 0:
        sections.append(_render_history(history, history_entries, history_summary_chars))

    if research is not None:
        sections.append(_render_research(research, research_applied, research_summary_chars))

    if prior_context:
        sections.append(_render_context(prior_context, context_summary_chars))

    depth = "concise" if demo_mode else "detailed"
    sections.append(f"As the {role.value} agent, provide your {depth} analysis and recommendations.")

    return "\n\n".join(sections)
