"""Cerebral Voice (cerebral) - run agent turns, serve the API, browse history."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

console = Console()
logger = logging.getLogger(__name__)


def _load_config(ctx: click.Context) -> dict:
    from ..core.config import get_effective_config

    return get_effective_config(ctx.obj.get("config_path"), ctx.obj.get("overrides"))


@click.group()
@click.pass_context
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), help="Config YAML path")
@click.option("--ai-provider", type=click.Choice(["gemini", "anthropic", "openai"]))
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]), default=None)
def cerebral_cli(
    ctx: click.Context,
    config_path: Optional[Path],
    ai_provider: Optional[str],
    log_level: Optional[str],
) -> None:
    """Cerebral Voice - architect, backend, frontend and QA agents on demand."""
    from ..utils.log import configure_logging

    overrides: dict = {}
    if ai_provider:
        overrides.setdefault("ai", {})["provider"] = ai_provider
    if log_level:
        overrides.setdefault("logging", {})["level"] = log_level

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["overrides"] = overrides or None

    configure_logging(_load_config(ctx).get("logging", {}).get("level", "INFO"))


@cerebral_cli.command()
@click.pass_context
@click.option("--host", type=str, help="Bind address (default from config)")
@click.option("--port", type=int, help="Port (default from config)")
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]) -> None:
    """Start the HTTP API."""
    import uvicorn

    from ..api.app import create_app

    config = _load_config(ctx)
    server = config.get("server", {})
    bind_host = host or server.get("host", "0.0.0.0")
    bind_port = port or int(server.get("port", 5000))

    console.print(f"  [cyan]Starting Cerebral Voice API[/cyan] on {bind_host}:{bind_port}")
    uvicorn.run(create_app(config), host=bind_host, port=bind_port, log_level="info")


@cerebral_cli.command()
@click.pass_context
@click.argument("transcript")
@click.option("--demo", is_flag=True, help="Fast model, concise answers")
@click.option(
    "--research-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path(".cerebral-research.json"),
    show_default=True,
    help="Where research findings are written and read back",
)
@click.option("--apply-research", is_flag=True, help="Build using findings from --research-file")
@click.option("--no-save", is_flag=True, help="Do not store this turn in history")
def ask(
    ctx: click.Context,
    transcript: str,
    demo: bool,
    research_file: Path,
    apply_research: bool,
    no_save: bool,
) -> None:
    """Run one full agent turn for TRANSCRIPT."""
    from ..core.errors import CerebralError
    from ..models.research import ResearchData

    previous_research = None
    if apply_research:
        if not research_file.exists():
            raise click.UsageError(f"No research findings at {research_file}")
        previous_research = ResearchData.model_validate_json(research_file.read_text(encoding="utf-8"))

    config = _load_config(ctx)
    try:
        turn = asyncio.run(_ask(config, transcript, demo, previous_research, save=not no_save))
    except CerebralError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        ctx.exit(1)
        return

    if turn.research_only:
        research_file.write_text(
            turn.research_data.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
        )
        architect = next(iter(turn.responses.values()))
        console.print(Panel(Markdown(architect.message), title="RESEARCH", border_style="cyan"))
        console.print(f"  Findings saved to {research_file}. Re-run with --apply-research to build.")
        return

    _print_turn(turn)


async def _ask(config: dict, transcript: str, demo: bool, previous_research, save: bool):
    from ..core.errors import PersistenceError
    from ..core.orchestrator import AgentOrchestrator
    from ..core.pipeline import run_turn, save_turn
    from ..storage import get_command_store

    store = get_command_store(config)
    try:
        await store.init()
    except PersistenceError as e:
        logger.warning("Command store unavailable, continuing without history: %s", e)
    orchestrator = AgentOrchestrator.from_config(config, store=store)

    with console.status("[cyan]Agents are working...[/cyan]"):
        turn = await run_turn(orchestrator, transcript, demo_mode=demo, previous_research=previous_research)
    if save:
        await save_turn(store, turn)
    return turn


def _print_turn(turn) -> None:
    from ..core.agents import AGENT_DEFS

    for role, response in turn.responses.items():
        agent = AGENT_DEFS[role.value]
        subtitle = None
        if response.token_info:
            subtitle = (
                f"~{response.token_info.prompt_tokens} prompt tokens, "
                f"{response.token_info.allocated_output_tokens} allocated"
            )
        console.print(
            Panel(
                Markdown(response.message),
                title=agent["name"],
                subtitle=subtitle,
                border_style=agent["color"],
            )
        )
        if response.warning:
            console.print(f"  [yellow]WARN[/yellow] {response.warning}")

    if turn.command:
        console.print(f"  [green]OK[/green] Saved as {turn.command.id}")
    elif turn.persistence_error:
        console.print(f"  [yellow]WARN[/yellow] History not saved: {turn.persistence_error}")


@cerebral_cli.command()
@click.pass_context
@click.option("--limit", "-n", type=int, default=10, show_default=True)
@click.option("--search", "-s", "query", type=str, help="Relevance search instead of recency")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def history(ctx: click.Context, limit: int, query: Optional[str], as_json: bool) -> None:
    """List stored commands."""
    from ..core.errors import CerebralError

    try:
        commands = asyncio.run(_history(_load_config(ctx), limit, query))
    except CerebralError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        ctx.exit(1)
        return

    if as_json:
        click.echo(json.dumps([c.model_dump(mode="json", by_alias=True) for c in commands], indent=2))
        return

    if not commands:
        console.print("  [dim]No commands stored yet[/dim]")
        return

    table = Table(title="Command history")
    table.add_column("When", style="dim")
    table.add_column("Transcript")
    table.add_column("Agents", justify="right")
    for cmd in commands:
        table.add_row(
            cmd.timestamp.strftime("%Y-%m-%d %H:%M"),
            cmd.transcript,
            str(len(cmd.agent_responses)),
        )
    console.print(table)


async def _history(config: dict, limit: int, query: Optional[str]):
    from ..storage import get_command_store

    store = get_command_store(config)
    await store.init()
    if query:
        return await store.search(query, limit)
    return await store.list_recent(limit)


def main() -> None:
    cerebral_cli()


if __name__ == "__main__":
    main()
