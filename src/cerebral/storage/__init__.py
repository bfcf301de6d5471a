"""Command persistence."""

from __future__ import annotations

from pathlib import Path

from .base import CommandStore


def get_command_store(config: dict) -> CommandStore:
    from .sqlite import SqliteCommandStore

    path = Path(config.get("storage", {}).get("path", "~/.cerebral/commands.db")).expanduser()
    return SqliteCommandStore(path)
