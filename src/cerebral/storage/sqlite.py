"""SQLite command store with an FTS5 relevance index."""

from __future__ import annotations

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiosqlite

from ..core.errors import PersistenceError
from ..models.command import AgentMessage, Command

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS commands (
    id TEXT PRIMARY KEY,
    transcript TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    agent_responses TEXT NOT NULL DEFAULT '[]'
);

CREATE INDEX IF NOT EXISTS idx_commands_timestamp ON commands(timestamp);
"""

_FTS_SCHEMA = """
CREATE VIRTUAL TABLE IF NOT EXISTS commands_fts USING fts5(
    id UNINDEXED,
    transcript,
    responses
);
"""

_WORD = re.compile(r"\w+", re.UNICODE)


def build_match_query(query: str) -> str:
    """Turn free text into an FTS5 MATCH expression (any term, quoted)."""
    terms = _WORD.findall(query.lower())
    return " OR ".join(f'"{term}"' for term in terms)


def _row_to_command(row: aiosqlite.Row) -> Command:
    return Command(
        id=row["id"],
        transcript=row["transcript"],
        timestamp=datetime.fromisoformat(row["timestamp"]),
        agent_responses=[AgentMessage(**r) for r in json.loads(row["agent_responses"] or "[]")],
    )


class SqliteCommandStore:
    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.fts_enabled = False

    async def init(self) -> None:
        """Create the schema. The FTS index is optional; search degrades without it."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(self.db_path) as db:
                await db.executescript(_SCHEMA)
                try:
                    await db.executescript(_FTS_SCHEMA)
                    self.fts_enabled = True
                except aiosqlite.OperationalError as e:
                    logger.warning("FTS5 unavailable, search will list recent commands: %s", e)
                    self.fts_enabled = False
                await db.commit()
        except (aiosqlite.Error, OSError) as e:
            raise PersistenceError(f"Failed to initialize command store: {e}") from e

    async def save(
        self,
        transcript: str,
        agent_responses: list[AgentMessage],
        timestamp: Optional[datetime] = None,
    ) -> Command:
        command = Command(
            id=uuid.uuid4().hex,
            transcript=transcript,
            timestamp=datetime.now(timezone.utc),
            agent_responses=list(agent_responses),
        )
        responses_json = json.dumps([r.model_dump() for r in command.agent_responses])

        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    "INSERT INTO commands (id, transcript, timestamp, agent_responses) "
                    "VALUES (?, ?, ?, ?)",
                    (command.id, command.transcript, command.timestamp.isoformat(), responses_json),
                )
                if self.fts_enabled:
                    await db.execute(
                        "INSERT INTO commands_fts (id, transcript, responses) VALUES (?, ?, ?)",
                        (
                            command.id,
                            command.transcript,
                            " ".join(r.message for r in command.agent_responses),
                        ),
                    )
                await db.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to save command: {e}") from e

        logger.info("Saved command %s", command.id)
        return command

    async def _fetch(self, sql: str, params: tuple = ()) -> list[Command]:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                async with db.execute(sql, params) as cursor:
                    rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to read commands: {e}") from e
        return [_row_to_command(row) for row in rows]

    async def list_all(self) -> list[Command]:
        return await self._fetch(
            "SELECT * FROM commands ORDER BY timestamp DESC, rowid DESC"
        )

    async def list_recent(self, limit: int) -> list[Command]:
        return await self._fetch(
            "SELECT * FROM commands ORDER BY timestamp DESC, rowid DESC LIMIT ?",
            (max(limit, 0),),
        )

    async def search(self, query: str, limit: int = 10) -> list[Command]:
        """Relevance-ranked search, falling back to the most recent commands."""
        match = build_match_query(query)
        if not self.fts_enabled or not match:
            return await self.list_recent(limit)

        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                async with db.execute(
                    "SELECT c.* FROM commands_fts f JOIN commands c ON c.id = f.id "
                    "WHERE commands_fts MATCH ? ORDER BY bm25(commands_fts) LIMIT ?",
                    (match, max(limit, 0)),
                ) as cursor:
                    rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            logger.warning("Command search failed, falling back to recent commands: %s", e)
            return await self.list_recent(limit)

        return [_row_to_command(row) for row in rows]
