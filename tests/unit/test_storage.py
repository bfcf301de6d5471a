"""Tests for storage/sqlite.py."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from cerebral.core.errors import PersistenceError
from cerebral.models.command import AgentMessage
from cerebral.storage import get_command_store
from cerebral.storage.sqlite import SqliteCommandStore, build_match_query


class TestBuildMatchQuery:
    def test_quotes_terms(self):
        assert build_match_query("Build a Login page") == '"build" OR "a" OR "login" OR "page"'

    def test_strips_operators(self):
        assert build_match_query('auth* AND "jwt"') == '"auth" OR "and" OR "jwt"'

    def test_empty(self):
        assert build_match_query("  ?! ") == ""


class TestSqliteCommandStore:
    @pytest.mark.asyncio
    async def test_save_assigns_id_and_server_time(self, sqlite_store, sample_messages):
        stale = datetime(2001, 1, 1, tzinfo=timezone.utc)
        before = datetime.now(timezone.utc)
        command = await sqlite_store.save("Build a login page", sample_messages, timestamp=stale)

        assert command.id
        assert command.timestamp >= before
        assert command.agent_responses == sample_messages

    @pytest.mark.asyncio
    async def test_round_trip(self, sqlite_store, sample_messages):
        saved = await sqlite_store.save("Build a login page", sample_messages)
        [loaded] = await sqlite_store.list_all()
        assert loaded == saved

    @pytest.mark.asyncio
    async def test_newest_first(self, sqlite_store):
        for i in range(3):
            await sqlite_store.save(f"command {i}", [])
        listed = await sqlite_store.list_all()
        assert [c.transcript for c in listed] == ["command 2", "command 1", "command 0"]

    @pytest.mark.asyncio
    async def test_list_recent_limit(self, sqlite_store):
        for i in range(5):
            await sqlite_store.save(f"command {i}", [])
        recent = await sqlite_store.list_recent(2)
        assert [c.transcript for c in recent] == ["command 4", "command 3"]

    @pytest.mark.asyncio
    async def test_unique_ids(self, sqlite_store):
        a = await sqlite_store.save("same", [])
        b = await sqlite_store.save("same", [])
        assert a.id != b.id

    @pytest.mark.asyncio
    async def test_search_ranks_matches(self, sqlite_store):
        if not sqlite_store.fts_enabled:
            pytest.skip("SQLite built without FTS5")
        await sqlite_store.save("Build a login page", [AgentMessage(role="qa", message="Test login")])
        await sqlite_store.save("Add a shopping cart", [])
        await sqlite_store.save("Design the database schema", [])

        results = await sqlite_store.search("login form", limit=5)
        assert [c.transcript for c in results] == ["Build a login page"]

    @pytest.mark.asyncio
    async def test_search_matches_response_text(self, sqlite_store):
        if not sqlite_store.fts_enabled:
            pytest.skip("SQLite built without FTS5")
        await sqlite_store.save("Build the API", [AgentMessage(role="backend", message="Use PostgreSQL")])
        await sqlite_store.save("Style the header", [])

        results = await sqlite_store.search("postgresql")
        assert [c.transcript for c in results] == ["Build the API"]

    @pytest.mark.asyncio
    async def test_search_without_terms_lists_recent(self, sqlite_store):
        await sqlite_store.save("first", [])
        await sqlite_store.save("second", [])
        results = await sqlite_store.search("???", limit=1)
        assert [c.transcript for c in results] == ["second"]

    @pytest.mark.asyncio
    async def test_search_without_fts_lists_recent(self, sqlite_store):
        await sqlite_store.save("first", [])
        sqlite_store.fts_enabled = False
        results = await sqlite_store.search("first")
        assert [c.transcript for c in results] == ["first"]

    @pytest.mark.asyncio
    async def test_read_failure_is_persistence_error(self, tmp_path: Path):
        store = SqliteCommandStore(tmp_path / "never-initialized.db")
        with pytest.raises(PersistenceError):
            await store.list_all()

    @pytest.mark.asyncio
    async def test_save_failure_is_persistence_error(self, tmp_path: Path):
        store = SqliteCommandStore(tmp_path / "never-initialized.db")
        with pytest.raises(PersistenceError):
            await store.save("x", [])

    @pytest.mark.asyncio
    async def test_init_under_regular_file_is_persistence_error(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = SqliteCommandStore(blocker / "sub" / "commands.db")
        with pytest.raises(PersistenceError, match="Failed to initialize command store"):
            await store.init()

    @pytest.mark.asyncio
    async def test_init_on_directory_is_persistence_error(self, tmp_path: Path):
        with pytest.raises(PersistenceError, match="Failed to initialize command store"):
            await SqliteCommandStore(tmp_path).init()

    @pytest.mark.asyncio
    async def test_init_is_idempotent(self, sqlite_store, sample_messages):
        await sqlite_store.save("kept", sample_messages)
        await sqlite_store.init()
        assert len(await sqlite_store.list_all()) == 1

    @pytest.mark.asyncio
    async def test_timestamps_are_utc(self, sqlite_store):
        command = await sqlite_store.save("x", [])
        [loaded] = await sqlite_store.list_all()
        assert loaded.timestamp.utcoffset() == timedelta(0)
        assert loaded.timestamp == command.timestamp


class TestGetCommandStore:
    def test_expands_user_path(self, base_config):
        base_config["storage"]["path"] = "~/cerebral-test/commands.db"
        store = get_command_store(base_config)
        assert isinstance(store, SqliteCommandStore)
        assert "~" not in str(store.db_path)
