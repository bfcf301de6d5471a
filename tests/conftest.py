"""Shared fixtures for Cerebral Voice tests."""

from __future__ import annotations

import copy
from pathlib import Path

import pytest
import pytest_asyncio
from fakes import SAMPLE_RESULTS, FakeProvider, FakeSearch, FakeSpeech, FakeStore

from cerebral.core.config import DEFAULT_CONFIG
from cerebral.core.orchestrator import AgentOrchestrator, OrchestratorSettings
from cerebral.models.command import AgentMessage
from cerebral.storage.sqlite import SqliteCommandStore


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep ambient keys and config files out of every test."""
    for var in (
        "CEREBRAL_CONFIG",
        "MOCK_BRAVE_SEARCH",
        "GEMINI_API_KEY",
        "ANTHROPIC_API_KEY",
        "OPENAI_API_KEY",
        "BRAVE_SEARCH_API_KEY",
        "MINIMAX_API_KEY",
        "MINIMAX_GROUP_ID",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def base_config(tmp_path: Path) -> dict:
    config = copy.deepcopy(DEFAULT_CONFIG)
    config["storage"]["path"] = str(tmp_path / "commands.db")
    return config


@pytest.fixture
def settings(base_config: dict) -> OrchestratorSettings:
    return OrchestratorSettings.from_config(base_config)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def search_client() -> FakeSearch:
    return FakeSearch(SAMPLE_RESULTS)


@pytest.fixture
def speech_client() -> FakeSpeech:
    return FakeSpeech()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def orchestrator(provider, search_client, speech_client, store, settings) -> AgentOrchestrator:
    return AgentOrchestrator(
        provider=provider,
        search_client=search_client,
        speech_client=speech_client,
        store=store,
        settings=settings,
    )


@pytest_asyncio.fixture
async def sqlite_store(tmp_path: Path) -> SqliteCommandStore:
    db = SqliteCommandStore(tmp_path / "data" / "commands.db")
    await db.init()
    return db


@pytest.fixture
def sample_messages() -> list[AgentMessage]:
    return [
        AgentMessage(role="architect", message="Use a layered design with a REST API."),
        AgentMessage(role="qa", message="Add integration tests for login."),
    ]
