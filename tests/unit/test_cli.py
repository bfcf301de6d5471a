"""Tests for CLI entry points."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from cerebral.cli.main import cerebral_cli
from cerebral.core.orchestrator import AgentOrchestrator, OrchestratorSettings
from cerebral.models.provider import CompletionResult

from fakes import SAMPLE_RESULTS, FakeProvider, FakeSearch


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "cerebral.yaml"
    path.write_text(
        f"storage:\n  path: {tmp_path / 'commands.db'}\nspeech:\n  enabled: false\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def patched_orchestrator(fake_provider):
    def _from_config(config, store=None):
        return AgentOrchestrator(
            provider=fake_provider,
            search_client=FakeSearch(SAMPLE_RESULTS),
            speech_client=None,
            store=store,
            settings=OrchestratorSettings.from_config(config),
        )

    with patch.object(AgentOrchestrator, "from_config", side_effect=_from_config):
        yield


class TestAsk:
    def test_full_turn(self, config_file, patched_orchestrator, fake_provider):
        runner = CliRunner()
        result = runner.invoke(cerebral_cli, ["--config", str(config_file), "ask", "Build a todo app"])
        assert result.exit_code == 0, result.output
        assert "ARCHITECT" in result.output
        assert "qa says hi" in result.output
        assert "Saved as" in result.output
        assert len(fake_provider.calls) == 4

    def test_no_save(self, config_file, patched_orchestrator):
        runner = CliRunner()
        result = runner.invoke(
            cerebral_cli, ["--config", str(config_file), "ask", "Build a todo app", "--no-save"]
        )
        assert result.exit_code == 0
        assert "Saved as" not in result.output

    def test_research_then_apply(self, config_file, patched_orchestrator, fake_provider, tmp_path):
        research_file = tmp_path / "research.json"
        runner = CliRunner()
        args = ["--config", str(config_file), "ask", "What is the best way to add auth?"]

        first = runner.invoke(cerebral_cli, args + ["--research-file", str(research_file)])
        assert first.exit_code == 0, first.output
        assert research_file.exists()
        assert json.loads(research_file.read_text(encoding="utf-8"))["results"][0]["title"] == "OAuth Guide"
        assert fake_provider.calls == []

        second = runner.invoke(
            cerebral_cli, args + ["--research-file", str(research_file), "--apply-research"]
        )
        assert second.exit_code == 0, second.output
        assert len(fake_provider.calls) == 4
        assert "RESEARCH FINDINGS" in fake_provider.calls[0]["prompt"]

    def test_apply_research_without_file(self, config_file, tmp_path):
        runner = CliRunner()
        result = runner.invoke(
            cerebral_cli,
            [
                "--config",
                str(config_file),
                "ask",
                "Build it",
                "--apply-research",
                "--research-file",
                str(tmp_path / "missing.json"),
            ],
        )
        assert result.exit_code == 2

    def test_demo_mode(self, config_file, patched_orchestrator, fake_provider):
        runner = CliRunner()
        result = runner.invoke(cerebral_cli, ["--config", str(config_file), "ask", "Build it", "--demo"])
        assert result.exit_code == 0
        assert all(call["max_output_tokens"] == 1500 for call in fake_provider.calls)

    def test_model_failure_exits_nonzero(self, config_file, patched_orchestrator, fake_provider):
        fake_provider.result = CompletionResult(success=False, error="500 | boom")
        runner = CliRunner()
        result = runner.invoke(cerebral_cli, ["--config", str(config_file), "ask", "Build it"])
        assert result.exit_code == 1
        assert "ERROR" in result.output

    def test_unusable_store_still_runs_agents(self, tmp_path, patched_orchestrator, fake_provider):
        db_dir = tmp_path / "db-is-a-directory"
        db_dir.mkdir()
        config = tmp_path / "broken.yaml"
        config.write_text(f"storage:\n  path: {db_dir}\nspeech:\n  enabled: false\n", encoding="utf-8")

        runner = CliRunner()
        result = runner.invoke(cerebral_cli, ["--config", str(config), "ask", "Build a todo app"])

        assert result.exit_code == 0, result.output
        assert len(fake_provider.calls) == 4
        assert "qa says hi" in result.output
        assert "History not saved" in result.output


class TestHistory:
    def test_empty(self, config_file):
        runner = CliRunner()
        result = runner.invoke(cerebral_cli, ["--config", str(config_file), "history"])
        assert result.exit_code == 0
        assert "No commands stored yet" in result.output

    def test_after_ask(self, config_file, patched_orchestrator):
        runner = CliRunner()
        runner.invoke(cerebral_cli, ["--config", str(config_file), "ask", "Build a login page"])
        runner.invoke(cerebral_cli, ["--config", str(config_file), "ask", "Add a shopping cart"])

        result = runner.invoke(cerebral_cli, ["--config", str(config_file), "history", "--json"])
        assert result.exit_code == 0
        commands = json.loads(result.output)
        assert [c["transcript"] for c in commands] == ["Add a shopping cart", "Build a login page"]
        assert len(commands[0]["agentResponses"]) == 4

    def test_limit(self, config_file, patched_orchestrator):
        runner = CliRunner()
        for text in ("one", "two", "three"):
            runner.invoke(cerebral_cli, ["--config", str(config_file), "ask", f"Build {text}"])
        result = runner.invoke(cerebral_cli, ["--config", str(config_file), "history", "-n", "1", "--json"])
        assert [c["transcript"] for c in json.loads(result.output)] == ["Build three"]

    def test_unusable_store_exits_nonzero(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        config = tmp_path / "broken.yaml"
        config.write_text(f"storage:\n  path: {blocker / 'sub' / 'commands.db'}\n", encoding="utf-8")

        runner = CliRunner()
        result = runner.invoke(cerebral_cli, ["--config", str(config), "history"])

        assert result.exit_code == 1
        assert "ERROR" in result.output
        assert not isinstance(result.exception, OSError)


class TestServe:
    def test_serve_runs_uvicorn(self, config_file):
        runner = CliRunner()
        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(cerebral_cli, ["--config", str(config_file), "serve", "--port", "8123"])
        assert result.exit_code == 0, result.output
        assert mock_run.call_args.kwargs["port"] == 8123
        assert mock_run.call_args.kwargs["host"] == "0.0.0.0"
