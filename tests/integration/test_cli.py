"""Integration tests for the loreguard CLI."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner

from loreguard.cli.main import cli

CONFIG_TOML = """\
[access]
admin_handles = ["root"]

[botmakers]
alice = ["$$-bob-notes"]
"""


@pytest.fixture(autouse=True)
def _isolated_logging() -> Iterator[None]:
    yield
    logger = logging.getLogger("loreguard")
    for handler in list(logger.handlers):
        if getattr(handler, "_loreguard", False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def env(tmp_path: Path) -> dict[str, str]:
    cfg = tmp_path / "config.toml"
    cfg.write_text(CONFIG_TOML, encoding="utf-8")
    return {
        "LOREGUARD_CONFIG": str(cfg),
        "LOREGUARD_TRACE_PATH": str(tmp_path / "trace.jsonl"),
    }


# ---------------------------------------------------------------------------
# loreguard check
# ---------------------------------------------------------------------------


class TestCheck:
    def test_own_lorebook_allowed(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["check", "alice", "$$-alice-notes"], env=env)
        assert result.exit_code == 0, result.output
        assert "ALLOWED" in result.output

    def test_other_lorebook_denied(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["check", "bob", "$$-alice-notes", "--write"], env=env)
        assert result.exit_code == 5
        assert "DENIED" in result.output

    def test_botmaker_from_config(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["check", "alice", "$$-bob-notes", "--json"], env=env)
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["allowed"] is True
        assert data["rule"] == "botmaker_allowed"

    def test_forced_botmaker_without_grant(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(
            cli, ["check", "eve", "$$-bob-notes", "--botmaker", "--json"], env=env
        )
        assert result.exit_code == 5
        assert json.loads(result.output)["rule"] == "botmaker_not_listed"

    def test_configured_admin_handle(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["check", "root", "secret#hidden#book"], env=env)
        assert result.exit_code == 0, result.output

    def test_admin_flag(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["check", "eve", "secret#hidden#book", "--admin"], env=env)
        assert result.exit_code == 0, result.output
        assert "admin_override" in result.output

    def test_explain(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["check", "eve", "global-lore", "--explain"], env=env)
        assert result.exit_code == 0, result.output
        assert "[MATCH]" in result.output
        assert "global_resource" in result.output

    def test_empty_name_rejected(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["check", "eve", ""], env=env)
        assert result.exit_code == 1
        assert "ALLOWED" not in result.output

    def test_whitespace_name_rejected(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["check", "eve", "   "], env=env)
        assert result.exit_code == 1

    def test_rejected_name_is_not_traced(self, runner: CliRunner, env: dict[str, str]) -> None:
        runner.invoke(cli, ["check", "eve", ""], env=env)
        result = runner.invoke(cli, ["trace", "tail", "--json"], env=env)
        assert json.loads(result.output) == []

    def test_explain_records_one_decision(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["check", "alice", "$$-bob-notes", "--explain"], env=env)
        assert result.exit_code == 0, result.output
        assert "botmaker_allowed" in result.output
        tail = runner.invoke(cli, ["trace", "tail", "--json"], env=env)
        assert len(json.loads(tail.output)) == 1

    def test_decisions_are_traced(
        self, runner: CliRunner, env: dict[str, str], tmp_path: Path
    ) -> None:
        runner.invoke(cli, ["check", "alice", "global-lore"], env=env)
        runner.invoke(cli, ["check", "alice", "$$-carol-x"], env=env)
        result = runner.invoke(cli, ["trace", "tail", "--json"], env=env)
        assert result.exit_code == 0, result.output
        entries = json.loads(result.output)
        assert [e["resource_name"] for e in entries] == ["global-lore", "$$-carol-x"]

    def test_works_without_config_file(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(
            cli,
            ["check", "eve", "global-lore"],
            env={"LOREGUARD_CONFIG": str(tmp_path / "missing.toml")},
        )
        assert result.exit_code == 0, result.output

    def test_broken_config_exits_2(self, runner: CliRunner, tmp_path: Path) -> None:
        cfg = tmp_path / "config.toml"
        cfg.write_text('[logging]\nlevel = "LOUD"\n', encoding="utf-8")
        result = runner.invoke(
            cli, ["check", "eve", "global-lore"], env={"LOREGUARD_CONFIG": str(cfg)}
        )
        assert result.exit_code == 2

    def test_config_option(self, runner: CliRunner, tmp_path: Path) -> None:
        cfg = tmp_path / "custom.toml"
        cfg.write_text(CONFIG_TOML, encoding="utf-8")
        result = runner.invoke(
            cli,
            ["--config", str(cfg), "check", "alice", "$$-bob-notes"],
            env={"LOREGUARD_TRACE_PATH": str(tmp_path / "trace.jsonl")},
        )
        assert result.exit_code == 0, result.output


# ---------------------------------------------------------------------------
# loreguard import-check / permissions
# ---------------------------------------------------------------------------


class TestImportCheck:
    def test_own_prefix(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["import-check", "alice", "$$-alice-world"], env=env)
        assert result.exit_code == 0, result.output
        assert "may import" in result.output

    def test_foreign_prefix(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["import-check", "alice", "$$-bob-world"], env=env)
        assert result.exit_code == 5
        assert "may not import" in result.output

    def test_admin_foreign_prefix(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["import-check", "root", "$$-bob-world"], env=env)
        assert result.exit_code == 0, result.output

    def test_empty_name_rejected(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["import-check", "eve", ""], env=env)
        assert result.exit_code == 1
        assert "may import" not in result.output


class TestPermissions:
    def test_json(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["permissions", "alice", "--json"], env=env)
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "isBotmaker": True,
            "allowedBooks": ["$$-bob-notes"],
            "userHandle": "alice",
        }

    def test_rich(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["permissions", "alice"], env=env)
        assert result.exit_code == 0, result.output
        assert "$$-bob-notes" in result.output


# ---------------------------------------------------------------------------
# loreguard trace / config
# ---------------------------------------------------------------------------


class TestTrace:
    def test_empty(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["trace", "tail"], env=env)
        assert result.exit_code == 0, result.output
        assert "No decisions recorded yet" in result.output

    def test_table(self, runner: CliRunner, env: dict[str, str]) -> None:
        runner.invoke(cli, ["check", "alice", "global-lore"], env=env)
        result = runner.invoke(cli, ["trace", "tail", "-n", "5"], env=env)
        assert result.exit_code == 0, result.output
        assert "Access decisions" in result.output

    def test_filter_by_handle_and_outcome(self, runner: CliRunner, env: dict[str, str]) -> None:
        runner.invoke(cli, ["check", "alice", "global-lore"], env=env)
        runner.invoke(cli, ["check", "bob", "$$-alice-notes"], env=env)
        runner.invoke(cli, ["check", "alice", "$$-carol-x"], env=env)
        result = runner.invoke(
            cli, ["trace", "tail", "--handle", "alice", "--denied", "--json"], env=env
        )
        assert result.exit_code == 0, result.output
        assert [e["resource_name"] for e in json.loads(result.output)] == ["$$-carol-x"]


class TestConfigCommands:
    def test_validate_ok(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["config", "validate"], env=env)
        assert result.exit_code == 0, result.output
        assert "Config is valid" in result.output

    def test_validate_missing(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(
            cli, ["config", "validate"], env={"LOREGUARD_CONFIG": str(tmp_path / "x.toml")}
        )
        assert result.exit_code == 2

    def test_validate_bad_allow_list(
        self, runner: CliRunner, env: dict[str, str], tmp_path: Path
    ) -> None:
        env = {**env, "LOREGUARD_ALLOW_LIST_FILE": str(tmp_path / "missing.yaml")}
        result = runner.invoke(cli, ["config", "validate"], env=env)
        assert result.exit_code == 2
        assert "validation failed" in result.output

    def test_show_json(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["config", "show", "--json"], env=env)
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["access"]["admin_handles"] == ["root"]
        assert data["botmakers"] == {"alice": ["$$-bob-notes"]}

    def test_show_rich(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(cli, ["config", "show"], env=env)
        assert result.exit_code == 0, result.output
        assert "[access]" in result.output


class TestVersion:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "loreguard" in result.output
