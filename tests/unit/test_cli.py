"""Tests for the guildkeeper command line."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from guildkeeper.__main__ import create_parser, main
from guildkeeper.gateway.session import StartupError


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DISCORD_TOKEN", raising=False)


class TestParser:
    """Argument parsing."""

    def test_global_options(self):
        """Should accept the global options before the command."""
        args = create_parser().parse_args(["--log-level", "DEBUG", "--env-file", "x.env", "run"])

        assert args.log_level == "DEBUG"
        assert str(args.env_file) == "x.env"
        assert args.command == "run"

    def test_version(self, capsys):
        """Should print the version and exit."""
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["--version"])

        assert exc_info.value.code == 0
        assert "GuildKeeper" in capsys.readouterr().out


class TestCommands:
    """Subcommand behaviour and exit codes."""

    def test_no_command_prints_help(self, capsys):
        """Should print help and exit 0 without a command."""
        assert main([]) == 0
        assert "usage: guildkeeper" in capsys.readouterr().out

    def test_tools_prints_catalogue(self, capsys):
        """Should print the tool catalogue as JSON."""
        assert main(["tools"]) == 0

        catalogue = json.loads(capsys.readouterr().out)
        assert len(catalogue) == 14
        assert catalogue[0]["name"] == "send-message"
        assert "input_schema" in catalogue[0]

    def test_tools_names_only(self, capsys):
        """Should print only tool names with --names-only."""
        assert main(["tools", "--names-only"]) == 0

        names = capsys.readouterr().out.split()
        assert names[-1] == "get-role-member-count"

    def test_config(self):
        """Should print the effective configuration."""
        assert main(["config"]) == 0

    def test_run_without_token_fails(self):
        """Should exit 1 when no token is configured."""
        assert main(["run"]) == 1

    def test_run_startup_error_exits_1(self, monkeypatch):
        """Should exit 1 when the session fails to start."""
        monkeypatch.setenv("DISCORD_TOKEN", "t")

        with patch("guildkeeper.server.serve", AsyncMock(side_effect=StartupError("boom"))):
            assert main(["run"]) == 1

    def test_run_returns_0_after_clean_shutdown(self, monkeypatch):
        """Should exit 0 after a clean shutdown."""
        monkeypatch.setenv("DISCORD_TOKEN", "t")

        with patch("guildkeeper.server.serve", AsyncMock(return_value=None)) as serve:
            assert main(["run"]) == 0
        serve.assert_awaited_once()
