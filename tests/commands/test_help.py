"""Tests for CLI help, version and --examples."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from hivemoji import __version__
from hivemoji.cli import cli

EXAMPLES_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["sniff", "--examples"], ["hivemoji sniff party.gif"]),
    (["build", "--examples"], ["--fallback party.png", "--delete"]),
    (["resolve", "--examples"], ["--text", "--all"]),
    (["cache", "--examples"], ["hivemoji cache clear"]),
    (["cache", "clear", "--examples"], ["hivemoji cache clear alice"]),
]


@pytest.mark.usefixtures("_isolated_root")
class TestHelp:
    def test_root_help_lists_commands(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("sniff", "build", "resolve", "cache"):
            assert name in result.output

    def test_bare_invocation_prints_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "Usage" in result.output

    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    @pytest.mark.parametrize(("args", "keywords"), EXAMPLES_COMMANDS)
    def test_examples(self, cli_runner: CliRunner, args: list[str], keywords: list[str]) -> None:
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 0, result.output
        assert "Examples for" in result.output
        for keyword in keywords:
            assert keyword in result.output
