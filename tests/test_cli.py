"""
Tests for the click command-line interface.
"""

from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from eth_explorer.cli import main
from eth_explorer.errors import FetchError
from eth_explorer.navigation import TransactionScreen


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config.yaml"


def invoke(runner, config_path, *args):
    return runner.invoke(main, ["--config", str(config_path), *args])


class TestOfflineCommands:
    """Commands that never touch the network."""

    def test_classify_valid(self, runner, config_path):
        result = invoke(runner, config_path, "classify", "0x1b4")

        assert result.exit_code == 0
        assert result.output.strip() == "Block #436"

    def test_classify_invalid(self, runner, config_path):
        result = invoke(runner, config_path, "classify", "not-valid!!")

        assert result.exit_code == 1
        assert "Invalid query" in result.output

    def test_namehash(self, runner, config_path):
        result = invoke(runner, config_path, "namehash", "eth")

        assert result.exit_code == 0
        assert result.output.strip() == (
            "0x93cdeb708b7545dc668eb9280176169d1c33cfd8ed6f04690a0bcc88a93fc4ae"
        )

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("a9059cbb", "transfer(address,uint256)"),
            ("0xa9059cbb", "transfer(address,uint256)"),
            ("0xdeadbeef", "Unknown function"),
            (
                "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef",
                "Transfer(address,address,uint256)",
            ),
            ("0x" + "00" * 32, "Unknown event"),
        ],
    )
    def test_selector(self, runner, config_path, value, expected):
        result = invoke(runner, config_path, "selector", value)

        assert result.exit_code == 0
        assert result.output.strip() == expected

    def test_selector_invalid_hex(self, runner, config_path):
        result = invoke(runner, config_path, "selector", "0xzz")

        assert result.exit_code == 1


class TestConfigCommands:
    """Commands that read or write the config file."""

    def test_set_rpc(self, runner, config_path):
        result = invoke(runner, config_path, "set-rpc", "http://node:8545")

        assert result.exit_code == 0
        assert f"RPC URL saved to {config_path}" in result.output
        assert yaml.safe_load(config_path.read_text())["rpc_url"] == "http://node:8545"

    def test_history_empty(self, runner, config_path):
        result = invoke(runner, config_path, "history")

        assert result.output.strip() == "No recent searches"

    def test_history_lists_most_recent_first(self, runner, config_path):
        config_path.write_text(yaml.safe_dump({"recent_searches": ["b.eth", "a.eth"]}))

        result = invoke(runner, config_path, "history")

        assert result.output.splitlines() == [" 1. b.eth", " 2. a.eth"]

    def test_history_clear(self, runner, config_path):
        config_path.write_text(yaml.safe_dump({"recent_searches": ["b.eth"]}))

        result = invoke(runner, config_path, "history", "--clear")

        assert result.output.strip() == "Search history cleared"
        assert yaml.safe_load(config_path.read_text())["recent_searches"] == []

    def test_invalid_config_file(self, runner, config_path):
        config_path.write_text("rpc_url: [unclosed")

        result = invoke(runner, config_path, "history")

        assert result.exit_code == 1


class TestShow:
    """Test the one-shot show command."""

    def test_invalid_query(self, runner, config_path):
        result = invoke(runner, config_path, "--rpc-url", "http://node:8545", "show", "???")

        assert result.exit_code == 1

    def test_missing_rpc_url(self, runner, config_path):
        result = invoke(runner, config_path, "show", "12345")

        assert result.exit_code == 1

    def test_fetch_error(self, runner, config_path):
        with patch(
            "eth_explorer.cli.screen_for_intent", side_effect=FetchError("block 12345 not found")
        ):
            result = invoke(
                runner, config_path, "--rpc-url", "http://node:8545", "show", "12345"
            )

        assert result.exit_code == 1

    def test_show_renders_and_records_search(self, runner, config_path, transaction_view):
        query = "0x" + "ab" * 32
        with patch(
            "eth_explorer.cli.screen_for_intent",
            return_value=TransactionScreen(transaction_view),
        ) as fetch:
            result = invoke(
                runner, config_path, "--rpc-url", "http://node:8545", "--no-ens", "show", query
            )

        assert result.exit_code == 0
        assert "Links 1/7" in result.output
        assert fetch.call_args.args[2] is False
        assert yaml.safe_load(config_path.read_text())["recent_searches"] == [query]
