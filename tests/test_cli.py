"""Tests for the command line interface."""
import json

import pytest
from unittest.mock import Mock
from structlog.testing import capture_logs
from click.testing import CliRunner

from cache.core import MemoryCache
from resolver import cli as cli_module
from resolver.engine import Resolver
from resolver.service import ResolverService

from conftest import make_transaction, txhex, txid


@pytest.fixture
def runner(monkeypatch, chain):
    monkeypatch.setattr(cli_module, "configure_logging", Mock())
    monkeypatch.setattr(cli_module, "build_resolver",
                        lambda: ResolverService(Resolver(chain, cache=MemoryCache())))
    # Keep log lines out of the command output
    with capture_logs():
        yield CliRunner()


def test_get_transaction(runner, transactions):
    tx = transactions[0]

    result = runner.invoke(cli_module.cli, ["get-transaction", "--id", txid(tx), "--network", "main"])

    assert result.exit_code == 0
    assert json.loads(result.output.strip()) == {"id": txid(tx), "transaction": txhex(tx)}


def test_get_transactions_from_block(runner, chain, transactions):
    args = ["get-transaction", "--network", "main", "--block", "B1"]
    for tx in transactions:
        args += ["--id", txid(tx)]

    result = runner.invoke(cli_module.cli, args)

    assert result.exit_code == 0
    lines = [json.loads(line) for line in result.output.strip().splitlines()]
    assert [line["transaction"] for line in lines] == [txhex(tx) for tx in transactions]
    assert chain.fetch_block.await_count == 1


def test_missing_transaction_exits_nonzero(runner):
    absent = make_transaction(99)

    result = runner.invoke(
        cli_module.cli,
        ["get-transaction", "--id", txid(absent), "--network", "main", "--block", "B1", "--no-cache"]
    )

    assert result.exit_code == 1
    assert '"error": "NotFound"' in result.output


@pytest.mark.parametrize("args,json_output", [
    ([], True),
    (["--log-format", "json"], True),
    (["--log-format", "console"], False),
])
def test_log_format(runner, transactions, args, json_output):
    tx = transactions[0]

    result = runner.invoke(cli_module.cli, args + ["get-transaction", "--id", txid(tx), "--network", "main"])

    assert result.exit_code == 0
    cli_module.configure_logging.assert_called_once()
    assert cli_module.configure_logging.call_args.kwargs == {"json_output": json_output}
