"""Tests for the command line interface."""

import asyncio
from unittest.mock import patch

import pytest

from post_oracle import __main__ as cli
from post_oracle.core.events import OracleInitError
from post_oracle.ledger.base import DecisionStatus, LedgerDecision, LedgerEvent
from tests.fixtures.ledger import FakeLedger


@pytest.fixture
def ledger_command(fake_ledger: FakeLedger, mocker):
    mocker.patch.object(cli, "create_ledger", return_value=fake_ledger)
    return fake_ledger


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "Commands" in capsys.readouterr().out


def test_status_prints_threshold_and_record(ledger_command: FakeLedger, capsys):
    ledger_command.decisions["5"] = LedgerDecision(
        id="5",
        username="alice",
        status=DecisionStatus.APPROVED,
        similarity_score=12,
        most_similar_post_id="3",
        ipfs_cid="bafkcid",
    )

    assert cli.main(["status", "5"]) == 0

    out = capsys.readouterr().out
    assert "Threshold: 70%" in out
    assert "#5 APPROVED" in out
    assert "https://gateway.pinata.cloud/ipfs/bafkcid" in out
    assert ledger_command.closed


def test_approved_lists_only_approved(ledger_command: FakeLedger, capsys):
    ledger_command.decisions["1"] = LedgerDecision(id="1", status=DecisionStatus.APPROVED)
    ledger_command.decisions["2"] = LedgerDecision(id="2", status=DecisionStatus.REJECTED)

    assert cli.main(["approved"]) == 0

    out = capsys.readouterr().out
    assert "#1 APPROVED" in out
    assert "#2" not in out


def test_approved_without_results(ledger_command: FakeLedger, capsys):
    assert cli.main(["approved", "--limit", "5"]) == 0
    assert "No approved posts" in capsys.readouterr().out


def test_set_oracle_reports_transaction(ledger_command: FakeLedger, capsys):
    assert cli.main(["set-oracle", "--address", "0xNewOracle"]) == 0

    assert ledger_command.oracle == "0xNewOracle"
    assert "Oracle address set" in capsys.readouterr().out


def test_ledger_errors_exit_non_zero(ledger_command: FakeLedger, capsys):
    ledger_command.fail_reads = True

    assert cli.main(["status", "5"]) == 1
    assert "Error: similarityThreshold failed" in capsys.readouterr().err


def test_missing_configuration_exits_non_zero(capsys):
    with patch.object(
        cli, "create_ledger", side_effect=OracleInitError("CONTRACT_ADDRESS missing")
    ):
        assert cli.main(["approved"]) == 1

    assert "CONTRACT_ADDRESS missing" in capsys.readouterr().err


def test_format_decision_placeholders():
    line = cli.format_decision(LedgerDecision(id="4"))

    assert line.startswith("#4 PENDING")
    assert "cid=None" in line
    assert "at=-" in line


@pytest.mark.asyncio
async def test_monitor_prints_new_events(fake_ledger: FakeLedger, capsys):
    task = asyncio.create_task(cli.monitor(fake_ledger, poll_interval=0.01))
    await asyncio.sleep(0.02)

    fake_ledger.block = 1
    fake_ledger.outcomes.append(
        LedgerEvent(
            name="PostRejected",
            submission_id="8",
            block_number=1,
            args={"similarityScore": 91},
        )
    )
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    out = capsys.readouterr().out
    assert "Monitoring contract events from block 1" in out
    assert "[1] PostRejected post=8 similarityScore=91" in out


def test_serve_runs_uvicorn():
    with patch("uvicorn.run") as run:
        assert cli.main(["serve", "--port", "4000"]) == 0

    run.assert_called_once()
    assert run.call_args.args == ("post_oracle.main:app",)
    assert run.call_args.kwargs["port"] == 4000
