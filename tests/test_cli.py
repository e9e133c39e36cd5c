"""Tests for the SuiKit CLI, with the client's session replaced by a fake."""
import logging

import pytest
import requests

import cli
from conftest import FakeSession
from sui_client import SuiClient


@pytest.fixture
def fake_session(monkeypatch):
    session = FakeSession()
    monkeypatch.setattr(
        cli, "make_client",
        lambda config: SuiClient(config.rpc_url, timeout=config.timeout, session=session),
    )
    return session


def test_balance(fake_session, capsys):
    fake_session.routes["suix_getBalance"] = {"totalBalance": "5000000000"}
    cli.main(["--rpc", "https://node", "balance", "0xabc"])
    out = capsys.readouterr().out
    assert "Balance: 5.0" in out
    assert fake_session.urls == ["https://node"]


def test_rpc_failure_exits_nonzero(fake_session, capsys):
    fake_session.routes["sui_getObject"] = requests.ConnectionError("refused")
    with pytest.raises(SystemExit) as exc:
        cli.main(["--rpc", "https://node", "object", "0x5"])
    assert exc.value.code == 1
    assert "Error:" in capsys.readouterr().out


def test_latest_checkpoint(fake_session, capsys):
    fake_session.routes["sui_getLatestCheckpointSequenceNumber"] = "77"
    fake_session.routes["sui_getCheckpoint"] = {"sequenceNumber": "77"}
    cli.main(["--rpc", "https://node", "checkpoint"])
    assert "Latest checkpoint: 77" in capsys.readouterr().out
    assert fake_session.requests[-1]["params"] == ["77"]


def test_health(fake_session):
    fake_session.routes["sui_getLatestCheckpointSequenceNumber"] = "1"
    with pytest.raises(SystemExit) as exc:
        cli.main(["--rpc", "https://node", "health"])
    assert exc.value.code == 0


def test_publish_config(tmp_path, capsys):
    cli.main(["publish-config", "--dir", str(tmp_path)])
    assert (tmp_path / "sui.json").exists()


def test_unreadable_config_exits_nonzero(tmp_path, capsys, monkeypatch):
    monkeypatch.delenv("SUI_RPC_TIMEOUT", raising=False)
    path = tmp_path / "sui.json"
    path.write_bytes(b'{"rpc_url": "\xff\xfe"}')
    with pytest.raises(SystemExit) as exc:
        cli.main(["--config", str(path), "gas-price"])
    assert exc.value.code == 1
    assert "Error:" in capsys.readouterr().out


def test_verbose_logs_at_debug():
    parser = cli.build_parser()
    assert cli.log_level(parser.parse_args(["-v", "health"])) == logging.DEBUG
    assert cli.log_level(parser.parse_args(["health"])) == logging.WARNING
