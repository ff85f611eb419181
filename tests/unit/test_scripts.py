"""Unit tests for the sweep.py and transfer.py entry points."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import sweep
import transfer
from bzzdrain.drain import DrainReport
from bzzdrain.exceptions import ConfigError, InsufficientFunds
from tests.conftest import DEST_ADDRESS, RESCUE_KEY, SENDER_ADDRESS, SENDER_KEY


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sweep, "load_dotenv", lambda *a, **k: False)
    monkeypatch.setattr(transfer, "load_dotenv", lambda *a, **k: False)
    for name in ("PRIVATE_KEY", "KEYSTORE", "KEYSTORE_PASSWORD", "RESCUE_PRIVATE_KEY", "DEST_WALLET", "CHAIN_ID"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("RPC_URL", "https://rpc.example.com")


class TestSweepScript:
    def test_runs_drain_with_env(self, monkeypatch) -> None:
        monkeypatch.setenv("PRIVATE_KEY", SENDER_KEY)
        monkeypatch.setenv("RESCUE_PRIVATE_KEY", RESCUE_KEY)
        monkeypatch.setenv("DEST_WALLET", DEST_ADDRESS)
        report = DrainReport(address=SENDER_ADDRESS, to=DEST_ADDRESS)

        with patch.object(sweep.DrainOrchestrator, "drain", AsyncMock(return_value=report)) as drain:
            assert sweep.main([]) == 0

        drain.assert_awaited_once_with(SENDER_KEY, DEST_ADDRESS, RESCUE_KEY)

    def test_missing_dest_wallet(self, monkeypatch) -> None:
        monkeypatch.setenv("PRIVATE_KEY", SENDER_KEY)
        assert sweep.main([]) == 1

    def test_missing_signing_key(self, monkeypatch) -> None:
        monkeypatch.setenv("DEST_WALLET", DEST_ADDRESS)
        assert sweep.main([]) == 1

    def test_keystore_is_unlocked(self, monkeypatch) -> None:
        monkeypatch.setenv("KEYSTORE", "wallet.json")
        monkeypatch.setenv("KEYSTORE_PASSWORD", "hunter2")
        unlocked = MagicMock(private_key=SENDER_KEY)
        with patch.object(sweep, "unlock_keystore", return_value=unlocked) as unlock:
            assert sweep.read_signing_key() == SENDER_KEY
        unlock.assert_called_once_with("wallet.json", "hunter2")

    def test_config_errors_exit_nonzero(self, monkeypatch) -> None:
        monkeypatch.setenv("PRIVATE_KEY", SENDER_KEY)
        monkeypatch.setenv("DEST_WALLET", DEST_ADDRESS)
        with patch.object(sweep, "load_config", side_effect=ConfigError("bad")):
            assert sweep.main([]) == 1

    def test_first_argument_is_config_path(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("PRIVATE_KEY", SENDER_KEY)
        monkeypatch.setenv("DEST_WALLET", DEST_ADDRESS)
        (tmp_path / "chiado.yml").write_text("network:\n  chain_id: 10200\n")
        report = DrainReport(address=SENDER_ADDRESS, to=DEST_ADDRESS)

        with patch.object(sweep.DrainOrchestrator, "drain", AsyncMock(return_value=report)):
            with patch.object(sweep, "load_config", wraps=sweep.load_config) as load:
                assert sweep.main([str(tmp_path / "chiado.yml")]) == 0

        path, overrides = load.call_args.args
        assert path == str(tmp_path / "chiado.yml")
        assert overrides["rpc_url"] == "https://rpc.example.com"


class TestTransferScript:
    def test_usage(self, capsys) -> None:
        assert transfer.main([]) == 1
        assert "Usage" in capsys.readouterr().out

    def test_bzz_amount_is_converted(self, monkeypatch) -> None:
        monkeypatch.setenv("PRIVATE_KEY", SENDER_KEY)
        monkeypatch.setenv("DEST_WALLET", DEST_ADDRESS)
        result = MagicMock(tx_hash="0xabc")
        with patch.object(transfer.ChainClient, "send_token", AsyncMock(return_value=result)) as send:
            assert transfer.main(["BZZ", "1.5"]) == 0
        send.assert_awaited_once_with(SENDER_KEY, DEST_ADDRESS, "15000000000000000")

    def test_xdai_amount_is_converted(self, monkeypatch) -> None:
        monkeypatch.setenv("PRIVATE_KEY", SENDER_KEY)
        monkeypatch.setenv("DEST_WALLET", DEST_ADDRESS)
        result = MagicMock(tx_hash="0xabc")
        with patch.object(transfer.ChainClient, "send_native", AsyncMock(return_value=result)) as send:
            assert transfer.main(["xdai", "0.2"]) == 0
        send.assert_awaited_once_with(SENDER_KEY, DEST_ADDRESS, "200000000000000000")

    def test_swap(self, monkeypatch) -> None:
        monkeypatch.setenv("PRIVATE_KEY", SENDER_KEY)
        result = MagicMock(tx_hash="0xabc")
        with patch.object(
            transfer.SwapExecutor, "swap_native_for_token", AsyncMock(return_value=result)
        ) as swap:
            assert transfer.main(["swap", "1", "0.5"]) == 0
        swap.assert_awaited_once_with(SENDER_KEY, "1000000000000000000", "5000000000000000")

    def test_failure_exits_nonzero(self, monkeypatch) -> None:
        monkeypatch.setenv("PRIVATE_KEY", SENDER_KEY)
        monkeypatch.setenv("DEST_WALLET", DEST_ADDRESS)
        with patch.object(
            transfer.ChainClient, "send_native", AsyncMock(side_effect=InsufficientFunds("broke"))
        ):
            assert transfer.main(["xdai", "100"]) == 1

    def test_bad_quantity(self, monkeypatch) -> None:
        monkeypatch.setenv("PRIVATE_KEY", SENDER_KEY)
        monkeypatch.setenv("DEST_WALLET", DEST_ADDRESS)
        assert transfer.main(["bzz", "lots"]) == 1

    def test_unknown_action(self, monkeypatch) -> None:
        monkeypatch.setenv("PRIVATE_KEY", SENDER_KEY)
        monkeypatch.setenv("DEST_WALLET", DEST_ADDRESS)
        assert transfer.main(["eth", "1"]) == 1

    def test_env_supplies_network_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("PRIVATE_KEY", SENDER_KEY)
        monkeypatch.setenv("DEST_WALLET", DEST_ADDRESS)
        monkeypatch.setenv("CHAIN_ID", "10200")
        result = MagicMock(tx_hash="0xabc")
        with patch.object(transfer.ChainClient, "send_native", AsyncMock(return_value=result)):
            with patch.object(transfer, "load_network", wraps=transfer.load_network) as load:
                assert transfer.main(["xdai", "1"]) == 0
        load.assert_called_once_with(
            overrides={"rpc_url": "https://rpc.example.com", "chain_id": "10200"}
        )
