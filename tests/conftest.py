"""Shared fixtures: accounts, configs and a fake AsyncWeb3."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from hexbytes import HexBytes

from bzzdrain.chain import ChainClient
from bzzdrain.config import DrainPolicy, NetworkConfig

# well-known development keys (hardhat / anvil accounts 0 and 1)
SENDER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
SENDER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
RESCUE_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
RESCUE_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
DEST_ADDRESS = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"

TX_HASH = HexBytes(b"\x11" * 32)


async def _resolve(value):
    if isinstance(value, BaseException):
        raise value
    return value


class FakeEth:
    def __init__(self, chain_id=100, gas_price=2_000_000_000, block_numbers=(123,)):
        self._chain_id = chain_id
        self._gas_price = gas_price
        self._block_numbers = iter(block_numbers)
        self.get_balance = AsyncMock(return_value=0)
        self.get_transaction_count = AsyncMock(return_value=7)
        self.estimate_gas = AsyncMock(return_value=21000)
        self.send_raw_transaction = AsyncMock(return_value=TX_HASH)
        self.wait_for_transaction_receipt = AsyncMock(
            return_value={"status": 1, "blockNumber": 123, "transactionHash": TX_HASH}
        )
        self.contract = MagicMock()

    @property
    def chain_id(self):
        return _resolve(self._chain_id)

    @property
    def gas_price(self):
        return _resolve(self._gas_price)

    @property
    def block_number(self):
        return _resolve(next(self._block_numbers))


class FakeWeb3:
    def __init__(self, connected=True, **eth_kwargs):
        self.eth = FakeEth(**eth_kwargs)
        self.is_connected = AsyncMock(return_value=connected)
        self.provider = MagicMock()
        self.provider.disconnect = AsyncMock()


def build_call_mock(extra: dict | None = None):
    """A contract function call whose build_transaction echoes params like web3 does."""

    async def build_transaction(params):
        built = {"to": "0xdBF3Ea6F5beE45c02255B2c26a16F300502F68da", "data": "0xa9059cbb", "value": 0}
        built.update(params)
        built.setdefault("gas", 65000)
        built.update(extra or {})
        return built

    call = MagicMock()
    call.build_transaction = AsyncMock(side_effect=build_transaction)
    return call


@pytest.fixture()
def network() -> NetworkConfig:
    return NetworkConfig(rpc_url="https://rpc.example.com", poll_latency=0, receipt_timeout=5)


@pytest.fixture()
def policy() -> DrainPolicy:
    return DrainPolicy()


@pytest.fixture()
def fake_web3() -> FakeWeb3:
    return FakeWeb3()


@pytest.fixture()
def client(network: NetworkConfig, fake_web3: FakeWeb3, monkeypatch) -> ChainClient:
    chain_client = ChainClient(network)
    monkeypatch.setattr(chain_client, "_make_web3", MagicMock(return_value=fake_web3))
    return chain_client
