"""Balance reads and signed transfers over a JSON-RPC endpoint.

Every public call opens its own AsyncWeb3 connection, waits until the node
answers for the configured chain, performs its request and disconnects.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from .config import NetworkConfig
from .exceptions import (
    BroadcastRejected,
    ConfirmationTimeout,
    InsufficientFunds,
    InvalidAddress,
    InvalidNumberFormat,
    RpcUnavailable,
    TransactionReverted,
)
from .keys import load_account
from .units import from_base_units

logger = logging.getLogger(__name__)

# Minimal ERC20 ABI for balanceOf and transfer
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "_to", "type": "address"},
            {"name": "_value", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
]

_CONNECTION_ERRORS = (Web3Exception, aiohttp.ClientError, asyncio.TimeoutError, OSError)


@dataclass(frozen=True)
class TransactionResult:
    """A broadcast transaction paired with its confirmed receipt."""

    transaction: dict
    receipt: Any

    @property
    def tx_hash(self) -> str:
        return self.transaction["hash"]


def checksum(address: str) -> str:
    try:
        return Web3.to_checksum_address(address)
    except (ValueError, TypeError) as e:
        raise InvalidAddress(f"Not a valid address: {address!r}") from e


def as_amount(value) -> int:
    """Base-unit amounts must already be integers (or integer strings)."""
    if isinstance(value, bool):
        raise InvalidNumberFormat(f"Not a base-unit amount: {value!r}")
    try:
        amount = int(value)
    except (TypeError, ValueError) as e:
        raise InvalidNumberFormat(f"Not a base-unit amount: {value!r}") from e
    if isinstance(value, float) and amount != value:
        raise InvalidNumberFormat(f"Not a base-unit amount: {value!r}")
    if amount < 0:
        raise InvalidNumberFormat(f"Negative amount: {value!r}")
    return amount


def translate_rpc_error(exc: Exception, action: str) -> RpcUnavailable:
    return RpcUnavailable(f"{action} failed: {type(exc).__name__}: {exc}")


def translate_send_error(exc: Exception, label: str) -> Exception:
    message = str(exc)
    if "insufficient funds" in message.lower():
        return InsufficientFunds(f"{label}: {message}")
    if isinstance(exc, TimeExhausted):
        return ConfirmationTimeout(f"{label}: {message}")
    if isinstance(exc, ContractLogicError):
        return BroadcastRejected(f"{label} reverted: {message}")
    return BroadcastRejected(f"{label}: {message}")


class ChainClient:
    def __init__(self, network: NetworkConfig):
        self.network = network

    def _make_web3(self) -> AsyncWeb3:
        return AsyncWeb3(AsyncHTTPProvider(self.network.rpc_url))

    @asynccontextmanager
    async def connection(self):
        """Yield a fresh AsyncWeb3 once the node is reachable on the expected chain."""
        w3 = self._make_web3()
        try:
            try:
                connected = await w3.is_connected()
                chain_id = await w3.eth.chain_id if connected else None
            except _CONNECTION_ERRORS as e:
                raise RpcUnavailable(f"Failed to connect to {self.network.rpc_url}: {e}") from e
            if not connected:
                raise RpcUnavailable(f"Failed to connect to the RPC endpoint {self.network.rpc_url}")
            if chain_id != self.network.chain_id:
                raise RpcUnavailable(
                    f"{self.network.rpc_url} reports chain {chain_id}, expected {self.network.chain_id}"
                )
            yield w3
        finally:
            await w3.provider.disconnect()

    def token_contract(self, w3: AsyncWeb3):
        return w3.eth.contract(address=checksum(self.network.token_address), abi=ERC20_ABI)

    async def get_native_balance(self, address: str) -> int:
        address = checksum(address)
        async with self.connection() as w3:
            try:
                balance = await w3.eth.get_balance(address)
            except _CONNECTION_ERRORS as e:
                raise translate_rpc_error(e, f"xDAI balance of {address}") from e
        logger.debug(
            "%s holds %s xDAI", address, from_base_units(balance, self.network.native_decimals)
        )
        return int(balance)

    async def get_token_balance(self, address: str) -> int:
        address = checksum(address)
        async with self.connection() as w3:
            try:
                balance = await self.token_contract(w3).functions.balanceOf(address).call()
            except _CONNECTION_ERRORS as e:
                raise translate_rpc_error(e, f"BZZ balance of {address}") from e
        logger.debug(
            "%s holds %s BZZ", address, from_base_units(balance, self.network.token_decimals)
        )
        return int(balance)

    async def send_native(self, private_key, to: str, amount) -> TransactionResult:
        account = load_account(private_key)
        to, amount = checksum(to), as_amount(amount)
        async with self.connection() as w3:
            tx = {"to": to, "value": amount}
            logger.info(
                "Sending %s xDAI from %s to %s",
                from_base_units(amount, self.network.native_decimals),
                account.address,
                to,
            )
            return await self.transact(w3, account, tx, label="xDAI transfer")

    async def send_token(self, private_key, to: str, amount) -> TransactionResult:
        account = load_account(private_key)
        to, amount = checksum(to), as_amount(amount)
        async with self.connection() as w3:
            call = self.token_contract(w3).functions.transfer(to, amount)
            logger.info(
                "Sending %s BZZ from %s to %s",
                from_base_units(amount, self.network.token_decimals),
                account.address,
                to,
            )
            return await self.transact(w3, account, call, label="BZZ transfer")

    async def transact(self, w3: AsyncWeb3, account, tx, label: str, overrides: dict | None = None) -> TransactionResult:
        """Price, sign, broadcast and confirm a plain tx dict or a contract function call."""
        try:
            params = {
                "from": account.address,
                "nonce": await w3.eth.get_transaction_count(account.address),
                "gasPrice": await w3.eth.gas_price,
                "chainId": self.network.chain_id,
            }
            params.update(overrides or {})
            if isinstance(tx, dict):
                params.update(tx)
                if "gas" not in params:
                    params["gas"] = await w3.eth.estimate_gas(params)
            else:
                # contract call; build_transaction estimates gas when not given
                params = dict(await tx.build_transaction(params))
            logger.debug(
                "%s details: nonce=%s, gas=%s, gasPrice=%s",
                label, params["nonce"], params["gas"], params["gasPrice"],
            )
            signed = account.sign_transaction(params)
            tx_hash = await w3.eth.send_raw_transaction(signed.raw_transaction)
        except (Web3Exception, ValueError) as e:
            raise translate_send_error(e, label) from e
        except _CONNECTION_ERRORS as e:
            raise translate_rpc_error(e, label) from e

        transaction = dict(params, hash=Web3.to_hex(tx_hash))
        logger.info("%s sent! TX hash: %s", label, transaction["hash"])
        receipt = await self.wait_for_confirmation(w3, tx_hash, label)
        return TransactionResult(transaction=transaction, receipt=receipt)

    async def wait_for_confirmation(self, w3: AsyncWeb3, tx_hash, label: str):
        network = self.network
        try:
            receipt = await w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=network.receipt_timeout, poll_latency=network.poll_latency
            )
        except TimeExhausted as e:
            raise ConfirmationTimeout(f"{label} {Web3.to_hex(tx_hash)} not mined: {e}") from e
        except _CONNECTION_ERRORS as e:
            raise translate_rpc_error(e, f"{label} {Web3.to_hex(tx_hash)} receipt") from e

        if receipt["status"] != 1:
            raise TransactionReverted(
                f"{label} {Web3.to_hex(tx_hash)} reverted in block {receipt['blockNumber']}",
                receipt=receipt,
            )

        if network.confirmations > 1:
            await self._wait_for_depth(w3, receipt["blockNumber"], tx_hash, label)

        logger.info("%s succeeded in block %s.", label, receipt["blockNumber"])
        return receipt

    async def _wait_for_depth(self, w3: AsyncWeb3, block_number: int, tx_hash, label: str) -> None:
        network = self.network
        target = block_number + network.confirmations - 1
        loop = asyncio.get_running_loop()
        deadline = loop.time() + network.receipt_timeout
        while True:
            try:
                current = await w3.eth.block_number
            except _CONNECTION_ERRORS as e:
                raise translate_rpc_error(e, f"{label} {Web3.to_hex(tx_hash)} block height") from e
            if current >= target:
                return
            if loop.time() >= deadline:
                raise ConfirmationTimeout(
                    f"{label} {Web3.to_hex(tx_hash)} did not reach "
                    f"{network.confirmations} confirmations"
                )
            await asyncio.sleep(network.poll_latency)
