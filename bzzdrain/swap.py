"""Swap xDAI for BZZ through a Uniswap-v2 style router."""
from __future__ import annotations

import logging
import time

from .chain import ChainClient, TransactionResult, as_amount, checksum
from .config import NetworkConfig
from .exceptions import BroadcastRejected, SlippageExceeded, TransactionReverted
from .keys import load_account
from .units import from_base_units

logger = logging.getLogger(__name__)

ROUTER_ABI = [
    {
        "inputs": [
            {"internalType": "uint256", "name": "amountOutMin", "type": "uint256"},
            {"internalType": "address[]", "name": "path", "type": "address[]"},
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "uint256", "name": "deadline", "type": "uint256"},
        ],
        "name": "swapExactETHForTokens",
        "outputs": [{"internalType": "uint256[]", "name": "amounts", "type": "uint256[]"}],
        "stateMutability": "payable",
        "type": "function",
    }
]

SLIPPAGE_MARKERS = ("INSUFFICIENT_OUTPUT_AMOUNT", "EXCESSIVE_INPUT_AMOUNT")


def current_deadline() -> int:
    # milliseconds, so the router never considers the swap expired
    return int(time.time() * 1000)


class SwapExecutor:
    def __init__(self, network: NetworkConfig, client: ChainClient | None = None):
        self.network = network
        self.client = client or ChainClient(network)

    @property
    def path(self) -> list[str]:
        return [checksum(self.network.wrapped_native_address), checksum(self.network.token_address)]

    async def swap_native_for_token(self, private_key, native_amount, min_token_out) -> TransactionResult:
        """Swap exactly native_amount wei of xDAI for at least min_token_out BZZ base units.

        Tokens are delivered to the signer. A router revert, or a mined
        receipt with status 0, is reported as SlippageExceeded.
        """
        account = load_account(private_key)
        native_amount, min_token_out = as_amount(native_amount), as_amount(min_token_out)

        async with self.client.connection() as w3:
            router = w3.eth.contract(address=checksum(self.network.router_address), abi=ROUTER_ABI)
            call = router.functions.swapExactETHForTokens(
                min_token_out, self.path, account.address, current_deadline()
            )
            logger.info(
                "Swapping %s xDAI for at least %s BZZ from %s",
                from_base_units(native_amount, self.network.native_decimals),
                from_base_units(min_token_out, self.network.token_decimals),
                account.address,
            )
            try:
                return await self.client.transact(
                    w3,
                    account,
                    call,
                    label="xDAI->BZZ swap",
                    overrides={"value": native_amount, "gas": self.network.swap_gas_limit},
                )
            except TransactionReverted as e:
                raise SlippageExceeded(str(e)) from e
            except BroadcastRejected as e:
                if any(marker in str(e) for marker in SLIPPAGE_MARKERS):
                    raise SlippageExceeded(str(e)) from e
                raise
