#!/usr/bin/env python3
"""Send BZZ or xDAI to DEST_WALLET, or swap xDAI for BZZ"""

import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from bzzdrain import ChainClient, DrainError, SwapExecutor, load_network, to_bzz, to_dai
from bzzdrain.logging_setup import configure_logging

logger = logging.getLogger("transfer")

USAGE = "Usage: python3 transfer.py <bzz|xdai|swap> <QUANTITY> [MIN_BZZ_OUT]"


def require_env(name):
    value = os.getenv(name, "").strip()
    if not value:
        raise DrainError(f"Please ensure {name} is set in the .env file.")
    return value


def network_overrides():
    return {"rpc_url": os.getenv("RPC_URL"), "chain_id": os.getenv("CHAIN_ID")}


async def run(action, quantity, min_out="0"):
    load_dotenv()
    network = load_network(overrides=network_overrides())
    private_key = require_env("PRIVATE_KEY")

    if action == "swap":
        executor = SwapExecutor(network)
        return await executor.swap_native_for_token(private_key, to_dai(quantity), to_bzz(min_out))

    client = ChainClient(network)
    dest_wallet = require_env("DEST_WALLET")
    if action == "bzz":
        return await client.send_token(private_key, dest_wallet, to_bzz(quantity))
    if action == "xdai":
        return await client.send_native(private_key, dest_wallet, to_dai(quantity))
    raise DrainError(f"Unknown action {action!r}. {USAGE}")


# --- MAIN ---


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) < 2:
        print(USAGE)
        return 1

    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    action, quantity = argv[0].lower(), argv[1]
    min_out = argv[2] if len(argv) > 2 else "0"
    try:
        result = asyncio.run(run(action, quantity, min_out))
    except DrainError as e:
        logger.error("%s failed: %s", action, e)
        return 1
    print(f"Transaction succeeded! TX hash: {result.tx_hash}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
