#!/usr/bin/env python3
"""Drain BZZ and xDAI from one wallet to DEST_WALLET.

Usage: python3 sweep.py [CONFIG_PATH]

Reads RPC_URL, DEST_WALLET, PRIVATE_KEY (or KEYSTORE and KEYSTORE_PASSWORD)
and optionally RESCUE_PRIVATE_KEY, CHAIN_ID and LOG_LEVEL from .env. Contract
addresses and drain thresholds come from CONFIG_PATH, default network.yml.
"""

import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from bzzdrain import ChainClient, DrainError, DrainOrchestrator, load_config, unlock_keystore
from bzzdrain.logging_setup import configure_logging

logger = logging.getLogger("sweep")


def network_overrides():
    return {"rpc_url": os.getenv("RPC_URL"), "chain_id": os.getenv("CHAIN_ID")}


def read_signing_key():
    private_key = os.getenv("PRIVATE_KEY", "").strip()
    if private_key:
        return private_key
    keystore = os.getenv("KEYSTORE", "").strip()
    if not keystore:
        raise DrainError("Please ensure PRIVATE_KEY or KEYSTORE is set in the .env file.")
    return unlock_keystore(keystore, os.getenv("KEYSTORE_PASSWORD", "")).private_key


async def sweep(config_path=None):
    load_dotenv()
    dest_wallet = os.getenv("DEST_WALLET", "").strip()
    if not dest_wallet:
        raise DrainError("Please ensure DEST_WALLET is set in the .env file.")
    network, policy = load_config(config_path, network_overrides())
    orchestrator = DrainOrchestrator(ChainClient(network), policy)
    report = await orchestrator.drain(
        read_signing_key(), dest_wallet, os.getenv("RESCUE_PRIVATE_KEY", "").strip() or None
    )
    for result in report.transactions:
        print(f"Transaction {result.tx_hash} in block {result.receipt['blockNumber']}")
    return report


# --- MAIN ---


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    config_path = argv[0] if argv else None
    try:
        report = asyncio.run(sweep(config_path))
    except DrainError as e:
        logger.error("Drain failed: %s", e)
        return 1
    print(f"Drained {report.address} to {report.to} ({len(report.transactions)} transactions)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
