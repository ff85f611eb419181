"""Keystore unlocking and address derivation via eth-account."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from eth_account import Account
from web3 import Web3

from .exceptions import DecryptionFailed, FileNotFound, InvalidPrivateKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnlockedAccount:
    private_key: str = field(repr=False)
    address: str


def load_account(private_key):
    """Return an eth-account LocalAccount, raising InvalidPrivateKey on bad input."""
    if not isinstance(private_key, (str, bytes)) or not private_key:
        raise InvalidPrivateKey("Private key must be a non-empty hex string or 32 bytes")
    try:
        return Account.from_key(private_key)
    except (ValueError, TypeError) as e:
        # do not echo the key back in the message
        raise InvalidPrivateKey("Malformed private key") from e


def derive_address(private_key) -> str:
    return load_account(private_key).address


def unlock_keystore(path, password: str) -> UnlockedAccount:
    """Decrypt a V3 keystore JSON file."""
    path = Path(path)
    try:
        with open(path, "rb") as keystore_file:
            raw = keystore_file.read()
    except FileNotFoundError as e:
        raise FileNotFound(f"Keystore not found: {path}") from e
    except OSError as e:
        raise DecryptionFailed(f"Could not read keystore {path}: {e.strerror}") from e

    try:
        keyfile = json.loads(raw.decode("utf-8"))
        key = Account.decrypt(keyfile, password)
    except (ValueError, KeyError, TypeError) as e:
        # wrong password surfaces as a MAC mismatch ValueError, bad bytes as UnicodeDecodeError
        raise DecryptionFailed(f"Could not decrypt keystore {path}") from e

    private_key = Web3.to_hex(key)
    address = Account.from_key(key).address
    logger.info("Unlocked keystore %s for %s", path, address)
    return UnlockedAccount(private_key=private_key, address=address)
