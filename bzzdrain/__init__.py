"""Drain, transfer and swap BZZ / xDAI on Gnosis Chain."""

from .chain import ChainClient, TransactionResult
from .config import DrainPolicy, NetworkConfig, load_config, load_network
from .drain import DrainOrchestrator, DrainReport
from .exceptions import (
    BroadcastRejected,
    ConfigError,
    ConfirmationTimeout,
    DecryptionFailed,
    DrainError,
    FileNotFound,
    InsufficientFunds,
    InvalidAddress,
    InvalidNumberFormat,
    InvalidPrivateKey,
    RpcUnavailable,
    SlippageExceeded,
    TransactionReverted,
)
from .keys import UnlockedAccount, derive_address, unlock_keystore
from .swap import SwapExecutor
from .units import from_base_units, to_base_units, to_bzz, to_dai

__version__ = "0.1.0"
