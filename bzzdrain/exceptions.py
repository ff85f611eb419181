"""Error taxonomy raised by bzzdrain.

Every failure propagates to the caller; nothing in the package retries.
"""


class DrainError(Exception):
    """Base class for all bzzdrain errors."""


class ConfigError(DrainError):
    pass


class InvalidNumberFormat(DrainError, ValueError):
    pass


class FileNotFound(DrainError, FileNotFoundError):
    pass


class DecryptionFailed(DrainError):
    pass


class InvalidPrivateKey(DrainError, ValueError):
    pass


class RpcUnavailable(DrainError):
    """The node never answered, or answered for the wrong chain."""


class InsufficientFunds(DrainError):
    pass


class BroadcastRejected(DrainError):
    pass


class TransactionReverted(BroadcastRejected):
    """Mined, but the receipt reports status 0."""

    def __init__(self, message, receipt=None):
        super().__init__(message)
        self.receipt = receipt


class ConfirmationTimeout(DrainError):
    pass


class SlippageExceeded(BroadcastRejected):
    pass


class InvalidAddress(DrainError, ValueError):
    pass
