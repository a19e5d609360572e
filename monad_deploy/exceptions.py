"""Exception hierarchy shared by every monad-deploy component."""

from __future__ import annotations

from enum import Enum


class MonadDeployError(Exception):
    """Base exception for compile/deploy/interact failures."""

    pass


class ConfigurationError(MonadDeployError):
    """Raised when a secret, RPC endpoint or artifact file is missing or malformed."""

    pass


class CompilationError(MonadDeployError):
    """Raised when the compiler reports errors or the contract is missing from its output."""

    def __init__(self, message: str, errors: list[str] | None = None, suggestion: str | None = None):
        super().__init__(message)
        self.errors = list(errors or [])
        self.suggestion = suggestion


class ValidationError(MonadDeployError, ValueError):
    """Raised for malformed addresses, non-positive amounts and similar bad input."""

    pass


class NotFoundError(MonadDeployError, FileNotFoundError):
    """Raised when an artifact lookup by name or address misses."""

    pass


class TransactionError(MonadDeployError):
    """Raised when sending a transaction or waiting for its receipt fails.

    ``transaction_hash`` is kept whenever the transaction was broadcast before
    the failure so the caller can look it up on an explorer.
    """

    def __init__(self, message: str, transaction_hash: str | None = None):
        super().__init__(message)
        self.transaction_hash = transaction_hash


class CallErrorKind(str, Enum):
    """Closed set of causes for a failed contract read or write."""

    NOT_OWNER = "not_owner"
    UNAUTHORIZED = "unauthorized"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NONCE = "nonce"
    REVERTED = "reverted"
    NETWORK = "network"
    UNKNOWN = "unknown"


class ContractCallError(TransactionError):
    """Raised by the interaction facade; ``kind`` tells callers why it failed."""

    def __init__(
        self,
        message: str,
        kind: CallErrorKind = CallErrorKind.UNKNOWN,
        transaction_hash: str | None = None,
    ):
        super().__init__(message, transaction_hash=transaction_hash)
        self.kind = kind
