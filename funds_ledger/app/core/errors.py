"""Error taxonomy for the ledger.

Every error carries a machine-checkable ``kind`` and a stable ``message``
that is safe to show to callers. Storage exceptions are chained as
``__cause__`` and never copied into the message.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger errors."""

    kind = "LedgerError"
    message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


# Caller input errors, never retried -----------------------------------------
class InvalidAmount(LedgerError):
    """Raised when the amount is missing, non-integral or not strictly positive."""

    kind = "InvalidAmount"
    message = "Invalid amount"


class InvalidRequest(LedgerError):
    """Raised when the request body cannot be parsed into the expected shape."""

    kind = "InvalidRequest"
    message = "Invalid input format"


class InvalidRecipient(LedgerError):
    """Raised when the recipient identity is missing or blank."""

    kind = "InvalidRecipient"
    message = "Amount and recipient are required"


class SelfTransferRejected(LedgerError):
    kind = "SelfTransferRejected"
    message = "Cannot transfer to yourself"


# State errors, never retried -------------------------------------------------
class AccountNotFound(LedgerError):
    kind = "AccountNotFound"
    message = "Account not found"


class ActorAccountNotFound(AccountNotFound):
    kind = "ActorAccountNotFound"
    message = "Sender account not found"


class RecipientAccountNotFound(AccountNotFound):
    kind = "RecipientAccountNotFound"
    message = "Recipient account not found"


class AccountAlreadyExists(LedgerError):
    kind = "AccountAlreadyExists"
    message = "Account already exists"


# Business rule rejection -----------------------------------------------------
class InsufficientFunds(LedgerError):
    """Raised when the actor's balance cannot cover the transfer.

    This is the one error that intentionally reveals the current balance.
    """

    kind = "InsufficientFunds"
    message = "Insufficient balance"

    def __init__(self, current_balance: int) -> None:
        super().__init__()
        self.current_balance = current_balance


# Transient / infrastructure --------------------------------------------------
class TransferConflict(LedgerError):
    """Raised once storage contention outlasts the retry budget."""

    kind = "TransferConflict"
    message = "Transfer could not be completed due to concurrent activity, please retry"


class TransferTimeout(LedgerError):
    kind = "TransferTimeout"
    message = "Transfer timed out"


class StorageUnavailable(LedgerError):
    kind = "StorageUnavailable"
    message = "Service temporarily unavailable"


class Unauthenticated(LedgerError):
    """Raised when the upstream auth layer supplied no actor identity."""

    kind = "Unauthenticated"
    message = "Unauthenticated"


class RateLimitExceeded(LedgerError):
    kind = "RateLimitExceeded"
    message = "Too many requests, please try again later."

    def __init__(self, retry_after: int) -> None:
        super().__init__()
        self.retry_after = retry_after
