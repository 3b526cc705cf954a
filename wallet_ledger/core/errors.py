from __future__ import annotations

from typing import Optional


class LedgerError(Exception):
    """Base class for every outcome the ledger core reports to callers."""

    code = "ledger_error"
    retryable = False


class AccountNotFoundError(LedgerError):
    """Raised when an account id is missing from the store."""

    code = "not_found"


class InvalidAmountError(LedgerError):
    """Raised when an amount is zero, negative or not representable in minor units."""

    code = "invalid_amount"


class InvalidRequestError(LedgerError):
    """Raised for malformed requests: empty keys, self-transfers, name mismatches."""

    code = "invalid_request"


class InsufficientBalanceError(LedgerError):
    """Raised when a debit/transfer would drop balance below zero."""

    code = "insufficient_balance"

    def __init__(self, account_id: int, balance: int, amount: int) -> None:
        super().__init__(
            f"Insufficient balance in account {account_id}: "
            f"balance {balance}, requested {amount}"
        )
        self.account_id = account_id
        self.balance = balance
        self.amount = amount


class DuplicateRequestError(LedgerError):
    """Raised when an idempotency key has already been processed."""

    code = "duplicate_request"

    def __init__(self, idempotency_key: str, transaction_id: Optional[int] = None) -> None:
        super().__init__(f"Request with idempotency key {idempotency_key!r} already processed")
        self.idempotency_key = idempotency_key
        self.transaction_id = transaction_id


class DuplicateKeyError(LedgerError):
    """Raised by the store when an idempotency key violates the unique index."""

    code = "duplicate_key"

    def __init__(self, idempotency_key: str) -> None:
        super().__init__(f"Idempotency key {idempotency_key!r} already exists")
        self.idempotency_key = idempotency_key


class LockTimeoutError(LedgerError):
    """Raised when an account lock could not be acquired (timeout or deadlock)."""

    code = "lock_timeout"
    retryable = True


class StoreUnavailableError(LedgerError):
    """Raised when the database cannot be reached or fails mid-operation."""

    code = "store_unavailable"
    retryable = True
