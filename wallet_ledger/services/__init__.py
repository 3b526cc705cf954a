from .accounts import AccountService
from .idempotency import IdempotencyGuard
from .mutator import BalanceMutator
from .repository import LedgerRepository
from .transactions import TransactionService

__all__ = [
    "AccountService",
    "BalanceMutator",
    "IdempotencyGuard",
    "LedgerRepository",
    "TransactionService",
]
