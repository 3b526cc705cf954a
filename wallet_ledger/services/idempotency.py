from __future__ import annotations

import logging

from ..core.errors import DuplicateKeyError, DuplicateRequestError
from ..models import LedgerTransactionModel
from .repository import LedgerRepository


logger = logging.getLogger(__name__)

TRANSFER_KEY_SUFFIXES = ("debit", "credit")
# Matches the idempotency_key column, leaving room for the longest suffix.
MAX_IDEMPOTENCY_KEY_LENGTH = 255 - len("-credit")


def transfer_keys(idempotency_key: str) -> tuple[str, str]:
    debit_suffix, credit_suffix = TRANSFER_KEY_SUFFIXES
    return f"{idempotency_key}-{debit_suffix}", f"{idempotency_key}-{credit_suffix}"


class IdempotencyGuard:
    """Rejects requests whose idempotency key has already been processed.

    ``check_and_reserve`` is only a fast path. The unique index on
    ``ledger_transaction.idempotency_key`` is what actually prevents a second
    application, so ``record`` converts a late unique violation into the same
    ``DuplicateRequestError``.
    """

    def __init__(self, repository: LedgerRepository) -> None:
        self.repository = repository

    def check_and_reserve(self, idempotency_key: str) -> None:
        # A root key also covers the suffixed keys of a transfer.
        existing = self.repository.find_transaction_by_keys(
            (idempotency_key, *transfer_keys(idempotency_key))
        )
        if existing is None:
            return
        logger.info(
            "idempotency.duplicate",
            extra={"idempotency_key": idempotency_key, "transaction_id": existing.id},
        )
        raise DuplicateRequestError(idempotency_key, existing.id)

    def record(
        self, transaction: LedgerTransactionModel, root_key: str
    ) -> LedgerTransactionModel:
        try:
            return self.repository.insert_transaction_record(transaction)
        except DuplicateKeyError as exc:
            logger.info(
                "idempotency.duplicate",
                extra={"idempotency_key": root_key, "conflicting_key": exc.idempotency_key},
            )
            raise DuplicateRequestError(root_key) from exc
