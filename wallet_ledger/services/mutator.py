from __future__ import annotations

import logging
from typing import Optional

from ..core.errors import (
    AccountNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidRequestError,
)
from ..core.money import MAX_MINOR_UNITS
from ..models import (
    AccountModel,
    LedgerTransactionModel,
    MutationResponse,
    TransactionRecordResponse,
    TransactionType,
    TransferResponse,
)
from .idempotency import MAX_IDEMPOTENCY_KEY_LENGTH, IdempotencyGuard, transfer_keys
from .repository import LedgerRepository


logger = logging.getLogger(__name__)


def transaction_to_response(record: LedgerTransactionModel) -> TransactionRecordResponse:
    return TransactionRecordResponse(
        id=record.id,
        account_id=record.account_id,
        type=record.type,
        amount=record.amount,
        description=record.description,
        full_name=record.full_name,
        sender_name=record.sender_name,
        receiver_name=record.receiver_name,
        idempotency_key=record.idempotency_key,
        created_at=record.created_at,
    )


def _require_positive_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError("Amount must be an integer number of minor units")
    if amount <= 0:
        raise InvalidAmountError("Amount must be greater than zero")
    if amount > MAX_MINOR_UNITS:
        raise InvalidAmountError("Amount is too large")


def _require_idempotency_key(idempotency_key: str) -> None:
    if not idempotency_key or not idempotency_key.strip():
        raise InvalidRequestError("Idempotency key must not be empty")
    if len(idempotency_key) > MAX_IDEMPOTENCY_KEY_LENGTH:
        raise InvalidRequestError(
            f"Idempotency key must be at most {MAX_IDEMPOTENCY_KEY_LENGTH} characters"
        )


def _require_direction(direction: str) -> TransactionType:
    try:
        return TransactionType(direction)
    except ValueError as exc:
        raise InvalidRequestError(f"Unknown transaction type {direction!r}") from exc


def _ensure_funds(account: AccountModel, amount: int) -> None:
    if account.balance < amount:
        raise InsufficientBalanceError(account.id, account.balance, amount)


def _ensure_capacity(account: AccountModel, amount: int) -> None:
    if account.balance + amount > MAX_MINOR_UNITS:
        raise InvalidAmountError(f"Credit would overflow the balance of account {account.id}")


def _verify_name(account: AccountModel, expected: str, role: str) -> None:
    if account.display_name != expected:
        raise InvalidRequestError(f"{role} full name does not match")


class BalanceMutator:
    """Applies credits, debits and transfers as single atomic units.

    Accounts are locked through the repository before their balances are
    read, always in ascending id order, so two transfers between the same pair
    of accounts cannot deadlock each other.
    """

    def __init__(
        self,
        repository: LedgerRepository,
        guard: Optional[IdempotencyGuard] = None,
    ) -> None:
        self.repository = repository
        self.guard = guard or IdempotencyGuard(repository)

    def _precheck_transfer(
        self,
        sender_account_id: int,
        receiver_account_id: int,
        sender_name: str,
        receiver_name: str,
    ) -> None:
        # Names and currencies never change, so a plain read can reject
        # mismatches before any account lock is requested.
        with self.repository.atomic():
            sender = self._require_account(sender_account_id)
            receiver = self._require_account(receiver_account_id)
            _verify_name(sender, sender_name, "Sender")
            _verify_name(receiver, receiver_name, "Receiver")
            if sender.currency != receiver.currency:
                raise InvalidRequestError(
                    f"Cannot transfer between {sender.currency} and {receiver.currency} accounts"
                )

    def _require_account(self, account_id: int) -> AccountModel:
        account = self.repository.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return account

    def apply(
        self,
        account_id: int,
        amount: int,
        direction: TransactionType,
        idempotency_key: str,
        description: Optional[str] = None,
    ) -> MutationResponse:
        _require_positive_amount(amount)
        _require_idempotency_key(idempotency_key)
        direction = _require_direction(direction)

        try:
            with self.repository.atomic():
                self.guard.check_and_reserve(idempotency_key)
                account = self.repository.get_account_for_update(account_id)

                if direction is TransactionType.DEBIT:
                    _ensure_funds(account, amount)
                    account.balance -= amount
                else:
                    _ensure_capacity(account, amount)
                    account.balance += amount
                self.repository.save_account(account)

                record = self.guard.record(
                    LedgerTransactionModel(
                        account_id=account.id,
                        type=direction,
                        amount=amount,
                        description=description,
                        full_name=account.display_name,
                        idempotency_key=idempotency_key,
                    ),
                    idempotency_key,
                )
                response = MutationResponse(
                    transaction=transaction_to_response(record),
                    new_balance=account.balance,
                )
        except InsufficientBalanceError as exc:
            logger.info(
                "transaction.rejected",
                extra={"account_id": account_id, "amount": amount, "reason": exc.code},
            )
            raise

        logger.info(
            f"transaction.{direction.value.lower()}",
            extra={
                "account_id": account_id,
                "amount": amount,
                "balance": response.new_balance,
                "transaction_id": response.transaction.id,
            },
        )
        return response

    def transfer(
        self,
        sender_account_id: int,
        receiver_account_id: int,
        amount: int,
        sender_name: str,
        receiver_name: str,
        idempotency_key: str,
        description: Optional[str] = None,
    ) -> TransferResponse:
        _require_positive_amount(amount)
        _require_idempotency_key(idempotency_key)
        if sender_account_id == receiver_account_id:
            raise InvalidRequestError("Cannot transfer to the same account")
        debit_key, credit_key = transfer_keys(idempotency_key)
        self._precheck_transfer(
            sender_account_id, receiver_account_id, sender_name, receiver_name
        )

        try:
            with self.repository.atomic():
                self.guard.check_and_reserve(idempotency_key)
                locked = {
                    account_id: self.repository.get_account_for_update(account_id)
                    for account_id in sorted((sender_account_id, receiver_account_id))
                }
                sender = locked[sender_account_id]
                receiver = locked[receiver_account_id]

                _ensure_funds(sender, amount)
                _ensure_capacity(receiver, amount)

                sender.balance -= amount
                receiver.balance += amount
                self.repository.save_account(sender)
                self.repository.save_account(receiver)

                debit = self.guard.record(
                    LedgerTransactionModel(
                        account_id=sender.id,
                        type=TransactionType.DEBIT,
                        amount=amount,
                        description=description or f"Transfer to account {receiver.id}",
                        full_name=sender.display_name,
                        sender_name=sender_name,
                        receiver_name=receiver_name,
                        idempotency_key=debit_key,
                    ),
                    idempotency_key,
                )
                credit = self.guard.record(
                    LedgerTransactionModel(
                        account_id=receiver.id,
                        type=TransactionType.CREDIT,
                        amount=amount,
                        description=description or f"Transfer from account {sender.id}",
                        full_name=receiver.display_name,
                        sender_name=sender_name,
                        receiver_name=receiver_name,
                        idempotency_key=credit_key,
                    ),
                    idempotency_key,
                )
                response = TransferResponse(
                    transaction=transaction_to_response(debit),
                    new_balance=sender.balance,
                    counterpart=transaction_to_response(credit),
                    receiver_balance=receiver.balance,
                )
        except InsufficientBalanceError as exc:
            logger.info(
                "transaction.rejected",
                extra={
                    "sender_account_id": sender_account_id,
                    "receiver_account_id": receiver_account_id,
                    "amount": amount,
                    "reason": exc.code,
                },
            )
            raise

        logger.info(
            "transaction.transfer",
            extra={
                "sender_account_id": sender_account_id,
                "receiver_account_id": receiver_account_id,
                "amount": amount,
                "sender_balance": response.new_balance,
                "receiver_balance": response.receiver_balance,
            },
        )
        return response
