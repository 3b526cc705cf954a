from __future__ import annotations

from typing import Optional

from sqlmodel import Session

from ..models import MutationResponse, TransactionType, TransferResponse
from .mutator import BalanceMutator
from .repository import LedgerRepository


class TransactionService:
    """Entry point for credits, debits and transfers, in integer minor units."""

    def __init__(
        self,
        session: Session,
        repository: Optional[LedgerRepository] = None,
    ) -> None:
        self.session = session
        self.repository = repository or LedgerRepository(session)
        self.mutator = BalanceMutator(self.repository)

    def mutate(
        self,
        account_id: int,
        amount: int,
        direction: TransactionType,
        idempotency_key: str,
        description: Optional[str] = None,
    ) -> MutationResponse:
        return self.mutator.apply(
            account_id,
            amount,
            direction,
            idempotency_key,
            description=description,
        )

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
        return self.mutator.transfer(
            sender_account_id,
            receiver_account_id,
            amount,
            sender_name,
            receiver_name,
            idempotency_key,
            description=description,
        )
