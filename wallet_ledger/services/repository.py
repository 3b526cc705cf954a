from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from ..core.db import translate_store_errors
from ..core.errors import AccountNotFoundError, DuplicateKeyError
from ..models import AccountModel, LedgerTransactionModel


class LedgerRepository:
    """Data access layer around the SQLModel session.

    Every mutation runs inside ``atomic()``: the accounts it locks with
    ``get_account_for_update`` stay locked until the block commits or rolls
    back, and driver failures surface as ``LockTimeoutError`` or
    ``StoreUnavailableError``.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def atomic(self) -> Iterator[None]:
        try:
            with translate_store_errors():
                yield
                self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    # Account operations -------------------------------------------------
    def add_account(self, *, display_name: str, balance: int, currency: str) -> AccountModel:
        account = AccountModel(display_name=display_name, balance=balance, currency=currency)
        self.session.add(account)
        self.session.flush()
        return account

    def get_account(self, account_id: int) -> Optional[AccountModel]:
        return self.session.get(AccountModel, account_id)

    def get_account_for_update(self, account_id: int) -> AccountModel:
        stmt = (
            select(AccountModel)
            .where(AccountModel.id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        account = self.session.exec(stmt).first()
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return account

    def save_account(self, account: AccountModel) -> AccountModel:
        account.updated_at = datetime.now(UTC)
        self.session.add(account)
        self.session.flush()
        return account

    # Transaction records ------------------------------------------------
    def insert_transaction_record(
        self, record: LedgerTransactionModel
    ) -> LedgerTransactionModel:
        self.session.add(record)
        try:
            self.session.flush()
        except IntegrityError as exc:
            if "idempotency_key" not in str(exc.orig):
                raise
            raise DuplicateKeyError(record.idempotency_key) from exc
        return record

    def find_transaction_by_keys(
        self, keys: Sequence[str]
    ) -> Optional[LedgerTransactionModel]:
        stmt = (
            select(LedgerTransactionModel)
            .where(col(LedgerTransactionModel.idempotency_key).in_(list(keys)))
            .order_by(col(LedgerTransactionModel.id))
        )
        return self.session.exec(stmt).first()

    def list_transactions(
        self,
        account_id: int,
        *,
        limit: int,
        before_id: Optional[int] = None,
    ) -> list[LedgerTransactionModel]:
        stmt = select(LedgerTransactionModel).where(
            LedgerTransactionModel.account_id == account_id
        )
        if before_id is not None:
            stmt = stmt.where(col(LedgerTransactionModel.id) < before_id)
        stmt = stmt.order_by(col(LedgerTransactionModel.id).desc()).limit(limit)
        return list(self.session.exec(stmt))
