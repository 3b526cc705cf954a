from __future__ import annotations

import logging
from typing import Optional

from sqlmodel import Session

from ..core.config import get_settings
from ..core.errors import (
    AccountNotFoundError,
    InvalidAmountError,
    InvalidRequestError,
)
from ..core.money import MAX_MINOR_UNITS
from ..models import AccountModel, AccountResponse, StatementResponse
from .mutator import transaction_to_response
from .repository import LedgerRepository


logger = logging.getLogger(__name__)


def account_to_response(account: AccountModel) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        display_name=account.display_name,
        balance=account.balance,
        currency=account.currency,
        created_at=account.created_at,
        updated_at=account.updated_at,
    )


class AccountService:
    def __init__(
        self,
        session: Session,
        repository: Optional[LedgerRepository] = None,
    ) -> None:
        self.session = session
        self.repository = repository or LedgerRepository(session)

    def create_account(
        self,
        display_name: str,
        initial_balance: int = 0,
        currency: Optional[str] = None,
    ) -> AccountResponse:
        display_name = display_name.strip() if display_name else ""
        if not display_name:
            raise InvalidRequestError("Display name must not be empty")
        if isinstance(initial_balance, bool) or not isinstance(initial_balance, int):
            raise InvalidAmountError("Initial balance must be an integer number of minor units")
        if initial_balance < 0:
            raise InvalidAmountError("Initial balance must not be negative")
        if initial_balance > MAX_MINOR_UNITS:
            raise InvalidAmountError("Initial balance is too large")
        currency = (currency or get_settings().default_currency).upper()
        if len(currency) != 3 or not currency.isalpha():
            raise InvalidRequestError("Currency must be a 3-letter code")

        with self.repository.atomic():
            account = self.repository.add_account(
                display_name=display_name,
                balance=initial_balance,
                currency=currency,
            )
            response = account_to_response(account)

        logger.info(
            "account.created",
            extra={"account_id": response.id, "display_name": response.display_name},
        )
        return response

    def get_account(self, account_id: int) -> AccountResponse:
        with self.repository.atomic():
            account = self.repository.get_account(account_id)
            if account is None:
                raise AccountNotFoundError(f"Account {account_id} not found")
            return account_to_response(account)

    def get_statement(
        self,
        account_id: int,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> StatementResponse:
        limit = limit or get_settings().statement_page_size
        before_id = None
        if cursor:
            try:
                before_id = int(cursor)
            except ValueError as exc:
                raise InvalidRequestError("Invalid cursor") from exc

        with self.repository.atomic():
            if self.repository.get_account(account_id) is None:
                raise AccountNotFoundError(f"Account {account_id} not found")
            # One extra row tells us whether another page exists.
            records = self.repository.list_transactions(
                account_id, limit=limit + 1, before_id=before_id
            )
            items = [transaction_to_response(record) for record in records[:limit]]

        next_cursor = None
        if len(records) > limit:
            next_cursor = str(items[-1].id)
        return StatementResponse(items=items, next_cursor=next_cursor)
