from __future__ import annotations
from datetime import datetime, UTC
from enum import Enum
from typing import Optional
from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel


class TransactionType(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class Account(SQLModel, table=True):
    __tablename__ = "account"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_account_balance_non_negative"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    display_name: str = Field(max_length=100)
    balance: int = Field(default=0, ge=0)
    currency: str = Field(default="USD", max_length=3)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class LedgerTransaction(SQLModel, table=True):
    __tablename__ = "ledger_transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: int = Field(foreign_key="account.id", index=True)
    type: TransactionType
    amount: int = Field(gt=0)
    description: Optional[str] = None
    full_name: str = Field(max_length=100)
    sender_name: Optional[str] = Field(default=None, max_length=100)
    receiver_name: Optional[str] = Field(default=None, max_length=100)
    idempotency_key: str = Field(unique=True, index=True, max_length=255)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
