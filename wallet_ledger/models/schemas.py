from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from .db import TransactionType


class AccountCreate(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=100, description="Name of the account holder")
    initial_balance: Decimal = Field(default=Decimal("0"), description="Opening balance in major units")
    currency: Optional[str] = Field(
        default=None,
        pattern=r"^[A-Za-z]{3}$",
        description="ISO 4217 code; defaults to the configured currency",
    )


class AccountResponse(BaseModel):
    id: int
    display_name: str
    balance: int = Field(..., ge=0, description="Balance in minor units (e.g. cents)")
    currency: str
    created_at: datetime
    updated_at: datetime


class TransactionRequest(BaseModel):
    account_id: int
    amount: Decimal = Field(..., description="Amount in major units, at most 2 decimal places")
    type: TransactionType
    description: Optional[str] = Field(default=None, max_length=255)


class TransferRequest(BaseModel):
    sender_account_id: int
    receiver_account_id: int
    amount: Decimal = Field(..., description="Amount in major units, at most 2 decimal places")
    sender_name: str = Field(..., min_length=1, max_length=100)
    receiver_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=255)


class TransactionRecordResponse(BaseModel):
    id: int
    account_id: int
    type: TransactionType
    amount: int = Field(..., gt=0, description="Amount in minor units")
    description: Optional[str] = None
    full_name: str
    sender_name: Optional[str] = None
    receiver_name: Optional[str] = None
    idempotency_key: str
    created_at: datetime


class MutationResponse(BaseModel):
    transaction: TransactionRecordResponse
    new_balance: int = Field(..., ge=0, description="Account balance in minor units after the mutation")


class TransferResponse(MutationResponse):
    """Debit side of a transfer with the sender balance, plus the credit side."""

    counterpart: TransactionRecordResponse
    receiver_balance: int = Field(..., ge=0)


class StatementResponse(BaseModel):
    items: list[TransactionRecordResponse]
    next_cursor: Optional[str] = None
