from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, status

from ..core.dependencies import get_account_service, get_transaction_service
from ..core.money import to_minor_units
from ..models import (
    AccountCreate,
    AccountResponse,
    MutationResponse,
    StatementResponse,
    TransactionRequest,
    TransferRequest,
    TransferResponse,
)
from ..services import AccountService, TransactionService


router = APIRouter(prefix="/accounts", tags=["accounts"])

@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    payload: AccountCreate,
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return service.create_account(
        payload.display_name,
        initial_balance=to_minor_units(payload.initial_balance),
        currency=payload.currency,
    )

@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return service.get_account(account_id)

@router.get("/{account_id}/transactions", response_model=StatementResponse)
def get_statement(
    account_id: int,
    limit: Optional[int] = Query(None, ge=1, le=500),
    cursor: Optional[str] = None,
    service: AccountService = Depends(get_account_service),
) -> StatementResponse:
    return service.get_statement(account_id, limit=limit, cursor=cursor)

transaction_router = APIRouter(prefix="/transactions", tags=["transactions"])

@transaction_router.post(
    "", response_model=MutationResponse, status_code=status.HTTP_201_CREATED
)
def create_transaction(
    payload: TransactionRequest,
    service: TransactionService = Depends(get_transaction_service),
    idempotency_key: str = Header(..., convert_underscores=False, alias="Idempotency-Key"),
) -> MutationResponse:
    return service.mutate(
        payload.account_id,
        to_minor_units(payload.amount),
        payload.type,
        idempotency_key,
        description=payload.description,
    )

@transaction_router.post(
    "/transfer", response_model=TransferResponse, status_code=status.HTTP_201_CREATED
)
def create_transfer(
    payload: TransferRequest,
    service: TransactionService = Depends(get_transaction_service),
    idempotency_key: str = Header(..., convert_underscores=False, alias="Idempotency-Key"),
) -> TransferResponse:
    return service.transfer(
        payload.sender_account_id,
        payload.receiver_account_id,
        to_minor_units(payload.amount),
        payload.sender_name,
        payload.receiver_name,
        idempotency_key,
        description=payload.description,
    )

__all__ = ["router", "transaction_router"]
