from fastapi import Depends
from sqlmodel import Session

from ..services import AccountService, LedgerRepository, TransactionService
from .db import get_session

def get_account_service(session: Session = Depends(get_session)) -> AccountService:
    return AccountService(session, LedgerRepository(session))

def get_transaction_service(session: Session = Depends(get_session)) -> TransactionService:
    return TransactionService(session, LedgerRepository(session))
