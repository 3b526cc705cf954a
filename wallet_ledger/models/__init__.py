from .db import Account as AccountModel
from .db import LedgerTransaction as LedgerTransactionModel
from .db import TransactionType
from .schemas import (
    AccountCreate,
    AccountResponse,
    MutationResponse,
    StatementResponse,
    TransactionRecordResponse,
    TransactionRequest,
    TransferRequest,
    TransferResponse,
)

__all__ = [
    "AccountCreate",
    "AccountResponse",
    "MutationResponse",
    "StatementResponse",
    "TransactionRecordResponse",
    "TransactionRequest",
    "TransferRequest",
    "TransferResponse",
    "TransactionType",
    "AccountModel",
    "LedgerTransactionModel",
]
