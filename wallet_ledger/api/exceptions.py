from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..core.errors import (
    AccountNotFoundError,
    DuplicateRequestError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidRequestError,
    LedgerError,
    LockTimeoutError,
    StoreUnavailableError,
)


_STATUS_BY_ERROR: dict[type[LedgerError], int] = {
    AccountNotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidAmountError: status.HTTP_400_BAD_REQUEST,
    InvalidRequestError: status.HTTP_400_BAD_REQUEST,
    InsufficientBalanceError: status.HTTP_409_CONFLICT,
    LockTimeoutError: status.HTTP_503_SERVICE_UNAVAILABLE,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _error_content(exc: LedgerError) -> dict:
    return {"detail": str(exc), "code": exc.code, "retryable": exc.retryable}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DuplicateRequestError)
    async def duplicate_request_handler(
        request: Request, exc: DuplicateRequestError
    ) -> JSONResponse:
        content = _error_content(exc)
        content["transaction_id"] = exc.transaction_id
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=content)

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
        status_code = _STATUS_BY_ERROR.get(
            type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        headers = {"Retry-After": "1"} if exc.retryable else None
        return JSONResponse(
            status_code=status_code, content=_error_content(exc), headers=headers
        )
