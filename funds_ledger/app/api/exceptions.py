from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core.errors import (
    AccountAlreadyExists,
    AccountNotFound,
    InsufficientFunds,
    InvalidAmount,
    InvalidRecipient,
    InvalidRequest,
    LedgerError,
    RateLimitExceeded,
    SelfTransferRejected,
    StorageUnavailable,
    TransferConflict,
    TransferTimeout,
    Unauthenticated,
)


logger = logging.getLogger(__name__)

# Most specific class first; AccountNotFound also covers the actor/recipient variants.
STATUS_BY_ERROR: list[tuple[type[LedgerError], int]] = [
    (InvalidAmount, 400),
    (InvalidRecipient, 400),
    (InvalidRequest, 400),
    (SelfTransferRejected, 400),
    (InsufficientFunds, 400),
    (Unauthenticated, 401),
    (AccountNotFound, 404),
    (AccountAlreadyExists, 409),
    (TransferConflict, 409),
    (RateLimitExceeded, 429),
    (StorageUnavailable, 503),
    (TransferTimeout, 504),
]


def status_for(exc: LedgerError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


def error_body(exc: LedgerError) -> dict[str, object]:
    body: dict[str, object] = {"message": exc.message, "kind": exc.kind}
    if isinstance(exc, InsufficientFunds):
        body["currentBalance"] = exc.current_balance
    return body


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
        headers = None
        if isinstance(exc, RateLimitExceeded):
            headers = {"Retry-After": str(exc.retry_after)}
        return JSONResponse(
            status_code=status_for(exc),
            content=error_body(exc),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content=error_body(InvalidRequest()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "request.unhandled",
            extra={"path": request.url.path, "method": request.method},
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error", "kind": "InternalError"},
        )
