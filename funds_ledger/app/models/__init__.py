from .db import Account as AccountModel
from .schemas import (
    AccountCreate,
    AccountResponse,
    BalanceResponse,
    TransferRequest,
    TransferResponse,
)

__all__ = [
    "AccountCreate",
    "AccountResponse",
    "BalanceResponse",
    "TransferRequest",
    "TransferResponse",
    "AccountModel",
]
