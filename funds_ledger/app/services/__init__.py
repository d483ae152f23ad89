from .accounts import AccountService
from .repository import AccountRepository
from .transfer import TransferEngine, TransferResult

__all__ = [
    "AccountRepository",
    "AccountService",
    "TransferEngine",
    "TransferResult",
]
