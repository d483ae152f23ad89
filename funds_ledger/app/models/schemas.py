from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class AccountCreate(BaseModel):
    user_id: str = Field(..., min_length=1, description="Identity of the account holder")
    balance: Optional[int] = Field(
        default=None,
        ge=0,
        description="Starting balance in minor units; a random reward when omitted",
    )


class AccountResponse(BaseModel):
    user_id: str
    balance: int = Field(..., ge=0, description="Balance in minor units (e.g. cents)")
    created_at: datetime
    updated_at: datetime


class BalanceResponse(BaseModel):
    balance: int


class TransferRequest(BaseModel):
    # Untyped so pydantic does not coerce `true` or `"10"`; the engine
    # validates both fields and owns their error kinds.
    to: Any = None
    amount: Any = None


class TransferResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Transfer successful"
    amount: int
    new_balance: int = Field(..., alias="newBalance")
