from fastapi import APIRouter, Depends, status

from ..core.dependencies import (
    enforce_rate_limit,
    get_account_service,
    get_actor_id,
    get_transfer_engine,
)
from ..models import (
    AccountCreate,
    AccountResponse,
    BalanceResponse,
    TransferRequest,
    TransferResponse,
)
from ..services import AccountService, TransferEngine


router = APIRouter(prefix="/api/v1/account", tags=["account"])

@router.get("/balance", response_model=BalanceResponse)
def get_balance(
    actor_id: str = Depends(get_actor_id),
    service: AccountService = Depends(get_account_service),
) -> BalanceResponse:
    return BalanceResponse(balance=service.get_balance(actor_id))

@router.post(
    "/transfer",
    response_model=TransferResponse,
    response_model_by_alias=True,
    dependencies=[Depends(enforce_rate_limit)],
)
def create_transfer(
    payload: TransferRequest,
    actor_id: str = Depends(get_actor_id),
    engine: TransferEngine = Depends(get_transfer_engine),
) -> TransferResponse:
    result = engine.transfer(actor_id, payload.to, payload.amount)
    return TransferResponse(
        amount=result.applied_amount,
        new_balance=result.resulting_actor_balance,
    )

accounts_router = APIRouter(prefix="/api/v1/accounts", tags=["accounts"])

@accounts_router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def open_account(
    payload: AccountCreate,
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return service.open_account(payload.user_id, payload.balance)

__all__ = ["router", "accounts_router"]
