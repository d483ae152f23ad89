from typing import Optional

from fastapi import Depends, Header, Request
from sqlmodel import Session

from ..services import AccountService, TransferEngine
from .db import get_session
from .errors import Unauthenticated
from .rate_limit import RateLimiter


def get_account_service(session: Session = Depends(get_session)) -> AccountService:
    return AccountService(session)


def get_transfer_engine(session: Session = Depends(get_session)) -> TransferEngine:
    return TransferEngine(session)


def get_actor_id(
    user_id: Optional[str] = Header(default=None, convert_underscores=False, alias="X-User-Id"),
) -> str:
    # Identity is verified upstream; an absent header means the request skipped auth.
    if user_id is None or not user_id.strip():
        raise Unauthenticated()
    return user_id


def enforce_rate_limit(request: Request, actor_id: str = Depends(get_actor_id)) -> None:
    limiter: Optional[RateLimiter] = getattr(request.app.state, "rate_limiter", None)
    if limiter is not None:
        limiter.hit(actor_id)
