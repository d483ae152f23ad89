from __future__ import annotations

import logging
import random
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from ..core.config import Settings, get_settings
from ..core.errors import AccountAlreadyExists, AccountNotFound, InvalidAmount
from ..models import AccountModel, AccountResponse
from .repository import AccountRepository


logger = logging.getLogger(__name__)


class AccountService:
    """Balance reads plus the provisioning hook used by registration."""

    def __init__(
        self,
        session: Session,
        repository: Optional[AccountRepository] = None,
        *,
        settings: Optional[Settings] = None,
    ) -> None:
        self.session = session
        self.repository = repository or AccountRepository(session)
        self.settings = settings or get_settings()

    def _account_to_response(self, account: AccountModel) -> AccountResponse:
        return AccountResponse(
            user_id=account.user_id,
            balance=account.balance,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )

    def _starting_balance(self) -> int:
        low = self.settings.starting_balance_min
        high = max(low, self.settings.starting_balance_max)
        return random.randint(low, high)

    def get_balance(self, user_id: str) -> int:
        account = self.repository.get_account(user_id)
        if account is None:
            raise AccountNotFound()
        return account.balance

    def open_account(self, user_id: str, balance: Optional[int] = None) -> AccountResponse:
        if balance is None:
            balance = self._starting_balance()
        if isinstance(balance, bool) or not isinstance(balance, int) or balance < 0:
            raise InvalidAmount()

        if self.repository.get_account(user_id) is not None:
            raise AccountAlreadyExists()
        try:
            account = self.repository.add_account(user_id, balance)
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise AccountAlreadyExists() from exc

        logger.info(
            "account.created",
            extra={"user_id": account.user_id, "balance": account.balance},
        )
        return self._account_to_response(account)
