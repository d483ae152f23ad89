from __future__ import annotations

from typing import Optional

from sqlalchemy import update
from sqlmodel import Session, select

from ..models import AccountModel
from ..models.db import utcnow


class AccountRepository:
    """Thin data access layer around the SQLModel session.

    Balance mutations are relative increments executed as a single UPDATE
    statement, so they never depend on a value read earlier by the caller.
    Transaction ownership stays with the caller.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # Reads --------------------------------------------------------------
    def get_account(
        self, user_id: str, *, for_update: bool = False
    ) -> Optional[AccountModel]:
        stmt = select(AccountModel).where(AccountModel.user_id == user_id)
        if for_update:
            # No-op on SQLite; takes a row lock on PostgreSQL/MySQL.
            stmt = stmt.with_for_update()
        stmt = stmt.execution_options(populate_existing=True)
        return self.session.exec(stmt).first()

    # Writes -------------------------------------------------------------
    def add_account(self, user_id: str, balance: int) -> AccountModel:
        account = AccountModel(user_id=user_id, balance=balance)
        self.session.add(account)
        self.session.flush()
        self.session.refresh(account)
        return account

    def increment_balance(self, user_id: str, delta: int) -> bool:
        """Apply ``balance += delta`` atomically.

        A negative delta only applies when the balance covers it. Returns
        False when no row was changed (missing account or guard rejected).
        """
        stmt = (
            update(AccountModel)
            .where(AccountModel.user_id == user_id)
            .values(balance=AccountModel.balance + delta, updated_at=utcnow())
        )
        if delta < 0:
            stmt = stmt.where(AccountModel.balance >= -delta)
        result = self.session.connection().execute(stmt)
        return result.rowcount == 1
