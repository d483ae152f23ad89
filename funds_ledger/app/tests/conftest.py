from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, select

from ..core.config import Settings
from ..core.db import create_engine_for_url
from ..models import AccountModel


@pytest.fixture
def settings() -> Settings:
    return Settings(
        transfer_max_attempts=20,
        transfer_backoff_base_seconds=0.005,
        transfer_backoff_max_seconds=0.05,
        transfer_timeout_seconds=10.0,
    )


@pytest.fixture
def engine(tmp_path, settings: Settings) -> Iterator[Engine]:
    test_db = tmp_path / "test.db"
    engine = create_engine_for_url(
        f"sqlite:///{test_db}", busy_timeout=settings.transfer_timeout_seconds
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def seed(engine: Engine) -> Callable[..., None]:
    def _seed(**balances: int) -> None:
        with Session(engine) as session:
            for user_id, balance in balances.items():
                session.add(AccountModel(user_id=user_id, balance=balance))
            session.commit()

    return _seed


@pytest.fixture
def balances(engine: Engine) -> Callable[[], dict[str, int]]:
    def _balances() -> dict[str, int]:
        with Session(engine) as session:
            accounts = session.exec(select(AccountModel)).all()
            return {account.user_id: account.balance for account in accounts}

    return _balances
