from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlmodel import Session

from ..core.config import Settings, get_settings
from ..core.errors import (
    AccountNotFound,
    ActorAccountNotFound,
    InsufficientFunds,
    InvalidAmount,
    InvalidRecipient,
    LedgerError,
    RecipientAccountNotFound,
    SelfTransferRejected,
)
from .repository import AccountRepository
from .transaction import Deadline, RetryPolicy, transactional_scope


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferResult:
    applied_amount: int
    resulting_actor_balance: int


def coerce_amount(amount: object) -> int:
    """Return ``amount`` as a positive integer of minor units or raise InvalidAmount."""
    if amount is None:
        raise InvalidAmount("Amount and recipient are required")
    if isinstance(amount, bool):
        raise InvalidAmount()
    if isinstance(amount, int):
        value = amount
    elif isinstance(amount, float):
        if not math.isfinite(amount) or not amount.is_integer():
            raise InvalidAmount()
        value = int(amount)
    elif isinstance(amount, Decimal):
        if not amount.is_finite() or amount != amount.to_integral_value():
            raise InvalidAmount()
        value = int(amount)
    else:
        raise InvalidAmount()
    if value <= 0:
        raise InvalidAmount()
    return value


class TransferEngine:
    """Moves funds between two accounts as one atomic unit.

    Each attempt runs inside a single transactional scope: the actor row is
    read with a locking read, the debit is a guarded relative decrement and
    the credit a relative increment. Contention reported by the database
    re-runs the whole attempt; everything else propagates after rollback.
    """

    def __init__(
        self,
        session: Session,
        repository: Optional[AccountRepository] = None,
        *,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        settings = settings or get_settings()
        self.session = session
        self.repository = repository or AccountRepository(session)
        self.timeout = settings.transfer_timeout_seconds
        self.retry = RetryPolicy(
            settings.transfer_max_attempts,
            settings.transfer_backoff_base_seconds,
            settings.transfer_backoff_max_seconds,
            sleep=sleep,
        )
        self._clock = clock

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------
    def _validate(self, actor_id: str, recipient_id: object, amount: object) -> int:
        value = coerce_amount(amount)
        if not isinstance(recipient_id, str) or not recipient_id.strip():
            raise InvalidRecipient()
        if actor_id == recipient_id:
            raise SelfTransferRejected()
        return value

    def _attempt(
        self,
        actor_id: str,
        recipient_id: str,
        amount: int,
        deadline: Deadline,
    ) -> TransferResult:
        with transactional_scope(self.session, deadline):
            actor = self.repository.get_account(actor_id, for_update=True)
            deadline.check()
            if actor is None:
                raise ActorAccountNotFound()
            if actor.balance < amount:
                raise InsufficientFunds(actor.balance)

            recipient = self.repository.get_account(recipient_id)
            deadline.check()
            if recipient is None:
                raise RecipientAccountNotFound()

            if not self.repository.increment_balance(actor_id, -amount):
                # Another scope drained the account between our read and the debit.
                current = self.repository.get_account(actor_id)
                raise InsufficientFunds(current.balance if current else 0)
            deadline.check()
            if not self.repository.increment_balance(recipient_id, amount):
                raise RecipientAccountNotFound()
            deadline.check()

            actor = self.repository.get_account(actor_id)
            return TransferResult(
                applied_amount=amount,
                resulting_actor_balance=actor.balance,
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def transfer(self, actor_id: str, recipient_id: object, amount: object) -> TransferResult:
        value = self._validate(actor_id, recipient_id, amount)
        deadline = Deadline(self.timeout, self._clock)

        try:
            result = self.retry.run(
                lambda: self._attempt(actor_id, recipient_id, value, deadline),
                deadline,
            )
        except (AccountNotFound, InsufficientFunds) as exc:
            logger.info(
                "transfer.rejected",
                extra={
                    "actor_id": actor_id,
                    "recipient_id": recipient_id,
                    "amount": value,
                    "kind": exc.kind,
                },
            )
            raise
        except LedgerError as exc:
            logger.error(
                "transfer.failed",
                extra={
                    "actor_id": actor_id,
                    "recipient_id": recipient_id,
                    "amount": value,
                    "kind": exc.kind,
                },
                exc_info=exc.__cause__ is not None,
            )
            raise

        logger.info(
            "transfer.committed",
            extra={
                "actor_id": actor_id,
                "recipient_id": recipient_id,
                "amount": value,
                "balance": result.resulting_actor_balance,
            },
        )
        return result
