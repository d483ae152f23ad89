"""Transactional scope and bounded retry for multi-row balance updates.

A scope is one SQL transaction on the request's session. Leaving the scope
by any route other than a clean return rolls the transaction back, so no
partially applied work can be committed. Lock contention reported by the
database is retried by re-running the whole scope with exponential backoff.
"""

from __future__ import annotations

import logging
import math
import random
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from sqlalchemy.exc import DBAPIError
from sqlmodel import Session

from ..core.errors import StorageUnavailable, TransferConflict, TransferTimeout


logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL serialization_failure / deadlock_detected
_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})
# SQLite and MySQL lock contention surfaces as message text
_RETRYABLE_MESSAGES = ("database is locked", "database table is locked", "deadlock")

# PostgreSQL lock_not_available / query_canceled, raised once lock_timeout or
# statement_timeout fires
_TIMEOUT_SQLSTATES = frozenset({"55P03", "57014"})
# MySQL 1205
_TIMEOUT_MESSAGES = ("lock wait timeout",)


class StorageConflict(Exception):
    """Internal retry signal raised for transient lock contention."""


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_timeout(exc: DBAPIError) -> bool:
    if _sqlstate(exc) in _TIMEOUT_SQLSTATES:
        return True
    text = str(exc.orig).lower()
    return any(marker in text for marker in _TIMEOUT_MESSAGES)


def is_conflict(exc: DBAPIError) -> bool:
    if _sqlstate(exc) in _RETRYABLE_SQLSTATES:
        return True
    text = str(exc.orig).lower()
    return any(marker in text for marker in _RETRYABLE_MESSAGES)


def deadline_statements(dialect: str, seconds: float) -> list[str]:
    """Server-side limits that stop a blocked statement outliving ``seconds``.

    SQLite is bounded by the driver busy timeout set in ``create_engine_for_url``.
    """
    millis = max(1, int(seconds * 1000))
    if dialect == "postgresql":
        # SET LOCAL lasts until the end of the current transaction only.
        return [
            f"SET LOCAL lock_timeout = {millis}",
            f"SET LOCAL statement_timeout = {millis}",
        ]
    if dialect in ("mysql", "mariadb"):
        # Session scoped; every scope overwrites it before its first lock.
        return [f"SET SESSION innodb_lock_wait_timeout = {max(1, math.ceil(seconds))}"]
    return []


class Deadline:
    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.expires_at = clock() + seconds

    def remaining(self) -> float:
        return self.expires_at - self._clock()

    def check(self) -> None:
        if self.remaining() <= 0:
            raise TransferTimeout()


@contextmanager
def transactional_scope(session: Session, deadline: Deadline) -> Iterator[Session]:
    """Run the body in one transaction; commit on success, roll back otherwise.

    Server-side lock and statement timeouts are set from the time left on
    ``deadline``. Storage errors are translated on the way out: an expired
    server timeout becomes ``TransferTimeout``, contention ``StorageConflict``
    and everything else ``StorageUnavailable``.
    """
    deadline.check()
    try:
        with session.begin():
            dialect = session.get_bind().dialect.name
            for statement in deadline_statements(dialect, deadline.remaining()):
                session.connection().exec_driver_sql(statement)
            yield session
            deadline.check()
    except DBAPIError as exc:
        # A failed COMMIT leaves the session needing an explicit rollback.
        session.rollback()
        if is_timeout(exc):
            raise TransferTimeout() from exc
        if is_conflict(exc):
            raise StorageConflict(str(exc.orig)) from exc
        raise StorageUnavailable() from exc


class RetryPolicy:
    def __init__(
        self,
        max_attempts: int,
        backoff_base: float,
        backoff_max: float,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.max_attempts = max(1, max_attempts)
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        delay = min(self.backoff_max, self.backoff_base * (2 ** (attempt - 1)))
        return delay * random.uniform(0.5, 1.0)

    def run(self, operation: Callable[[], T], deadline: Deadline) -> T:
        """Call ``operation`` until it stops raising ``StorageConflict``."""
        attempt = 1
        while True:
            try:
                return operation()
            except StorageConflict as exc:
                logger.warning(
                    "transfer.conflict",
                    extra={"attempt": attempt, "max_attempts": self.max_attempts},
                )
                if attempt >= self.max_attempts:
                    raise TransferConflict() from exc
            deadline.check()
            self._sleep(min(self.delay_for(attempt), max(deadline.remaining(), 0.0)))
            attempt += 1
