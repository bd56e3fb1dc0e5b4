"""Mutual exclusion scopes for read-check-write sequences.

A scope is identified by a string key such as
``punch:{company}:{employee}:{work_day}``. Keys are never shared across
employees or work days, so unrelated requests do not contend.
"""

from __future__ import annotations

import logging
import threading
from contextlib import ExitStack, contextmanager
from typing import Iterable, Iterator, Protocol

from ..core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS
from ..core.exceptions import ConflictError

logger = logging.getLogger(__name__)


class LockManager(Protocol):
    def hold(self, key: str):
        """Context manager holding the exclusive scope ``key``."""

        raise NotImplementedError


class LocalLockManager(LockManager):
    """Per-key ``threading.Lock`` registry for a single process."""

    def __init__(self, *, timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS):
        self._timeout = float(timeout_seconds)
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._holders: dict[str, int] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._holders[key] = self._holders.get(key, 0) + 1

        acquired = lock.acquire(timeout=self._timeout)
        try:
            if not acquired:
                raise ConflictError("Another request is updating the same records, try again")
            yield
        finally:
            if acquired:
                lock.release()
            with self._guard:
                self._holders[key] -= 1
                if self._holders[key] == 0:
                    del self._holders[key]
                    del self._locks[key]


class MySQLLockManager(LockManager):
    """Advisory locks via ``GET_LOCK``; valid across processes sharing the DB.

    The lock lives on its own connection, which stays open while held.
    """

    def __init__(self, conn_factory, *, timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS):
        self._conn_factory = conn_factory
        self._timeout = int(timeout_seconds)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        # MySQL caps lock names at 64 characters.
        name = key[:64]
        conn = self._conn_factory.connect()
        try:
            cur = conn.cursor()
            try:
                cur.execute("SELECT GET_LOCK(%s, %s)", (name, self._timeout))
                row = cur.fetchone()
                if not row or row[0] != 1:
                    raise ConflictError("Another request is updating the same records, try again")
                try:
                    yield
                finally:
                    cur.execute("SELECT RELEASE_LOCK(%s)", (name,))
                    cur.fetchone()
            finally:
                cur.close()
        finally:
            conn.close()


@contextmanager
def hold_all(locks: LockManager, keys: Iterable[str]) -> Iterator[None]:
    """Hold several scopes, acquired in sorted order to avoid deadlocks."""
    ordered = sorted(set(keys))
    with ExitStack() as stack:
        for key in ordered:
            stack.enter_context(locks.hold(key))
        logger.debug("Holding lock scopes %s", ordered)
        yield


def work_day_scope(company_id: int, employee_id: int, day) -> str:
    return f"punch:{company_id}:{employee_id}:{day.isoformat()}"


def weekly_slot_scope(company_id: int, employee_id: int, week_start, day_of_week: int) -> str:
    return f"weekly:{company_id}:{employee_id}:{week_start.isoformat()}:{day_of_week}"
