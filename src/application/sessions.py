from __future__ import annotations

import logging
import threading
from typing import Callable

from application.ledger import DriverLedger
from domain.models import Identity

logger = logging.getLogger(__name__)


class LedgerSessions:
    """One loaded `DriverLedger` per user id, created on first use."""

    def __init__(self, factory: Callable[[], DriverLedger]):
        self._factory = factory
        self._ledgers: dict[str, DriverLedger] = {}
        self._user_locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def get(self, identity: Identity) -> DriverLedger:
        with self._lock:
            ledger = self._ledgers.get(identity.user_id)
            if ledger is not None:
                return ledger
            user_lock = self._user_locks.setdefault(identity.user_id, threading.Lock())

        # first load does I/O; only requests for the same user wait on it
        with user_lock:
            with self._lock:
                ledger = self._ledgers.get(identity.user_id)
            if ledger is not None:
                return ledger
            ledger = self._factory()
            ledger.load(identity)
            with self._lock:
                self._ledgers[identity.user_id] = ledger
                count = len(self._ledgers)
        logger.info("Ledger session opened user_id=%s sessions=%d", identity.user_id, count)
        return ledger

    def close(self, user_id: str) -> None:
        with self._lock:
            ledger = self._ledgers.pop(user_id, None)
            self._user_locks.pop(user_id, None)
        if ledger is not None:
            ledger.reset()
            logger.info("Ledger session closed user_id=%s", user_id)

    def clear(self) -> None:
        with self._lock:
            self._ledgers.clear()
            self._user_locks.clear()
