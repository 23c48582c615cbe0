from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from application.store import TransactionStore
from domain.errors import NotFoundError
from domain.models import Transaction, UserProfile
from domain.schemas import TransactionInput
from infrastructure.repositories.repository import LedgerRepository

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryRepository(LedgerRepository):
    """Process-local storage; ids are assigned here, like a database would."""

    name = "memory"

    def __init__(self) -> None:
        self._profiles: dict[str, UserProfile] = {}
        self._transactions: dict[str, TransactionStore] = {}
        self._lock = threading.Lock()

    def fetch_profile(self, user_id: str) -> UserProfile | None:
        return self._profiles.get(user_id)

    def create_profile(self, user_id: str, defaults: UserProfile) -> UserProfile:
        with self._lock:
            profile = replace(defaults, id=user_id)
            self._profiles[user_id] = profile
        logger.info("Memory repository created profile user_id=%s", user_id)
        return profile

    def update_profile(self, user_id: str, fields: dict[str, Any]) -> None:
        with self._lock:
            profile = self._profiles.get(user_id)
            if profile is None:
                raise NotFoundError(f"Profile not found: {user_id}")
            self._profiles[user_id] = replace(profile, **fields)

    def set_access(self, user_id: str, has_access: bool) -> None:
        """Stand-in for the billing collaborator flipping the access flag."""
        self.update_profile(user_id, {"has_access": has_access})

    def fetch_transactions(self, user_id: str) -> list[Transaction]:
        return self._store(user_id).list_all()

    def insert_transaction(self, user_id: str, record: TransactionInput) -> Transaction:
        now = _now()
        with self._lock:
            return self._store(user_id).insert(record, metadata={"created_at": now, "updated_at": now})

    def update_transaction(self, user_id: str, transaction_id: str, record: Transaction) -> None:
        with self._lock:
            store = self._store(user_id)
            existing = store.get(transaction_id)
            store.replace(replace(record, metadata={**existing.metadata, "updated_at": _now()}))

    def delete_transaction(self, user_id: str, transaction_id: str) -> None:
        with self._lock:
            self._store(user_id).delete(transaction_id)

    def _store(self, user_id: str) -> TransactionStore:
        return self._transactions.setdefault(user_id, TransactionStore())
