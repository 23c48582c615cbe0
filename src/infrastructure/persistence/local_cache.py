from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from domain.models import DashboardStats, Transaction, UserProfile
from domain.records import (
    profile_from_record,
    profile_to_record,
    stats_from_record,
    stats_to_record,
    transaction_from_record,
    transaction_to_record,
)

logger = logging.getLogger(__name__)

PROFILE_KEY = "control-user-profile"
STATS_KEY = "control-dashboard-stats"
TRANSACTIONS_KEY = "control-transactions"


@dataclass(frozen=True)
class CachedLedger:
    profile: UserProfile
    stats: DashboardStats
    transactions: list[Transaction]


class LocalCache:
    """
    Write-through mirror of the last known profile, stats and transactions.

    Never a source of truth: every save overwrites all three entries. With a
    path the entries survive restarts as one JSON document; without one they
    live in memory only.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        raw_path = path if path is not None else os.getenv("LEDGER_CACHE_PATH")
        self._path = Path(raw_path) if raw_path else None
        self._store: dict[str, Any] = self._read()

    def get(self, key: str) -> Any | None:
        return self._store.get(key)

    def save(self, profile: UserProfile, stats: DashboardStats, transactions: list[Transaction]) -> None:
        self._store = {
            PROFILE_KEY: profile_to_record(profile),
            STATS_KEY: stats_to_record(stats),
            TRANSACTIONS_KEY: [transaction_to_record(t) for t in transactions],
        }
        self._write()

    def load(self, user_id: str) -> CachedLedger | None:
        profile_row = self.get(PROFILE_KEY)
        if not isinstance(profile_row, dict) or profile_row.get("id") != user_id:
            return None
        rows = self.get(TRANSACTIONS_KEY) or []
        transactions = [t for t in (transaction_from_record(r) for r in rows if isinstance(r, dict)) if t is not None]
        stats_row = self.get(STATS_KEY)
        return CachedLedger(
            profile=profile_from_record(profile_row, email=str(profile_row.get("email") or "")),
            stats=stats_from_record(stats_row) if isinstance(stats_row, dict) else DashboardStats(),
            transactions=transactions,
        )

    def clear(self) -> None:
        self._store = {}
        self._write()

    def _read(self) -> dict[str, Any]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable ledger cache path=%s: %s", self._path, exc)
            return {}
        return payload if isinstance(payload, dict) else {}

    def _write(self) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._store, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not write ledger cache path=%s: %s", self._path, exc)
