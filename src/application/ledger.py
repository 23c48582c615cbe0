from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Callable, Mapping

from application.aggregator import calculate_dashboard_stats
from application.goal_flow import GoalUpdateFlow
from application.store import TransactionStore
from domain.errors import IdentityRequiredError
from domain.models import DashboardStats, Identity, Transaction, UserProfile, default_profile_for
from domain.schemas import TransactionInput, parse_profile_update, parse_transaction_input
from infrastructure.persistence.local_cache import LocalCache
from infrastructure.repositories.repository import LedgerRepository

logger = logging.getLogger(__name__)


@dataclass
class LedgerState:
    identity: Identity | None = None
    profile: UserProfile = field(default_factory=UserProfile)
    store: TransactionStore = field(default_factory=TransactionStore)
    stats: DashboardStats = field(default_factory=DashboardStats)
    submissions: dict[str, str] = field(default_factory=dict)

    def reset(self) -> None:
        self.identity = None
        self.profile = UserProfile()
        self.store.clear()
        self.stats = DashboardStats()
        self.submissions.clear()


class DriverLedger:
    """
    Application state for one signed-in driver.

    Every mutation is persisted first, applied locally only once storage
    accepted it, and followed by a synchronous `recompute()` before it
    returns. Mutations are serialized through a single lock.
    """

    def __init__(
        self,
        repository: LedgerRepository,
        cache: LocalCache | None = None,
        clock: Callable[[], date] | None = None,
        state: LedgerState | None = None,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._clock = clock or date.today
        self._state = state or LedgerState()
        self._lock = threading.RLock()

    # ---- read accessors ----
    @property
    def identity(self) -> Identity | None:
        return self._state.identity

    @property
    def profile(self) -> UserProfile:
        return self._state.profile

    @property
    def stats(self) -> DashboardStats:
        return self._state.stats

    @property
    def transactions(self) -> list[Transaction]:
        return self._state.store.list_all()

    def get_transaction(self, transaction_id: str) -> Transaction:
        return self._state.store.get(transaction_id)

    def today(self) -> date:
        return self._clock()

    # ---- session ----
    def load(self, identity: Identity | None) -> DashboardStats:
        with self._lock:
            if identity is None:
                logger.info("Ledger load without identity; resetting to defaults")
                self.reset()
                return self.stats

            t0 = time.perf_counter()
            if self._state.identity != identity:
                self._state.reset()
                self._restore_from_cache(identity)

            profile = self._repository.fetch_profile(identity.user_id)
            if profile is None:
                logger.info("Profile missing for user_id=%s; creating defaults", identity.user_id)
                profile = self._repository.create_profile(identity.user_id, default_profile_for(identity))
            transactions = self._repository.fetch_transactions(identity.user_id)

            self._state.identity = identity
            self._state.profile = replace(profile, email=identity.email or profile.email)
            self._state.store.replace_all(transactions)
            self.recompute()
            self._write_cache()
            logger.info(
                "Ledger loaded user_id=%s transactions=%d in %.2fs",
                identity.user_id,
                len(transactions),
                time.perf_counter() - t0,
            )
            return self.stats

    def refresh(self) -> DashboardStats:
        with self._lock:
            user_id = self._require_identity()
            t0 = time.perf_counter()
            self._reload_profile(user_id)
            transactions = self._repository.fetch_transactions(user_id)
            self._state.store.replace_all(transactions)
            self.recompute()
            self._write_cache()
            logger.info(
                "Ledger refreshed user_id=%s transactions=%d in %.2fs",
                user_id,
                len(transactions),
                time.perf_counter() - t0,
            )
            return self.stats

    def refresh_profile(self) -> UserProfile:
        """Re-read the stored profile, e.g. after billing flipped `has_access`."""
        with self._lock:
            user_id = self._require_identity()
            self._reload_profile(user_id)
            self._after_mutation()
            return self._state.profile

    def reset(self) -> None:
        with self._lock:
            self._state.reset()
            if self._cache is not None:
                self._cache.clear()

    # ---- mutations ----
    def add_transaction(
        self,
        data: TransactionInput | Mapping[str, Any],
        submission_id: str | None = None,
    ) -> Transaction:
        with self._lock:
            user_id = self._require_identity()
            if submission_id and submission_id in self._state.submissions:
                existing_id = self._state.submissions[submission_id]
                if existing_id in self._state.store:
                    logger.info("Duplicate submission ignored submission_id=%s transaction_id=%s", submission_id, existing_id)
                    return self._state.store.get(existing_id)

            draft = parse_transaction_input(data)
            t = time.perf_counter()
            record = self._repository.insert_transaction(user_id, draft)
            self._state.store.add(record)
            if submission_id:
                self._state.submissions[submission_id] = record.id
            self._after_mutation()
            logger.info(
                "Transaction added id=%s type=%s amount=%.2f in %.2fs",
                record.id,
                record.type.value,
                record.amount,
                time.perf_counter() - t,
            )
            return record

    def update_transaction(self, transaction_id: str, changes: Mapping[str, Any]) -> Transaction:
        with self._lock:
            user_id = self._require_identity()
            merged = self._state.store.merge(transaction_id, changes)
            t = time.perf_counter()
            self._repository.update_transaction(user_id, transaction_id, merged)
            self._state.store.replace(merged)
            self._after_mutation()
            logger.info("Transaction updated id=%s in %.2fs", transaction_id, time.perf_counter() - t)
            return merged

    def delete_transaction(self, transaction_id: str) -> None:
        with self._lock:
            user_id = self._require_identity()
            self._state.store.get(transaction_id)
            t = time.perf_counter()
            self._repository.delete_transaction(user_id, transaction_id)
            self._state.store.delete(transaction_id)
            self._after_mutation()
            logger.info("Transaction deleted id=%s in %.2fs", transaction_id, time.perf_counter() - t)

    def update_profile(self, changes: Mapping[str, Any]) -> UserProfile:
        with self._lock:
            user_id = self._require_identity()
            fields = parse_profile_update(changes)
            if fields:
                self._repository.update_profile(user_id, fields)
                self._state.profile = replace(self._state.profile, **fields)
            self._after_mutation()
            logger.info("Profile updated user_id=%s fields=%s", user_id, sorted(fields))
            return self._state.profile

    def set_monthly_goal(self, monthly_goal: float) -> UserProfile:
        return self.update_profile({"monthly_goal": monthly_goal})

    def goal_flow(self) -> GoalUpdateFlow:
        return GoalUpdateFlow(on_commit=self.set_monthly_goal, current_goal=self.profile.monthly_goal)

    # ---- aggregation ----
    def recompute(self) -> DashboardStats:
        with self._lock:
            self._state.stats = calculate_dashboard_stats(
                self._state.store.list_all(),
                self._state.profile.monthly_goal,
                self._clock(),
            )
            return self._state.stats

    # ---- internals ----
    def _after_mutation(self) -> None:
        self.recompute()
        self._write_cache()

    def _reload_profile(self, user_id: str) -> None:
        profile = self._repository.fetch_profile(user_id)
        if profile is None:
            logger.warning("Profile vanished for user_id=%s; keeping the loaded one", user_id)
            return
        email = self._state.identity.email if self._state.identity is not None else ""
        self._state.profile = replace(profile, email=email or profile.email)

    def _require_identity(self) -> str:
        if self._state.identity is None:
            raise IdentityRequiredError("No signed-in user; load an identity first")
        return self._state.identity.user_id

    def _restore_from_cache(self, identity: Identity) -> None:
        if self._cache is None:
            return
        cached = self._cache.load(identity.user_id)
        if cached is None:
            return
        self._state.profile = cached.profile
        self._state.store.replace_all(cached.transactions)
        self._state.stats = cached.stats
        logger.info("Ledger warmed from cache user_id=%s transactions=%d", identity.user_id, len(cached.transactions))

    def _write_cache(self) -> None:
        if self._cache is None:
            return
        self._cache.save(self._state.profile, self._state.stats, self._state.store.list_all())
