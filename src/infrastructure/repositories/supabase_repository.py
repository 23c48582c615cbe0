from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any

from supabase import Client, create_client

from domain.errors import NotFoundError, TransportError
from domain.models import Transaction, UserProfile
from domain.records import platform_rides_to_list, profile_from_record, transaction_from_record, transaction_to_record
from domain.schemas import TransactionInput
from infrastructure.repositories.repository import LedgerRepository

logger = logging.getLogger(__name__)

PROFILES_TABLE = "user_profiles"
TRANSACTIONS_TABLE = "transactions"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_supabase_client() -> Client:
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_KEY")
    if not url or not key:
        raise TransportError("SUPABASE_URL and SUPABASE_KEY must be set to use the supabase backend")
    return create_client(url, key)


class SupabaseRepository(LedgerRepository):
    """Stores profiles and transactions in the hosted Supabase tables."""

    name = "supabase"

    def __init__(self, client: Client | None = None) -> None:
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    # ---- profiles ----
    def fetch_profile(self, user_id: str) -> UserProfile | None:
        rows = self._execute(
            "fetch profile",
            lambda: self.client.table(PROFILES_TABLE).select("*").eq("id", user_id).limit(1).execute(),
        )
        if not rows:
            logger.info("Supabase profile not found user_id=%s", user_id)
            return None
        return profile_from_record(rows[0])

    def create_profile(self, user_id: str, defaults: UserProfile) -> UserProfile:
        payload = {
            "id": user_id,
            "name": defaults.name,
            "email": defaults.email,
            "monthly_goal": defaults.monthly_goal,
            "created_at": _now(),
        }
        rows = self._execute(
            "create profile",
            lambda: self.client.table(PROFILES_TABLE).insert(payload).execute(),
        )
        logger.info("Supabase profile created user_id=%s", user_id)
        return profile_from_record(rows[0] if rows else payload, email=defaults.email)

    def update_profile(self, user_id: str, fields: dict[str, Any]) -> None:
        payload = {**fields, "updated_at": _now()}
        self._execute(
            "update profile",
            lambda: self.client.table(PROFILES_TABLE).update(payload).eq("id", user_id).execute(),
        )

    # ---- transactions ----
    def fetch_transactions(self, user_id: str) -> list[Transaction]:
        rows = self._execute(
            "fetch transactions",
            lambda: self.client.table(TRANSACTIONS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("date", desc=True)
            .execute(),
        )
        transactions = [txn for txn in (transaction_from_record(row) for row in rows) if txn is not None]
        logger.info("Supabase transactions fetched user_id=%s rows=%d kept=%d", user_id, len(rows), len(transactions))
        return transactions

    def insert_transaction(self, user_id: str, record: TransactionInput) -> Transaction:
        now = _now()
        payload = self._to_row(record.to_transaction(""))
        payload.pop("id")
        payload.update({"user_id": user_id, "created_at": now, "updated_at": now})

        rows = self._execute(
            "insert transaction",
            lambda: self.client.table(TRANSACTIONS_TABLE).insert(payload).execute(),
        )
        stored = transaction_from_record(rows[0]) if rows else None
        if stored is None:
            raise TransportError("Supabase insert returned no usable transaction row")
        return stored

    def update_transaction(self, user_id: str, transaction_id: str, record: Transaction) -> None:
        payload = self._to_row(record)
        for key in ("id", "created_at", "updated_at"):
            payload.pop(key, None)

        rows = self._execute(
            "update transaction",
            lambda: self.client.table(TRANSACTIONS_TABLE)
            .update(payload)
            .eq("id", transaction_id)
            .eq("user_id", user_id)
            .execute(),
        )
        if not rows:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

    def delete_transaction(self, user_id: str, transaction_id: str) -> None:
        rows = self._execute(
            "delete transaction",
            lambda: self.client.table(TRANSACTIONS_TABLE)
            .delete()
            .eq("id", transaction_id)
            .eq("user_id", user_id)
            .execute(),
        )
        if not rows:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

    # ---- helpers ----
    def _to_row(self, txn: Transaction) -> dict[str, Any]:
        row = transaction_to_record(txn)
        # platform_rides lives in a text column
        row["platform_rides"] = json.dumps(platform_rides_to_list(txn.platform_rides)) if txn.platform_rides else None
        return row

    def _execute(self, action: str, call) -> list[dict[str, Any]]:
        try:
            response = call()
        except TransportError:
            raise
        except Exception as exc:
            logger.warning("Supabase %s failed: %s", action, exc)
            raise TransportError(f"Supabase {action} failed: {exc}") from exc

        data = getattr(response, "data", None)
        if data is None:
            return []
        if not isinstance(data, list):
            data = [data]
        return [row for row in data if isinstance(row, dict)]
