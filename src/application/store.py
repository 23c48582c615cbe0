from __future__ import annotations

import uuid
from typing import Any, Callable, Iterable, Mapping

from domain.errors import NotFoundError, ValidationError
from domain.models import Transaction
from domain.schemas import TransactionInput, merge_transaction_fields, parse_transaction_input


def _new_transaction_id() -> str:
    return uuid.uuid4().hex


class TransactionStore:
    """
    Canonical in-memory collection of one user's transactions.

    Records keep their arrival order internally; `list_all` returns them
    most-recent first by date, with ties left in arrival order.
    """

    def __init__(
        self,
        transactions: Iterable[Transaction] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._records: list[Transaction] = []
        self._id_factory = id_factory or _new_transaction_id
        for txn in transactions or []:
            self.add(txn)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, transaction_id: object) -> bool:
        return any(r.id == transaction_id for r in self._records)

    # ---- reads ----
    def get(self, transaction_id: str) -> Transaction:
        for record in self._records:
            if record.id == transaction_id:
                return record
        raise NotFoundError(f"Transaction not found: {transaction_id}")

    def list_all(self) -> list[Transaction]:
        return sorted(self._records, key=lambda r: r.date, reverse=True)

    # ---- writes ----
    def insert(
        self,
        data: TransactionInput | Mapping[str, Any],
        transaction_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Transaction:
        draft = parse_transaction_input(data)
        record = draft.to_transaction(transaction_id or self._unique_id(), metadata=metadata)
        return self.add(record)

    def add(self, record: Transaction) -> Transaction:
        """Append an already-built record, e.g. one returned by storage."""
        if record.id in self:
            raise ValidationError(f"Duplicate transaction id: {record.id}")
        self._records.append(record)
        return record

    def merge(self, transaction_id: str, changes: Mapping[str, Any]) -> Transaction:
        """Return the record as it would look after `changes`, without storing it."""
        existing = self.get(transaction_id)
        draft = merge_transaction_fields(existing, changes)
        return draft.to_transaction(existing.id, metadata=existing.metadata)

    def replace(self, record: Transaction) -> Transaction:
        for index, existing in enumerate(self._records):
            if existing.id == record.id:
                self._records[index] = record
                return record
        raise NotFoundError(f"Transaction not found: {record.id}")

    def update(self, transaction_id: str, changes: Mapping[str, Any]) -> Transaction:
        return self.replace(self.merge(transaction_id, changes))

    def delete(self, transaction_id: str) -> Transaction:
        record = self.get(transaction_id)
        self._records = [r for r in self._records if r.id != transaction_id]
        return record

    def replace_all(self, transactions: Iterable[Transaction]) -> None:
        self._records = []
        for txn in transactions:
            self.add(txn)

    def clear(self) -> None:
        self._records = []

    def _unique_id(self) -> str:
        transaction_id = self._id_factory()
        while transaction_id in self:
            transaction_id = self._id_factory()
        return transaction_id
