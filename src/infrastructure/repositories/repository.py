from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from domain.models import Transaction, UserProfile
from domain.schemas import TransactionInput


class LedgerRepository(ABC):
    """
    Persistence contract for profiles and transactions.

    Implementations raise `TransportError` for client/database failures and
    `NotFoundError` when an update/delete targets a missing transaction.
    """

    name: str = "repository"

    @abstractmethod
    def fetch_profile(self, user_id: str) -> UserProfile | None:
        raise NotImplementedError

    @abstractmethod
    def create_profile(self, user_id: str, defaults: UserProfile) -> UserProfile:
        raise NotImplementedError

    @abstractmethod
    def update_profile(self, user_id: str, fields: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def fetch_transactions(self, user_id: str) -> list[Transaction]:
        raise NotImplementedError

    @abstractmethod
    def insert_transaction(self, user_id: str, record: TransactionInput) -> Transaction:
        raise NotImplementedError

    @abstractmethod
    def update_transaction(self, user_id: str, transaction_id: str, record: Transaction) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_transaction(self, user_id: str, transaction_id: str) -> None:
        raise NotImplementedError
