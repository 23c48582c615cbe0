from __future__ import annotations

import unittest
from datetime import date
from unittest.mock import MagicMock

from application.ledger import DriverLedger
from domain.errors import IdentityRequiredError, NotFoundError, TransportError, ValidationError
from domain.models import DashboardStats, Identity, UserProfile
from domain.schemas import parse_transaction_input
from infrastructure.persistence.local_cache import LocalCache
from infrastructure.repositories.memory_repository import InMemoryRepository

TODAY = date(2026, 10, 17)
IDENTITY = Identity(user_id="u_123", email="motorista@example.com")


def _ledger(repository=None, cache=None) -> DriverLedger:
    return DriverLedger(repository=repository or InMemoryRepository(), cache=cache, clock=lambda: TODAY)


class DriverLedgerLoadTests(unittest.TestCase):
    def test_first_load_creates_default_profile(self) -> None:
        repository = InMemoryRepository()
        ledger = _ledger(repository)
        ledger.load(IDENTITY)

        self.assertEqual(ledger.profile.name, "motorista")
        self.assertEqual(ledger.profile.monthly_goal, 0)
        self.assertIsNotNone(repository.fetch_profile("u_123"))

    def test_profile_without_email_uses_default_name(self) -> None:
        ledger = _ledger()
        ledger.load(Identity(user_id="u_9"))

        self.assertEqual(ledger.profile.name, "Usuário")

    def test_load_without_identity_resets(self) -> None:
        ledger = _ledger()
        ledger.load(IDENTITY)
        ledger.add_transaction({"date": "2026-10-10", "amount": 100, "type": "income"})

        ledger.load(None)

        self.assertIsNone(ledger.identity)
        self.assertEqual(ledger.transactions, [])
        self.assertEqual(ledger.stats, DashboardStats())
        self.assertEqual(ledger.profile, UserProfile())

    def test_mutation_without_identity_is_rejected(self) -> None:
        ledger = _ledger()

        with self.assertRaises(IdentityRequiredError):
            ledger.add_transaction({"date": "2026-10-10", "amount": 100, "type": "income"})


class DriverLedgerMutationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.repository = InMemoryRepository()
        self.ledger = _ledger(self.repository)
        self.ledger.load(IDENTITY)
        self.ledger.set_monthly_goal(1000)

    def test_deleting_an_expense_recomputes_net_profit(self) -> None:
        self.ledger.add_transaction({"date": "2026-10-03", "amount": 100, "type": "income", "platform": "uber"})
        expense = self.ledger.add_transaction({"date": "2026-10-04", "amount": 40, "type": "expense", "category": "fuel"})
        self.assertEqual(self.ledger.stats.net_profit, 60)

        self.ledger.delete_transaction(expense.id)

        self.assertEqual(self.ledger.stats.net_profit, 100)
        self.assertEqual(len(self.repository.fetch_transactions("u_123")), 1)

    def test_added_transaction_is_listed_with_its_values(self) -> None:
        record = self.ledger.add_transaction(
            {"date": "2026-10-05", "amount": "75,30", "type": "income", "platform": "indrive", "rides": 3}
        )

        listed = self.ledger.transactions
        self.assertEqual(listed, [record])
        self.assertEqual(listed[0].amount, 75.3)
        self.assertEqual(self.ledger.stats.realized, 75.3)

    def test_update_recomputes_stats(self) -> None:
        record = self.ledger.add_transaction({"date": "2026-10-05", "amount": 100, "type": "income"})
        self.ledger.update_transaction(record.id, {"amount": 250})

        self.assertEqual(self.ledger.get_transaction(record.id).amount, 250)
        self.assertEqual(self.ledger.stats.realized, 250)
        self.assertEqual(self.ledger.stats.goal_progress, 25)

    def test_goal_change_recomputes_stats(self) -> None:
        self.ledger.add_transaction({"date": "2026-10-05", "amount": 500, "type": "income"})
        self.ledger.set_monthly_goal(2000)

        self.assertEqual(self.ledger.profile.monthly_goal, 2000)
        self.assertEqual(self.ledger.stats.goal_progress, 25)

    def test_goal_flow_commits_through_the_ledger(self) -> None:
        flow = self.ledger.goal_flow()
        flow.edit("3000")
        flow.submit()
        flow.confirm()

        self.assertEqual(self.ledger.profile.monthly_goal, 3000)
        self.assertEqual(self.repository.fetch_profile("u_123").monthly_goal, 3000)

    def test_invalid_transaction_is_not_persisted(self) -> None:
        with self.assertRaises(ValidationError):
            self.ledger.add_transaction({"date": "2026-10-05", "amount": "abc", "type": "income"})

        self.assertEqual(self.repository.fetch_transactions("u_123"), [])

    def test_repeated_submission_inserts_once(self) -> None:
        payload = {"date": "2026-10-05", "amount": 80, "type": "income"}
        first = self.ledger.add_transaction(payload, submission_id="form-1")
        second = self.ledger.add_transaction(payload, submission_id="form-1")

        self.assertEqual(first, second)
        self.assertEqual(len(self.ledger.transactions), 1)
        self.assertEqual(len(self.repository.fetch_transactions("u_123")), 1)

    def test_unknown_transaction_raises_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            self.ledger.delete_transaction("missing")
        with self.assertRaises(NotFoundError):
            self.ledger.update_transaction("missing", {"amount": 1})

    def test_refresh_picks_up_external_changes(self) -> None:
        draft = parse_transaction_input({"date": "2026-10-08", "amount": 60, "type": "income"})
        self.repository.insert_transaction("u_123", draft)

        self.ledger.refresh()

        self.assertEqual(self.ledger.stats.realized, 60)

    def test_refresh_rereads_profile_access(self) -> None:
        self.repository.set_access("u_123", True)

        self.ledger.refresh()

        self.assertTrue(self.ledger.profile.has_access)
        self.assertEqual(self.ledger.profile.email, "motorista@example.com")

    def test_refresh_profile_keeps_transactions(self) -> None:
        self.ledger.add_transaction({"date": "2026-10-05", "amount": 500, "type": "income"})
        self.repository.update_profile("u_123", {"monthly_goal": 2000.0})

        profile = self.ledger.refresh_profile()

        self.assertEqual(profile.monthly_goal, 2000.0)
        self.assertEqual(self.ledger.stats.goal_progress, 25)


class DriverLedgerTransportTests(unittest.TestCase):
    def setUp(self) -> None:
        self.repository = MagicMock()
        self.repository.fetch_profile.return_value = UserProfile(id="u_123", name="Ana", monthly_goal=1000)
        self.repository.fetch_transactions.return_value = []
        self.ledger = _ledger(self.repository)
        self.ledger.load(IDENTITY)

    def test_failed_insert_leaves_state_unchanged(self) -> None:
        self.repository.insert_transaction.side_effect = TransportError("offline")
        before = self.ledger.stats

        with self.assertRaises(TransportError):
            self.ledger.add_transaction({"date": "2026-10-05", "amount": 80, "type": "income"})

        self.assertEqual(self.ledger.transactions, [])
        self.assertIs(self.ledger.stats, before)

    def test_failed_profile_update_keeps_old_goal(self) -> None:
        self.repository.update_profile.side_effect = TransportError("offline")

        with self.assertRaises(TransportError):
            self.ledger.set_monthly_goal(5000)

        self.assertEqual(self.ledger.profile.monthly_goal, 1000)

    def test_existing_profile_is_not_recreated(self) -> None:
        self.repository.create_profile.assert_not_called()
        self.assertEqual(self.ledger.profile.email, "motorista@example.com")


class DriverLedgerCacheTests(unittest.TestCase):
    def test_cache_mirrors_latest_state(self) -> None:
        cache = LocalCache()
        ledger = _ledger(cache=cache)
        ledger.load(IDENTITY)
        ledger.add_transaction({"date": "2026-10-05", "amount": 80, "type": "income"})

        cached = cache.load("u_123")
        self.assertEqual(len(cached.transactions), 1)
        self.assertEqual(cached.stats.realized, 80)

    def test_persistence_overwrites_stale_cache(self) -> None:
        cache = LocalCache()
        stale = _ledger(cache=cache)
        stale.load(IDENTITY)
        stale.add_transaction({"date": "2026-10-05", "amount": 80, "type": "income"})

        fresh = _ledger(InMemoryRepository(), cache=cache)
        fresh.load(IDENTITY)

        self.assertEqual(fresh.transactions, [])
        self.assertEqual(cache.load("u_123").transactions, [])

    def test_reset_clears_cache(self) -> None:
        cache = LocalCache()
        ledger = _ledger(cache=cache)
        ledger.load(IDENTITY)
        ledger.reset()

        self.assertIsNone(cache.load("u_123"))


if __name__ == "__main__":
    unittest.main()
