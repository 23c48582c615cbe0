from __future__ import annotations

import unittest
from datetime import date
from types import SimpleNamespace

from application.aggregator import (
    build_platform_breakdown,
    calculate_dashboard_stats,
    count_platform_rides,
    days_remaining_in_month,
)
from domain.models import (
    CustomPlatform,
    ExpenseCategory,
    KnownPlatform,
    PlatformRide,
    Transaction,
    TransactionType,
)

TODAY = date(2026, 10, 17)


def _income(txn_id: str, amount: float, platform=None, rides=None, km=None, hours=None, day: date = TODAY, platform_rides=()):
    return Transaction(
        id=txn_id,
        date=day,
        amount=amount,
        type=TransactionType.INCOME,
        platform=platform,
        platform_rides=tuple(platform_rides),
        rides=rides,
        kilometers=km,
        hours_worked=hours,
    )


def _expense(txn_id: str, amount: float, category=ExpenseCategory.FUEL, day: date = TODAY):
    return Transaction(id=txn_id, date=day, amount=amount, type=TransactionType.EXPENSE, category=category)


def _example_month() -> list[Transaction]:
    return [
        _income("t1", 180, KnownPlatform.UBER, rides=8, km=60, hours=4),
        _income("t2", 150, KnownPlatform.INDRIVE, rides=5, km=45, hours=3),
        _expense("t3", 40),
    ]


class DashboardStatsTests(unittest.TestCase):
    def test_example_month(self) -> None:
        stats = calculate_dashboard_stats(_example_month(), 2000, TODAY)

        self.assertEqual(stats.planned, 2000)
        self.assertEqual(stats.realized, 330)
        self.assertEqual(stats.costs, 40)
        self.assertEqual(stats.net_profit, 290)
        self.assertEqual(stats.kilometers, 105)
        self.assertEqual(stats.rides, 13)
        self.assertEqual(stats.hours_worked, 7)
        self.assertEqual(stats.value_per_km, 3.14)
        self.assertEqual(stats.value_per_hour, 47.14)
        self.assertEqual(stats.value_per_minute, 0.79)
        self.assertEqual(stats.goal_progress, 16.5)
        self.assertEqual(stats.days_remaining, 15)
        self.assertEqual(stats.remaining_amount, 1670)
        self.assertEqual(stats.daily_goal_needed, 111.33)

    def test_example_breakdown(self) -> None:
        stats = calculate_dashboard_stats(_example_month(), 2000, TODAY)
        shares = {s.platform: (s.rides, s.percentage) for s in stats.platform_breakdown}

        self.assertEqual(shares["uber"], (8, 62))
        self.assertEqual(shares["indrive"], (5, 38))
        self.assertEqual(shares["99"], (0, 0))
        self.assertEqual(shares["particular"], (0, 0))
        self.assertEqual([s.platform for s in stats.platform_breakdown], ["uber", "indrive", "99", "particular"])

    def test_zero_goal_with_income(self) -> None:
        stats = calculate_dashboard_stats(_example_month(), 0, TODAY)

        self.assertEqual(stats.goal_progress, 0)
        self.assertEqual(stats.remaining_amount, 0)
        self.assertEqual(stats.daily_goal_needed, 0)

    def test_goal_progress_is_capped(self) -> None:
        stats = calculate_dashboard_stats([_income("t1", 5000, KnownPlatform.UBER, rides=1)], 1000, TODAY)

        self.assertEqual(stats.goal_progress, 100)
        self.assertEqual(stats.remaining_amount, 0)

    def test_no_income_guards_every_ratio(self) -> None:
        stats = calculate_dashboard_stats([_expense("t1", 25)], 0, TODAY)

        self.assertEqual(stats.value_per_km, 0)
        self.assertEqual(stats.value_per_hour, 0)
        self.assertEqual(stats.value_per_minute, 0)
        self.assertEqual(stats.goal_progress, 0)
        self.assertEqual(stats.net_profit, -25)
        self.assertTrue(all(s.percentage == 0 for s in stats.platform_breakdown))

    def test_empty_ledger_keeps_known_platforms(self) -> None:
        stats = calculate_dashboard_stats([], 1500, TODAY)

        self.assertEqual({s.platform for s in stats.platform_breakdown}, {"uber", "99", "indrive", "particular"})
        self.assertEqual(stats.daily_goal_needed, 100)

    def test_only_current_month_counts(self) -> None:
        txns = _example_month() + [
            _income("old", 999, KnownPlatform.UBER, rides=3, day=date(2026, 9, 30)),
            _expense("next-year", 50, day=date(2027, 10, 1)),
        ]
        stats = calculate_dashboard_stats(txns, 2000, TODAY)

        self.assertEqual(stats.realized, 330)
        self.assertEqual(stats.costs, 40)

    def test_recalculation_is_idempotent(self) -> None:
        txns = _example_month()

        self.assertEqual(calculate_dashboard_stats(txns, 2000, TODAY), calculate_dashboard_stats(txns, 2000, TODAY))

    def test_net_profit_matches_rounded_totals(self) -> None:
        txns = [_income("a", 10.005, KnownPlatform.UBER, rides=1), _expense("b", 3.333)]
        stats = calculate_dashboard_stats(txns, 100, TODAY)

        self.assertAlmostEqual(stats.net_profit, round(stats.realized - stats.costs, 2))

    def test_malformed_records_degrade_to_zero(self) -> None:
        broken = SimpleNamespace(
            id="x",
            date=TODAY.isoformat(),
            amount="abc",
            type="income",
            platform="uber",
            platform_rides=None,
            rides=None,
            kilometers=float("nan"),
            hours_worked=None,
        )
        no_date = SimpleNamespace(id="y", date=None, amount=100, type="income")
        stats = calculate_dashboard_stats([broken, no_date, *_example_month()], 2000, TODAY)

        self.assertEqual(stats.realized, 330)
        self.assertEqual(stats.kilometers, 105)

    def test_negative_goal_is_treated_as_zero(self) -> None:
        stats = calculate_dashboard_stats(_example_month(), -500, TODAY)

        self.assertEqual(stats.planned, 0)
        self.assertEqual(stats.goal_progress, 0)


class PlatformBreakdownTests(unittest.TestCase):
    def test_platform_rides_list_wins_over_single_platform(self) -> None:
        txn = _income(
            "t1",
            200,
            KnownPlatform.UBER,
            rides=10,
            platform_rides=[PlatformRide(KnownPlatform.UBER, 4), PlatformRide(KnownPlatform.NINETY_NINE, 6)],
        )

        self.assertEqual(count_platform_rides([txn]), {"uber": 4, "99": 6})

    def test_single_platform_without_rides_counts_once(self) -> None:
        txn = _income("t1", 50, KnownPlatform.PARTICULAR)

        self.assertEqual(count_platform_rides([txn]), {"particular": 1})

    def test_custom_platform_is_listed_before_missing_known_ones(self) -> None:
        breakdown = build_platform_breakdown(count_platform_rides([_income("t1", 50, CustomPlatform("Cabify"), rides=3)]))

        self.assertEqual(breakdown[0].platform, "Cabify")
        self.assertEqual(breakdown[0].percentage, 100)
        self.assertEqual(len(breakdown), 5)

    def test_percentages_sum_close_to_hundred(self) -> None:
        breakdown = build_platform_breakdown({"uber": 1, "99": 1, "indrive": 1})
        total = sum(s.percentage for s in breakdown)

        self.assertTrue(99 <= total <= 101)

    def test_rides_fall_back_to_platform_rides_sum(self) -> None:
        txn = _income(
            "t1",
            80,
            platform_rides=[PlatformRide(KnownPlatform.UBER, 2), PlatformRide(KnownPlatform.INDRIVE, 3)],
        )
        stats = calculate_dashboard_stats([txn], 0, TODAY)

        self.assertEqual(stats.rides, 5)


class DaysRemainingTests(unittest.TestCase):
    def test_counts_today(self) -> None:
        self.assertEqual(days_remaining_in_month(date(2026, 10, 31)), 1)
        self.assertEqual(days_remaining_in_month(date(2026, 10, 1)), 31)

    def test_leap_february(self) -> None:
        self.assertEqual(days_remaining_in_month(date(2028, 2, 28)), 2)


if __name__ == "__main__":
    unittest.main()
