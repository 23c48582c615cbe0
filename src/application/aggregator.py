from __future__ import annotations

import logging
import math
from calendar import monthrange
from datetime import date
from typing import Any, Iterable

from domain.models import KNOWN_PLATFORMS, DashboardStats, PlatformShare, Transaction, TransactionType, parse_platform
from domain.records import as_float, parse_record_date

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _money(value: float) -> float:
    return round(value, 2)


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def days_remaining_in_month(today: date) -> int:
    """Days from `today` (inclusive) to the last day of its month."""
    return monthrange(today.year, today.month)[1] - today.day + 1


def _in_month(txn: Any, today: date) -> bool:
    posted_on = parse_record_date(getattr(txn, "date", None))
    return posted_on is not None and posted_on.year == today.year and posted_on.month == today.month


def _txn_type(txn: Any) -> TransactionType | None:
    raw = getattr(txn, "type", None)
    try:
        return TransactionType(raw)
    except (TypeError, ValueError):
        return None


def _ride_count(txn: Any) -> int:
    rides = getattr(txn, "rides", None)
    if rides is None:
        return sum(int(as_float(getattr(pr, "rides", 0))) for pr in getattr(txn, "platform_rides", None) or ())
    return int(as_float(rides))


def _platform_key(value: Any) -> str | None:
    try:
        platform = parse_platform(value)
    except (TypeError, ValueError):
        return None
    return platform.value if platform is not None else None


def count_platform_rides(income: Iterable[Any]) -> dict[str, int]:
    """
    Rides per platform, preferring the per-platform list on each record.

    Records without a per-platform list count their single platform with
    their ride total, or one ride when the total is missing.
    """
    counts: dict[str, int] = {}
    for txn in income:
        platform_rides = getattr(txn, "platform_rides", None) or ()
        if platform_rides:
            for pr in platform_rides:
                key = _platform_key(getattr(pr, "platform", None))
                if key is None:
                    continue
                counts[key] = counts.get(key, 0) + int(as_float(getattr(pr, "rides", 0)))
            continue

        key = _platform_key(getattr(txn, "platform", None))
        if key is None:
            continue
        rides = int(as_float(getattr(txn, "rides", None))) or 1
        counts[key] = counts.get(key, 0) + rides
    return counts


def build_platform_breakdown(counts: dict[str, int]) -> list[PlatformShare]:
    total = sum(counts.values())
    breakdown = [
        PlatformShare(
            platform=platform,
            rides=rides,
            percentage=_round_half_up(rides / total * 100) if total > 0 else 0,
        )
        for platform, rides in counts.items()
    ]
    for known in KNOWN_PLATFORMS:
        if known.value not in counts:
            breakdown.append(PlatformShare(platform=known.value, rides=0, percentage=0))
    return breakdown


def calculate_dashboard_stats(
    transactions: Iterable[Transaction],
    monthly_goal: float,
    today: date | None = None,
) -> DashboardStats:
    """
    Derive the dashboard snapshot for the calendar month of `today`.

    Pure and total: no I/O, no exceptions for malformed records (their
    unusable fields count as zero), and every ratio with a zero denominator
    yields 0.
    """
    today = today or date.today()
    goal = max(0.0, as_float(monthly_goal))

    month_txns = [t for t in transactions if _in_month(t, today)]
    income = [t for t in month_txns if _txn_type(t) == TransactionType.INCOME]
    expenses = [t for t in month_txns if _txn_type(t) == TransactionType.EXPENSE]

    realized = sum(as_float(getattr(t, "amount", None)) for t in income)
    costs = sum(as_float(getattr(t, "amount", None)) for t in expenses)

    kilometers = sum(as_float(getattr(t, "kilometers", None)) for t in income)
    rides = sum(_ride_count(t) for t in income)
    hours = sum(as_float(getattr(t, "hours_worked", None)) for t in income)

    value_per_km = _ratio(realized, kilometers)
    value_per_hour = _ratio(realized, hours)
    value_per_minute = _ratio(realized, hours * 60)

    goal_progress = min(100.0, realized / goal * 100) if goal > 0 else 0.0
    days_remaining = days_remaining_in_month(today)
    remaining_amount = max(0.0, goal - realized)
    daily_goal_needed = _ratio(remaining_amount, days_remaining)

    breakdown = build_platform_breakdown(count_platform_rides(income))

    logger.debug(
        "Stats calculation month=%04d-%02d txns=%d income=%.2f expenses=%.2f km=%.1f rides=%d hours=%.2f goal=%.2f",
        today.year,
        today.month,
        len(month_txns),
        realized,
        costs,
        kilometers,
        rides,
        hours,
        goal,
    )

    return DashboardStats(
        planned=_money(goal),
        realized=_money(realized),
        costs=_money(costs),
        net_profit=_money(_money(realized) - _money(costs)),
        goal_progress=_money(goal_progress),
        kilometers=_round_half_up(kilometers),
        rides=rides,
        hours_worked=_money(hours),
        value_per_km=_money(value_per_km),
        value_per_hour=_money(value_per_hour),
        value_per_minute=_money(value_per_minute),
        days_remaining=days_remaining,
        remaining_amount=_money(remaining_amount),
        daily_goal_needed=_money(daily_goal_needed),
        platform_breakdown=breakdown,
    )
