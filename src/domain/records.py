from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict
from datetime import date, datetime
from typing import Any

from domain.models import (
    DashboardStats,
    ExpenseCategory,
    PlatformRide,
    PlatformShare,
    Transaction,
    TransactionType,
    UserProfile,
    parse_platform,
)

logger = logging.getLogger(__name__)


def as_float(value: Any) -> float:
    """Lenient numeric read: anything unusable counts as zero."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return as_float(value)


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(round(as_float(value)))


def parse_record_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def _parse_platform_rides(raw: Any) -> tuple[PlatformRide, ...]:
    if isinstance(raw, str):
        if not raw.strip():
            return ()
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable platform_rides payload: %r", raw)
            return ()
    if not isinstance(raw, list):
        return ()

    rides: list[PlatformRide] = []
    for item in raw:
        if isinstance(item, PlatformRide):
            rides.append(item)
            continue
        if not isinstance(item, dict):
            continue
        platform = parse_platform(item.get("platform"))
        if platform is None:
            continue
        rides.append(PlatformRide(platform=platform, rides=int(round(as_float(item.get("rides"))))))
    return tuple(rides)


def platform_rides_to_list(platform_rides: tuple[PlatformRide, ...]) -> list[dict[str, Any]]:
    return [{"platform": pr.platform.value, "rides": pr.rides} for pr in platform_rides]


def transaction_to_record(txn: Transaction) -> dict[str, Any]:
    return {
        "id": txn.id,
        "date": txn.date.isoformat(),
        "amount": txn.amount,
        "type": txn.type.value,
        "description": txn.description,
        "platform": txn.platform.value if txn.platform is not None else None,
        "platform_rides": platform_rides_to_list(txn.platform_rides) or None,
        "rides": txn.rides,
        "kilometers": txn.kilometers,
        "hours_worked": txn.hours_worked,
        "category": txn.category.value if txn.category is not None else None,
        "created_at": txn.metadata.get("created_at"),
        "updated_at": txn.metadata.get("updated_at"),
    }


def transaction_from_record(row: dict[str, Any]) -> Transaction | None:
    """
    Rebuild a stored transaction without rejecting it.

    Rows coming back from storage are trusted as-is: unreadable numbers become
    zero so a single bad row never blocks a whole ledger. Rows without an id or
    a readable date cannot be placed and are skipped.
    """
    txn_id = row.get("id")
    posted_on = parse_record_date(row.get("date"))
    if txn_id in (None, "") or posted_on is None:
        logger.warning("Skipping stored transaction without id/date: id=%r date=%r", txn_id, row.get("date"))
        return None

    try:
        txn_type = TransactionType(str(row.get("type") or "").lower())
    except ValueError:
        logger.warning("Skipping stored transaction %s with unknown type %r", txn_id, row.get("type"))
        return None

    category = None
    if txn_type == TransactionType.EXPENSE and row.get("category"):
        try:
            category = ExpenseCategory(str(row["category"]))
        except ValueError:
            category = ExpenseCategory.OTHER

    metadata = {key: row[key] for key in ("created_at", "updated_at") if row.get(key)}
    is_income = txn_type == TransactionType.INCOME
    return Transaction(
        id=str(txn_id),
        date=posted_on,
        amount=round(as_float(row.get("amount")), 2),
        type=txn_type,
        description=row.get("description") or None,
        platform=parse_platform(row.get("platform")) if is_income else None,
        platform_rides=_parse_platform_rides(row.get("platform_rides")) if is_income else (),
        rides=_optional_int(row.get("rides")) if is_income else None,
        kilometers=_optional_float(row.get("kilometers")) if is_income else None,
        hours_worked=_optional_float(row.get("hours_worked")) if is_income else None,
        category=category,
        metadata=metadata,
    )


def profile_to_record(profile: UserProfile) -> dict[str, Any]:
    return asdict(profile)


def profile_from_record(row: dict[str, Any], email: str = "") -> UserProfile:
    return UserProfile(
        id=str(row.get("id") or ""),
        name=str(row.get("name") or (email.split("@")[0] if email else "") or "Usuário"),
        email=str(email or row.get("email") or ""),
        monthly_goal=max(0.0, as_float(row.get("monthly_goal"))),
        license_plate=row.get("license_plate") or None,
        has_access=bool(row.get("has_access")),
    )


def stats_to_record(stats: DashboardStats) -> dict[str, Any]:
    return asdict(stats)


def stats_from_record(row: dict[str, Any]) -> DashboardStats:
    breakdown = [
        PlatformShare(
            platform=str(item.get("platform")),
            rides=int(as_float(item.get("rides"))),
            percentage=int(as_float(item.get("percentage"))),
        )
        for item in row.get("platform_breakdown") or []
        if isinstance(item, dict)
    ]
    fields = {k: v for k, v in row.items() if k != "platform_breakdown" and k in DashboardStats.__dataclass_fields__}
    if breakdown:
        return DashboardStats(**fields, platform_breakdown=breakdown)
    return DashboardStats(**fields)
