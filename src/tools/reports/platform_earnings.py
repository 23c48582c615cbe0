from __future__ import annotations

from typing import Sequence

from domain.models import KNOWN_PLATFORMS, Transaction
from domain.records import as_float
from domain.schemas import ToolRequest, ToolResponse
from tools._period_support import PeriodError, in_period, period_payload, resolve_period
from tools.base import Tool
from tools.registry import register_tool


def _label(platform: str) -> str:
    return platform if platform == "99" else platform.capitalize()


@register_tool
class PlatformEarningsTool(Tool):
    name = "reports.platform_earnings"
    description = "Earnings and rides per known platform for the selected period (single-platform records)."

    def run(self, request: ToolRequest, transactions: Sequence[Transaction]) -> ToolResponse:
        try:
            start, end = resolve_period(request)
        except PeriodError as exc:
            return self.fail(request, str(exc))

        platforms = {
            known.value: {"platform": known.value, "name": _label(known.value), "valor": 0.0, "corridas": 0}
            for known in KNOWN_PLATFORMS
        }
        for txn in in_period(transactions, start, end):
            if not txn.is_income or txn.platform is None:
                continue
            entry = platforms.get(txn.platform.value)
            if entry is None:
                continue
            entry["valor"] += as_float(txn.amount)
            entry["corridas"] += txn.rides or 0

        rows = list(platforms.values())
        for row in rows:
            row["valor"] = round(row["valor"], 2)

        return self.respond(
            request,
            {
                "period": period_payload(start, end),
                "platforms": rows,
                "total_rides": sum(row["corridas"] for row in rows),
            },
        )
