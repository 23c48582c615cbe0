from __future__ import annotations

from datetime import timedelta
from typing import Any, Sequence

from domain.models import Transaction
from domain.records import as_float
from domain.schemas import ToolRequest, ToolResponse
from tools._period_support import WEEKDAYS, PeriodError, in_period, period_payload, resolve_period
from tools.base import Tool
from tools.registry import register_tool

MAX_DAILY_SPAN_DAYS = 366


@register_tool
class DailyReportTool(Tool):
    name = "reports.daily"
    description = "Income, expenses and net per calendar day across the selected period, including empty days."

    def run(self, request: ToolRequest, transactions: Sequence[Transaction]) -> ToolResponse:
        try:
            start, end = resolve_period(request)
        except PeriodError as exc:
            return self.fail(request, str(exc))
        if (end - start).days + 1 > MAX_DAILY_SPAN_DAYS:
            return self.fail(request, f"daily report covers at most {MAX_DAILY_SPAN_DAYS} days")

        days: dict[str, dict[str, Any]] = {}
        cursor = start
        while cursor <= end:
            days[cursor.isoformat()] = {"date": cursor.isoformat(), "income": 0.0, "expense": 0.0, "net": 0.0}
            cursor += timedelta(days=1)

        for txn in in_period(transactions, start, end):
            entry = days[txn.date.isoformat()]
            entry["income" if txn.is_income else "expense"] += as_float(txn.amount)

        for entry in days.values():
            entry["income"] = round(entry["income"], 2)
            entry["expense"] = round(entry["expense"], 2)
            entry["net"] = round(entry["income"] - entry["expense"], 2)

        return self.respond(request, {"period": period_payload(start, end), "days": list(days.values())})


@register_tool
class WeekdayEarningsTool(Tool):
    name = "reports.weekday_earnings"
    description = "Income and ride totals per weekday (Domingo to Sábado) for the selected period."

    def run(self, request: ToolRequest, transactions: Sequence[Transaction]) -> ToolResponse:
        try:
            start, end = resolve_period(request)
        except PeriodError as exc:
            return self.fail(request, str(exc))

        weekdays = [{"name": name, "ganhos": 0.0, "corridas": 0} for name in WEEKDAYS]
        for txn in in_period(transactions, start, end):
            if not txn.is_income:
                continue
            # Sunday first
            entry = weekdays[(txn.date.weekday() + 1) % 7]
            entry["ganhos"] += as_float(txn.amount)
            entry["corridas"] += txn.rides or 0

        for entry in weekdays:
            entry["ganhos"] = round(entry["ganhos"], 2)

        return self.respond(request, {"period": period_payload(start, end), "weekdays": weekdays})
