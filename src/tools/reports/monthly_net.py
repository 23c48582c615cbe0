from __future__ import annotations

from typing import Any, Sequence

from domain.models import Transaction
from domain.records import as_float
from domain.schemas import ToolRequest, ToolResponse
from tools._period_support import MONTHS, PeriodError, selected_month, shift_month
from tools.base import Tool
from tools.registry import register_tool

WINDOW_MONTHS = 6


@register_tool
class MonthlyNetTool(Tool):
    name = "reports.monthly_net"
    description = "Income, expenses and net for the six months ending at the selected month."

    def run(self, request: ToolRequest, transactions: Sequence[Transaction]) -> ToolResponse:
        try:
            year, month_number = selected_month(request)
        except PeriodError as exc:
            return self.fail(request, str(exc))

        months: list[dict[str, Any]] = []
        index: dict[tuple[int, int], dict[str, Any]] = {}
        for delta in range(-(WINDOW_MONTHS - 1), 1):
            y, m = shift_month(year, month_number, delta)
            entry = {"year": y, "month_number": m, "month": MONTHS[m - 1][:3], "income": 0.0, "expense": 0.0, "net": 0.0}
            months.append(entry)
            index[(y, m)] = entry

        for txn in transactions:
            entry = index.get((txn.date.year, txn.date.month))
            if entry is None:
                continue
            entry["income" if txn.is_income else "expense"] += as_float(txn.amount)

        for entry in months:
            entry["income"] = round(entry["income"], 2)
            entry["expense"] = round(entry["expense"], 2)
            entry["net"] = round(entry["income"] - entry["expense"], 2)

        return self.respond(request, {"months": months})
