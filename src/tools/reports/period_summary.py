from __future__ import annotations

from typing import Sequence

from domain.models import Transaction
from domain.records import as_float
from domain.schemas import ToolRequest, ToolResponse
from tools._period_support import PeriodError, in_period, period_payload, resolve_period, split_by_type
from tools.base import Tool
from tools.registry import register_tool


@register_tool
class PeriodSummaryTool(Tool):
    name = "reports.period_summary"
    description = "Total income (ganhos), expenses (custos) and net result for the selected period."

    def run(self, request: ToolRequest, transactions: Sequence[Transaction]) -> ToolResponse:
        try:
            start, end = resolve_period(request)
        except PeriodError as exc:
            return self.fail(request, str(exc))

        selected = in_period(transactions, start, end)
        income, expenses = split_by_type(selected)
        income_total = round(sum(as_float(t.amount) for t in income), 2)
        expense_total = round(sum(as_float(t.amount) for t in expenses), 2)

        return self.respond(
            request,
            {
                "period": period_payload(start, end),
                "transaction_count": len(selected),
                "income_total": income_total,
                "expense_total": expense_total,
                "net_total": round(income_total - expense_total, 2),
                "rides": sum(t.rides or 0 for t in income),
            },
        )


@register_tool
class HoursReportTool(Tool):
    name = "reports.hours"
    description = "Hours worked, earnings and hourly rate for the selected period."

    def run(self, request: ToolRequest, transactions: Sequence[Transaction]) -> ToolResponse:
        try:
            start, end = resolve_period(request)
        except PeriodError as exc:
            return self.fail(request, str(exc))

        income, _ = split_by_type(in_period(transactions, start, end))
        total_hours = sum(as_float(t.hours_worked) for t in income)
        total_earnings = sum(as_float(t.amount) for t in income)
        hourly_rate = total_earnings / total_hours if total_hours > 0 else 0.0

        return self.respond(
            request,
            {
                "period": period_payload(start, end),
                "total_hours": round(total_hours, 2),
                "total_earnings": round(total_earnings, 2),
                "hourly_rate": round(hourly_rate, 2),
            },
        )
