from __future__ import annotations

from typing import Any, Sequence

from domain.models import ExpenseCategory, Transaction
from domain.records import transaction_to_record
from domain.schemas import ToolRequest, ToolResponse
from tools._period_support import PeriodError, in_period, period_payload, resolve_period
from tools.base import PERIOD_ARGS_SCHEMA, Tool, ToolSpec
from tools.registry import register_tool

CATEGORY_LABELS = {
    ExpenseCategory.FUEL: "Combustível",
    ExpenseCategory.TOLLS: "Pedágios",
    ExpenseCategory.FOOD: "Alimentação",
    ExpenseCategory.MAINTENANCE: "Manutenção",
    ExpenseCategory.CAR_WASH: "Lavagem",
    ExpenseCategory.INSURANCE: "Seguro",
    ExpenseCategory.TAXES: "Impostos",
    ExpenseCategory.OTHER: "Outros",
}


def _matches(txn: Transaction, query: str) -> bool:
    if not query:
        return True
    haystack = [
        txn.description or "",
        txn.platform.value if txn.platform is not None else "",
        txn.category.value if txn.category is not None else "",
    ]
    return any(query in text.lower() for text in haystack)


def _details(txn: Transaction) -> str:
    if not txn.is_income:
        return CATEGORY_LABELS.get(txn.category, "") if txn.category else ""
    parts = [txn.platform.value if txn.platform is not None else ""]
    if txn.rides:
        parts.append(f"{txn.rides} corrida(s)")
    if txn.kilometers:
        parts.append(f"{txn.kilometers:g} KM")
    return " - ".join(part for part in parts if part)


@register_tool
class TransactionsListTool(Tool):
    name = "reports.transactions"
    description = (
        "List transactions for a month (or a whole year with month_number='all'), most recent first, "
        "optionally filtered by a text `query` over description, platform and category."
    )

    def run(self, request: ToolRequest, transactions: Sequence[Transaction]) -> ToolResponse:
        try:
            start, end = resolve_period(request)
        except PeriodError as exc:
            return self.fail(request, str(exc))

        query = str(request.args.get("query") or "").strip().lower()
        selected = [t for t in in_period(transactions, start, end) if _matches(t, query)]
        selected.sort(key=lambda t: t.date, reverse=True)

        rows: list[dict[str, Any]] = []
        for txn in selected:
            row = transaction_to_record(txn)
            row["type_label"] = "Ganho" if txn.is_income else "Custo"
            row["category_label"] = CATEGORY_LABELS.get(txn.category) if txn.category else None
            row["details"] = _details(txn)
            rows.append(row)

        return self.respond(
            request,
            {
                "period": period_payload(start, end),
                "query": query or None,
                "transaction_count": len(rows),
                "transactions": rows,
            },
        )

    def spec(self) -> ToolSpec:
        schema = {**PERIOD_ARGS_SCHEMA, "properties": {**PERIOD_ARGS_SCHEMA["properties"], "query": {"type": "string"}}}
        return ToolSpec(name=self.name, description=self.description, args_schema=schema)
