from __future__ import annotations

from calendar import monthrange
from datetime import date
from typing import Any, Iterable, Sequence

from pydantic import ValidationError

from domain.models import Transaction
from domain.schemas import DateRange, ToolRequest

WEEKDAYS = ["Domingo", "Segunda", "Terça", "Quarta", "Quinta", "Sexta", "Sábado"]
MONTHS = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]


class PeriodError(ValueError):
    pass


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def month_bounds(year: int, month_number: int) -> tuple[date, date]:
    return date(year, month_number, 1), date(year, month_number, monthrange(year, month_number)[1])


def shift_month(year: int, month_number: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month_number - 1) + delta
    return index // 12, index % 12 + 1


def resolve_period(request: ToolRequest) -> tuple[date, date]:
    """
    Inclusive (start, end) for a report.

    `date_range` wins; otherwise `year` + `month_number` (or "all" for the
    whole year); otherwise the month of the request's `today`.
    """
    args = request.args if isinstance(request.args, dict) else {}
    today = request.context.today

    if isinstance(args.get("date_range"), dict):
        try:
            date_range = DateRange.model_validate(args["date_range"])
        except ValidationError as exc:
            raise PeriodError(f"invalid date_range: {exc.errors()[0].get('msg', exc)}") from exc
        return date_range.start, date_range.end

    year = _as_int(args.get("year")) or today.year
    raw_month = args.get("month_number", args.get("month"))
    if raw_month is None:
        return month_bounds(year, today.month)
    if str(raw_month).strip().lower() == "all":
        return date(year, 1, 1), date(year, 12, 31)

    month_number = _as_int(raw_month)
    if month_number is None or month_number < 1 or month_number > 12:
        raise PeriodError("month_number must be an integer from 1 to 12")
    return month_bounds(year, month_number)


def selected_month(request: ToolRequest) -> tuple[int, int]:
    start, _ = resolve_period(request)
    return start.year, start.month


def in_period(transactions: Iterable[Transaction], start: date, end: date) -> list[Transaction]:
    return [t for t in transactions if start <= t.date <= end]


def period_payload(start: date, end: date) -> dict[str, str]:
    return {"start": start.isoformat(), "end": end.isoformat()}


def split_by_type(transactions: Sequence[Transaction]) -> tuple[list[Transaction], list[Transaction]]:
    income = [t for t in transactions if t.is_income]
    expenses = [t for t in transactions if not t.is_income]
    return income, expenses
