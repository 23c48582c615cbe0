from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Sequence

from domain.models import Transaction
from domain.schemas import ToolRequest, ToolResponse


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    args_schema: dict[str, Any]


PERIOD_ARGS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "year": {"type": "integer", "description": "Four-digit year. Defaults to the current year."},
        "month_number": {
            "type": ["integer", "string"],
            "description": "Calendar month (1=Jan ... 12=Dec), or 'all' for the whole year. Defaults to the current month.",
        },
        "date_range": {
            "type": "object",
            "properties": {"start": {"type": "string"}, "end": {"type": "string"}},
            "description": "Explicit inclusive range; overrides year/month_number.",
        },
    },
}


class Tool(ABC):
    name: str
    description: str = ""

    @abstractmethod
    def run(self, request: ToolRequest, transactions: Sequence[Transaction]) -> ToolResponse:
        raise NotImplementedError

    def spec(self) -> ToolSpec:
        return ToolSpec(name=self.name, description=self.description, args_schema=PERIOD_ARGS_SCHEMA)

    def respond(self, request: ToolRequest, result: dict[str, Any]) -> ToolResponse:
        return ToolResponse(request_id=request.request_id, tool=self.name, result=result, context=request.context)

    def fail(self, request: ToolRequest, *errors: str) -> ToolResponse:
        return ToolResponse(
            request_id=request.request_id,
            tool=self.name,
            ok=False,
            errors=list(errors),
            context=request.context,
        )
