from __future__ import annotations

from dataclasses import asdict
from typing import Sequence

from application.aggregator import calculate_dashboard_stats
from domain.models import Transaction
from domain.schemas import ToolRequest, ToolResponse
from tools.base import Tool, ToolSpec
from tools.registry import register_tool


@register_tool
class DashboardStatsTool(Tool):
    name = "dashboard.stats"
    description = "Current-month dashboard statistics: goal progress, net profit, per-km/hour values, platform split."

    def run(self, request: ToolRequest, transactions: Sequence[Transaction]) -> ToolResponse:
        stats = calculate_dashboard_stats(transactions, request.context.monthly_goal, request.context.today)
        return self.respond(request, asdict(stats))

    def spec(self) -> ToolSpec:
        return ToolSpec(name=self.name, description=self.description, args_schema={"type": "object", "properties": {}})
