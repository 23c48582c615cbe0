from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from application.ledger import DriverLedger
from domain.schemas import ToolContext, ToolRequest, ToolResponse
from tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ReportExecutor:
    """Runs a named report tool against a ledger's current transactions."""

    def __init__(self, registry: ToolRegistry):
        self._registry = registry

    def run(
        self,
        ledger: DriverLedger,
        tool_name: str,
        args: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> ToolResponse:
        identity = ledger.identity
        context = ToolContext(
            user_id=identity.user_id if identity is not None else "",
            monthly_goal=ledger.profile.monthly_goal,
            today=ledger.today(),
        )
        req = ToolRequest(
            request_id=request_id or f"req_{uuid.uuid4().hex[:12]}",
            tool=tool_name,
            args=args or {},
            context=context,
        )
        logger.info("ReportExecutor running request_id=%s tool=%s", req.request_id, tool_name)
        t = time.perf_counter()
        try:
            tool = self._registry.get_tool(req.tool)
            response = tool.run(req, ledger.transactions)
        except Exception as exc:
            logger.exception("ReportExecutor failed request_id=%s tool=%s", req.request_id, tool_name)
            response = ToolResponse(
                request_id=req.request_id,
                tool=req.tool,
                ok=False,
                errors=[str(exc) or exc.__class__.__name__],
                context=context,
            )
        logger.info(
            "ReportExecutor finished request_id=%s tool=%s in %.2fs ok=%s",
            req.request_id,
            tool_name,
            time.perf_counter() - t,
            response.ok,
        )
        return response
