from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

from domain.errors import LedgerError, ValidationError
from domain.formatting import format_brl
from domain.schemas import parse_quantity

logger = logging.getLogger(__name__)


class GoalFlowState(str, Enum):
    EDITING = "editing"
    CONFIRMING = "confirming"
    CLOSED = "closed"


class GoalFlowError(LedgerError):
    pass


class GoalUpdateFlow:
    """
    Two-step monthly goal edit: type a value, then confirm it.

    editing --submit--> confirming --confirm--> closed (goal committed)
    confirming --back--> editing (typed value kept)
    editing|confirming --cancel--> closed (nothing committed)
    """

    def __init__(self, on_commit: Callable[[float], Any], current_goal: float = 0.0) -> None:
        self._on_commit = on_commit
        self._value: Any = current_goal
        self._proposed: float | None = None
        self.state = GoalFlowState.EDITING
        self.committed = False

    @property
    def value(self) -> Any:
        return self._value

    @property
    def proposed_goal(self) -> float | None:
        return self._proposed

    @property
    def prompt(self) -> str:
        if self.state != GoalFlowState.CONFIRMING or self._proposed is None:
            return ""
        return f"Confirmar meta mensal de {format_brl(self._proposed)}?"

    def edit(self, value: Any) -> None:
        self._require(GoalFlowState.EDITING, "edit")
        self._value = value

    def submit(self) -> float:
        self._require(GoalFlowState.EDITING, "submit")
        try:
            goal = parse_quantity(self._value, "monthly_goal", required=True)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        self._proposed = round(goal, 2)
        self.state = GoalFlowState.CONFIRMING
        return self._proposed

    def back(self) -> None:
        self._require(GoalFlowState.CONFIRMING, "back")
        self._proposed = None
        self.state = GoalFlowState.EDITING

    def confirm(self) -> float:
        self._require(GoalFlowState.CONFIRMING, "confirm")
        goal = self._proposed
        # stays in confirming if the commit fails, so the user can retry
        self._on_commit(goal)
        self.committed = True
        self.state = GoalFlowState.CLOSED
        logger.info("Monthly goal committed goal=%.2f", goal)
        return goal

    def cancel(self) -> None:
        if self.state == GoalFlowState.CLOSED:
            return
        self._proposed = None
        self.state = GoalFlowState.CLOSED

    def _require(self, state: GoalFlowState, action: str) -> None:
        if self.state != state:
            raise GoalFlowError(f"Cannot {action} while {self.state.value}")
