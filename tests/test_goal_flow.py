from __future__ import annotations

import unittest
from unittest.mock import MagicMock

from application.goal_flow import GoalFlowError, GoalFlowState, GoalUpdateFlow
from domain.errors import TransportError, ValidationError


class GoalUpdateFlowTests(unittest.TestCase):
    def test_submit_then_confirm_commits_once(self) -> None:
        on_commit = MagicMock()
        flow = GoalUpdateFlow(on_commit, current_goal=1500)
        flow.edit("2.000,00")

        self.assertEqual(flow.submit(), 2000.0)
        self.assertEqual(flow.state, GoalFlowState.CONFIRMING)
        self.assertEqual(flow.prompt, "Confirmar meta mensal de R$ 2.000,00?")
        on_commit.assert_not_called()

        flow.confirm()
        on_commit.assert_called_once_with(2000.0)
        self.assertTrue(flow.committed)
        self.assertEqual(flow.state, GoalFlowState.CLOSED)

    def test_back_keeps_typed_value(self) -> None:
        flow = GoalUpdateFlow(MagicMock())
        flow.edit("3000")
        flow.submit()
        flow.back()

        self.assertEqual(flow.state, GoalFlowState.EDITING)
        self.assertEqual(flow.value, "3000")
        self.assertIsNone(flow.proposed_goal)
        self.assertEqual(flow.prompt, "")

    def test_cancel_commits_nothing(self) -> None:
        on_commit = MagicMock()
        flow = GoalUpdateFlow(on_commit)
        flow.edit("3000")
        flow.submit()
        flow.cancel()

        on_commit.assert_not_called()
        self.assertFalse(flow.committed)
        self.assertEqual(flow.state, GoalFlowState.CLOSED)

    def test_invalid_value_stays_editing(self) -> None:
        flow = GoalUpdateFlow(MagicMock())
        flow.edit("-5")

        with self.assertRaises(ValidationError):
            flow.submit()
        self.assertEqual(flow.state, GoalFlowState.EDITING)

    def test_failed_commit_can_be_retried(self) -> None:
        on_commit = MagicMock(side_effect=[TransportError("offline"), None])
        flow = GoalUpdateFlow(on_commit)
        flow.edit(1000)
        flow.submit()

        with self.assertRaises(TransportError):
            flow.confirm()
        self.assertEqual(flow.state, GoalFlowState.CONFIRMING)

        flow.confirm()
        self.assertTrue(flow.committed)
        self.assertEqual(on_commit.call_count, 2)

    def test_confirm_requires_submit(self) -> None:
        flow = GoalUpdateFlow(MagicMock())

        with self.assertRaises(GoalFlowError):
            flow.confirm()


if __name__ == "__main__":
    unittest.main()
