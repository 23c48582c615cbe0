from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

from application.goal_flow import GoalFlowState, GoalUpdateFlow
from infrastructure.repositories.memory_repository import InMemoryRepository
from infrastructure.repositories.supabase_repository import SupabaseRepository
from interface import cli


class BuildRepositoryTests(unittest.TestCase):
    def test_backend_selection(self) -> None:
        self.assertIsInstance(cli.build_repository("memory"), InMemoryRepository)
        self.assertIsInstance(cli.build_repository("Supabase"), SupabaseRepository)

    def test_unknown_backend_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            cli.build_repository("sqlite")


class GoalPromptTests(unittest.TestCase):
    @patch("builtins.print")
    @patch("builtins.input", side_effect=["abc", "2500", "voltar", "", "s"])
    def test_invalid_then_back_then_confirm(self, _input, _print) -> None:
        on_commit = MagicMock()
        flow = GoalUpdateFlow(on_commit)

        cli._run_goal_flow(flow)

        on_commit.assert_called_once_with(2500.0)
        self.assertEqual(flow.state, GoalFlowState.CLOSED)

    @patch("builtins.print")
    @patch("builtins.input", side_effect=["q"])
    def test_quit_cancels(self, _input, _print) -> None:
        flow = GoalUpdateFlow(MagicMock())

        cli._run_goal_flow(flow)

        self.assertFalse(flow.committed)


class MainTests(unittest.TestCase):
    @patch.dict("os.environ", {"LEDGER_BACKEND": "memory", "LEDGER_CACHE_PATH": "", "LEDGER_USER_ID": "u_cli"})
    @patch("builtins.print")
    @patch("builtins.input", side_effect=["reports.period_summary"])
    def test_runs_a_report(self, _input, mock_print) -> None:
        cli.main()

        printed = mock_print.call_args.args[0]
        self.assertIn('"tool": "reports.period_summary"', printed)
        self.assertIn('"ok": true', printed)


if __name__ == "__main__":
    unittest.main()
