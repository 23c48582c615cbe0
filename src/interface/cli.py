from __future__ import annotations

import json
import logging
import os

from application.goal_flow import GoalFlowState, GoalUpdateFlow
from application.ledger import DriverLedger
from application.report_executor import ReportExecutor
from domain.errors import LedgerError
from domain.formatting import format_brl
from domain.models import Identity
from infrastructure.persistence.local_cache import LocalCache
from infrastructure.repositories.memory_repository import InMemoryRepository
from infrastructure.repositories.repository import LedgerRepository
from infrastructure.repositories.supabase_repository import SupabaseRepository
from tools.registry import registry

logger = logging.getLogger(__name__)


def build_repository(backend: str | None = None) -> LedgerRepository:
    backend = (backend or os.getenv("LEDGER_BACKEND", "memory")).strip().lower()
    if backend == "supabase":
        return SupabaseRepository()
    if backend != "memory":
        raise ValueError(f"Unknown LEDGER_BACKEND: {backend!r} (expected 'memory' or 'supabase')")
    return InMemoryRepository()


def build_ledger(repository: LedgerRepository | None = None) -> DriverLedger:
    return DriverLedger(repository=repository or build_repository(), cache=LocalCache())


def build_report_executor() -> ReportExecutor:
    import tools  # noqa: F401

    return ReportExecutor(registry)


def _print_dashboard(ledger: DriverLedger) -> None:
    stats = ledger.stats
    print(f"Meta:       {format_brl(stats.planned)}  ({stats.goal_progress:.2f}%)")
    print(f"Ganhos:     {format_brl(stats.realized)}")
    print(f"Custos:     {format_brl(stats.costs)}")
    print(f"Líquido:    {format_brl(stats.net_profit)}")
    print(f"R$/km:      {format_brl(stats.value_per_km)}   R$/hora: {format_brl(stats.value_per_hour)}")
    print(f"Faltam {stats.days_remaining} dia(s); meta diária: {format_brl(stats.daily_goal_needed)}")
    for share in stats.platform_breakdown:
        print(f"  {share.platform:<12} {share.rides:>4} corridas  {share.percentage:>3}%")


def _run_goal_flow(flow: GoalUpdateFlow) -> None:
    while flow.state == GoalFlowState.EDITING:
        raw = input(f"Nova meta mensal [{flow.value}] > ").strip()
        if raw.lower() in {"q", "cancelar"}:
            flow.cancel()
            print("Cancelado.")
            return
        if raw:
            flow.edit(raw)
        try:
            flow.submit()
        except LedgerError as exc:
            print(f"Valor inválido: {exc}")
            continue

        answer = input(f"{flow.prompt} [s/N/voltar] > ").strip().lower()
        if answer in {"s", "sim", "y"}:
            flow.confirm()
            print("Meta atualizada.")
        elif answer == "voltar":
            flow.back()
        else:
            flow.cancel()
            print("Cancelado.")


def main() -> None:
    identity = Identity(
        user_id=os.getenv("LEDGER_USER_ID", "u_cli"),
        email=os.getenv("LEDGER_USER_EMAIL", ""),
    )
    logger.info("CLI start user_id=%s", identity.user_id)
    ledger = build_ledger()
    executor = build_report_executor()
    try:
        ledger.load(identity)
    except LedgerError as exc:
        print(f"[rideledger] error: {exc}")
        return

    command = input("RideLedger (painel | meta | <relatorio>) > ").strip()
    try:
        if command in {"", "painel"}:
            _print_dashboard(ledger)
        elif command == "meta":
            _run_goal_flow(ledger.goal_flow())
            _print_dashboard(ledger)
        else:
            response = executor.run(ledger, command)
            print(json.dumps(response.model_dump(mode="json"), indent=2, ensure_ascii=False))
    except LedgerError as exc:
        print(f"[rideledger] error: {exc}")


if __name__ == "__main__":
    main()
