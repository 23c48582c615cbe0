from __future__ import annotations

import logging
import os
from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from application.ledger import DriverLedger
from application.sessions import LedgerSessions
from domain.errors import IdentityRequiredError, NotFoundError, TransportError, ValidationError
from domain.models import Identity
from domain.records import profile_to_record, transaction_to_record
from interface.cli import build_report_executor, build_repository
from tools.registry import registry

logger = logging.getLogger(__name__)

app = FastAPI(title="RideLedger API")
repository = build_repository()
sessions = LedgerSessions(lambda: DriverLedger(repository=repository))
executor = build_report_executor()


def _access_required() -> bool:
    return os.getenv("LEDGER_REQUIRE_ACCESS", "").strip().lower() in {"1", "true", "yes"}


@app.exception_handler(ValidationError)
def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc), "errors": exc.errors})


@app.exception_handler(NotFoundError)
def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(TransportError)
def handle_transport_error(request: Request, exc: TransportError) -> JSONResponse:
    logger.warning("Transport failure path=%s: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(IdentityRequiredError)
def handle_identity_required(request: Request, exc: IdentityRequiredError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": str(exc)})


def get_identity(
    x_user_id: Optional[str] = Header(default=None),
    x_user_email: str = Header(default=""),
) -> Identity:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return Identity(user_id=x_user_id, email=x_user_email)


def get_session_ledger(identity: Identity = Depends(get_identity)) -> DriverLedger:
    return sessions.get(identity)


def get_ledger(ledger: DriverLedger = Depends(get_session_ledger)) -> DriverLedger:
    if not _access_required() or ledger.profile.has_access:
        return ledger
    # access may have been granted since the session was loaded
    if not ledger.refresh_profile().has_access:
        raise HTTPException(status_code=402, detail="Active subscription or purchase required")
    return ledger


def _profile_payload(ledger: DriverLedger) -> dict[str, Any]:
    payload = profile_to_record(ledger.profile)
    payload["rotation_day"] = ledger.profile.rotation_day
    return payload


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/profile")
def get_profile(ledger: DriverLedger = Depends(get_session_ledger)) -> dict:
    ledger.refresh_profile()
    return _profile_payload(ledger)


@app.patch("/profile")
def patch_profile(
    changes: Dict[str, Any] = Body(...),
    ledger: DriverLedger = Depends(get_session_ledger),
) -> dict:
    ledger.update_profile(changes)
    return _profile_payload(ledger)


@app.delete("/session", status_code=204)
def end_session(identity: Identity = Depends(get_identity)) -> Response:
    sessions.close(identity.user_id)
    return Response(status_code=204)


@app.get("/dashboard")
def dashboard(ledger: DriverLedger = Depends(get_ledger)) -> dict:
    return asdict(ledger.stats)


@app.post("/refresh")
def refresh(ledger: DriverLedger = Depends(get_session_ledger)) -> dict:
    return asdict(ledger.refresh())


@app.get("/transactions")
def list_transactions(ledger: DriverLedger = Depends(get_ledger)) -> list:
    return [transaction_to_record(t) for t in ledger.transactions]


@app.post("/transactions", status_code=201)
def create_transaction(
    payload: Dict[str, Any] = Body(...),
    x_submission_id: Optional[str] = Header(default=None),
    ledger: DriverLedger = Depends(get_ledger),
) -> dict:
    record = ledger.add_transaction(payload, submission_id=x_submission_id)
    return {"transaction": transaction_to_record(record), "stats": asdict(ledger.stats)}


@app.get("/transactions/{transaction_id}")
def get_transaction(transaction_id: str, ledger: DriverLedger = Depends(get_ledger)) -> dict:
    return transaction_to_record(ledger.get_transaction(transaction_id))


@app.patch("/transactions/{transaction_id}")
def patch_transaction(
    transaction_id: str,
    changes: Dict[str, Any] = Body(...),
    ledger: DriverLedger = Depends(get_ledger),
) -> dict:
    record = ledger.update_transaction(transaction_id, changes)
    return {"transaction": transaction_to_record(record), "stats": asdict(ledger.stats)}


@app.delete("/transactions/{transaction_id}", status_code=204)
def remove_transaction(transaction_id: str, ledger: DriverLedger = Depends(get_ledger)) -> Response:
    ledger.delete_transaction(transaction_id)
    return Response(status_code=204)


@app.get("/reports")
def list_reports() -> list:
    return [asdict(spec) for spec in registry.list_specs()]


@app.get("/reports/{tool_name}")
def run_report(tool_name: str, request: Request, ledger: DriverLedger = Depends(get_ledger)) -> dict:
    if tool_name not in registry.names():
        raise HTTPException(status_code=404, detail=f"Unknown report: {tool_name}")
    args: dict[str, Any] = dict(request.query_params)
    if "start" in args and "end" in args:
        args["date_range"] = {"start": args.pop("start"), "end": args.pop("end")}
    response = executor.run(ledger, tool_name, args)
    return response.model_dump(mode="json")
