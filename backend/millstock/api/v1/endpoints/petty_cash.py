"""
Petty Cash & Client Ledger API Endpoints
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from millstock.api.v1.deps import get_actor
from millstock.db.session import get_db
from millstock.schemas.petty_cash import (
    ClientCashFlowResponse,
    DailyCashSummaryResponse,
    LedgerEntryResponse,
    LedgerPostRequest,
    PettyCashCreate,
    PettyCashResponse,
    PettyCashUpdate,
)
from millstock.services import ledger_service

router = APIRouter()


@router.post("/", response_model=PettyCashResponse, status_code=201)
def create_petty_cash(
    request: PettyCashCreate,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Record a cash_in/cash_out and post its effect on the client balance"""
    return ledger_service.create_petty_cash(db, created_by=actor, **request.model_dump())


@router.put("/{petty_cash_id}", response_model=PettyCashResponse)
def update_petty_cash(
    petty_cash_id: int,
    request: PettyCashUpdate,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Correct a transaction (reverses the original balance effect first)"""
    return ledger_service.update_petty_cash(
        db, petty_cash_id, created_by=actor, **request.model_dump(exclude_unset=True)
    )


@router.post("/{petty_cash_id}/void", response_model=PettyCashResponse)
def void_petty_cash(
    petty_cash_id: int,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return ledger_service.void_petty_cash(db, petty_cash_id, created_by=actor)


@router.get("/daily-summary", response_model=DailyCashSummaryResponse)
def get_daily_cash_summary(
    on: Optional[date] = Query(None, description="Defaults to today"),
    db: Session = Depends(get_db),
):
    return ledger_service.get_daily_cash_summary(db, on)


@router.post("/ledger", response_model=LedgerEntryResponse, status_code=201)
def post_ledger(
    request: LedgerPostRequest,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Post a signed amount directly to a client balance"""
    meta = request.model_dump(exclude={"client_id", "amount"})
    return ledger_service.post_ledger(db, request.client_id, request.amount, meta, created_by=actor)


@router.get("/clients/{client_id}/ledger", response_model=List[LedgerEntryResponse])
def get_client_ledger(
    client_id: int,
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    return ledger_service.get_client_ledger(db, client_id, limit)


@router.get("/clients/{client_id}/cash-flow", response_model=ClientCashFlowResponse)
def get_client_cash_flow(
    client_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    return ledger_service.get_client_cash_flow(db, client_id, start_date, end_date)
