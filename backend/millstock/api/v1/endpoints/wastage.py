"""
Wastage API Endpoints
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from millstock.api.v1.deps import get_actor
from millstock.db.session import get_db
from millstock.schemas.wastage import WastageRecordResponse, WastageReportRequest, WastageSummaryResponse
from millstock.services import wastage_service

router = APIRouter()


@router.post("/", response_model=WastageRecordResponse, status_code=201)
def report_wastage(
    request: WastageReportRequest,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Report wastage; stock is unaffected until approval"""
    return wastage_service.report_wastage(db, reported_by=actor, **request.model_dump())


@router.post("/{wastage_id}/approve", response_model=WastageRecordResponse)
def approve_wastage(
    wastage_id: int,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return wastage_service.approve_wastage(db, wastage_id, approved_by=actor)


@router.post("/{wastage_id}/reject", response_model=WastageRecordResponse)
def reject_wastage(
    wastage_id: int,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return wastage_service.reject_wastage(db, wastage_id, approved_by=actor)


@router.get("/report", response_model=WastageSummaryResponse)
def get_wastage_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    product_id: Optional[int] = Query(None),
    warehouse_id: Optional[int] = Query(None),
    reason: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return wastage_service.get_wastage_report(
        db,
        start_date=start_date,
        end_date=end_date,
        product_id=product_id,
        warehouse_id=warehouse_id,
        reason=reason,
    )
