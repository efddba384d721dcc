"""
Production API Endpoints
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from millstock.api.v1.deps import get_actor
from millstock.db.session import get_db
from millstock.schemas.production import (
    ItemProductionRequest,
    OrderProductionRequest,
    ProductionHistoryResponse,
    ProductionRecordResponse,
    ProductionResultResponse,
)
from millstock.schemas.purchasing import PurchaseOrderItemResponse
from millstock.services import production_service, purchase_order_service
from millstock.services.production_service import ProductionResult

router = APIRouter()


def _result_response(result: ProductionResult) -> ProductionResultResponse:
    return ProductionResultResponse(
        production_record=ProductionRecordResponse.model_validate(result.production_record),
        wastage_record_id=result.wastage_record.id if result.wastage_record else None,
        stock_movement_id=result.stock_movement.id,
        order_status=result.purchase_order.status,
        order_completed=result.purchase_order.is_production_completed,
    )


@router.get("/pending-items", response_model=List[PurchaseOrderItemResponse])
def get_pending_production_items(
    purchase_order_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
):
    return purchase_order_service.get_pending_production_items(db, purchase_order_id)


@router.get("/history", response_model=ProductionHistoryResponse)
def get_production_history(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    product_id: Optional[int] = Query(None),
    warehouse_id: Optional[int] = Query(None),
    purchase_order_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Production records with wastage summary"""
    return production_service.get_production_history(
        db,
        start_date=start_date,
        end_date=end_date,
        product_id=product_id,
        warehouse_id=warehouse_id,
        purchase_order_id=purchase_order_id,
        limit=limit,
    )


@router.get("/purchase-orders/{po_id}/history", response_model=ProductionHistoryResponse)
def get_production_history_by_order(po_id: int, db: Session = Depends(get_db)):
    return production_service.get_production_history_by_order(db, po_id)


@router.post(
    "/purchase-orders/{po_id}/items/{item_id}",
    response_model=ProductionResultResponse,
    status_code=201,
)
def process_item_production(
    po_id: int,
    item_id: int,
    request: ItemProductionRequest,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """
    Record production for one purchase order line.

    Stock is credited with the produced weight; the difference to the
    purchased weight is recorded as wastage.
    """
    result = production_service.process_item_production(
        db,
        po_id,
        item_id,
        request.production_kg,
        warehouse_id=request.warehouse_id,
        notes=request.notes,
        created_by=actor,
    )
    return _result_response(result)


@router.post(
    "/purchase-orders/{po_id}",
    response_model=List[ProductionResultResponse],
    status_code=201,
)
def process_order_production(
    po_id: int,
    request: OrderProductionRequest,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Record production for every pending line of an order at once"""
    results = production_service.process_order_production(
        db,
        po_id,
        request.entries,
        warehouse_id=request.warehouse_id,
        notes=request.notes,
        created_by=actor,
    )
    return [_result_response(result) for result in results]
