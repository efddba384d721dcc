"""
Purchase Orders API Endpoints
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from millstock.api.v1.deps import get_actor, get_pagination_params
from millstock.db.session import get_db
from millstock.schemas.common import ListResponse, PaginationMeta, PaginationParams
from millstock.schemas.purchasing import (
    PendingProductionOrder,
    PurchaseOrderCreate,
    PurchaseOrderListItem,
    PurchaseOrderResponse,
)
from millstock.services import purchase_order_service

router = APIRouter()


@router.get("/", response_model=ListResponse[PurchaseOrderListItem])
def list_purchase_orders(
    status: Optional[str] = Query(None),
    supplier_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    production_status: Optional[str] = Query(None, description="pending or completed"),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: Session = Depends(get_db),
):
    """List purchase orders, newest first"""
    result = purchase_order_service.list_purchase_orders(
        db,
        status=status,
        supplier_id=supplier_id,
        start_date=start_date,
        end_date=end_date,
        production_status=production_status,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    items = [PurchaseOrderListItem.model_validate(po) for po in result["items"]]
    return ListResponse(
        items=items,
        pagination=PaginationMeta(
            total=result["total"],
            offset=pagination.offset,
            limit=pagination.limit,
            returned=len(items),
        ),
    )


@router.get("/pending-production", response_model=List[PendingProductionOrder])
def get_pending_production_orders(db: Session = Depends(get_db)):
    """Orders with at least one line awaiting production"""
    return purchase_order_service.get_pending_production_orders(db)


@router.get("/{po_id}", response_model=PurchaseOrderResponse)
def get_purchase_order(po_id: int, db: Session = Depends(get_db)):
    return purchase_order_service.get_purchase_order(db, po_id)


@router.post("/", response_model=PurchaseOrderResponse, status_code=201)
def create_purchase_order(
    request: PurchaseOrderCreate,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Create a purchase order; totals are computed server-side"""
    order = purchase_order_service.create_purchase_order(db, request, created_by=actor)
    return purchase_order_service.get_purchase_order(db, order.id)


@router.post("/{po_id}/cancel", response_model=PurchaseOrderResponse)
def cancel_purchase_order(
    po_id: int,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Cancel a pending purchase order and reverse its payable"""
    purchase_order_service.cancel_purchase_order(db, po_id, created_by=actor)
    return purchase_order_service.get_purchase_order(db, po_id)
