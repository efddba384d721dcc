"""
Stock API Endpoints
"""
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from millstock.api.v1.deps import get_actor
from millstock.db.session import get_db
from millstock.schemas.inventory import (
    CuttingRequest,
    StockAdjustmentRequest,
    StockMovementResponse,
    StockPositionResponse,
    StockTransferRequest,
    StockTransferResponse,
)
from millstock.services import inventory_service
from millstock.services.inventory_service import StockLedgerService

router = APIRouter()


@router.get("/position", response_model=StockPositionResponse)
def get_stock_position(
    product_id: int = Query(...),
    warehouse_id: int = Query(...),
    db: Session = Depends(get_db),
):
    """Current quantity of a product in a warehouse (zero when never stocked)"""
    position = StockLedgerService(db).get_position(product_id, warehouse_id)
    if not position:
        return StockPositionResponse(
            product_id=product_id,
            warehouse_id=warehouse_id,
            quantity=Decimal("0"),
            reserved_quantity=Decimal("0"),
            available_quantity=Decimal("0"),
        )
    return position


@router.get("/history", response_model=List[StockMovementResponse])
def get_stock_history(
    product_id: Optional[int] = Query(None),
    warehouse_id: Optional[int] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    """Stock movements, newest first"""
    return StockLedgerService(db).history(product_id, warehouse_id, limit)


@router.post("/adjust", response_model=StockMovementResponse, status_code=201)
def adjust_stock(
    request: StockAdjustmentRequest,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return inventory_service.adjust_stock(
        db,
        request.product_id,
        request.warehouse_id,
        request.quantity,
        notes=request.notes,
        created_by=actor,
    )


@router.post("/transfer", response_model=StockTransferResponse, status_code=201)
def transfer_stock(
    request: StockTransferRequest,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    transfer_out, transfer_in = inventory_service.transfer_stock(
        db,
        request.product_id,
        request.from_warehouse_id,
        request.to_warehouse_id,
        request.quantity,
        notes=request.notes,
        created_by=actor,
    )
    return StockTransferResponse(
        transfer_out=StockMovementResponse.model_validate(transfer_out),
        transfer_in=StockMovementResponse.model_validate(transfer_in),
    )


@router.post("/cutting", response_model=List[StockMovementResponse], status_code=201)
def process_cutting(
    request: CuttingRequest,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Cut an input product into output products in the same warehouse"""
    return inventory_service.process_cutting(
        db,
        request.input_product_id,
        request.input_quantity,
        request.warehouse_id,
        request.outputs,
        notes=request.notes,
        created_by=actor,
    )
