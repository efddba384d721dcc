"""
Stock Pydantic Schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class StockPositionResponse(BaseModel):
    product_id: int
    warehouse_id: int
    quantity: Decimal
    reserved_quantity: Decimal
    available_quantity: Decimal

    model_config = ConfigDict(from_attributes=True)


class StockMovementResponse(BaseModel):
    id: int
    product_id: int
    warehouse_id: int
    movement_type: str
    quantity: Decimal
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    counterpart_warehouse_id: Optional[int] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StockAdjustmentRequest(BaseModel):
    """Signed manual adjustment (kg)"""
    product_id: int
    warehouse_id: int
    quantity: Decimal = Field(..., description="Positive adds stock, negative removes it")
    notes: Optional[str] = None


class StockTransferRequest(BaseModel):
    product_id: int
    from_warehouse_id: int
    to_warehouse_id: int
    quantity: Decimal
    notes: Optional[str] = None


class StockTransferResponse(BaseModel):
    transfer_out: StockMovementResponse
    transfer_in: StockMovementResponse


class CuttingOutputRequest(BaseModel):
    product_id: int
    quantity: Decimal


class CuttingRequest(BaseModel):
    input_product_id: int
    input_quantity: Decimal
    warehouse_id: int
    outputs: List[CuttingOutputRequest] = Field(default_factory=list)
    notes: Optional[str] = None
