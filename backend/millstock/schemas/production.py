"""
Production Pydantic Schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal


class ItemProductionRequest(BaseModel):
    """Produce one purchase order line"""
    production_kg: Optional[Decimal] = Field(None, description="Produced weight in kg")
    warehouse_id: Optional[int] = Field(None, description="Defaults to the purchase order's warehouse")
    notes: Optional[str] = None


class ProductionEntry(BaseModel):
    """One line of a whole-order production request"""
    item_id: Optional[int] = None
    product_id: Optional[int] = None
    production_kg: Optional[Decimal] = None


class OrderProductionRequest(BaseModel):
    """Produce every pending line of a purchase order"""
    entries: List[ProductionEntry] = Field(default_factory=list)
    warehouse_id: Optional[int] = None
    notes: Optional[str] = None


class ProductionRecordResponse(BaseModel):
    id: int
    production_number: str
    purchase_order_id: int
    purchase_order_item_id: Optional[int] = None
    product_id: int
    warehouse_id: int
    purchased_kg: Decimal
    production_kg: Decimal
    wastage_kg: Decimal
    wastage_percentage: Decimal
    production_date: date
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductionResultResponse(BaseModel):
    """Outcome of one production event"""
    production_record: ProductionRecordResponse
    wastage_record_id: Optional[int] = None
    stock_movement_id: int
    order_status: str
    order_completed: bool


class ProductionHistorySummary(BaseModel):
    record_count: int
    total_purchased_kg: Decimal
    total_production_kg: Decimal
    total_wastage_kg: Decimal
    wastage_percentage: Decimal


class ProductionHistoryResponse(BaseModel):
    records: List[ProductionRecordResponse]
    summary: ProductionHistorySummary
