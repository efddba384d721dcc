"""
Wastage Pydantic Schemas
"""
from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime, date
from decimal import Decimal


class WastageReportRequest(BaseModel):
    """Manually reported wastage (starts pending)"""
    product_id: int
    warehouse_id: int
    quantity: Decimal
    reason: str
    description: Optional[str] = None
    wastage_date: Optional[date] = None
    cost_value: Optional[Decimal] = None


class WastageRecordResponse(BaseModel):
    id: int
    product_id: int
    warehouse_id: int
    quantity: Decimal
    reason: str
    description: Optional[str] = None
    wastage_date: date
    cost_value: Optional[Decimal] = None
    production_record_id: Optional[int] = None
    status: str
    reported_by: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class WastageSummaryResponse(BaseModel):
    record_count: int
    total_quantity: Decimal
    total_cost_value: Decimal
    by_reason: Dict[str, Decimal]
    records: List[WastageRecordResponse]
