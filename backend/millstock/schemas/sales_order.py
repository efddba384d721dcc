"""
Sales Order Pydantic Schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from millstock.schemas.purchasing import OrderLineCreate, OrderLineResponse


class SalesOrderStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class SalesOrderCreate(BaseModel):
    """Create a sales order. Totals are computed server-side."""
    customer_id: Optional[int] = None
    warehouse_id: Optional[int] = None
    order_date: Optional[date] = None
    delivery_date: Optional[date] = None
    status: str = Field("confirmed", description="draft, pending or confirmed")
    shipping_charges: Decimal = Field(Decimal("0"))
    notes: Optional[str] = None
    make_payment: bool = Field(False, description="Receive the full total immediately")
    payment_method: Optional[str] = None
    bank_account_id: Optional[int] = None
    cheque_number: Optional[str] = None
    cheque_date: Optional[date] = None
    items: List[OrderLineCreate] = Field(default_factory=list)


class SalesOrderResponse(BaseModel):
    id: int
    order_number: str
    customer_id: int
    warehouse_id: int
    status: str
    stock_deducted: bool
    order_date: date
    delivery_date: Optional[date] = None
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    shipping_charges: Decimal
    total_amount: Decimal
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    items: List[OrderLineResponse] = []

    model_config = ConfigDict(from_attributes=True)


class SalesOrderListItem(BaseModel):
    id: int
    order_number: str
    customer_id: int
    warehouse_id: int
    status: str
    order_date: date
    total_amount: Decimal

    model_config = ConfigDict(from_attributes=True)
