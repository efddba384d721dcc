"""
Purchasing Pydantic Schemas

Covers:
- Purchase Orders
- PO Lines
- Pending production views

Numeric business rules (positive quantities and prices, rate ranges, bag
weights) are enforced by the service layer so they surface as
VALIDATION_ERROR responses.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal


# ============================================================================
# Order Line Schemas (shared with sales orders)
# ============================================================================

class OrderLineCreate(BaseModel):
    """Order line as entered: loose kg or a number of bags"""
    product_id: Optional[int] = Field(None, description="Product ID")
    unit_type: str = Field("kg", description="kg or bag")
    quantity: Optional[Decimal] = Field(None, description="Kilograms, or number of bags")
    bag_weight: Optional[Decimal] = Field(None, description="Weight of one bag in kg (bag lines)")
    unit_price: Optional[Decimal] = Field(None, description="Price per kg")
    tax_rate: Decimal = Field(Decimal("0"), description="Tax rate in percent")
    discount_rate: Decimal = Field(Decimal("0"), description="Discount rate in percent")


class OrderLineResponse(BaseModel):
    """Priced order line"""
    id: int
    product_id: int
    unit_type: str
    quantity: Decimal
    bag_weight: Optional[Decimal] = None
    total_kg: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    discount_rate: Decimal
    line_subtotal: Decimal
    line_discount: Decimal
    line_tax: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Purchase Order Schemas
# ============================================================================

class PurchaseOrderCreate(BaseModel):
    """Create a purchase order. Totals are computed server-side."""
    supplier_id: Optional[int] = None
    warehouse_id: Optional[int] = None
    order_date: Optional[date] = None
    expected_delivery_date: Optional[date] = None
    notes: Optional[str] = None
    make_payment: bool = Field(False, description="Pay the full total immediately")
    payment_method: Optional[str] = Field(None, description="cash, bank or cheque")
    bank_account_id: Optional[int] = None
    cheque_number: Optional[str] = None
    cheque_date: Optional[date] = None
    items: List[OrderLineCreate] = Field(default_factory=list)


class PurchaseOrderItemResponse(OrderLineResponse):
    is_production_completed: bool


class PurchaseOrderResponse(BaseModel):
    """Full purchase order details"""
    id: int
    po_number: str
    supplier_id: int
    warehouse_id: int
    status: str
    order_date: date
    expected_delivery_date: Optional[date] = None
    production_date: Optional[date] = None
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    is_production_completed: bool
    production_kg: Optional[Decimal] = None
    wastage_kg: Optional[Decimal] = None
    wastage_percentage: Optional[Decimal] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    items: List[PurchaseOrderItemResponse] = []

    model_config = ConfigDict(from_attributes=True)


class PurchaseOrderListItem(BaseModel):
    """Purchase order summary row"""
    id: int
    po_number: str
    supplier_id: int
    warehouse_id: int
    status: str
    order_date: date
    total_amount: Decimal
    is_production_completed: bool

    model_config = ConfigDict(from_attributes=True)


class PendingItemSummary(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    total_kg: Decimal
    is_production_completed: bool


class PendingProductionOrder(BaseModel):
    """Order awaiting production with its item summary"""
    id: int
    po_number: str
    supplier_id: int
    supplier_name: Optional[str] = None
    warehouse_id: int
    status: str
    order_date: date
    total_amount: Decimal
    total_kg: Decimal
    item_count: int
    pending_item_count: int
    items: List[PendingItemSummary] = []
