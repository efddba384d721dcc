"""
Purchase Order models

Lifecycle: pending -> production_in_progress -> production_completed,
with cancelled reachable from pending only. Totals are fixed at creation.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, Numeric, ForeignKey, Date, Boolean
from sqlalchemy.orm import relationship
from datetime import datetime

from millstock.db.base import Base


class PurchaseOrder(Base):
    """Purchase Order header model"""
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True, index=True)

    # PO Number - PO001, PO002, ...
    po_number = Column(String(50), unique=True, nullable=False, index=True)

    supplier_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False)

    status = Column(String(30), default="pending", nullable=False, index=True)

    # Dates
    order_date = Column(Date, nullable=False)
    expected_delivery_date = Column(Date, nullable=True)
    production_date = Column(Date, nullable=True)

    # Financials (computed server-side at creation)
    subtotal = Column(Numeric(18, 4), default=0, nullable=False)
    discount_amount = Column(Numeric(18, 4), default=0, nullable=False)
    tax_amount = Column(Numeric(18, 4), default=0, nullable=False)
    total_amount = Column(Numeric(18, 4), default=0, nullable=False)

    # Production rollup
    is_production_completed = Column(Boolean, default=False, nullable=False, index=True)
    production_kg = Column(Numeric(18, 4), nullable=True)
    wastage_kg = Column(Numeric(18, 4), nullable=True)
    wastage_percentage = Column(Numeric(9, 4), nullable=True)

    notes = Column(Text, nullable=True)

    # Audit
    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    supplier = relationship("Client")
    warehouse = relationship("Warehouse")
    items = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.id",
    )
    production_records = relationship("ProductionRecord", back_populates="purchase_order")

    def __repr__(self):
        return f"<PurchaseOrder {self.po_number}: {self.status}>"


class PurchaseOrderItem(Base):
    """Purchase Order line item model"""
    __tablename__ = "purchase_order_items"

    id = Column(Integer, primary_key=True, index=True)

    purchase_order_id = Column(
        Integer, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    # How the line was entered
    unit_type = Column(String(10), nullable=False)  # kg, bag
    bag_weight = Column(Numeric(18, 4), nullable=True)  # required when unit_type = bag
    quantity = Column(Numeric(18, 4), nullable=False)

    # Canonical weight used by pricing, stock and production
    total_kg = Column(Numeric(18, 4), nullable=False)

    # Pricing inputs (rates in percent)
    unit_price = Column(Numeric(18, 4), nullable=False)
    tax_rate = Column(Numeric(7, 4), default=0, nullable=False)
    discount_rate = Column(Numeric(7, 4), default=0, nullable=False)

    # Pricing outputs
    line_subtotal = Column(Numeric(18, 4), nullable=False)
    line_discount = Column(Numeric(18, 4), default=0, nullable=False)
    line_tax = Column(Numeric(18, 4), default=0, nullable=False)
    line_total = Column(Numeric(18, 4), nullable=False)

    is_production_completed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    purchase_order = relationship("PurchaseOrder", back_populates="items")
    product = relationship("Product")

    def __repr__(self):
        return f"<PurchaseOrderItem {self.id}: {self.total_kg} kg>"
