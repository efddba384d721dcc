"""
Sales Order models

Lifecycle: draft -> confirmed -> delivered, with pending treated like
confirmed and cancelled reachable from any non-delivered state.
``stock_deducted`` records whether stock and the receivable were applied.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Date, ForeignKey, Text, Boolean
from sqlalchemy.orm import relationship
from datetime import datetime

from millstock.db.base import Base


class SalesOrder(Base):
    """Sales Order header model"""
    __tablename__ = "sales_orders"

    id = Column(Integer, primary_key=True, index=True)

    # INV001, INV002, ...
    order_number = Column(String(50), unique=True, nullable=False, index=True)

    customer_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False)

    order_date = Column(Date, nullable=False)
    delivery_date = Column(Date, nullable=True)

    # Financials (computed server-side at creation)
    subtotal = Column(Numeric(18, 4), default=0, nullable=False)
    discount_amount = Column(Numeric(18, 4), default=0, nullable=False)
    tax_amount = Column(Numeric(18, 4), default=0, nullable=False)
    shipping_charges = Column(Numeric(18, 4), default=0, nullable=False)
    total_amount = Column(Numeric(18, 4), default=0, nullable=False)

    # draft, pending, confirmed, delivered, cancelled
    status = Column(String(20), default="confirmed", nullable=False, index=True)
    stock_deducted = Column(Boolean, default=False, nullable=False)

    notes = Column(Text, nullable=True)

    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    customer = relationship("Client")
    warehouse = relationship("Warehouse")
    items = relationship(
        "SalesOrderItem",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        order_by="SalesOrderItem.id",
    )

    def __repr__(self):
        return f"<SalesOrder {self.order_number}: {self.status}>"


class SalesOrderItem(Base):
    """Sales Order line item model"""
    __tablename__ = "sales_order_items"

    id = Column(Integer, primary_key=True, index=True)

    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    unit_type = Column(String(10), nullable=False)
    bag_weight = Column(Numeric(18, 4), nullable=True)
    quantity = Column(Numeric(18, 4), nullable=False)
    total_kg = Column(Numeric(18, 4), nullable=False)

    unit_price = Column(Numeric(18, 4), nullable=False)
    tax_rate = Column(Numeric(7, 4), default=0, nullable=False)
    discount_rate = Column(Numeric(7, 4), default=0, nullable=False)

    line_subtotal = Column(Numeric(18, 4), nullable=False)
    line_discount = Column(Numeric(18, 4), default=0, nullable=False)
    line_tax = Column(Numeric(18, 4), default=0, nullable=False)
    line_total = Column(Numeric(18, 4), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    sales_order = relationship("SalesOrder", back_populates="items")
    product = relationship("Product")

    def __repr__(self):
        return f"<SalesOrderItem {self.id}: {self.total_kg} kg>"
