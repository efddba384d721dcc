"""
Production and wastage models

A production record is written once per production event and never
updated. Wastage is derived from the purchased and produced weights.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Date, ForeignKey, Text, case
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship
from datetime import datetime
from decimal import Decimal

from millstock.db.base import Base


class ProductionRecord(Base):
    """Immutable production event - matches production_records table"""
    __tablename__ = "production_records"

    id = Column(Integer, primary_key=True, index=True)
    production_number = Column(String(50), unique=True, nullable=False, index=True)

    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=False, index=True)
    purchase_order_item_id = Column(Integer, ForeignKey("purchase_order_items.id"), nullable=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False)

    purchased_kg = Column(Numeric(18, 4), nullable=False)
    production_kg = Column(Numeric(18, 4), nullable=False)
    production_date = Column(Date, nullable=False)

    notes = Column(Text, nullable=True)
    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    purchase_order = relationship("PurchaseOrder", back_populates="production_records")
    purchase_order_item = relationship("PurchaseOrderItem")
    product = relationship("Product")
    warehouse = relationship("Warehouse")
    wastage_records = relationship("WastageRecord", back_populates="production_record")

    @hybrid_property
    def wastage_kg(self):
        return Decimal(str(self.purchased_kg)) - Decimal(str(self.production_kg))

    @wastage_kg.expression
    def wastage_kg(cls):
        return cls.purchased_kg - cls.production_kg

    @hybrid_property
    def wastage_percentage(self):
        purchased = Decimal(str(self.purchased_kg))
        if purchased == 0:
            return Decimal("0")
        return self.wastage_kg / purchased * Decimal("100")

    @wastage_percentage.expression
    def wastage_percentage(cls):
        return case(
            (cls.purchased_kg == 0, 0),
            else_=(cls.purchased_kg - cls.production_kg) * 100 / cls.purchased_kg,
        )

    def __repr__(self):
        return f"<ProductionRecord {self.production_number}: {self.production_kg}/{self.purchased_kg} kg>"


class WastageRecord(Base):
    """
    Wastage record - matches wastage_records table

    Production wastage is created ``approved`` and references its production
    record. Manually reported wastage starts ``pending`` and only affects
    stock once approved.
    """
    __tablename__ = "wastage_records"

    id = Column(Integer, primary_key=True, index=True)

    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False)
    quantity = Column(Numeric(18, 4), nullable=False)

    # production, damage, expiry, spillage, other
    reason = Column(String(30), nullable=False)
    description = Column(Text, nullable=True)
    wastage_date = Column(Date, nullable=False)
    cost_value = Column(Numeric(18, 4), nullable=True)

    production_record_id = Column(Integer, ForeignKey("production_records.id"), nullable=True, index=True)

    # pending, approved, rejected
    status = Column(String(20), default="pending", nullable=False, index=True)
    reported_by = Column(String(100), nullable=True)
    approved_by = Column(String(100), nullable=True)
    approved_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    production_record = relationship("ProductionRecord", back_populates="wastage_records")
    product = relationship("Product")
    warehouse = relationship("Warehouse")

    def __repr__(self):
        return f"<WastageRecord {self.reason}: {self.quantity} ({self.status})>"
