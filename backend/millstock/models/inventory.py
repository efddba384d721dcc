"""
Stock models
"""
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, ForeignKey, Text, UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship
from datetime import datetime
from decimal import Decimal

from millstock.db.base import Base


class StockPosition(Base):
    """
    Current quantity of a product in a warehouse - matches stock table.

    A materialised sum of stock_movements for the same key. Only
    ``millstock.services.inventory_service`` writes to it.
    """
    __tablename__ = "stock"
    __table_args__ = (
        UniqueConstraint("product_id", "warehouse_id", name="uq_stock_product_warehouse"),
    )

    id = Column(Integer, primary_key=True, index=True)

    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False)

    # Quantities (kg)
    quantity = Column(Numeric(18, 4), default=0, nullable=False)
    reserved_quantity = Column(Numeric(18, 4), default=0, nullable=False)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    product = relationship("Product", back_populates="stock_positions")
    warehouse = relationship("Warehouse", back_populates="stock_positions")

    @property
    def available_quantity(self) -> Decimal:
        return Decimal(str(self.quantity or 0)) - Decimal(str(self.reserved_quantity or 0))

    def __repr__(self):
        return f"<StockPosition product={self.product_id} warehouse={self.warehouse_id}: {self.quantity}>"


class StockMovement(Base):
    """Append-only stock movement - matches stock_movements table"""
    __tablename__ = "stock_movements"
    __table_args__ = (
        Index("ix_stock_movements_product_warehouse", "product_id", "warehouse_id"),
    )

    id = Column(Integer, primary_key=True, index=True)

    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False)

    # purchase, production, sale, sale_return, adjustment,
    # transfer_in, transfer_out, cutting, wastage
    movement_type = Column(String(30), nullable=False)

    # Signed: positive adds stock, negative removes it
    quantity = Column(Numeric(18, 4), nullable=False)

    # production_record, sales_order, wastage_record, cutting, transfer, manual
    reference_type = Column(String(50), nullable=True)
    reference_id = Column(Integer, nullable=True)

    # The other side of a transfer
    counterpart_warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=True)

    notes = Column(Text, nullable=True)
    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    product = relationship("Product")
    warehouse = relationship("Warehouse", foreign_keys=[warehouse_id])
    counterpart_warehouse = relationship("Warehouse", foreign_keys=[counterpart_warehouse_id])

    def __repr__(self):
        return f"<StockMovement {self.movement_type}: {self.quantity}>"
