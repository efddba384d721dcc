"""
Product model - reference data for the stock and production core
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from millstock.db.base import Base


class Product(Base):
    """
    Tradeable commodity. Stock is always held in kilograms; ``unit_type``
    only records how the product is usually bought and sold.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    unit_type = Column(String(10), default="kg", nullable=False)  # kg, bag
    default_bag_weight = Column(Numeric(18, 4), nullable=True)

    # Stock thresholds (kg)
    reorder_level = Column(Numeric(18, 4), nullable=True)
    min_stock_level = Column(Numeric(18, 4), nullable=True)
    max_stock_level = Column(Numeric(18, 4), nullable=True)

    base_price = Column(Numeric(18, 4), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    stock_positions = relationship("StockPosition", back_populates="product")

    def __repr__(self):
        return f"<Product {self.sku}: {self.name}>"
