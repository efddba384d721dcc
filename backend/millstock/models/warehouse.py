"""
Warehouse model - scopes every stock position
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.orm import relationship
from datetime import datetime

from millstock.db.base import Base


class Warehouse(Base):
    """Warehouse model - matches warehouses table"""
    __tablename__ = "warehouses"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=True)
    name = Column(String(100), nullable=False)
    location = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    stock_positions = relationship("StockPosition", back_populates="warehouse")

    def __repr__(self):
        return f"<Warehouse {self.code}: {self.name}>"
