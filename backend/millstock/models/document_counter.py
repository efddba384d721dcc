"""
Document counter model - backs sequential document numbers
"""
from sqlalchemy import Column, Integer, String

from millstock.db.base import Base


class DocumentCounter(Base):
    """One row per numbered document type (purchase_order, sales_order, ...)."""
    __tablename__ = "document_counters"

    name = Column(String(50), primary_key=True)
    last_value = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<DocumentCounter {self.name}: {self.last_value}>"
