"""
Client and client ledger models

A client is a customer, a supplier, or both. ``balance`` is a materialised
running total of the client's ledger entries and is written only by
``millstock.services.ledger_service``.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Date, ForeignKey, Text, Boolean
from sqlalchemy.orm import relationship
from datetime import datetime

from millstock.db.base import Base


class Client(Base):
    """Client model - matches clients table"""
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=True, index=True)
    company_name = Column(String(200), nullable=False)
    contact_person = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)

    # customer, supplier, both
    client_type = Column(String(20), nullable=False, default="customer")

    # Positive = receivable for customers, payable for suppliers
    balance = Column(Numeric(18, 4), default=0, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    ledger_entries = relationship("ClientLedgerEntry", back_populates="client", order_by="ClientLedgerEntry.id")

    @property
    def is_customer(self) -> bool:
        return self.client_type in ("customer", "both")

    @property
    def is_supplier(self) -> bool:
        return self.client_type in ("supplier", "both")

    def __repr__(self):
        return f"<Client {self.id}: {self.company_name} ({self.client_type})>"


class ClientLedgerEntry(Base):
    """
    Immutable balance posting against a client.

    The client's balance always equals the sum of ``amount`` over its entries.
    Corrections are new entries (entry_type ``reversal``), never edits.
    """
    __tablename__ = "client_ledger_entries"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)

    entry_date = Column(Date, nullable=False)
    # sales_order, purchase_order, petty_cash, reversal, cancellation
    entry_type = Column(String(30), nullable=False)

    # Signed delta applied to clients.balance
    amount = Column(Numeric(18, 4), nullable=False)
    balance_after = Column(Numeric(18, 4), nullable=False)

    reference_type = Column(String(50), nullable=True)
    reference_id = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)

    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    client = relationship("Client", back_populates="ledger_entries")

    def __repr__(self):
        return f"<ClientLedgerEntry {self.entry_type}: {self.amount}>"
