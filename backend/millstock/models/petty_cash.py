"""
Petty cash model - cash and bank movements against clients
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Date, ForeignKey, Text, Boolean
from sqlalchemy.orm import relationship
from datetime import datetime

from millstock.db.base import Base


class PettyCash(Base):
    """
    Cash book entry - matches petty_cash table.

    Each row is mirrored by a ClientLedgerEntry carrying its signed effect on
    the client balance. Corrections go through the ledger service, which
    posts a reversal before the new amount.
    """
    __tablename__ = "petty_cash"

    id = Column(Integer, primary_key=True, index=True)
    transaction_number = Column(String(50), unique=True, nullable=False, index=True)
    transaction_date = Column(Date, nullable=False, index=True)

    # cash_in, cash_out
    transaction_type = Column(String(10), nullable=False)

    # cash, bank, cheque
    payment_method = Column(String(20), default="cash", nullable=False)
    bank_account_id = Column(Integer, nullable=True)
    cheque_number = Column(String(50), nullable=True)
    cheque_date = Column(Date, nullable=True)
    payment_status = Column(String(20), default="cleared", nullable=False)

    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)
    # customer or supplier; decides the sign of the balance posting
    counterparty_role = Column(String(20), nullable=True)

    amount = Column(Numeric(18, 4), nullable=False)

    # sales_order, purchase_order, manual, salary
    reference_type = Column(String(30), default="manual", nullable=False)
    reference_id = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)

    is_void = Column(Boolean, default=False, nullable=False)

    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    client = relationship("Client")

    def __repr__(self):
        return f"<PettyCash {self.transaction_number}: {self.transaction_type} {self.amount}>"
