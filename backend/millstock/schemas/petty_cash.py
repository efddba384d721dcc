"""
Petty Cash / Ledger Pydantic Schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict
from datetime import datetime, date
from decimal import Decimal


class PettyCashCreate(BaseModel):
    transaction_type: str = Field(..., description="cash_in or cash_out")
    amount: Decimal
    client_id: Optional[int] = None
    counterparty_role: Optional[str] = Field(None, description="customer or supplier, for clients of type both")
    transaction_date: Optional[date] = None
    payment_method: Optional[str] = None
    reference_type: str = "manual"
    reference_id: Optional[int] = None
    description: Optional[str] = None
    bank_account_id: Optional[int] = None
    cheque_number: Optional[str] = None
    cheque_date: Optional[date] = None


class PettyCashUpdate(BaseModel):
    transaction_type: Optional[str] = None
    amount: Optional[Decimal] = None
    client_id: Optional[int] = None
    counterparty_role: Optional[str] = None
    transaction_date: Optional[date] = None
    payment_method: Optional[str] = None
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    description: Optional[str] = None


class PettyCashResponse(BaseModel):
    id: int
    transaction_number: str
    transaction_date: date
    transaction_type: str
    payment_method: str
    payment_status: str
    client_id: Optional[int] = None
    counterparty_role: Optional[str] = None
    amount: Decimal
    reference_type: str
    reference_id: Optional[int] = None
    description: Optional[str] = None
    is_void: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LedgerPostRequest(BaseModel):
    """Direct signed posting to a client balance"""
    client_id: int
    amount: Decimal
    entry_type: str = "manual"
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    description: Optional[str] = None
    entry_date: Optional[date] = None


class LedgerEntryResponse(BaseModel):
    id: int
    client_id: int
    entry_date: date
    entry_type: str
    amount: Decimal
    balance_after: Decimal
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    description: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClientCashFlowResponse(BaseModel):
    client_id: int
    company_name: str
    client_type: str
    balance: Decimal
    total_cash_in: Decimal
    total_cash_out: Decimal
    net_cash: Decimal
    transactions: List[PettyCashResponse]


class DailyCashSummaryResponse(BaseModel):
    date: date
    total_cash_in: Decimal
    total_cash_out: Decimal
    net_cash: Decimal
    transaction_count: int
    by_payment_method: Dict[str, Dict[str, Decimal]]
