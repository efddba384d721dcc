"""
Ledger / Balance Service

Applies signed deltas to client balances and keeps the petty cash book.
``clients.balance`` is a materialised sum of ``client_ledger_entries`` and
is never assigned directly; every change is an appended entry plus one
``UPDATE clients SET balance = balance + :delta``.

Sign convention (positive balance = receivable for customers, payable for
suppliers):

    event                         customer   supplier
    sales / purchase order        +total     +total
    cash_in                       -amount    +amount
    cash_out                      +amount    -amount

Usage:
    ledger = LedgerService(db)
    ledger.post(supplier.id, order.total_amount, "purchase_order",
                reference_type="purchase_order", reference_id=order.id)
    db.commit()  # Caller commits
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from millstock.core.config import settings
from millstock.db.session import atomic
from millstock.exceptions import InvalidStateError, NotFoundError, ValidationError
from millstock.logging_config import get_logger
from millstock.models.client import Client, ClientLedgerEntry
from millstock.models.petty_cash import PettyCash
from millstock.services.numbering_service import next_petty_cash_number
from millstock.services.uom_service import to_decimal

logger = get_logger(__name__)


CASH_IN = "cash_in"
CASH_OUT = "cash_out"
TRANSACTION_TYPES = (CASH_IN, CASH_OUT)

ROLE_CUSTOMER = "customer"
ROLE_SUPPLIER = "supplier"

PAYMENT_METHODS = ("cash", "bank", "cheque")
REFERENCE_TYPES = ("sales_order", "purchase_order", "manual", "salary")


def signed_cash_delta(role: str, transaction_type: str, amount: Decimal) -> Decimal:
    """
    Balance delta for a cash movement against a client in ``role``.

    Raises:
        ValidationError: Unknown role or transaction type
    """
    if transaction_type not in TRANSACTION_TYPES:
        raise ValidationError(
            "Transaction type must be cash_in or cash_out",
            field="transaction_type",
            value=transaction_type,
        )
    if role == ROLE_CUSTOMER:
        return -amount if transaction_type == CASH_IN else amount
    if role == ROLE_SUPPLIER:
        return amount if transaction_type == CASH_IN else -amount
    raise ValidationError(f"Unknown counterparty role '{role}'", field="counterparty_role", value=role)


def resolve_role(client: Client, counterparty_role: Optional[str], reference_type: Optional[str]) -> str:
    """
    Decide which side of the sign table applies to ``client``.

    Single-role clients always use their own type. A ``both`` client uses
    ``counterparty_role`` when given, otherwise ``supplier`` for purchase
    order payments and ``customer`` for everything else.
    """
    if client.client_type == ROLE_CUSTOMER or client.client_type == ROLE_SUPPLIER:
        if counterparty_role and counterparty_role != client.client_type:
            raise ValidationError(
                f"Client {client.id} is a {client.client_type}, not a {counterparty_role}",
                field="counterparty_role",
                value=counterparty_role,
            )
        return client.client_type
    if counterparty_role:
        if counterparty_role not in (ROLE_CUSTOMER, ROLE_SUPPLIER):
            raise ValidationError(
                f"Unknown counterparty role '{counterparty_role}'",
                field="counterparty_role",
                value=counterparty_role,
            )
        return counterparty_role
    return ROLE_SUPPLIER if reference_type == "purchase_order" else ROLE_CUSTOMER


class LedgerService:
    """
    Client balance postings and cash book entries.

    IMPORTANT: This service does NOT commit. Caller is responsible for commit.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_client(self, client_id: int) -> Client:
        client = self.db.get(Client, client_id)
        if not client:
            raise NotFoundError("Client", client_id)
        return client

    def get_balance(self, client_id: int) -> Decimal:
        balance = self.db.execute(
            select(Client.balance).where(Client.id == client_id)
        ).scalar_one_or_none()
        if balance is None:
            raise NotFoundError("Client", client_id)
        return Decimal(str(balance))

    def post(
        self,
        client_id: int,
        amount: Any,
        entry_type: str,
        reference_type: Optional[str] = None,
        reference_id: Optional[int] = None,
        description: Optional[str] = None,
        entry_date: Optional[date] = None,
        created_by: Optional[str] = None,
    ) -> ClientLedgerEntry:
        """
        Append a ledger entry and apply its signed amount to the balance.

        Raises:
            NotFoundError: Client does not exist
            ValidationError: Amount is zero or not a number
        """
        delta = to_decimal(amount, field="amount")
        if delta == 0:
            raise ValidationError("Ledger posting amount cannot be zero", field="amount")

        table = Client.__table__
        result = self.db.execute(
            update(table)
            .where(table.c.id == client_id)
            .values(balance=table.c.balance + delta, updated_at=datetime.utcnow())
        )
        if result.rowcount != 1:
            raise NotFoundError("Client", client_id)

        entry = ClientLedgerEntry(
            client_id=client_id,
            entry_date=entry_date or date.today(),
            entry_type=entry_type,
            amount=delta,
            balance_after=self.get_balance(client_id),
            reference_type=reference_type,
            reference_id=reference_id,
            description=description,
            created_by=created_by,
            created_at=datetime.utcnow(),
        )
        self.db.add(entry)
        self.db.flush()

        client = self.db.get(Client, client_id)
        if client is not None:
            self.db.refresh(client, attribute_names=["balance"])
        return entry

    def record_cash(
        self,
        transaction_type: str,
        amount: Any,
        client_id: Optional[int] = None,
        transaction_date: Optional[date] = None,
        payment_method: Optional[str] = None,
        reference_type: str = "manual",
        reference_id: Optional[int] = None,
        description: Optional[str] = None,
        counterparty_role: Optional[str] = None,
        bank_account_id: Optional[int] = None,
        cheque_number: Optional[str] = None,
        cheque_date: Optional[date] = None,
        created_by: Optional[str] = None,
    ) -> PettyCash:
        """
        Create a petty cash row and, when it names a client, post its
        signed effect on the client's balance.

        Raises:
            ValidationError: Bad transaction type, amount, method or reference type
            NotFoundError: Client does not exist
        """
        if transaction_type not in TRANSACTION_TYPES:
            raise ValidationError(
                "Transaction type must be cash_in or cash_out",
                field="transaction_type",
                value=transaction_type,
            )
        value = to_decimal(amount, field="amount")
        if value <= 0:
            raise ValidationError("Amount must be greater than zero", field="amount", value=value)

        method = payment_method or settings.DEFAULT_PAYMENT_METHOD
        if method not in PAYMENT_METHODS:
            raise ValidationError(f"Unknown payment method '{method}'", field="payment_method", value=method)
        if reference_type not in REFERENCE_TYPES:
            raise ValidationError(
                f"Unknown reference type '{reference_type}'", field="reference_type", value=reference_type
            )

        role = None
        if client_id is not None:
            client = self.get_client(client_id)
            role = resolve_role(client, counterparty_role, reference_type)

        txn_date = transaction_date or date.today()
        petty_cash = PettyCash(
            transaction_number=next_petty_cash_number(self.db),
            transaction_date=txn_date,
            transaction_type=transaction_type,
            payment_method=method,
            bank_account_id=bank_account_id,
            cheque_number=cheque_number,
            cheque_date=cheque_date,
            payment_status="pending" if method == "cheque" else "cleared",
            client_id=client_id,
            counterparty_role=role,
            amount=value,
            reference_type=reference_type,
            reference_id=reference_id,
            description=description,
            created_by=created_by,
        )
        self.db.add(petty_cash)
        self.db.flush()

        if client_id is not None:
            self.post(
                client_id,
                signed_cash_delta(role, transaction_type, value),
                "petty_cash",
                reference_type="petty_cash",
                reference_id=petty_cash.id,
                description=description or f"{transaction_type} {petty_cash.transaction_number}",
                entry_date=txn_date,
                created_by=created_by,
            )
        return petty_cash

    def reverse_cash(self, petty_cash: PettyCash, created_by: Optional[str] = None) -> Optional[ClientLedgerEntry]:
        """Post the negation of a petty cash row's balance effect."""
        if petty_cash.client_id is None:
            return None
        original = signed_cash_delta(
            petty_cash.counterparty_role,
            petty_cash.transaction_type,
            Decimal(str(petty_cash.amount)),
        )
        return self.post(
            petty_cash.client_id,
            -original,
            "reversal",
            reference_type="petty_cash",
            reference_id=petty_cash.id,
            description=f"Reversal of {petty_cash.transaction_number}",
            created_by=created_by,
        )


# ============================================================================
# Workflows (each runs in its own transaction)
# ============================================================================


def post_ledger(
    db: Session,
    client_id: int,
    amount: Any,
    meta: Optional[Dict[str, Any]] = None,
    created_by: Optional[str] = None,
) -> ClientLedgerEntry:
    """
    Post a signed delta to a client balance.

    ``meta`` may carry entry_type, reference_type, reference_id,
    description and entry_date.
    """
    meta = meta or {}
    with atomic(db):
        entry = LedgerService(db).post(
            client_id,
            amount,
            meta.get("entry_type", "manual"),
            reference_type=meta.get("reference_type"),
            reference_id=meta.get("reference_id"),
            description=meta.get("description"),
            entry_date=meta.get("entry_date"),
            created_by=created_by,
        )

    logger.info(
        "Ledger posted",
        extra={"client_id": client_id, "amount": str(entry.amount), "entry_type": entry.entry_type},
    )
    return entry


def create_petty_cash(db: Session, created_by: Optional[str] = None, **fields: Any) -> PettyCash:
    """Record a petty cash transaction; see ``LedgerService.record_cash`` for fields."""
    with atomic(db):
        petty_cash = LedgerService(db).record_cash(created_by=created_by, **fields)

    logger.info(
        "Petty cash recorded",
        extra={
            "transaction_number": petty_cash.transaction_number,
            "transaction_type": petty_cash.transaction_type,
            "amount": str(petty_cash.amount),
            "client_id": petty_cash.client_id,
        },
    )
    return petty_cash


def _get_petty_cash(db: Session, petty_cash_id: int) -> PettyCash:
    petty_cash = db.get(PettyCash, petty_cash_id)
    if not petty_cash:
        raise NotFoundError("Petty cash transaction", petty_cash_id)
    if petty_cash.is_void:
        raise InvalidStateError(
            f"Petty cash transaction {petty_cash.transaction_number} is void",
            current_state="void",
        )
    return petty_cash


_UPDATABLE_FIELDS = (
    "transaction_date",
    "transaction_type",
    "payment_method",
    "amount",
    "client_id",
    "counterparty_role",
    "reference_type",
    "reference_id",
    "description",
    "bank_account_id",
    "cheque_number",
    "cheque_date",
)


def update_petty_cash(
    db: Session,
    petty_cash_id: int,
    created_by: Optional[str] = None,
    **changes: Any,
) -> PettyCash:
    """
    Correct a petty cash transaction.

    The original balance effect is reversed and the corrected one posted as
    a new entry; the balance is never overwritten.
    """
    unknown = set(changes) - set(_UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    with atomic(db):
        petty_cash = _get_petty_cash(db, petty_cash_id)
        ledger = LedgerService(db)
        ledger.reverse_cash(petty_cash, created_by=created_by)

        merged = {name: getattr(petty_cash, name) for name in _UPDATABLE_FIELDS}
        merged.update(changes)
        if "client_id" in changes and "counterparty_role" not in changes:
            merged["counterparty_role"] = None

        if merged["transaction_type"] not in TRANSACTION_TYPES:
            raise ValidationError(
                "Transaction type must be cash_in or cash_out",
                field="transaction_type",
                value=merged["transaction_type"],
            )
        amount = to_decimal(merged["amount"], field="amount")
        if amount <= 0:
            raise ValidationError("Amount must be greater than zero", field="amount", value=amount)
        if merged["payment_method"] not in PAYMENT_METHODS:
            raise ValidationError(
                f"Unknown payment method '{merged['payment_method']}'", field="payment_method"
            )
        if merged["reference_type"] not in REFERENCE_TYPES:
            raise ValidationError(
                f"Unknown reference type '{merged['reference_type']}'", field="reference_type"
            )

        role = None
        if merged["client_id"] is not None:
            client = ledger.get_client(merged["client_id"])
            role = resolve_role(client, merged["counterparty_role"], merged["reference_type"])

        for name, value in merged.items():
            setattr(petty_cash, name, value)
        petty_cash.amount = amount
        petty_cash.counterparty_role = role
        petty_cash.payment_status = "pending" if petty_cash.payment_method == "cheque" else "cleared"
        db.flush()

        if petty_cash.client_id is not None:
            ledger.post(
                petty_cash.client_id,
                signed_cash_delta(role, petty_cash.transaction_type, amount),
                "petty_cash",
                reference_type="petty_cash",
                reference_id=petty_cash.id,
                description=f"Corrected {petty_cash.transaction_number}",
                entry_date=petty_cash.transaction_date,
                created_by=created_by,
            )

    logger.info(
        "Petty cash updated",
        extra={"transaction_number": petty_cash.transaction_number, "fields": sorted(changes)},
    )
    return petty_cash


def void_petty_cash(db: Session, petty_cash_id: int, created_by: Optional[str] = None) -> PettyCash:
    """Reverse a petty cash transaction's balance effect and mark it void."""
    with atomic(db):
        petty_cash = _get_petty_cash(db, petty_cash_id)
        LedgerService(db).reverse_cash(petty_cash, created_by=created_by)
        petty_cash.is_void = True
        db.flush()

    logger.info("Petty cash voided", extra={"transaction_number": petty_cash.transaction_number})
    return petty_cash


# ============================================================================
# Reads
# ============================================================================


def get_client_ledger(db: Session, client_id: int, limit: Optional[int] = None) -> List[ClientLedgerEntry]:
    """Ledger entries for a client, oldest first."""
    LedgerService(db).get_client(client_id)
    query = (
        db.query(ClientLedgerEntry)
        .filter(ClientLedgerEntry.client_id == client_id)
        .order_by(ClientLedgerEntry.id)
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def get_client_cash_flow(
    db: Session,
    client_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Dict[str, Any]:
    """Non-void petty cash transactions for a client with in/out totals."""
    client = LedgerService(db).get_client(client_id)

    query = db.query(PettyCash).filter(
        PettyCash.client_id == client_id,
        PettyCash.is_void == False,  # noqa: E712
    )
    if start_date:
        query = query.filter(PettyCash.transaction_date >= start_date)
    if end_date:
        query = query.filter(PettyCash.transaction_date <= end_date)
    transactions = query.order_by(PettyCash.transaction_date, PettyCash.id).all()

    total_in = sum(
        (Decimal(str(t.amount)) for t in transactions if t.transaction_type == CASH_IN), Decimal("0")
    )
    total_out = sum(
        (Decimal(str(t.amount)) for t in transactions if t.transaction_type == CASH_OUT), Decimal("0")
    )
    return {
        "client_id": client.id,
        "company_name": client.company_name,
        "client_type": client.client_type,
        "balance": Decimal(str(client.balance)),
        "total_cash_in": total_in,
        "total_cash_out": total_out,
        "net_cash": total_in - total_out,
        "transactions": transactions,
    }


def get_daily_cash_summary(db: Session, on: Optional[date] = None) -> Dict[str, Any]:
    """Cash in/out totals for one day, overall and per payment method."""
    day = on or date.today()
    rows = (
        db.query(
            PettyCash.payment_method,
            PettyCash.transaction_type,
            func.count(PettyCash.id),
            func.coalesce(func.sum(PettyCash.amount), 0),
        )
        .filter(PettyCash.transaction_date == day, PettyCash.is_void == False)  # noqa: E712
        .group_by(PettyCash.payment_method, PettyCash.transaction_type)
        .all()
    )

    by_method: Dict[str, Dict[str, Decimal]] = {}
    total_in = Decimal("0")
    total_out = Decimal("0")
    count = 0
    for method, txn_type, txn_count, total in rows:
        total = Decimal(str(total))
        bucket = by_method.setdefault(method, {CASH_IN: Decimal("0"), CASH_OUT: Decimal("0")})
        bucket[txn_type] += total
        count += txn_count
        if txn_type == CASH_IN:
            total_in += total
        else:
            total_out += total

    return {
        "date": day,
        "total_cash_in": total_in,
        "total_cash_out": total_out,
        "net_cash": total_in - total_out,
        "transaction_count": count,
        "by_payment_method": by_method,
    }
