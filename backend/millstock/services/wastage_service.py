"""
Wastage Reporting Service

Manually reported wastage (damage, expiry, spillage) starts ``pending`` and
has no stock effect until approved; approval removes the quantity from
stock with a ``wastage`` movement. Production wastage is written by the
production processor already ``approved`` and never touches stock, since
the wasted material was never credited.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from millstock.db.session import atomic
from millstock.exceptions import InvalidStateError, NotFoundError, ValidationError
from millstock.logging_config import get_logger
from millstock.models.production import WastageRecord
from millstock.services.inventory_service import StockLedgerService
from millstock.services.purchase_order_service import require_products, require_warehouse
from millstock.services.uom_service import to_decimal

logger = get_logger(__name__)


REASONS = ("production", "damage", "expiry", "spillage", "other")
MANUAL_REASONS = ("damage", "expiry", "spillage", "other")


def report_wastage(
    db: Session,
    product_id: int,
    warehouse_id: int,
    quantity: Any,
    reason: str,
    description: Optional[str] = None,
    wastage_date: Optional[date] = None,
    cost_value: Any = None,
    reported_by: Optional[str] = None,
) -> WastageRecord:
    """Create a pending wastage report."""
    qty = to_decimal(quantity, field="quantity")
    if qty <= 0:
        raise ValidationError("Quantity must be greater than zero", field="quantity", value=qty)
    if reason not in MANUAL_REASONS:
        raise ValidationError(
            f"Reason must be one of {', '.join(MANUAL_REASONS)}", field="reason", value=reason
        )
    cost = None
    if cost_value is not None:
        cost = to_decimal(cost_value, field="cost_value")
        if cost < 0:
            raise ValidationError("Cost value cannot be negative", field="cost_value", value=cost)

    with atomic(db):
        require_products(db, [product_id])
        require_warehouse(db, warehouse_id)
        record = WastageRecord(
            product_id=product_id,
            warehouse_id=warehouse_id,
            quantity=qty,
            reason=reason,
            description=description,
            wastage_date=wastage_date or date.today(),
            cost_value=cost,
            status="pending",
            reported_by=reported_by,
        )
        db.add(record)
        db.flush()

    logger.info(
        "Wastage reported",
        extra={"wastage_id": record.id, "product_id": product_id, "quantity": str(qty), "reason": reason},
    )
    return record


def _get_pending(db: Session, wastage_id: int) -> WastageRecord:
    record = db.get(WastageRecord, wastage_id, populate_existing=True)
    if not record:
        raise NotFoundError("Wastage record", wastage_id)
    if record.status != "pending":
        raise InvalidStateError(
            f"Wastage record {wastage_id} is already {record.status}",
            current_state=record.status,
            allowed_states=["pending"],
        )
    return record


def approve_wastage(db: Session, wastage_id: int, approved_by: Optional[str] = None) -> WastageRecord:
    """Approve a pending report and remove the quantity from stock."""
    with atomic(db):
        record = _get_pending(db, wastage_id)
        StockLedgerService(db).decrement(
            record.product_id,
            record.warehouse_id,
            Decimal(str(record.quantity)),
            "wastage",
            reference_type="wastage_record",
            reference_id=record.id,
            notes=f"Wastage ({record.reason})",
            created_by=approved_by,
        )
        record.status = "approved"
        record.approved_by = approved_by
        record.approved_at = datetime.utcnow()
        db.flush()

    logger.info("Wastage approved", extra={"wastage_id": wastage_id, "quantity": str(record.quantity)})
    return record


def reject_wastage(db: Session, wastage_id: int, approved_by: Optional[str] = None) -> WastageRecord:
    with atomic(db):
        record = _get_pending(db, wastage_id)
        record.status = "rejected"
        record.approved_by = approved_by
        record.approved_at = datetime.utcnow()
        db.flush()

    logger.info("Wastage rejected", extra={"wastage_id": wastage_id})
    return record


def get_wastage_report(
    db: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    product_id: Optional[int] = None,
    warehouse_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> Dict[str, Any]:
    """Approved wastage with totals overall and per reason."""
    query = db.query(WastageRecord).filter(WastageRecord.status == "approved")
    if start_date:
        query = query.filter(WastageRecord.wastage_date >= start_date)
    if end_date:
        query = query.filter(WastageRecord.wastage_date <= end_date)
    if product_id:
        query = query.filter(WastageRecord.product_id == product_id)
    if warehouse_id:
        query = query.filter(WastageRecord.warehouse_id == warehouse_id)
    if reason:
        if reason not in REASONS:
            raise ValidationError(f"Unknown reason '{reason}'", field="reason", value=reason)
        query = query.filter(WastageRecord.reason == reason)

    records = query.order_by(WastageRecord.wastage_date.desc(), WastageRecord.id.desc()).all()

    by_reason: Dict[str, Decimal] = {}
    total_quantity = Decimal("0")
    total_cost = Decimal("0")
    for record in records:
        qty = Decimal(str(record.quantity))
        by_reason[record.reason] = by_reason.get(record.reason, Decimal("0")) + qty
        total_quantity += qty
        if record.cost_value is not None:
            total_cost += Decimal(str(record.cost_value))

    return {
        "record_count": len(records),
        "total_quantity": total_quantity,
        "total_cost_value": total_cost,
        "by_reason": by_reason,
        "records": records,
    }
