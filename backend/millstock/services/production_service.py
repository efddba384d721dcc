"""
Production Processor

Converts a purchased line into produced stock. For each production event:

    wastage_kg         = purchased_kg - production_kg
    wastage_percentage = wastage_kg / purchased_kg * 100

and, in one transaction:

1. Claim the line: ``UPDATE purchase_order_items SET is_production_completed
   = true WHERE id = :id AND is_production_completed = false``. Only the
   caller whose update hits the row continues, so a line can never be
   credited twice.
2. Insert the production record.
3. Credit stock with ``production_kg`` (never the purchased weight).
4. Insert an auto-approved wastage record when wastage_kg > 0.
5. Roll the order up to production_completed once no lines are pending.

Per-line processing is canonical; ``process_order_production`` produces
every pending line of an order at once and fails before writing anything
if a line has no entry.
"""
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, NamedTuple, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from millstock.db.session import atomic
from millstock.exceptions import (
    AlreadyProcessedError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from millstock.logging_config import get_logger
from millstock.models.inventory import StockMovement
from millstock.models.production import ProductionRecord, WastageRecord
from millstock.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from millstock.services.inventory_service import StockLedgerService
from millstock.services.numbering_service import next_production_number
from millstock.services.pricing_service import round_money
from millstock.services.purchase_order_service import (
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    lock_purchase_order,
    require_warehouse,
)
from millstock.services.uom_service import to_decimal

logger = get_logger(__name__)


PERCENT_QUANTUM = Decimal("0.01")


class ProductionResult(NamedTuple):
    """Everything written by one production event"""
    production_record: ProductionRecord
    wastage_record: Optional[WastageRecord]
    stock_movement: StockMovement
    purchase_order: PurchaseOrder


def compute_wastage(purchased_kg: Decimal, production_kg: Decimal) -> Dict[str, Decimal]:
    """Wastage kg and percentage for one event (percentage rounded to 0.01)."""
    wastage_kg = purchased_kg - production_kg
    if purchased_kg == 0:
        percentage = Decimal("0")
    else:
        percentage = (wastage_kg / purchased_kg * Decimal("100")).quantize(
            PERCENT_QUANTUM, rounding=ROUND_HALF_UP
        )
    return {"wastage_kg": wastage_kg, "wastage_percentage": percentage}


# ============================================================================
# Internal helpers
# ============================================================================


def _load_open_order(db: Session, purchase_order_id: int) -> PurchaseOrder:
    order = lock_purchase_order(db, purchase_order_id)
    if order.is_production_completed or order.status == STATUS_COMPLETED:
        raise AlreadyProcessedError(
            f"Production for purchase order {order.po_number} is already completed",
            resource="Purchase order",
            resource_id=order.id,
        )
    if order.status == STATUS_CANCELLED:
        raise InvalidStateError(
            f"Purchase order {order.po_number} is cancelled",
            current_state=order.status,
        )
    return order


def _validate_production_kg(item: PurchaseOrderItem, production_kg: Any) -> Decimal:
    produced = to_decimal(production_kg, field="production_kg")
    if produced <= 0:
        raise ValidationError(
            "Production quantity must be greater than zero", field="production_kg", value=produced
        )
    purchased = Decimal(str(item.total_kg))
    if produced > purchased:
        raise ValidationError(
            f"Production quantity {produced} kg exceeds purchased quantity {purchased} kg",
            field="production_kg",
            value=produced,
            details={"item_id": item.id, "purchased_kg": str(purchased)},
        )
    return produced


def _claim_item(db: Session, item: PurchaseOrderItem) -> None:
    """Flip the line's completion flag; exactly one concurrent caller wins."""
    table = PurchaseOrderItem.__table__
    result = db.execute(
        update(table)
        .where(table.c.id == item.id, table.c.is_production_completed == False)  # noqa: E712
        .values(is_production_completed=True)
    )
    if result.rowcount != 1:
        raise AlreadyProcessedError(
            f"Production for item {item.id} is already completed",
            resource="Purchase order item",
            resource_id=item.id,
        )
    db.expire(item, ["is_production_completed"])


def _produce_item(
    db: Session,
    order: PurchaseOrder,
    item: PurchaseOrderItem,
    production_kg: Decimal,
    warehouse_id: int,
    production_date: date,
    notes: Optional[str],
    created_by: Optional[str],
) -> ProductionResult:
    _claim_item(db, item)

    purchased_kg = Decimal(str(item.total_kg))
    wastage = compute_wastage(purchased_kg, production_kg)

    record = ProductionRecord(
        production_number=next_production_number(db, production_date),
        purchase_order_id=order.id,
        purchase_order_item_id=item.id,
        product_id=item.product_id,
        warehouse_id=warehouse_id,
        purchased_kg=purchased_kg,
        production_kg=production_kg,
        production_date=production_date,
        notes=notes,
        created_by=created_by,
    )
    db.add(record)
    db.flush()

    movement = StockLedgerService(db).increment(
        item.product_id,
        warehouse_id,
        production_kg,
        "production",
        reference_type="production_record",
        reference_id=record.id,
        notes=(
            f"Production {record.production_number} for {order.po_number}: "
            f"purchased {purchased_kg} kg, produced {production_kg} kg, "
            f"wastage {wastage['wastage_kg']} kg ({wastage['wastage_percentage']}%)"
        ),
        created_by=created_by,
    )

    wastage_record = None
    if wastage["wastage_kg"] > 0:
        wastage_record = WastageRecord(
            product_id=item.product_id,
            warehouse_id=warehouse_id,
            quantity=wastage["wastage_kg"],
            reason="production",
            description=f"Production wastage for {order.po_number} ({record.production_number})",
            wastage_date=production_date,
            cost_value=round_money(wastage["wastage_kg"] * Decimal(str(item.unit_price))),
            production_record_id=record.id,
            status="approved",
            reported_by=created_by,
            approved_by=created_by,
            approved_at=datetime.utcnow(),
        )
        db.add(wastage_record)
        db.flush()

    return ProductionResult(record, wastage_record, movement, order)


def _roll_up_order(db: Session, order: PurchaseOrder, production_date: date) -> None:
    """Refresh order aggregates and complete it when no line is pending."""
    pending = (
        db.query(func.count(PurchaseOrderItem.id))
        .filter(
            PurchaseOrderItem.purchase_order_id == order.id,
            PurchaseOrderItem.is_production_completed == False,  # noqa: E712
        )
        .scalar()
    )

    purchased, produced = (
        db.query(
            func.coalesce(func.sum(ProductionRecord.purchased_kg), 0),
            func.coalesce(func.sum(ProductionRecord.production_kg), 0),
        )
        .filter(ProductionRecord.purchase_order_id == order.id)
        .one()
    )
    totals = compute_wastage(Decimal(str(purchased)), Decimal(str(produced)))
    order.production_kg = Decimal(str(produced))
    order.wastage_kg = totals["wastage_kg"]
    order.wastage_percentage = totals["wastage_percentage"]

    if pending == 0:
        order.status = STATUS_COMPLETED
        order.is_production_completed = True
        order.production_date = production_date
    else:
        order.status = STATUS_IN_PROGRESS
    db.flush()


# ============================================================================
# Workflows
# ============================================================================


def process_item_production(
    db: Session,
    purchase_order_id: int,
    item_id: int,
    production_kg: Any,
    warehouse_id: Optional[int] = None,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
    production_date: Optional[date] = None,
) -> ProductionResult:
    """
    Record production for one purchase order line.

    Args:
        purchase_order_id: Parent order
        item_id: Line to produce
        production_kg: Produced weight, 0 < production_kg <= line total_kg
        warehouse_id: Receiving warehouse (defaults to the order's)

    Raises:
        NotFoundError: Order or line does not exist
        AlreadyProcessedError: Order or line already produced
        ValidationError: production_kg not positive or above purchased weight
    """
    production_date = production_date or date.today()

    with atomic(db):
        order = _load_open_order(db, purchase_order_id)

        item = db.get(PurchaseOrderItem, item_id, populate_existing=True)
        if not item or item.purchase_order_id != order.id:
            raise NotFoundError(
                "Purchase order item", item_id, details={"purchase_order_id": str(order.id)}
            )
        if item.is_production_completed:
            logger.warning(
                "Production rejected: item already produced",
                extra={"po_number": order.po_number, "item_id": item.id},
            )
            raise AlreadyProcessedError(
                f"Production for item {item.id} is already completed",
                resource="Purchase order item",
                resource_id=item.id,
            )

        produced = _validate_production_kg(item, production_kg)
        target_warehouse = require_warehouse(db, warehouse_id or order.warehouse_id)

        result = _produce_item(
            db, order, item, produced, target_warehouse.id, production_date, notes, created_by
        )
        _roll_up_order(db, order, production_date)

    record = result.production_record
    logger.info(
        "Production recorded",
        extra={
            "po_number": order.po_number,
            "production_number": record.production_number,
            "item_id": item_id,
            "purchased_kg": str(record.purchased_kg),
            "production_kg": str(record.production_kg),
            "order_status": order.status,
        },
    )
    return result


def _entry_value(entry: Any, name: str) -> Any:
    if isinstance(entry, dict):
        return entry.get(name)
    return getattr(entry, name, None)


def process_order_production(
    db: Session,
    purchase_order_id: int,
    entries: List[Any],
    warehouse_id: Optional[int] = None,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
    production_date: Optional[date] = None,
) -> List[ProductionResult]:
    """
    Produce every pending line of an order in one transaction.

    Each entry names its line by ``item_id`` or, failing that, by
    ``product_id``, and carries ``production_kg``. Every pending line must
    be matched and every quantity must validate before the first write.

    Raises:
        NotFoundError: Order missing, or an entry names a line of another order
        AlreadyProcessedError: Order already complete, or an entry names a produced line
        ValidationError: A pending line has no entry or a quantity is invalid
    """
    production_date = production_date or date.today()

    with atomic(db):
        order = _load_open_order(db, purchase_order_id)
        items = (
            db.query(PurchaseOrderItem)
            .filter(PurchaseOrderItem.purchase_order_id == order.id)
            .order_by(PurchaseOrderItem.id)
            .populate_existing()
            .all()
        )
        items_by_id = {item.id: item for item in items}
        pending = [item for item in items if not item.is_production_completed]

        by_item_id: Dict[int, Any] = {}
        by_product_id: Dict[int, List[Any]] = {}
        for index, entry in enumerate(entries or []):
            entry_item_id = _entry_value(entry, "item_id")
            entry_product_id = _entry_value(entry, "product_id")
            if entry_item_id:
                item = items_by_id.get(int(entry_item_id))
                if item is None:
                    raise NotFoundError(
                        "Purchase order item", entry_item_id,
                        details={"purchase_order_id": str(order.id)},
                    )
                if item.is_production_completed:
                    raise AlreadyProcessedError(
                        f"Production for item {item.id} is already completed",
                        resource="Purchase order item",
                        resource_id=item.id,
                    )
                by_item_id[item.id] = entry
            elif entry_product_id:
                by_product_id.setdefault(int(entry_product_id), []).append(entry)
            else:
                raise ValidationError(
                    "Production entry needs item_id or product_id", field=f"entries[{index}]"
                )

        plan = []
        for item in pending:
            entry = by_item_id.get(item.id)
            if entry is None and by_product_id.get(item.product_id):
                entry = by_product_id[item.product_id].pop(0)
            if entry is None:
                logger.warning(
                    "Batch production rejected: missing entry",
                    extra={"po_number": order.po_number, "item_id": item.id},
                )
                raise ValidationError(
                    f"Missing production entry for item {item.id} (product {item.product_id})",
                    field="entries",
                    details={"item_id": item.id},
                )
            plan.append((item, _validate_production_kg(item, _entry_value(entry, "production_kg"))))

        target_warehouse = require_warehouse(db, warehouse_id or order.warehouse_id)

        results = [
            _produce_item(
                db, order, item, produced, target_warehouse.id, production_date, notes, created_by
            )
            for item, produced in plan
        ]
        _roll_up_order(db, order, production_date)

    logger.info(
        "Order production recorded",
        extra={
            "po_number": order.po_number,
            "item_count": len(results),
            "production_kg": str(order.production_kg),
            "wastage_kg": str(order.wastage_kg),
        },
    )
    return results


# ============================================================================
# Reads
# ============================================================================


def _summarise(records: List[ProductionRecord]) -> Dict[str, Any]:
    purchased = sum((Decimal(str(r.purchased_kg)) for r in records), Decimal("0"))
    produced = sum((Decimal(str(r.production_kg)) for r in records), Decimal("0"))
    totals = compute_wastage(purchased, produced)
    return {
        "record_count": len(records),
        "total_purchased_kg": purchased,
        "total_production_kg": produced,
        "total_wastage_kg": totals["wastage_kg"],
        "wastage_percentage": totals["wastage_percentage"],
    }


def get_production_history(
    db: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    product_id: Optional[int] = None,
    warehouse_id: Optional[int] = None,
    purchase_order_id: Optional[int] = None,
    limit: int = 100,
) -> Dict[str, Any]:
    """Production records newest first with an aggregate summary."""
    query = db.query(ProductionRecord)
    if start_date:
        query = query.filter(ProductionRecord.production_date >= start_date)
    if end_date:
        query = query.filter(ProductionRecord.production_date <= end_date)
    if product_id:
        query = query.filter(ProductionRecord.product_id == product_id)
    if warehouse_id:
        query = query.filter(ProductionRecord.warehouse_id == warehouse_id)
    if purchase_order_id:
        query = query.filter(ProductionRecord.purchase_order_id == purchase_order_id)

    records = (
        query.order_by(ProductionRecord.production_date.desc(), ProductionRecord.id.desc())
        .limit(limit)
        .all()
    )
    return {"records": records, "summary": _summarise(records)}


def get_production_history_by_order(db: Session, purchase_order_id: int) -> Dict[str, Any]:
    order = db.get(PurchaseOrder, purchase_order_id)
    if not order:
        raise NotFoundError("Purchase order", purchase_order_id)
    records = (
        db.query(ProductionRecord)
        .filter(ProductionRecord.purchase_order_id == order.id)
        .order_by(ProductionRecord.id)
        .all()
    )
    return {"records": records, "summary": _summarise(records)}
