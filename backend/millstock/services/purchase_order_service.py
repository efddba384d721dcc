"""
Purchase Order Workflow

Lifecycle:
    pending -> production_in_progress -> production_completed
    pending -> cancelled

Creation prices the order server-side, inserts the order and its lines,
raises the supplier payable and optionally records an immediate payment,
all in one transaction.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from millstock.db.session import atomic
from millstock.exceptions import InvalidStateError, NotFoundError, ValidationError
from millstock.logging_config import get_logger
from millstock.models.client import Client
from millstock.models.product import Product
from millstock.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from millstock.models.warehouse import Warehouse
from millstock.schemas.purchasing import PurchaseOrderCreate
from millstock.services.ledger_service import CASH_OUT, LedgerService
from millstock.services.numbering_service import next_purchase_order_number
from millstock.services.pricing_service import price_lines

logger = get_logger(__name__)


STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "production_in_progress"
STATUS_COMPLETED = "production_completed"
STATUS_CANCELLED = "cancelled"

PO_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_CANCELLED)


def _require_supplier(db: Session, supplier_id: Optional[int]) -> Client:
    if not supplier_id:
        raise ValidationError("Supplier is required", field="supplier_id")
    supplier = db.get(Client, supplier_id)
    if not supplier:
        raise NotFoundError("Supplier", supplier_id)
    if not supplier.is_supplier:
        raise ValidationError(
            f"Client {supplier_id} is not a supplier", field="supplier_id", value=supplier_id
        )
    return supplier


def require_warehouse(db: Session, warehouse_id: Optional[int]) -> Warehouse:
    if not warehouse_id:
        raise ValidationError("Warehouse is required", field="warehouse_id")
    warehouse = db.get(Warehouse, warehouse_id)
    if not warehouse:
        raise NotFoundError("Warehouse", warehouse_id)
    return warehouse


def purchase_order_lock_query(db: Session, purchase_order_id: int):
    """Query for an order row locked until the transaction ends."""
    return (
        db.query(PurchaseOrder)
        .filter(PurchaseOrder.id == purchase_order_id)
        .with_for_update()
        .populate_existing()
    )


def lock_purchase_order(db: Session, purchase_order_id: int) -> PurchaseOrder:
    """
    Load an order with a row lock so production roll-ups and cancellation
    on the same order run one at a time.
    """
    order = purchase_order_lock_query(db, purchase_order_id).one_or_none()
    if not order:
        raise NotFoundError("Purchase order", purchase_order_id)
    return order


def require_products(db: Session, product_ids: List[int]) -> None:
    found = {
        pid for (pid,) in db.query(Product.id).filter(Product.id.in_(set(product_ids))).all()
    }
    for product_id in product_ids:
        if product_id not in found:
            raise NotFoundError("Product", product_id)


def create_purchase_order(
    db: Session,
    data: PurchaseOrderCreate,
    created_by: Optional[str] = None,
) -> PurchaseOrder:
    """
    Create a purchase order with its lines.

    Every line is validated and priced before anything is written. The
    supplier balance grows by the order total; with ``make_payment`` a
    cash_out of the same total is recorded, netting the payable to zero.

    Raises:
        ValidationError: Missing header fields or a bad line
        NotFoundError: Supplier, warehouse or product does not exist
    """
    supplier = _require_supplier(db, data.supplier_id)
    require_warehouse(db, data.warehouse_id)
    if not data.order_date:
        raise ValidationError("Order date is required", field="order_date")

    priced = price_lines(data.items)
    require_products(db, [line.product_id for line in priced.lines])

    with atomic(db):
        order = PurchaseOrder(
            po_number=next_purchase_order_number(db),
            supplier_id=supplier.id,
            warehouse_id=data.warehouse_id,
            status=STATUS_PENDING,
            order_date=data.order_date,
            expected_delivery_date=data.expected_delivery_date,
            subtotal=priced.subtotal,
            discount_amount=priced.discount_amount,
            tax_amount=priced.tax_amount,
            total_amount=priced.total_amount,
            is_production_completed=False,
            notes=data.notes,
            created_by=created_by,
        )
        db.add(order)
        db.flush()

        for line in priced.lines:
            db.add(PurchaseOrderItem(
                purchase_order_id=order.id,
                product_id=line.product_id,
                unit_type=line.unit_type,
                bag_weight=line.bag_weight,
                quantity=line.quantity,
                total_kg=line.total_kg,
                unit_price=line.unit_price,
                tax_rate=line.tax_rate,
                discount_rate=line.discount_rate,
                line_subtotal=line.line_subtotal,
                line_discount=line.line_discount,
                line_tax=line.line_tax,
                line_total=line.line_total,
                is_production_completed=False,
            ))
        db.flush()

        ledger = LedgerService(db)
        ledger.post(
            supplier.id,
            priced.total_amount,
            "purchase_order",
            reference_type="purchase_order",
            reference_id=order.id,
            description=f"Purchase order {order.po_number}",
            entry_date=data.order_date,
            created_by=created_by,
        )
        if data.make_payment:
            ledger.record_cash(
                CASH_OUT,
                priced.total_amount,
                client_id=supplier.id,
                transaction_date=data.order_date,
                payment_method=data.payment_method,
                reference_type="purchase_order",
                reference_id=order.id,
                description=f"Payment for purchase order {order.po_number}",
                counterparty_role="supplier",
                bank_account_id=data.bank_account_id,
                cheque_number=data.cheque_number,
                cheque_date=data.cheque_date,
                created_by=created_by,
            )

    logger.info(
        "Purchase order created",
        extra={
            "po_number": order.po_number,
            "supplier_id": supplier.id,
            "total_amount": str(priced.total_amount),
            "item_count": len(priced.lines),
            "paid": data.make_payment,
        },
    )
    return order


def get_purchase_order(db: Session, purchase_order_id: int) -> PurchaseOrder:
    order = (
        db.query(PurchaseOrder)
        .options(selectinload(PurchaseOrder.items))
        .filter(PurchaseOrder.id == purchase_order_id)
        .first()
    )
    if not order:
        raise NotFoundError("Purchase order", purchase_order_id)
    return order


def list_purchase_orders(
    db: Session,
    status: Optional[str] = None,
    supplier_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    production_status: Optional[str] = None,
    offset: int = 0,
    limit: int = 50,
) -> Dict[str, Any]:
    """
    Filtered purchase order list, newest first.

    ``production_status`` is ``pending`` or ``completed``.

    Returns:
        {"items": [...], "total": int}
    """
    query = db.query(PurchaseOrder)
    if status:
        if status not in PO_STATUSES:
            raise ValidationError(f"Unknown status '{status}'", field="status", value=status)
        query = query.filter(PurchaseOrder.status == status)
    if supplier_id:
        query = query.filter(PurchaseOrder.supplier_id == supplier_id)
    if start_date:
        query = query.filter(PurchaseOrder.order_date >= start_date)
    if end_date:
        query = query.filter(PurchaseOrder.order_date <= end_date)
    if production_status == "pending":
        query = query.filter(PurchaseOrder.is_production_completed == False)  # noqa: E712
    elif production_status == "completed":
        query = query.filter(PurchaseOrder.is_production_completed == True)  # noqa: E712
    elif production_status:
        raise ValidationError(
            "production_status must be 'pending' or 'completed'",
            field="production_status",
            value=production_status,
        )

    total = query.count()
    items = (
        query.order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return {"items": items, "total": total}


def get_pending_production_orders(db: Session) -> List[Dict[str, Any]]:
    """Orders not yet fully produced (and not cancelled) with item summaries."""
    orders = (
        db.query(PurchaseOrder)
        .options(
            selectinload(PurchaseOrder.items).selectinload(PurchaseOrderItem.product),
            selectinload(PurchaseOrder.supplier),
        )
        .filter(
            PurchaseOrder.is_production_completed == False,  # noqa: E712
            PurchaseOrder.status != STATUS_CANCELLED,
        )
        .order_by(PurchaseOrder.order_date, PurchaseOrder.id)
        .all()
    )

    result = []
    for order in orders:
        items = [
            {
                "id": item.id,
                "product_id": item.product_id,
                "product_name": item.product.name if item.product else None,
                "total_kg": Decimal(str(item.total_kg)),
                "is_production_completed": item.is_production_completed,
            }
            for item in order.items
        ]
        result.append({
            "id": order.id,
            "po_number": order.po_number,
            "supplier_id": order.supplier_id,
            "supplier_name": order.supplier.company_name if order.supplier else None,
            "warehouse_id": order.warehouse_id,
            "status": order.status,
            "order_date": order.order_date,
            "total_amount": Decimal(str(order.total_amount)),
            "total_kg": sum((i["total_kg"] for i in items), Decimal("0")),
            "item_count": len(items),
            "pending_item_count": sum(1 for i in items if not i["is_production_completed"]),
            "items": items,
        })
    return result


def get_purchase_for_production(db: Session, purchase_order_id: int) -> Dict[str, Any]:
    """
    An order prepared for the production screen: header plus each line's
    purchased weight and completion flag.
    """
    order = get_purchase_order(db, purchase_order_id)
    if order.status == STATUS_CANCELLED:
        raise InvalidStateError(
            f"Purchase order {order.po_number} is cancelled",
            current_state=order.status,
        )
    return {
        "order": order,
        "items": [
            {
                "id": item.id,
                "product_id": item.product_id,
                "purchased_kg": Decimal(str(item.total_kg)),
                "is_production_completed": item.is_production_completed,
            }
            for item in order.items
        ],
    }


def get_pending_production_items(db: Session, purchase_order_id: Optional[int] = None) -> List[PurchaseOrderItem]:
    """Lines still awaiting production, optionally for one order."""
    query = (
        db.query(PurchaseOrderItem)
        .join(PurchaseOrder)
        .filter(
            PurchaseOrderItem.is_production_completed == False,  # noqa: E712
            PurchaseOrder.status != STATUS_CANCELLED,
        )
    )
    if purchase_order_id is not None:
        query = query.filter(PurchaseOrderItem.purchase_order_id == purchase_order_id)
    return query.order_by(PurchaseOrder.order_date, PurchaseOrderItem.id).all()


def cancel_purchase_order(
    db: Session,
    purchase_order_id: int,
    created_by: Optional[str] = None,
) -> PurchaseOrder:
    """
    Cancel a pending purchase order and reverse its payable.

    Orders with any production recorded cannot be cancelled. Payments
    already made stay on the books; they are corrected through petty cash.
    """
    with atomic(db):
        order = lock_purchase_order(db, purchase_order_id)
        if order.status != STATUS_PENDING:
            logger.warning(
                "Purchase order cancel rejected",
                extra={"po_number": order.po_number, "status": order.status},
            )
            raise InvalidStateError(
                f"Cannot cancel purchase order {order.po_number} in status '{order.status}'",
                current_state=order.status,
                allowed_states=[STATUS_PENDING],
            )

        order.status = STATUS_CANCELLED
        LedgerService(db).post(
            order.supplier_id,
            -Decimal(str(order.total_amount)),
            "cancellation",
            reference_type="purchase_order",
            reference_id=order.id,
            description=f"Cancelled purchase order {order.po_number}",
            created_by=created_by,
        )
        db.flush()

    logger.info("Purchase order cancelled", extra={"po_number": order.po_number})
    return order
