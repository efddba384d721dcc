"""
Sales Order Workflow

Mirrors purchase order creation minus production:
validate -> normalize -> price -> insert order and lines -> decrement stock
per line -> raise the customer receivable -> optional immediate payment.

A ``draft`` order is stored without stock or ledger effects; confirming it
applies them. ``stock_deducted`` records whether they have been applied, and
cancellation only reverses what was applied.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session, selectinload

from millstock.db.session import atomic
from millstock.exceptions import InvalidStateError, NotFoundError, ValidationError
from millstock.logging_config import get_logger
from millstock.models.client import Client
from millstock.models.sales_order import SalesOrder, SalesOrderItem
from millstock.schemas.sales_order import SalesOrderCreate
from millstock.services.inventory_service import StockLedgerService
from millstock.services.ledger_service import CASH_IN, LedgerService
from millstock.services.numbering_service import next_sales_order_number
from millstock.services.pricing_service import price_lines
from millstock.services.purchase_order_service import require_products, require_warehouse

logger = get_logger(__name__)


STATUS_DRAFT = "draft"
STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_DELIVERED = "delivered"
STATUS_CANCELLED = "cancelled"

SO_STATUSES = (STATUS_DRAFT, STATUS_PENDING, STATUS_CONFIRMED, STATUS_DELIVERED, STATUS_CANCELLED)
CREATE_STATUSES = (STATUS_DRAFT, STATUS_PENDING, STATUS_CONFIRMED)


def _require_customer(db: Session, customer_id: Optional[int]) -> Client:
    if not customer_id:
        raise ValidationError("Customer is required", field="customer_id")
    customer = db.get(Client, customer_id)
    if not customer:
        raise NotFoundError("Customer", customer_id)
    if not customer.is_customer:
        raise ValidationError(
            f"Client {customer_id} is not a customer", field="customer_id", value=customer_id
        )
    return customer


def _apply_effects(
    db: Session,
    order: SalesOrder,
    make_payment: bool,
    payment_method: Optional[str],
    created_by: Optional[str],
    bank_account_id: Optional[int] = None,
    cheque_number: Optional[str] = None,
    cheque_date: Optional[date] = None,
) -> None:
    """Deduct stock, raise the receivable and optionally take payment."""
    stock = StockLedgerService(db)
    for item in order.items:
        stock.decrement(
            item.product_id,
            order.warehouse_id,
            Decimal(str(item.total_kg)),
            "sale",
            reference_type="sales_order",
            reference_id=order.id,
            notes=f"Sales order {order.order_number}",
            created_by=created_by,
        )

    total = Decimal(str(order.total_amount))
    ledger = LedgerService(db)
    ledger.post(
        order.customer_id,
        total,
        "sales_order",
        reference_type="sales_order",
        reference_id=order.id,
        description=f"Sales order {order.order_number}",
        entry_date=order.order_date,
        created_by=created_by,
    )
    if make_payment:
        ledger.record_cash(
            CASH_IN,
            total,
            client_id=order.customer_id,
            transaction_date=order.order_date,
            payment_method=payment_method,
            reference_type="sales_order",
            reference_id=order.id,
            description=f"Payment for sales order {order.order_number}",
            counterparty_role="customer",
            bank_account_id=bank_account_id,
            cheque_number=cheque_number,
            cheque_date=cheque_date,
            created_by=created_by,
        )
    order.stock_deducted = True
    db.flush()


def create_sales_order(
    db: Session,
    data: SalesOrderCreate,
    created_by: Optional[str] = None,
) -> SalesOrder:
    """
    Create a sales order.

    Raises:
        ValidationError: Missing header fields, bad line, or payment on a draft
        NotFoundError: Customer, warehouse or product does not exist
        InsufficientStockError: A line exceeds available stock (nothing is saved)
    """
    customer = _require_customer(db, data.customer_id)
    require_warehouse(db, data.warehouse_id)
    if not data.order_date:
        raise ValidationError("Order date is required", field="order_date")
    status = data.status or STATUS_CONFIRMED
    if status not in CREATE_STATUSES:
        raise ValidationError(
            f"Sales orders cannot be created as '{status}'", field="status", value=status
        )
    if status == STATUS_DRAFT and data.make_payment:
        raise ValidationError("Draft orders cannot take payment", field="make_payment")

    priced = price_lines(data.items, shipping_charges=data.shipping_charges)
    require_products(db, [line.product_id for line in priced.lines])

    with atomic(db):
        order = SalesOrder(
            order_number=next_sales_order_number(db),
            customer_id=customer.id,
            warehouse_id=data.warehouse_id,
            order_date=data.order_date,
            delivery_date=data.delivery_date,
            subtotal=priced.subtotal,
            discount_amount=priced.discount_amount,
            tax_amount=priced.tax_amount,
            shipping_charges=priced.shipping_charges,
            total_amount=priced.total_amount,
            status=status,
            stock_deducted=False,
            notes=data.notes,
            created_by=created_by,
        )
        for line in priced.lines:
            order.items.append(SalesOrderItem(
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
            ))
        db.add(order)
        db.flush()

        if status != STATUS_DRAFT:
            _apply_effects(
                db, order, data.make_payment, data.payment_method, created_by,
                bank_account_id=data.bank_account_id,
                cheque_number=data.cheque_number,
                cheque_date=data.cheque_date,
            )

    logger.info(
        "Sales order created",
        extra={
            "order_number": order.order_number,
            "customer_id": customer.id,
            "status": status,
            "total_amount": str(priced.total_amount),
            "paid": data.make_payment,
        },
    )
    return order


def _get_for_update(db: Session, sales_order_id: int) -> SalesOrder:
    order = db.get(SalesOrder, sales_order_id, populate_existing=True)
    if not order:
        raise NotFoundError("Sales order", sales_order_id)
    return order


def confirm_sales_order(
    db: Session,
    sales_order_id: int,
    make_payment: bool = False,
    payment_method: Optional[str] = None,
    created_by: Optional[str] = None,
) -> SalesOrder:
    """Confirm a draft: deduct stock and raise the receivable."""
    with atomic(db):
        order = _get_for_update(db, sales_order_id)
        if order.status != STATUS_DRAFT:
            raise InvalidStateError(
                f"Only draft orders can be confirmed; {order.order_number} is '{order.status}'",
                current_state=order.status,
                allowed_states=[STATUS_DRAFT],
            )
        _apply_effects(db, order, make_payment, payment_method, created_by)
        order.status = STATUS_CONFIRMED
        db.flush()

    logger.info("Sales order confirmed", extra={"order_number": order.order_number})
    return order


def cancel_sales_order(
    db: Session,
    sales_order_id: int,
    created_by: Optional[str] = None,
) -> SalesOrder:
    """
    Cancel a sales order.

    When stock was deducted it is returned (movement ``sale_return``) and
    the receivable is reversed. A draft is cancelled with no stock or ledger
    effect. Payments already received are left to petty cash corrections.
    """
    with atomic(db):
        order = _get_for_update(db, sales_order_id)
        if order.status in (STATUS_DELIVERED, STATUS_CANCELLED):
            raise InvalidStateError(
                f"Cannot cancel sales order {order.order_number} in status '{order.status}'",
                current_state=order.status,
                allowed_states=[STATUS_DRAFT, STATUS_PENDING, STATUS_CONFIRMED],
            )

        if order.stock_deducted:
            stock = StockLedgerService(db)
            for item in order.items:
                stock.increment(
                    item.product_id,
                    order.warehouse_id,
                    Decimal(str(item.total_kg)),
                    "sale_return",
                    reference_type="sales_order",
                    reference_id=order.id,
                    notes=f"Cancelled sales order {order.order_number}",
                    created_by=created_by,
                )
            LedgerService(db).post(
                order.customer_id,
                -Decimal(str(order.total_amount)),
                "cancellation",
                reference_type="sales_order",
                reference_id=order.id,
                description=f"Cancelled sales order {order.order_number}",
                created_by=created_by,
            )
            order.stock_deducted = False

        order.status = STATUS_CANCELLED
        db.flush()

    logger.info("Sales order cancelled", extra={"order_number": order.order_number})
    return order


def get_sales_order(db: Session, sales_order_id: int) -> SalesOrder:
    order = (
        db.query(SalesOrder)
        .options(selectinload(SalesOrder.items))
        .filter(SalesOrder.id == sales_order_id)
        .first()
    )
    if not order:
        raise NotFoundError("Sales order", sales_order_id)
    return order


def list_sales_orders(
    db: Session,
    status: Optional[str] = None,
    customer_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    offset: int = 0,
    limit: int = 50,
) -> Dict[str, Any]:
    query = db.query(SalesOrder)
    if status:
        if status not in SO_STATUSES:
            raise ValidationError(f"Unknown status '{status}'", field="status", value=status)
        query = query.filter(SalesOrder.status == status)
    if customer_id:
        query = query.filter(SalesOrder.customer_id == customer_id)
    if start_date:
        query = query.filter(SalesOrder.order_date >= start_date)
    if end_date:
        query = query.filter(SalesOrder.order_date <= end_date)

    total = query.count()
    items = (
        query.order_by(SalesOrder.order_date.desc(), SalesOrder.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return {"items": items, "total": total}
