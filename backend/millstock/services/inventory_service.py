"""
Stock Ledger Service

Maintains the current quantity per (product, warehouse) in ``stock`` and
the append-only ``stock_movements`` log. Every quantity change goes
through this module so a position always equals the sum of its movements.

Usage:
    ledger = StockLedgerService(db)
    ledger.increment(product_id, warehouse_id, Decimal("235"), "production",
                     reference_type="production_record", reference_id=record.id)
    db.commit()  # Caller commits
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, List, NamedTuple, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from millstock.core.config import settings
from millstock.db.dialect import upsert_insert
from millstock.db.session import atomic
from millstock.exceptions import InsufficientStockError, NotFoundError, ValidationError
from millstock.logging_config import get_logger
from millstock.models.inventory import StockMovement, StockPosition
from millstock.models.product import Product
from millstock.models.warehouse import Warehouse
from millstock.services.uom_service import to_decimal

logger = get_logger(__name__)


MOVEMENT_TYPES = (
    "purchase",
    "production",
    "sale",
    "sale_return",
    "adjustment",
    "transfer_in",
    "transfer_out",
    "cutting",
    "wastage",
)


class CuttingOutput(NamedTuple):
    """Product produced by a cutting operation"""
    product_id: int
    quantity: Decimal


class StockLedgerService:
    """
    Atomic stock increments, checked decrements and transfers.

    IMPORTANT: This service does NOT commit. Caller is responsible for commit.
    This allows stock changes to be grouped with order, production and
    ledger writes in a single transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    # === INTERNAL HELPERS ===

    def _require_product(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    def _require_warehouse(self, warehouse_id: int) -> Warehouse:
        warehouse = self.db.get(Warehouse, warehouse_id)
        if not warehouse:
            raise NotFoundError("Warehouse", warehouse_id)
        return warehouse

    @staticmethod
    def _positive(quantity: Any) -> Decimal:
        qty = to_decimal(quantity, field="quantity")
        if qty <= 0:
            raise ValidationError("Quantity must be greater than zero", field="quantity", value=qty)
        return qty

    @staticmethod
    def _check_movement_type(movement_type: str) -> None:
        if movement_type not in MOVEMENT_TYPES:
            raise ValidationError(
                f"Unknown movement type '{movement_type}'", field="movement_type", value=movement_type
            )

    def _record_movement(
        self,
        product_id: int,
        warehouse_id: int,
        signed_quantity: Decimal,
        movement_type: str,
        reference_type: Optional[str],
        reference_id: Optional[int],
        notes: Optional[str],
        created_by: Optional[str],
        counterpart_warehouse_id: Optional[int] = None,
    ) -> StockMovement:
        movement = StockMovement(
            product_id=product_id,
            warehouse_id=warehouse_id,
            movement_type=movement_type,
            quantity=signed_quantity,
            reference_type=reference_type,
            reference_id=reference_id,
            counterpart_warehouse_id=counterpart_warehouse_id,
            notes=notes,
            created_by=created_by,
            created_at=datetime.utcnow(),
        )
        self.db.add(movement)
        self.db.flush()
        return movement

    # === QUANTITY CHANGES ===

    def increment(
        self,
        product_id: int,
        warehouse_id: int,
        quantity: Any,
        movement_type: str,
        reference_type: Optional[str] = None,
        reference_id: Optional[int] = None,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
        counterpart_warehouse_id: Optional[int] = None,
    ) -> StockMovement:
        """
        Add stock and append a positive movement.

        The position is created on first use. The add is a single
        ``INSERT ... ON CONFLICT DO UPDATE quantity = quantity + :qty`` so
        concurrent writers to the same key never lose an update.
        """
        qty = self._positive(quantity)
        self._check_movement_type(movement_type)
        self._require_product(product_id)
        self._require_warehouse(warehouse_id)

        now = datetime.utcnow()
        table = StockPosition.__table__
        stmt = upsert_insert(self.db, table).values(
            product_id=product_id,
            warehouse_id=warehouse_id,
            quantity=qty,
            reserved_quantity=0,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.product_id, table.c.warehouse_id],
            set_={"quantity": table.c.quantity + stmt.excluded.quantity, "updated_at": now},
        )
        self.db.execute(stmt)

        return self._record_movement(
            product_id, warehouse_id, qty, movement_type,
            reference_type, reference_id, notes, created_by, counterpart_warehouse_id,
        )

    def decrement(
        self,
        product_id: int,
        warehouse_id: int,
        quantity: Any,
        movement_type: str,
        reference_type: Optional[str] = None,
        reference_id: Optional[int] = None,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
        counterpart_warehouse_id: Optional[int] = None,
    ) -> StockMovement:
        """
        Remove stock and append a negative movement.

        Availability is checked by the update itself
        (``WHERE quantity - reserved_quantity >= :qty``); when no row matches
        nothing has been written and InsufficientStockError is raised.
        """
        qty = self._positive(quantity)
        self._check_movement_type(movement_type)
        self._require_product(product_id)
        self._require_warehouse(warehouse_id)

        table = StockPosition.__table__
        result = self.db.execute(
            update(table)
            .where(
                table.c.product_id == product_id,
                table.c.warehouse_id == warehouse_id,
                table.c.quantity - table.c.reserved_quantity >= qty,
            )
            .values(quantity=table.c.quantity - qty, updated_at=datetime.utcnow())
        )
        if result.rowcount != 1:
            available = self.get_available(product_id, warehouse_id)
            logger.warning(
                "Stock decrement rejected",
                extra={
                    "product_id": product_id,
                    "warehouse_id": warehouse_id,
                    "requested": str(qty),
                    "available": str(available),
                    "movement_type": movement_type,
                },
            )
            raise InsufficientStockError(
                product_id, warehouse_id, requested=qty, available=available
            )

        return self._record_movement(
            product_id, warehouse_id, -qty, movement_type,
            reference_type, reference_id, notes, created_by, counterpart_warehouse_id,
        )

    def transfer(
        self,
        product_id: int,
        from_warehouse_id: int,
        to_warehouse_id: int,
        quantity: Any,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Tuple[StockMovement, StockMovement]:
        """
        Move stock between warehouses.

        The source is decremented first, so an insufficient source rejects
        the transfer before the destination is touched.

        Returns:
            (transfer_out movement, transfer_in movement)
        """
        if from_warehouse_id == to_warehouse_id:
            raise ValidationError(
                "Source and destination warehouse must differ", field="to_warehouse_id"
            )
        self._require_warehouse(to_warehouse_id)

        out_movement = self.decrement(
            product_id, from_warehouse_id, quantity, "transfer_out",
            reference_type="transfer", notes=notes, created_by=created_by,
            counterpart_warehouse_id=to_warehouse_id,
        )
        in_movement = self.increment(
            product_id, to_warehouse_id, quantity, "transfer_in",
            reference_type="transfer", reference_id=out_movement.id, notes=notes,
            created_by=created_by, counterpart_warehouse_id=from_warehouse_id,
        )
        out_movement.reference_id = in_movement.id
        self.db.flush()
        return out_movement, in_movement

    # === READS ===

    def get_position(self, product_id: int, warehouse_id: int) -> Optional[StockPosition]:
        """Current position, refreshed from the database."""
        return (
            self.db.query(StockPosition)
            .filter(
                StockPosition.product_id == product_id,
                StockPosition.warehouse_id == warehouse_id,
            )
            .populate_existing()
            .first()
        )

    def get_quantity(self, product_id: int, warehouse_id: int) -> Decimal:
        position = self.get_position(product_id, warehouse_id)
        if not position:
            return Decimal("0")
        return Decimal(str(position.quantity))

    def get_available(self, product_id: int, warehouse_id: int) -> Decimal:
        position = self.get_position(product_id, warehouse_id)
        if not position:
            return Decimal("0")
        return position.available_quantity

    def history(
        self,
        product_id: Optional[int] = None,
        warehouse_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[StockMovement]:
        """Movements newest-first, optionally filtered by product and/or warehouse."""
        limit = limit or settings.STOCK_HISTORY_DEFAULT_LIMIT
        limit = max(1, min(limit, settings.STOCK_HISTORY_MAX_LIMIT))

        query = self.db.query(StockMovement)
        if product_id is not None:
            query = query.filter(StockMovement.product_id == product_id)
        if warehouse_id is not None:
            query = query.filter(StockMovement.warehouse_id == warehouse_id)
        return (
            query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .limit(limit)
            .all()
        )


# ============================================================================
# Workflows (each runs in its own transaction)
# ============================================================================


def adjust_stock(
    db: Session,
    product_id: int,
    warehouse_id: int,
    quantity_delta: Any,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
) -> StockMovement:
    """
    Apply a signed manual adjustment.

    A negative delta uses the checked decrement, so an adjustment can never
    take a position below its reserved quantity.
    """
    delta = to_decimal(quantity_delta, field="quantity")
    if delta == 0:
        raise ValidationError("Adjustment quantity cannot be zero", field="quantity")

    with atomic(db):
        ledger = StockLedgerService(db)
        if delta > 0:
            movement = ledger.increment(
                product_id, warehouse_id, delta, "adjustment",
                reference_type="manual", notes=notes, created_by=created_by,
            )
        else:
            movement = ledger.decrement(
                product_id, warehouse_id, -delta, "adjustment",
                reference_type="manual", notes=notes, created_by=created_by,
            )

    logger.info(
        "Stock adjusted",
        extra={"product_id": product_id, "warehouse_id": warehouse_id, "delta": str(delta)},
    )
    return movement


def transfer_stock(
    db: Session,
    product_id: int,
    from_warehouse_id: int,
    to_warehouse_id: int,
    quantity: Any,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
) -> Tuple[StockMovement, StockMovement]:
    """Transfer stock between warehouses as one transaction."""
    with atomic(db):
        movements = StockLedgerService(db).transfer(
            product_id, from_warehouse_id, to_warehouse_id, quantity,
            notes=notes, created_by=created_by,
        )

    logger.info(
        "Stock transferred",
        extra={
            "product_id": product_id,
            "from_warehouse_id": from_warehouse_id,
            "to_warehouse_id": to_warehouse_id,
            "quantity": str(quantity),
        },
    )
    return movements


def process_cutting(
    db: Session,
    input_product_id: int,
    input_quantity: Any,
    warehouse_id: int,
    outputs: List[Any],
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
) -> List[StockMovement]:
    """
    Cut one input product into one or more output products.

    The input is decremented (checked) and every output incremented in the
    same warehouse, all with movement type ``cutting``. Output weight may
    not exceed input weight.

    Args:
        outputs: CuttingOutput tuples, dicts or objects with product_id and quantity

    Returns:
        The input movement followed by one movement per output
    """
    input_qty = StockLedgerService._positive(input_quantity)
    if not outputs:
        raise ValidationError("At least one output is required", field="outputs")

    parsed: List[CuttingOutput] = []
    for index, output in enumerate(outputs):
        if isinstance(output, dict):
            product_id, quantity = output.get("product_id"), output.get("quantity")
        else:
            product_id, quantity = output.product_id, output.quantity
        if not product_id:
            raise ValidationError("Product is required", field=f"outputs[{index}].product_id")
        qty = to_decimal(quantity, field=f"outputs[{index}].quantity")
        if qty <= 0:
            raise ValidationError(
                "Quantity must be greater than zero", field=f"outputs[{index}].quantity", value=qty
            )
        parsed.append(CuttingOutput(int(product_id), qty))

    total_output = sum((o.quantity for o in parsed), Decimal("0"))
    if total_output > input_qty:
        raise ValidationError(
            f"Output quantity {total_output} exceeds input quantity {input_qty}",
            field="outputs",
        )

    with atomic(db):
        ledger = StockLedgerService(db)
        input_movement = ledger.decrement(
            input_product_id, warehouse_id, input_qty, "cutting",
            reference_type="cutting", notes=notes, created_by=created_by,
        )
        movements = [input_movement]
        for output in parsed:
            movements.append(
                ledger.increment(
                    output.product_id, warehouse_id, output.quantity, "cutting",
                    reference_type="cutting", reference_id=input_movement.id,
                    notes=notes, created_by=created_by,
                )
            )

    logger.info(
        "Cutting processed",
        extra={
            "input_product_id": input_product_id,
            "warehouse_id": warehouse_id,
            "input_quantity": str(input_qty),
            "output_quantity": str(total_output),
        },
    )
    return movements
