"""
Production processor: bounds, wastage identity, idempotent completion
and order roll-up across multi-line purchase orders.
"""
import pytest
from datetime import date
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.dialects import postgresql

from millstock.exceptions import (
    AlreadyProcessedError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from millstock.models.inventory import StockMovement
from millstock.models.production import ProductionRecord, WastageRecord
from millstock.models.purchase_order import PurchaseOrderItem
from millstock.services.inventory_service import StockLedgerService
from millstock.services.production_service import (
    _produce_item,
    compute_wastage,
    get_production_history,
    get_production_history_by_order,
    process_item_production,
    process_order_production,
)
from millstock.services.purchase_order_service import (
    cancel_purchase_order,
    get_pending_production_items,
    get_purchase_order,
    purchase_order_lock_query,
)
from tests.factories import create_test_purchase_order, line


pytestmark = pytest.mark.integration


@pytest.fixture
def two_line_order(db_session, supplier, warehouse, product, second_product):
    """100 kg of rice and 4 bags x 50 kg of wheat"""
    return create_test_purchase_order(
        db_session, supplier, warehouse,
        items=[
            line(product, 100, 80),
            line(second_product, 4, 60, unit_type="bag", bag_weight=50),
        ],
    )


def _stock(db, product, warehouse):
    return StockLedgerService(db).get_quantity(product.id, warehouse.id)


class TestComputeWastage:

    @pytest.mark.parametrize("purchased,produced,kg,pct", [
        ("250", "235", "15", "6.00"),
        ("100", "100", "0", "0.00"),
        ("300", "299", "1", "0.33"),
        ("3", "1", "2", "66.67"),
    ])
    def test_wastage_identity(self, purchased, produced, kg, pct):
        result = compute_wastage(Decimal(purchased), Decimal(produced))
        assert result["wastage_kg"] == Decimal(kg)
        assert result["wastage_percentage"] == Decimal(pct)


class TestItemProduction:

    @pytest.mark.parametrize("production_kg", [0, -5])
    def test_non_positive_production_rejected(self, db_session, two_line_order, production_kg):
        item = two_line_order.items[0]
        with pytest.raises(ValidationError):
            process_item_production(db_session, two_line_order.id, item.id, production_kg)
        assert db_session.query(ProductionRecord).count() == 0

    def test_full_yield_creates_no_wastage_record(self, db_session, two_line_order, product, warehouse):
        item = two_line_order.items[0]
        result = process_item_production(db_session, two_line_order.id, item.id, Decimal("100"))

        assert result.wastage_record is None
        assert db_session.query(WastageRecord).count() == 0
        assert _stock(db_session, product, warehouse) == Decimal("100")

    def test_partial_order_is_in_progress(self, db_session, two_line_order, product, warehouse):
        first = two_line_order.items[0]
        process_item_production(db_session, two_line_order.id, first.id, Decimal("90"),
                                production_date=date(2026, 1, 20))

        order = get_purchase_order(db_session, two_line_order.id)
        assert order.status == "production_in_progress"
        assert order.is_production_completed is False
        assert order.production_date is None
        assert order.production_kg == Decimal("90")
        assert order.wastage_kg == Decimal("10")
        pending = get_pending_production_items(db_session, two_line_order.id)
        assert [i.id for i in pending] == [order.items[1].id]

    def test_order_completes_only_when_every_item_done(self, db_session, two_line_order, second_product, warehouse):
        first, second = two_line_order.items
        process_item_production(db_session, two_line_order.id, first.id, Decimal("90"))
        result = process_item_production(db_session, two_line_order.id, second.id, Decimal("190"),
                                         production_date=date(2026, 1, 21))

        order = result.purchase_order
        assert order.is_production_completed is True
        assert order.status == "production_completed"
        assert order.production_date == date(2026, 1, 21)
        assert order.production_kg == Decimal("280")
        assert order.wastage_kg == Decimal("20")
        assert order.wastage_percentage == Decimal("6.67")
        assert _stock(db_session, second_product, warehouse) == Decimal("190")

        with pytest.raises(AlreadyProcessedError):
            process_item_production(db_session, two_line_order.id, first.id, Decimal("1"))

    def test_production_into_another_warehouse(self, db_session, two_line_order, product, warehouse, second_warehouse):
        item = two_line_order.items[0]
        result = process_item_production(db_session, two_line_order.id, item.id, Decimal("95"),
                                         warehouse_id=second_warehouse.id)

        assert result.production_record.warehouse_id == second_warehouse.id
        assert _stock(db_session, product, second_warehouse) == Decimal("95")
        assert _stock(db_session, product, warehouse) == Decimal("0")

    def test_production_numbers_per_day(self, db_session, two_line_order):
        first, second = two_line_order.items
        day = date(2026, 2, 3)
        a = process_item_production(db_session, two_line_order.id, first.id, 90, production_date=day)
        b = process_item_production(db_session, two_line_order.id, second.id, 190, production_date=day)
        assert a.production_record.production_number == "PROD-20260203-00001"
        assert b.production_record.production_number == "PROD-20260203-00002"

    def test_item_of_another_order_not_found(self, db_session, supplier, warehouse, product, two_line_order):
        other = create_test_purchase_order(db_session, supplier, warehouse, product)
        with pytest.raises(NotFoundError):
            process_item_production(db_session, two_line_order.id, other.items[0].id, 10)

    def test_missing_order(self, db_session):
        with pytest.raises(NotFoundError):
            process_item_production(db_session, 9999, 1, 10)

    def test_cancelled_order_cannot_be_produced(self, db_session, two_line_order):
        cancel_purchase_order(db_session, two_line_order.id)
        with pytest.raises(InvalidStateError):
            process_item_production(db_session, two_line_order.id, two_line_order.items[0].id, 10)

    def test_produced_order_cannot_be_cancelled(self, db_session, two_line_order):
        process_item_production(db_session, two_line_order.id, two_line_order.items[0].id, 10)
        with pytest.raises(InvalidStateError):
            cancel_purchase_order(db_session, two_line_order.id)


class TestOrderProduction:

    def test_batch_produces_every_line(self, db_session, two_line_order, product, second_product, warehouse):
        first, second = two_line_order.items
        results = process_order_production(
            db_session, two_line_order.id,
            [{"item_id": first.id, "production_kg": "97"}, {"product_id": second_product.id, "production_kg": 200}],
        )

        assert len(results) == 2
        assert results[0].wastage_record.quantity == Decimal("3")
        assert results[1].wastage_record is None
        assert _stock(db_session, product, warehouse) == Decimal("97")
        assert _stock(db_session, second_product, warehouse) == Decimal("200")
        order = get_purchase_order(db_session, two_line_order.id)
        assert order.is_production_completed is True

    def test_missing_entry_writes_nothing(self, db_session, two_line_order):
        first = two_line_order.items[0]
        with pytest.raises(ValidationError, match="Missing production entry"):
            process_order_production(db_session, two_line_order.id, [{"item_id": first.id, "production_kg": 90}])

        assert db_session.query(ProductionRecord).count() == 0
        assert db_session.query(StockMovement).count() == 0
        order = get_purchase_order(db_session, two_line_order.id)
        assert all(not item.is_production_completed for item in order.items)

    def test_one_invalid_quantity_writes_nothing(self, db_session, two_line_order):
        first, second = two_line_order.items
        with pytest.raises(ValidationError):
            process_order_production(db_session, two_line_order.id, [
                {"item_id": first.id, "production_kg": 90},
                {"item_id": second.id, "production_kg": 201},
            ])
        assert db_session.query(ProductionRecord).count() == 0

    def test_batch_after_partial_covers_remaining_lines(self, db_session, two_line_order):
        first, second = two_line_order.items
        process_item_production(db_session, two_line_order.id, first.id, 90)
        results = process_order_production(
            db_session, two_line_order.id, [{"item_id": second.id, "production_kg": 150}]
        )
        assert len(results) == 1
        assert results[0].purchase_order.is_production_completed is True

    def test_batch_on_completed_order_rejected(self, db_session, two_line_order):
        first, second = two_line_order.items
        entries = [{"item_id": first.id, "production_kg": 90}, {"item_id": second.id, "production_kg": 190}]
        process_order_production(db_session, two_line_order.id, entries)
        with pytest.raises(AlreadyProcessedError):
            process_order_production(db_session, two_line_order.id, entries)
        assert db_session.query(ProductionRecord).count() == 2


class TestConcurrentProduction:

    def test_order_row_locked_for_update(self, db_session, two_line_order):
        query = purchase_order_lock_query(db_session, two_line_order.id)
        sql = str(query.statement.compile(dialect=postgresql.dialect()))
        assert "FOR UPDATE" in sql

    def test_lost_claim_writes_nothing(self, db_session, two_line_order, product, warehouse):
        item = two_line_order.items[0]
        # Another transaction completes the line after this caller loaded it
        table = PurchaseOrderItem.__table__
        db_session.execute(
            update(table).where(table.c.id == item.id).values(is_production_completed=True)
        )
        db_session.commit()

        with pytest.raises(AlreadyProcessedError):
            _produce_item(
                db_session, two_line_order, item, Decimal("90"), warehouse.id,
                date(2026, 1, 20), None, "tester",
            )
        db_session.rollback()

        assert db_session.query(ProductionRecord).count() == 0
        assert db_session.query(WastageRecord).count() == 0
        assert db_session.query(StockMovement).filter(StockMovement.movement_type == "production").count() == 0
        assert _stock(db_session, product, warehouse) == Decimal("0")


class TestProductionHistory:

    def test_history_summary(self, db_session, two_line_order, product):
        first, second = two_line_order.items
        process_item_production(db_session, two_line_order.id, first.id, 90, production_date=date(2026, 1, 5))
        process_item_production(db_session, two_line_order.id, second.id, 180, production_date=date(2026, 1, 6))

        history = get_production_history(db_session)
        assert history["summary"]["record_count"] == 2
        assert history["summary"]["total_purchased_kg"] == Decimal("300")
        assert history["summary"]["total_production_kg"] == Decimal("270")
        assert history["summary"]["total_wastage_kg"] == Decimal("30")
        assert history["summary"]["wastage_percentage"] == Decimal("10.00")
        assert history["records"][0].production_date == date(2026, 1, 6)

        by_product = get_production_history(db_session, product_id=product.id)
        assert by_product["summary"]["record_count"] == 1
        by_date = get_production_history(db_session, start_date=date(2026, 1, 6))
        assert by_date["summary"]["record_count"] == 1

        by_order = get_production_history_by_order(db_session, two_line_order.id)
        assert [r.purchase_order_item_id for r in by_order["records"]] == [first.id, second.id]
