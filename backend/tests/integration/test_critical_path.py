"""
Critical path: purchase -> production -> stock -> wastage -> ledger -> sale.

These tests walk one bag purchase through production and into a sale,
checking every balance and quantity the workflow touches.

Run with:
    pytest backend/tests/integration/test_critical_path.py -v
"""
import pytest
from decimal import Decimal

from millstock.exceptions import AlreadyProcessedError, ValidationError
from millstock.models.inventory import StockMovement
from millstock.models.production import ProductionRecord, WastageRecord
from millstock.services.integrity_service import check_client_balances, check_stock_positions
from millstock.services.inventory_service import StockLedgerService
from millstock.services.ledger_service import LedgerService
from millstock.services.production_service import process_item_production
from millstock.services.purchase_order_service import get_purchase_order
from tests.factories import create_test_purchase_order, create_test_sales_order, line


pytestmark = pytest.mark.integration


class TestCriticalPath:
    """10 bags x 25 kg bought at 100/kg with 10% tax, produced, then sold"""

    @pytest.fixture
    def purchase_order(self, db_session, supplier, warehouse, product):
        return create_test_purchase_order(db_session, supplier, warehouse, product)

    def _stock(self, db, product, warehouse):
        return StockLedgerService(db).get_quantity(product.id, warehouse.id)

    def test_purchase_order_totals_and_payable(self, db_session, supplier, purchase_order):
        """Bag line normalized to 250 kg and priced server-side"""
        order = get_purchase_order(db_session, purchase_order.id)
        item = order.items[0]

        assert order.po_number == "PO001"
        assert order.status == "pending"
        assert item.total_kg == Decimal("250")
        assert item.line_subtotal == Decimal("25000")
        assert order.subtotal == Decimal("25000")
        assert order.tax_amount == Decimal("2500")
        assert order.total_amount == Decimal("27500")
        assert order.is_production_completed is False
        assert LedgerService(db_session).get_balance(supplier.id) == Decimal("27500")

    def test_production_credits_produced_weight(self, db_session, product, warehouse, purchase_order):
        """235 kg produced from 250 kg purchased: 15 kg (6%) wastage"""
        item = purchase_order.items[0]
        result = process_item_production(db_session, purchase_order.id, item.id, Decimal("235"))

        record = result.production_record
        assert record.purchased_kg == Decimal("250")
        assert record.production_kg == Decimal("235")
        assert record.wastage_kg == Decimal("15")
        assert record.wastage_percentage == Decimal("6")

        wastage = db_session.query(WastageRecord).all()
        assert len(wastage) == 1
        assert wastage[0].quantity == Decimal("15")
        assert wastage[0].reason == "production"
        assert wastage[0].status == "approved"
        assert wastage[0].cost_value == Decimal("1500")

        assert self._stock(db_session, product, warehouse) == Decimal("235")
        assert result.stock_movement.movement_type == "production"
        assert "wastage 15" in result.stock_movement.notes

        order = get_purchase_order(db_session, purchase_order.id)
        assert order.items[0].is_production_completed is True
        assert order.is_production_completed is True
        assert order.status == "production_completed"
        assert order.production_date is not None
        assert order.production_kg == Decimal("235")
        assert order.wastage_kg == Decimal("15")
        assert order.wastage_percentage == Decimal("6")

    def test_overproduction_rejected_without_side_effects(self, db_session, product, warehouse, purchase_order):
        """260 kg cannot come out of 250 kg"""
        item = purchase_order.items[0]
        with pytest.raises(ValidationError):
            process_item_production(db_session, purchase_order.id, item.id, Decimal("260"))

        assert db_session.query(ProductionRecord).count() == 0
        assert db_session.query(StockMovement).count() == 0
        assert self._stock(db_session, product, warehouse) == Decimal("0")
        order = get_purchase_order(db_session, purchase_order.id)
        assert order.is_production_completed is False
        assert order.items[0].is_production_completed is False
        assert order.status == "pending"

    def test_reprocessing_rejected(self, db_session, product, warehouse, purchase_order):
        """Second production for the same item adds nothing"""
        item_id = purchase_order.items[0].id
        process_item_production(db_session, purchase_order.id, item_id, Decimal("235"))
        movements_before = db_session.query(StockMovement).count()

        with pytest.raises(AlreadyProcessedError):
            process_item_production(db_session, purchase_order.id, item_id, Decimal("235"))

        assert db_session.query(ProductionRecord).count() == 1
        assert db_session.query(WastageRecord).count() == 1
        assert db_session.query(StockMovement).count() == movements_before
        assert self._stock(db_session, product, warehouse) == Decimal("235")

    def test_sale_of_produced_stock(self, db_session, customer, product, warehouse, purchase_order):
        """50 kg at 120 plus 200 shipping"""
        process_item_production(db_session, purchase_order.id, purchase_order.items[0].id, Decimal("235"))

        order = create_test_sales_order(
            db_session, customer, warehouse,
            items=[line(product, 50, 120)],
            shipping_charges=Decimal("200"),
        )

        assert order.order_number == "INV001"
        assert order.subtotal == Decimal("6000")
        assert order.shipping_charges == Decimal("200")
        assert order.total_amount == Decimal("6200")
        assert order.stock_deducted is True
        assert LedgerService(db_session).get_balance(customer.id) == Decimal("6200")
        assert self._stock(db_session, product, warehouse) == Decimal("185")

        assert check_client_balances(db_session) == []
        assert check_stock_positions(db_session) == []
