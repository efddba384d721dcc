"""
Tests for sequential document numbers.
"""
from datetime import date

from millstock.services.numbering_service import (
    next_petty_cash_number,
    next_production_number,
    next_purchase_order_number,
    next_sales_order_number,
    next_value,
)


class TestDocumentNumbers:

    def test_counter_starts_at_one_and_increments(self, db_session):
        assert next_value(db_session, "test") == 1
        assert next_value(db_session, "test") == 2
        assert next_value(db_session, "other") == 1

    def test_formats(self, db_session):
        assert next_purchase_order_number(db_session) == "PO001"
        assert next_purchase_order_number(db_session) == "PO002"
        assert next_sales_order_number(db_session) == "INV001"
        assert next_petty_cash_number(db_session) == "PC-000001"

    def test_production_numbers_restart_each_day(self, db_session):
        day_one = date(2026, 1, 15)
        day_two = date(2026, 1, 16)
        assert next_production_number(db_session, day_one) == "PROD-20260115-00001"
        assert next_production_number(db_session, day_one) == "PROD-20260115-00002"
        assert next_production_number(db_session, day_two) == "PROD-20260116-00001"

    def test_rolled_back_number_is_reused(self, db_session):
        """A failed creation gives its number back"""
        assert next_purchase_order_number(db_session) == "PO001"
        db_session.commit()
        assert next_purchase_order_number(db_session) == "PO002"
        db_session.rollback()
        assert next_purchase_order_number(db_session) == "PO002"
