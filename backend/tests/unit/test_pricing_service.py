"""
Tests for order line and order total computation.
"""
import pytest
from decimal import Decimal

from millstock.exceptions import ValidationError
from millstock.services.pricing_service import price_line, price_lines, round_money


def _line(**overrides):
    line = {
        "product_id": 1,
        "unit_type": "kg",
        "quantity": Decimal("100"),
        "unit_price": Decimal("10"),
        "tax_rate": Decimal("0"),
        "discount_rate": Decimal("0"),
    }
    line.update(overrides)
    return line


class TestPriceLine:
    """Line subtotal, discount, tax and total"""

    def test_bag_line_priced_per_kg(self):
        priced = price_line(_line(unit_type="bag", quantity=10, bag_weight=25,
                                  unit_price=100, tax_rate=10))
        assert priced.total_kg == Decimal("250")
        assert priced.line_subtotal == Decimal("25000.00")
        assert priced.line_tax == Decimal("2500.00")
        assert priced.line_total == Decimal("27500.00")
        assert priced.bag_weight == Decimal("25")

    def test_discount_applied_before_tax(self):
        priced = price_line(_line(quantity=100, unit_price=10, discount_rate=10, tax_rate=5))
        assert priced.line_subtotal == Decimal("1000.00")
        assert priced.line_discount == Decimal("100.00")
        assert priced.line_tax == Decimal("45.00")
        assert priced.line_total == Decimal("945.00")

    def test_kg_line_has_no_bag_weight(self):
        assert price_line(_line(bag_weight=25)).bag_weight is None

    def test_money_rounded_half_up(self):
        priced = price_line(_line(quantity=Decimal("1.005"), unit_price=1))
        assert priced.line_subtotal == Decimal("1.01")
        assert round_money(Decimal("2.345")) == Decimal("2.35")

    @pytest.mark.parametrize("field,value", [
        ("unit_price", 0),
        ("unit_price", -10),
        ("tax_rate", 101),
        ("tax_rate", -1),
        ("discount_rate", 150),
    ])
    def test_invalid_rates_and_prices_rejected(self, field, value):
        with pytest.raises(ValidationError) as exc_info:
            price_line(_line(**{field: value}), index=2)
        assert exc_info.value.details["field"] == f"items[2].{field}"

    def test_missing_product_rejected(self):
        with pytest.raises(ValidationError, match="Product is required"):
            price_line(_line(product_id=None))

    def test_accepts_objects(self):
        class Line:
            product_id = 3
            unit_type = "kg"
            quantity = Decimal("5")
            bag_weight = None
            unit_price = Decimal("2")
            tax_rate = None
            discount_rate = None

        priced = price_line(Line())
        assert priced.line_total == Decimal("10.00")
        assert priced.tax_rate == Decimal("0")


class TestPriceLines:
    """Order aggregates"""

    def test_aggregates_and_shipping(self):
        priced = price_lines([_line(quantity=50, unit_price=120)], shipping_charges=Decimal("200"))
        assert priced.subtotal == Decimal("6000.00")
        assert priced.final_subtotal == Decimal("6000.00")
        assert priced.shipping_charges == Decimal("200")
        assert priced.total_amount == Decimal("6200.00")

    def test_deterministic_and_order_independent(self):
        lines = [
            _line(product_id=1, quantity=10, unit_price="3.33", tax_rate=7),
            _line(product_id=2, unit_type="bag", quantity=4, bag_weight=50, unit_price=9, discount_rate=2),
            _line(product_id=3, quantity="12.5", unit_price="40.1"),
        ]
        first = price_lines(lines)
        second = price_lines(lines)
        reversed_order = price_lines(list(reversed(lines)))
        assert first.total_amount == second.total_amount
        assert first.total_amount == reversed_order.total_amount
        assert first.tax_amount == reversed_order.tax_amount

    def test_total_is_sum_of_line_totals(self):
        lines = [_line(quantity=3, unit_price=7, tax_rate=10, discount_rate=5), _line(quantity=1, unit_price=99)]
        priced = price_lines(lines)
        assert priced.total_amount == sum(p.line_total for p in priced.lines)

    def test_aggregates_sum_rounded_line_amounts(self):
        # Each 0.005 line rounds up to a cent; the order keeps all three cents
        priced = price_lines([_line(quantity=1, unit_price=Decimal("0.005")) for _ in range(3)])
        assert [p.line_subtotal for p in priced.lines] == [Decimal("0.01")] * 3
        assert priced.subtotal == Decimal("0.03")
        assert priced.total_amount == Decimal("0.03")

    def test_empty_order_rejected(self):
        with pytest.raises(ValidationError, match="At least one item"):
            price_lines([])

    def test_negative_shipping_rejected(self):
        with pytest.raises(ValidationError):
            price_lines([_line()], shipping_charges=-1)

    def test_one_bad_line_rejects_order(self):
        with pytest.raises(ValidationError) as exc_info:
            price_lines([_line(), _line(unit_type="bag", bag_weight=None)])
        assert exc_info.value.details["field"] == "items[1].bag_weight"
