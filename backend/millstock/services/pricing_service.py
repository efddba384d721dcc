"""
Order Pricing Service

Computes line and order totals for purchase and sales orders from
normalized quantities and request rates. Client-submitted totals are never
read; only product, quantity, price and rate inputs are.

Usage:
    priced = price_lines(data.items, shipping_charges=data.shipping_charges)
    order.total_amount = priced.total_amount
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, NamedTuple, Optional

from millstock.core.config import settings
from millstock.exceptions import ValidationError
from millstock.services.uom_service import normalize_line, normalize_unit_type, to_decimal


HUNDRED = Decimal("100")
ZERO = Decimal("0")


def _money_quantum() -> Decimal:
    return Decimal(1).scaleb(-settings.MONEY_DECIMAL_PLACES)


def round_money(value: Decimal) -> Decimal:
    """Round a money amount to MONEY_DECIMAL_PLACES (half-up)."""
    return value.quantize(_money_quantum(), rounding=ROUND_HALF_UP)


class PricedLine(NamedTuple):
    """One priced order line"""
    product_id: int
    unit_type: str
    quantity: Decimal
    bag_weight: Optional[Decimal]
    total_kg: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    discount_rate: Decimal
    line_subtotal: Decimal
    line_discount: Decimal
    line_tax: Decimal
    line_total: Decimal


class PricedOrder(NamedTuple):
    """Order aggregate computed from its priced lines"""
    lines: List[PricedLine]
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    final_subtotal: Decimal
    shipping_charges: Decimal
    total_amount: Decimal


def _field(line: Any, name: str, default: Any = None) -> Any:
    if isinstance(line, dict):
        return line.get(name, default)
    return getattr(line, name, default)


def _rate(value: Any, field: str) -> Decimal:
    if value is None or value == "":
        return ZERO
    rate = to_decimal(value, field=field)
    if rate < 0 or rate > HUNDRED:
        raise ValidationError("Rate must be between 0 and 100", field=field, value=rate)
    return rate


def price_line(line: Any, index: int = 0) -> PricedLine:
    """
    Validate, normalize and price a single line.

    ``line`` may be a dict or any object exposing product_id, unit_type,
    quantity, bag_weight, unit_price, tax_rate and discount_rate.
    """
    prefix = f"items[{index}]."

    product_id = _field(line, "product_id")
    if not product_id:
        raise ValidationError("Product is required", field=f"{prefix}product_id")

    unit_type = normalize_unit_type(_field(line, "unit_type"), field=f"{prefix}unit_type")
    quantity = to_decimal(_field(line, "quantity"), field=f"{prefix}quantity")
    bag_weight = _field(line, "bag_weight")
    total_kg = normalize_line(unit_type, quantity, bag_weight, field_prefix=prefix)

    unit_price = to_decimal(_field(line, "unit_price"), field=f"{prefix}unit_price")
    if unit_price <= 0:
        raise ValidationError(
            "Unit price must be greater than zero", field=f"{prefix}unit_price", value=unit_price
        )

    tax_rate = _rate(_field(line, "tax_rate"), f"{prefix}tax_rate")
    discount_rate = _rate(_field(line, "discount_rate"), f"{prefix}discount_rate")

    line_subtotal = round_money(total_kg * unit_price)
    line_discount = round_money(line_subtotal * discount_rate / HUNDRED)
    taxable = line_subtotal - line_discount
    line_tax = round_money(taxable * tax_rate / HUNDRED)

    return PricedLine(
        product_id=int(product_id),
        unit_type=unit_type,
        quantity=quantity,
        bag_weight=to_decimal(bag_weight, field=f"{prefix}bag_weight") if unit_type == "bag" else None,
        total_kg=total_kg,
        unit_price=unit_price,
        tax_rate=tax_rate,
        discount_rate=discount_rate,
        line_subtotal=line_subtotal,
        line_discount=line_discount,
        line_tax=line_tax,
        line_total=taxable + line_tax,
    )


def price_lines(lines: Iterable[Any], shipping_charges: Any = None) -> PricedOrder:
    """
    Price a whole order.

    Every line is validated before any total is returned, so a single bad
    line rejects the order.

    Args:
        lines: Order lines (dicts or schema objects)
        shipping_charges: Order-level charge added after tax (sales orders)

    Returns:
        PricedOrder with per-line results in input order

    Raises:
        ValidationError: Empty order, bad line, or negative shipping charges
    """
    lines = list(lines or [])
    if not lines:
        raise ValidationError("At least one item is required", field="items")

    shipping = ZERO
    if shipping_charges not in (None, ""):
        shipping = to_decimal(shipping_charges, field="shipping_charges")
        if shipping < 0:
            raise ValidationError(
                "Shipping charges cannot be negative", field="shipping_charges", value=shipping
            )

    priced = [price_line(line, index) for index, line in enumerate(lines)]

    subtotal = sum((p.line_subtotal for p in priced), ZERO)
    discount_amount = sum((p.line_discount for p in priced), ZERO)
    tax_amount = sum((p.line_tax for p in priced), ZERO)
    final_subtotal = subtotal - discount_amount

    return PricedOrder(
        lines=priced,
        subtotal=subtotal,
        discount_amount=discount_amount,
        tax_amount=tax_amount,
        final_subtotal=final_subtotal,
        shipping_charges=shipping,
        total_amount=final_subtotal + tax_amount + shipping,
    )
