"""
Unit of Measure (UOM) Service

Converts order-line input entered as loose kilograms or as bags of a given
weight into the canonical weight (``total_kg``) used by pricing, stock and
production. Pure functions, no database access.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from millstock.exceptions import ValidationError


UNIT_KG = "kg"
UNIT_BAG = "bag"

SUPPORTED_UNITS = (UNIT_KG, UNIT_BAG)

# Scale of the quantity, bag_weight and total_kg columns
QUANTITY_PLACES = 4


def to_decimal(value: Any, field: str = "value") -> Decimal:
    """
    Coerce a request value to Decimal.

    Floats go through ``str()`` so 0.1 stays 0.1.

    Raises:
        ValidationError: If the value is missing or not numeric
    """
    if value is None or value == "":
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError(f"{field} must be a number", field=field, value=value)
    if not result.is_finite():
        raise ValidationError(f"{field} must be a number", field=field, value=value)
    return result


def decimal_places(value: Decimal) -> int:
    exponent = value.normalize().as_tuple().exponent
    return max(0, -exponent)


def _check_places(value: Decimal, field: str) -> Decimal:
    if decimal_places(value) > QUANTITY_PLACES:
        raise ValidationError(
            f"{field} supports at most {QUANTITY_PLACES} decimal places",
            field=field,
            value=value,
        )
    return value


def normalize_unit_type(unit_type: Optional[str], field: str = "unit_type") -> str:
    """Lower-case and validate a unit type."""
    unit = (unit_type or "").strip().lower()
    if unit not in SUPPORTED_UNITS:
        raise ValidationError(
            f"Unsupported unit type '{unit_type}' (expected one of {', '.join(SUPPORTED_UNITS)})",
            field=field,
            value=unit_type,
        )
    return unit


def normalize_line(
    unit_type: Optional[str],
    quantity: Any,
    bag_weight: Any = None,
    field_prefix: str = "",
) -> Decimal:
    """
    Return the canonical weight in kg for one order line.

    Args:
        unit_type: 'kg' or 'bag'
        quantity: Number of kg, or number of bags
        bag_weight: Weight of one bag in kg (required for 'bag')
        field_prefix: Prepended to field names in error details, e.g. 'items[2].'

    Returns:
        total_kg = quantity for kg lines, quantity * bag_weight for bag lines

    Raises:
        ValidationError: Unknown unit, non-positive quantity, missing bag weight,
            or a value (including the bag total) finer than QUANTITY_PLACES
    """
    unit = normalize_unit_type(unit_type, field=f"{field_prefix}unit_type")
    qty = to_decimal(quantity, field=f"{field_prefix}quantity")
    if qty <= 0:
        raise ValidationError(
            "Quantity must be greater than zero",
            field=f"{field_prefix}quantity",
            value=qty,
        )
    _check_places(qty, f"{field_prefix}quantity")

    if unit == UNIT_KG:
        return qty

    if bag_weight is None or bag_weight == "":
        raise ValidationError("Missing bag weight", field=f"{field_prefix}bag_weight")
    weight = to_decimal(bag_weight, field=f"{field_prefix}bag_weight")
    if weight <= 0:
        raise ValidationError(
            "Missing bag weight",
            field=f"{field_prefix}bag_weight",
            value=weight,
        )
    _check_places(weight, f"{field_prefix}bag_weight")
    return _check_places(qty * weight, f"{field_prefix}total_kg")
