"""
Cost arithmetic for the inventory ledger.

Pure functions over ``Decimal``. Monetary totals are rounded to cents;
weighted-average unit costs keep full context precision so a long run of small
replenishments does not accumulate rounding drift.
"""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")

Number = Decimal | int | str | float


def to_decimal(value: Number) -> Decimal:
    """Coerce a number to Decimal. Floats go through ``str`` to keep their printed value."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def to_money(value: Number) -> Decimal:
    """Round to cents, half up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def weighted_average(
    old_quantity: int,
    old_unit_cost: Number,
    added_quantity: int,
    added_unit_cost: Number,
) -> Decimal:
    """
    Blend an existing cost basis with a new batch.

    Returns ``added_unit_cost`` when there was no stock before (or the result
    would hold no stock at all).
    """
    old_cost = to_decimal(old_unit_cost)
    new_cost = to_decimal(added_unit_cost)
    total_quantity = old_quantity + added_quantity
    if old_quantity <= 0 or total_quantity <= 0:
        return new_cost
    return (old_cost * old_quantity + new_cost * added_quantity) / total_quantity


def batch_unit_cost(batch_cost: Number, quantity: int) -> Decimal:
    """Unit cost of a replenishment batch."""
    if quantity <= 0:
        raise ValueError("quantity must be positive")
    return to_decimal(batch_cost) / quantity


def batch_cost(cost: Number, shipping: Number = 0, vat: Number = 0) -> Decimal:
    """Landed cost of a batch: goods + shipping + VAT."""
    return to_money(to_decimal(cost) + to_decimal(shipping) + to_decimal(vat))


def line_total(quantity: int, unit_cost: Number) -> Decimal:
    """Purchase order line total."""
    return to_money(to_decimal(unit_cost) * quantity)


def order_total(line_totals: Iterable[Number]) -> Decimal:
    """Purchase order total from its line totals."""
    return to_money(sum((to_decimal(t) for t in line_totals), ZERO))


def composite_unit_cost(
    base_cost: Number,
    packaging_unit_cost: Number | None,
    packaging_quantity_per_unit: int = 1,
    include_packaging: bool = True,
) -> Decimal:
    """
    Product cost including its allocated packaging.

    Falls back to ``base_cost`` when no packaging is linked or inclusion is off.
    """
    base = to_decimal(base_cost)
    if packaging_unit_cost is None or not include_packaging:
        return base
    return base + to_decimal(packaging_unit_cost) * packaging_quantity_per_unit
