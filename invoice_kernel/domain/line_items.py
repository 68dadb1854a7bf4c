"""
Line Item Calculator -- per-row totals and the item editing surface.

Responsibility:
    Computes ``line_total`` for a single row and provides the list
    operations an editor performs on an invoice's rows (add a blank row,
    edit a row, remove a row, renumber). Every operation returns a new
    tuple; the input is never modified.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.
    Used by the aggregator and the invoice service.

Invariants enforced:
    - ``line_total == round2(quantity * unit_price)`` for every row built
      here; no other code path sets it.
    - ``sort_order`` is 0-based and contiguous after add/remove/renumber.
    - At least one row always remains on the editing surface.

Failure modes:
    - ValidationError: quantity <= 0, unit_price < 0, a row index out of
      range, removing the last remaining row, editing an unknown field.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from decimal import Decimal
from typing import Any

from invoice_kernel.domain.models import LineItem, Unit, parse_enum
from invoice_kernel.domain.money import ZERO, round2, to_decimal
from invoice_kernel.exceptions import ValidationError

_EDITABLE_FIELDS = frozenset(
    {"description", "quantity", "unit_price", "unit", "product_code"}
)


def _check_amounts(quantity: Decimal, unit_price: Decimal) -> None:
    if quantity <= 0:
        raise ValidationError("quantity", f"must be greater than zero, got {quantity}")
    if unit_price < 0:
        raise ValidationError("unit_price", f"must not be negative, got {unit_price}")


def compute_line_total(quantity: Decimal, unit_price: Decimal) -> Decimal:
    """``round2(quantity * unit_price)``."""
    quantity = to_decimal(quantity, "quantity")
    unit_price = to_decimal(unit_price, "unit_price")
    _check_amounts(quantity, unit_price)
    return round2(quantity * unit_price)


def make_line_item(
    description: str,
    quantity: Decimal | int | str,
    unit_price: Decimal | int | str,
    unit: Unit | str = Unit.PCS,
    product_code: str | None = None,
    sort_order: int = 0,
) -> LineItem:
    """Build a fully derived LineItem."""
    qty = to_decimal(quantity, "quantity")
    price = to_decimal(unit_price, "unit_price")
    return LineItem(
        description=description or "",
        quantity=qty,
        unit_price=price,
        line_total=compute_line_total(qty, price),
        unit=parse_enum(Unit, unit, "unit"),
        product_code=(product_code or "").strip() or None,
        sort_order=sort_order,
    )


def blank_item(sort_order: int = 0) -> LineItem:
    """A new empty row: quantity 1, unit price 0."""
    return LineItem(
        description="",
        quantity=Decimal("1"),
        unit_price=ZERO,
        line_total=ZERO,
        unit=Unit.PCS,
        sort_order=sort_order,
    )


def renumber(items: Sequence[LineItem]) -> tuple[LineItem, ...]:
    """Reassign ``sort_order`` to each row's position."""
    return tuple(
        item if item.sort_order == index else replace(item, sort_order=index)
        for index, item in enumerate(items)
    )


def _check_index(items: Sequence[LineItem], index: int) -> None:
    if not 0 <= index < len(items):
        raise ValidationError("index", f"no item at position {index}")


def add_item(items: Sequence[LineItem]) -> tuple[LineItem, ...]:
    """Append a blank row at the end."""
    return (*items, blank_item(sort_order=len(items)))


def remove_item(items: Sequence[LineItem], index: int) -> tuple[LineItem, ...]:
    """Drop the row at ``index`` and renumber; the last row cannot go."""
    _check_index(items, index)
    if len(items) <= 1:
        raise ValidationError("items", "an invoice needs at least one item")
    return renumber([item for i, item in enumerate(items) if i != index])


def edit_item(items: Sequence[LineItem], index: int, **changes: Any) -> tuple[LineItem, ...]:
    """
    Apply field changes to the row at ``index``.

    A quantity or unit price change recomputes ``line_total`` and pins
    ``sort_order`` to the row's position. Other fields leave the line
    total untouched.
    """
    _check_index(items, index)
    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise ValidationError("item", f"cannot edit {', '.join(sorted(unknown))}")

    item = items[index]
    updates: dict[str, Any] = {}
    if "description" in changes:
        updates["description"] = changes["description"] or ""
    if "unit" in changes:
        updates["unit"] = parse_enum(Unit, changes["unit"], "unit")
    if "product_code" in changes:
        updates["product_code"] = (changes["product_code"] or "").strip() or None

    if "quantity" in changes or "unit_price" in changes:
        qty = to_decimal(changes.get("quantity", item.quantity), "quantity")
        price = to_decimal(changes.get("unit_price", item.unit_price), "unit_price")
        updates["quantity"] = qty
        updates["unit_price"] = price
        updates["line_total"] = compute_line_total(qty, price)
        updates["sort_order"] = index

    edited = replace(item, **updates)
    return (*items[:index], edited, *items[index + 1:])
