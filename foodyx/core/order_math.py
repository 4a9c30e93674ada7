"""Shared helpers for cart and order totals."""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import Any

logger = logging.getLogger(__name__)

Number = int | float


def get_val(obj: Any, key: str, default: Any = None) -> Any:
    """Universal getter for dict or object attributes."""
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def as_number(value: Any) -> Number | None:
    """Return ``value`` if it is a finite int/float, else None.

    Booleans and numeric strings are rejected: the backend sends JSON numbers.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return value
    return None


def calc_line_total(price: Any, quantity: Any) -> Number | None:
    unit_price = as_number(price)
    qty = as_number(quantity)
    if unit_price is None or qty is None:
        return None
    return unit_price * qty


def calc_cart_total(lines: Iterable[Any]) -> Number:
    """Sum price x quantity over lines; lines with non-numeric data are skipped.

    Accepts CartLine objects (``unit_price``) as well as raw API dicts
    (``price``).
    """
    total: Number = 0
    for line in lines:
        price = get_val(line, "unit_price", get_val(line, "price"))
        line_total = calc_line_total(price, get_val(line, "quantity"))
        if line_total is None:
            logger.warning(
                "Cart line excluded from total, invalid price/quantity: "
                f"menu_item={get_val(line, 'menu_item_id', get_val(line, 'menuItemId'))} "
                f"price={price!r} quantity={get_val(line, 'quantity')!r}"
            )
            continue
        total += line_total
    return total
