from __future__ import annotations

import logging
import math

from foodyx.core.order_math import as_number, calc_cart_total, calc_line_total
from foodyx.domain.entities.cart import Cart, CartLine


def _line(price, quantity, item_id="item-1") -> CartLine:
    return CartLine(menu_item_id=item_id, restaurant_id="rest-1", name="Dish", unit_price=price, quantity=quantity)


def test_as_number_rejects_bool_and_non_finite() -> None:
    assert as_number(True) is None
    assert as_number(math.nan) is None
    assert as_number(math.inf) is None
    assert as_number("500") is None
    assert as_number(12) == 12
    assert as_number(2.5) == 2.5


def test_line_total() -> None:
    assert calc_line_total(500, 2) == 1000
    assert calc_line_total(500, None) is None


def test_cart_total_sums_numeric_lines() -> None:
    lines = [_line(500, 2, "a"), _line(250, 1, "b")]
    assert calc_cart_total(lines) == 1250


def test_cart_total_skips_invalid_lines_and_warns(caplog) -> None:
    lines = [
        _line(500, 2, "a"),
        _line("abc", 1, "b"),
        _line(100, True, "c"),
        _line(math.nan, 1, "d"),
        _line(float("inf"), 1, "e"),
    ]
    with caplog.at_level(logging.WARNING, logger="foodyx.core.order_math"):
        total = calc_cart_total(lines)

    assert total == 1000
    assert sum("excluded from total" in r.message for r in caplog.records) == 4


def test_cart_total_accepts_raw_api_dicts() -> None:
    assert calc_cart_total([{"price": 120, "quantity": 3}, {"price": None, "quantity": 1}]) == 360


def test_empty_cart_total_is_zero() -> None:
    assert Cart.empty().total == 0
