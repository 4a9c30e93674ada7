"""Cart entity as returned by the cart service."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from foodyx.core.order_math import Number, calc_cart_total, calc_line_total
from foodyx.domain.order import OrderLine, extract_id

MAIN_IMAGE_PLACEHOLDER = "https://via.placeholder.com/500"
THUMBNAIL_PLACEHOLDER = "https://via.placeholder.com/200"


@dataclass(frozen=True, slots=True)
class CartLine:
    """Single item in cart.

    ``unit_price`` and ``quantity`` keep whatever the backend sent; totals
    skip lines where they are not numbers.
    """

    menu_item_id: str
    restaurant_id: str
    name: str
    unit_price: Any
    quantity: Any
    main_image: str = MAIN_IMAGE_PLACEHOLDER
    thumbnail_image: str = THUMBNAIL_PLACEHOLDER

    @property
    def image_refs(self) -> tuple[str, str]:
        return (self.main_image, self.thumbnail_image)

    @property
    def line_total(self) -> Number | None:
        return calc_line_total(self.unit_price, self.quantity)

    def to_dict(self) -> dict[str, Any]:
        return {
            "menuItemId": self.menu_item_id,
            "restaurantId": self.restaurant_id,
            "name": self.name,
            "price": self.unit_price,
            "quantity": self.quantity,
            "mainImage": self.main_image,
            "thumbnailImage": self.thumbnail_image,
        }

    def to_order_line(self) -> OrderLine:
        return OrderLine(
            menu_item_id=self.menu_item_id,
            name=self.name,
            price=self.unit_price,
            quantity=self.quantity,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CartLine:
        return cls(
            menu_item_id=str(data.get("menuItemId") or ""),
            restaurant_id=str(data.get("restaurantId") or ""),
            name=str(data.get("name") or ""),
            unit_price=data.get("price"),
            quantity=data.get("quantity"),
            main_image=data.get("mainImage") or MAIN_IMAGE_PLACEHOLDER,
            thumbnail_image=data.get("thumbnailImage") or THUMBNAIL_PLACEHOLDER,
        )


@dataclass(frozen=True, slots=True)
class Cart:
    cart_id: str | None
    user_id: str | None
    lines: tuple[CartLine, ...] = field(default_factory=tuple)

    @property
    def total(self) -> Number:
        return calc_cart_total(self.lines)

    @property
    def restaurant_id(self) -> str | None:
        """Restaurant shared by every line (first line wins)."""
        for line in self.lines:
            if line.restaurant_id:
                return line.restaurant_id
        return None

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def find(self, menu_item_id: str) -> CartLine | None:
        for line in self.lines:
            if line.menu_item_id == menu_item_id:
                return line
        return None

    @classmethod
    def empty(cls, user_id: str | None = None) -> Cart:
        return cls(cart_id=None, user_id=user_id, lines=())

    @classmethod
    def from_api(cls, data: dict[str, Any], *, user_id: str | None = None) -> Cart:
        items = data.get("items")
        lines = tuple(
            CartLine.from_dict(item)
            for item in (items if isinstance(items, list) else [])
            if isinstance(item, dict) and item.get("menuItemId")
        )
        return cls(
            cart_id=extract_id(data, "cartId"),
            user_id=str(data.get("userId") or user_id or "") or None,
            lines=lines,
        )
