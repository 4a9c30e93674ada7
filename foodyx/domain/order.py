"""Order domain types and status enums."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class OrderStatus:
    """Order lifecycle statuses as the order service reports them."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY_FOR_PICKUP = "READY_FOR_PICKUP"
    ON_THE_WAY = "ON_THE_WAY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    ALL = (
        PENDING,
        CONFIRMED,
        PREPARING,
        READY_FOR_PICKUP,
        ON_THE_WAY,
        DELIVERED,
        CANCELLED,
    )

    @classmethod
    def normalize(cls, status: str | None) -> str:
        """Map legacy spellings onto the canonical status names."""
        if not status:
            return cls.PENDING
        value = str(status).strip().upper().replace(" ", "_")
        mapping = {
            "READY": cls.READY_FOR_PICKUP,
            "ON_DELIVERY": cls.ON_THE_WAY,
            "OUT_FOR_DELIVERY": cls.ON_THE_WAY,
            "CANCELED": cls.CANCELLED,
        }
        return mapping.get(value, value)


class DeliveryStatus:
    """Delivery record statuses owned by the delivery service."""

    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    PICKED_UP = "PICKED_UP"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    TERMINAL = frozenset({DELIVERED, CANCELLED})

    @classmethod
    def normalize(cls, status: str | None) -> str:
        if not status:
            return cls.PENDING
        value = str(status).strip().upper()
        return cls.CANCELLED if value == "CANCELED" else value

    @classmethod
    def is_terminal(cls, status: str | None) -> bool:
        return cls.normalize(status) in cls.TERMINAL


class PaymentMethod:
    """Checkout payment methods."""

    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    CASH = "CASH"
    ONLINE = "ONLINE"

    ALL = (CREDIT_CARD, DEBIT_CARD, CASH, ONLINE)
    CARD_METHODS = frozenset({CREDIT_CARD, DEBIT_CARD})

    @classmethod
    def normalize(cls, method: str | None) -> str:
        value = str(method or "").strip().upper()
        if value not in cls.ALL:
            raise ValueError(f"Unsupported payment method: {method!r}")
        return value

    @classmethod
    def is_card(cls, method: str | None) -> bool:
        return str(method or "").strip().upper() in cls.CARD_METHODS

    @classmethod
    def for_order_service(cls, method: str) -> str:
        """The order service only knows CREDIT_CARD | CASH | ONLINE."""
        method = cls.normalize(method)
        return cls.CREDIT_CARD if method == cls.DEBIT_CARD else method


def extract_id(data: dict[str, Any], *keys: str) -> str | None:
    for key in (*keys, "_id", "id"):
        value = data.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(slots=True)
class DeliveryAddress:
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    FIELDS = ("street", "city", "state", "zip_code", "country")

    def missing_fields(self) -> list[str]:
        return [name for name in self.FIELDS if not str(getattr(self, name) or "").strip()]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    def to_dict(self) -> dict[str, str]:
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None, *, country: str | None = None) -> "DeliveryAddress":
        data = data or {}
        return cls(
            street=str(data.get("street") or ""),
            city=str(data.get("city") or ""),
            state=str(data.get("state") or ""),
            zip_code=str(data.get("zipCode") or data.get("zip_code") or ""),
            country=country if country is not None else str(data.get("country") or ""),
        )


@dataclass(frozen=True, slots=True)
class OrderLine:
    menu_item_id: str
    name: str
    price: float
    quantity: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "menuItemId": self.menu_item_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderLine":
        return cls(
            menu_item_id=str(data.get("menuItemId") or data.get("_id") or ""),
            name=str(data.get("name") or ""),
            price=data.get("price") or 0,
            quantity=data.get("quantity") or 0,
        )


@dataclass(frozen=True, slots=True)
class DraftOrder:
    """Payload sent once to create an order; never tracked as a resource."""

    user_id: str
    restaurant_id: str
    items: tuple[OrderLine, ...]
    delivery_address: DeliveryAddress
    payment_method: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "restaurantId": self.restaurant_id,
            "items": [item.to_dict() for item in self.items],
            "deliveryAddress": self.delivery_address.to_dict(),
            "paymentMethod": PaymentMethod.for_order_service(self.payment_method),
        }


@dataclass(frozen=True, slots=True)
class Order:
    """Read-back copy of a server-owned order."""

    order_id: str
    status: str
    total_amount: float
    created_at: datetime | None
    items: tuple[OrderLine, ...] = ()
    restaurant_id: str | None = None
    payment_method: str | None = None
    delivery_address: DeliveryAddress | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any], *, order_id: str | None = None) -> "Order":
        found_id = extract_id(data, "orderId") or order_id
        if not found_id:
            raise ValueError("Order payload has no id")
        address = data.get("deliveryAddress")
        return cls(
            order_id=found_id,
            status=OrderStatus.normalize(data.get("status")),
            total_amount=data.get("totalAmount") or data.get("total") or 0,
            created_at=parse_timestamp(data.get("createdAt") or data.get("orderDate")),
            items=tuple(OrderLine.from_dict(item) for item in data.get("items") or []),
            restaurant_id=data.get("restaurantId"),
            payment_method=data.get("paymentMethod"),
            delivery_address=DeliveryAddress.from_dict(address) if isinstance(address, dict) else None,
            raw=data,
        )
