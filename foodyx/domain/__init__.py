"""Domain package."""

from .entities import Cart, CartLine, DeliveryRecord, DriverProfile, PendingAssignment
from .order import (
    DeliveryAddress,
    DeliveryStatus,
    DraftOrder,
    Order,
    OrderLine,
    OrderStatus,
    PaymentMethod,
)
from .value_objects import GeoPoint

__all__ = [
    # Entities
    "Cart",
    "CartLine",
    "DeliveryRecord",
    "DriverProfile",
    "PendingAssignment",
    "Order",
    "OrderLine",
    "DraftOrder",
    "DeliveryAddress",
    # Value Objects
    "GeoPoint",
    "OrderStatus",
    "DeliveryStatus",
    "PaymentMethod",
]
