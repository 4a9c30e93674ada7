"""Domain entities package."""

from .cart import Cart, CartLine
from .delivery import DeliveryRecord, DriverProfile, PendingAssignment

__all__ = [
    "Cart",
    "CartLine",
    "DeliveryRecord",
    "DriverProfile",
    "PendingAssignment",
]
