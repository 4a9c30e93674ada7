"""
Main backend client combining all resource mixins.
"""
from __future__ import annotations

from .core import ApiClientCore
from .mixins import (
    CartMixin,
    CatalogMixin,
    DeliveryMixin,
    DriverMixin,
    OrderMixin,
    PaymentMixin,
    UserMixin,
)


class FoodyXClient(
    ApiClientCore,
    CartMixin,
    CatalogMixin,
    OrderMixin,
    DeliveryMixin,
    DriverMixin,
    PaymentMixin,
    UserMixin,
):
    """
    Async client for the FoodyX REST backend.

    Combines the per-service calls through mixins:
    - CartMixin: cart by user and its items
    - CatalogMixin: restaurant menu items (public)
    - OrderMixin: order create/read/status/cancel/delete
    - DeliveryMixin: driver assignment and delivery records
    - DriverMixin: driver profiles
    - PaymentMixin: gateway sessions, payment listing, refunds
    - UserMixin: signed-in profile
    """
