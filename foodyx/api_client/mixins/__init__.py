"""
Backend resource mixins.
Each mixin adds the calls for one backend service to the client.
"""
from .cart import CartMixin
from .catalog import CatalogMixin
from .delivery import DeliveryMixin
from .drivers import DriverMixin
from .orders import OrderMixin
from .payments import PaymentMixin
from .users import UserMixin

__all__ = [
    "CartMixin",
    "CatalogMixin",
    "DeliveryMixin",
    "DriverMixin",
    "OrderMixin",
    "PaymentMixin",
    "UserMixin",
]
