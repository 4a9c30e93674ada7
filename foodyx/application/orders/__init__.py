"""Order use cases: guarded status changes the storefront may request."""
from .cancel_order import cancel_order
from .confirm_order import OrderTransitionResult, confirm_order, load_order

__all__ = ["OrderTransitionResult", "cancel_order", "confirm_order", "load_order"]
