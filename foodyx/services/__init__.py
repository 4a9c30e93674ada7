"""Storefront services orchestrating the backend client and domain logic."""

from .cart_store import CartStore
from .checkout_coordinator import CheckoutForm, OrderSubmissionCoordinator
from .driver_assignment import AssignmentOutcome, AssignmentResult, DriverAssignmentService
from .order_history import OrderHistoryService
from .tracking_feed import LiveTrackingFeed

__all__ = [
    "AssignmentOutcome",
    "AssignmentResult",
    "CartStore",
    "CheckoutForm",
    "DriverAssignmentService",
    "LiveTrackingFeed",
    "OrderHistoryService",
    "OrderSubmissionCoordinator",
]
