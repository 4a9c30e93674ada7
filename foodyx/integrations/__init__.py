"""External surfaces: payment gateway handoff and map rendering."""
from .map_surface import InMemoryMapSurface, MapFrame, MapSurface, Marker, MarkerKind
from .payment_service import (
    CardDetails,
    PaymentRedirector,
    PaymentService,
    PayHereSession,
    build_checkout_form,
)

__all__ = [
    "CardDetails",
    "InMemoryMapSurface",
    "MapFrame",
    "MapSurface",
    "Marker",
    "MarkerKind",
    "PayHereSession",
    "PaymentRedirector",
    "PaymentService",
    "build_checkout_form",
]
