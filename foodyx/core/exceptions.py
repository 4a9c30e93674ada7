"""Custom exceptions for the FoodyX storefront client."""
from __future__ import annotations

from typing import Any


class FoodyXException(Exception):
    """Base exception for all FoodyX client errors."""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationException(FoodyXException):
    """User-correctable input error, raised before any network call."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotAuthenticatedException(FoodyXException):
    """No session token is available for a call that needs one."""

    def __init__(self, message: str = "Please login to continue") -> None:
        super().__init__(message)


class BackendException(FoodyXException):
    """Backend answered with 4xx/5xx, or could not be reached at all.

    ``status`` is ``None`` for transport failures (timeouts, refused
    connections) so callers can tell network errors from server errors.
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        payload: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload

    @property
    def is_network_error(self) -> bool:
        return self.status is None


class NoDriversAvailableException(FoodyXException):
    """No delivery agent in range of the given location."""

    def __init__(self, order_id: str, message: str | None = None) -> None:
        super().__init__(message or "No available drivers found in the area")
        self.order_id = order_id


class InvalidOrderException(FoodyXException):
    """Order id is stale or unknown to the backend."""

    def __init__(self, order_id: str, message: str | None = None) -> None:
        super().__init__(message or f"Order {order_id} is not valid for delivery assignment")
        self.order_id = order_id


class InvalidPaymentSessionException(FoodyXException):
    """Gateway handoff payload is incomplete and must not be submitted."""

    pass


class IllegalTransitionException(FoodyXException):
    """A state machine was asked for a transition its table forbids."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Transition '{current} -> {target}' is not allowed")
        self.current = current
        self.target = target


class GeolocationException(FoodyXException):
    """Device position unavailable (no provider, denied, or timed out)."""

    pass


class ConfigurationException(FoodyXException):
    """Configuration errors."""

    pass
