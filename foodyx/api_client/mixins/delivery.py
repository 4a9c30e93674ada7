"""
Delivery service calls: driver assignment and delivery records.
"""
from __future__ import annotations

import logging
from typing import Any

from foodyx.api_client.core import unwrap
from foodyx.core.exceptions import (
    BackendException,
    InvalidOrderException,
    NoDriversAvailableException,
)
from foodyx.domain.value_objects import GeoPoint

logger = logging.getLogger(__name__)

NO_DRIVERS_MESSAGE = "No available drivers found in the area"

_INVALID_ORDER_STATUSES = (400, 422)


def _mentions_missing_order(message: str) -> bool:
    text = message.lower()
    return "order" in text and "not found" in text


class DeliveryMixin:
    """Mixin for delivery-related calls."""

    async def assign_delivery_driver(self, order_id: str, customer_location: GeoPoint) -> dict[str, Any]:
        """Ask the delivery service to bind a driver near the customer.

        Raises:
            NoDriversAvailableException: 404, nobody in range
            InvalidOrderException: order unknown or rejected (400/422, or a
                404 that names the order)
            BackendException: any other failure
        """
        try:
            data = await self.request(
                "POST",
                "/delivery/assign",
                json_body={"orderId": order_id, "customerLocation": customer_location.to_list()},
                error_message="Failed to assign driver",
            )
        except BackendException as e:
            if e.status == 404:
                if _mentions_missing_order(e.message):
                    raise InvalidOrderException(order_id, e.message) from e
                raise NoDriversAvailableException(order_id) from e
            if e.status in _INVALID_ORDER_STATUSES:
                raise InvalidOrderException(order_id, e.message) from e
            raise

        # Some deployments answer 200 with an error envelope.
        if isinstance(data, dict) and data.get("status") == "error":
            message = str(data.get("message") or "Failed to assign delivery driver")
            if message == NO_DRIVERS_MESSAGE:
                raise NoDriversAvailableException(order_id, message)
            raise BackendException(message, status=200, payload=data)

        data = unwrap(data)
        logger.info(f"Driver assigned for order {order_id} at {customer_location}")
        return data if isinstance(data, dict) else {}

    async def get_delivery_by_order(self, order_id: str) -> dict[str, Any] | None:
        data = unwrap(
            await self.request(
                "GET",
                f"/delivery/order/{order_id}",
                error_message="Failed to fetch delivery details",
            )
        )
        return data if isinstance(data, dict) else None

    async def update_delivery_status(
        self,
        delivery_id: str,
        status: str,
        location: GeoPoint | None = None,
    ) -> Any:
        body: dict[str, Any] = {"status": status}
        if location is not None:
            body["location"] = location.to_list()
        return await self.request(
            "PUT",
            f"/delivery/{delivery_id}/status",
            json_body=body,
            error_message="Failed to update delivery status",
        )
