"""
Order service calls.
"""
from __future__ import annotations

import logging
from typing import Any

from foodyx.api_client.core import unwrap

logger = logging.getLogger(__name__)


class OrderMixin:
    """Mixin for order-related calls."""

    async def create_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create a new order from a draft payload.

        Returns:
            The created order as the backend reports it (must carry an id)
        """
        data = unwrap(
            await self.request("POST", "/orders", json_body=payload, error_message="Failed to create order")
        )
        return data if isinstance(data, dict) else {}

    async def get_order(self, order_id: str) -> dict[str, Any] | None:
        data = unwrap(await self.request("GET", f"/orders/{order_id}", error_message="Failed to fetch order"))
        return data if isinstance(data, dict) else None

    async def get_orders_by_user(self, user_id: str) -> list[dict[str, Any]]:
        data = unwrap(
            await self.request("GET", f"/orders/user/{user_id}", error_message="Failed to fetch orders")
        )
        return data if isinstance(data, list) else []

    async def get_orders_by_restaurant(self, restaurant_id: str) -> list[dict[str, Any]]:
        data = unwrap(
            await self.request(
                "GET",
                f"/orders/restaurant/{restaurant_id}",
                error_message="Failed to fetch restaurant orders",
            )
        )
        return data if isinstance(data, list) else []

    async def update_order_status(self, order_id: str, status: str) -> Any:
        logger.info(f"Order {order_id} status -> {status}")
        return await self.request(
            "PATCH",
            f"/orders/{order_id}/status",
            json_body={"status": status},
            error_message="Failed to update order status",
        )

    async def delete_order(self, order_id: str) -> Any:
        return await self.request("DELETE", f"/orders/{order_id}", error_message="Failed to delete order")

    async def cancel_order(self, order_id: str) -> Any:
        return await self.request(
            "POST",
            f"/orders/{order_id}/cancel",
            json_body={"status": "CANCELLED"},
            error_message="Failed to cancel order",
        )
