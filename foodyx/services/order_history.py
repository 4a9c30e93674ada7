"""
Order history of the signed-in user: list, cancel, delete.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone

from foodyx.application.orders import OrderTransitionResult, cancel_order
from foodyx.core.exceptions import BackendException
from foodyx.core.notifications import NotificationService, get_notification_service
from foodyx.domain.order import Order, OrderStatus

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(order: Order) -> datetime:
    created = order.created_at
    if created is None:
        return _EPOCH
    return created if created.tzinfo else created.replace(tzinfo=timezone.utc)


class OrderHistoryService:
    def __init__(self, client, notifications: NotificationService | None = None) -> None:
        self._client = client
        self._notifications = notifications or get_notification_service()
        self.orders: list[Order] = []

    async def list_orders(self) -> list[Order]:
        """User's orders, newest first. Malformed entries are skipped."""
        user_id = self._client.require_user_id()
        try:
            raw = await self._client.get_orders_by_user(user_id)
        except BackendException as e:
            await self._notifications.error("Failed to fetch orders")
            logger.error(f"Order list for user {user_id} failed: {e.message}")
            raise

        orders = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            try:
                orders.append(Order.from_api(item))
            except ValueError:
                logger.warning(f"Skipping order without id: {item!r}")
        orders.sort(key=_sort_key, reverse=True)
        self.orders = orders
        return orders

    async def cancel(self, order_id: str) -> OrderTransitionResult:
        result = await cancel_order(order_id, client=self._client)
        if result.ok:
            await self._notifications.success("Order cancelled successfully", order_id=order_id)
            self.orders = [
                replace(order, status=OrderStatus.CANCELLED) if order.order_id == order_id else order
                for order in self.orders
            ]
        else:
            await self._notifications.error(result.reason or "Failed to cancel order", error_key=result.error_key)
        return result

    async def delete(self, order_id: str) -> bool:
        try:
            await self._client.delete_order(order_id)
        except BackendException as e:
            logger.error(f"Delete order {order_id} failed: {e.message}")
            await self._notifications.error("Failed to delete order")
            return False
        self.orders = [order for order in self.orders if order.order_id != order_id]
        await self._notifications.success("Order deleted successfully")
        return True
