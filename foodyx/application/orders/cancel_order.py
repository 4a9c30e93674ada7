"""Use case: customer cancels an order."""
from __future__ import annotations

from typing import Any

from foodyx.application.orders.confirm_order import OrderTransitionResult, load_order
from foodyx.core.exceptions import BackendException
from foodyx.domain.order import OrderStatus
from foodyx.domain.order_fsm import can_cancel


async def cancel_order(order_id: str, *, client: Any) -> OrderTransitionResult:
    order, error_key = await load_order(order_id, client=client)
    if order is None:
        return OrderTransitionResult(False, error_key)

    if not can_cancel(order.status):
        return OrderTransitionResult(
            False,
            "not_cancellable",
            order=order,
            status=order.status,
            reason=f"Order is already {order.status.lower()}.",
        )

    try:
        await client.cancel_order(order_id)
    except BackendException as e:
        return OrderTransitionResult(False, "backend_error", order=order, status=order.status, reason=e.message)

    return OrderTransitionResult(True, order=order, status=OrderStatus.CANCELLED)
