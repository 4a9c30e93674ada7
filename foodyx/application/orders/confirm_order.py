"""Use case: confirm a freshly placed order."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from foodyx.core.exceptions import BackendException
from foodyx.domain.order import Order, OrderStatus
from foodyx.domain.order_fsm import validate_order_transition

logger = logging.getLogger(__name__)


@dataclass
class OrderTransitionResult:
    ok: bool
    error_key: str | None = None
    order: Order | None = None
    status: str | None = None
    reason: str | None = None


async def load_order(order_id: str, *, client: Any) -> tuple[Order | None, str | None]:
    """Fetch an order, mapping lookup failures onto result error keys."""
    try:
        data = await client.get_order(order_id)
    except BackendException as e:
        if e.status == 404:
            return None, "not_found"
        logger.error(f"Failed to load order {order_id}: {e.message}")
        return None, "backend_error"
    if not data:
        return None, "not_found"
    return Order.from_api(data, order_id=order_id), None


async def confirm_order(order_id: str, *, client: Any) -> OrderTransitionResult:
    order, error_key = await load_order(order_id, client=client)
    if order is None:
        return OrderTransitionResult(False, error_key)

    check = validate_order_transition(
        current_status=order.status,
        target_status=OrderStatus.CONFIRMED,
    )
    if not check.allowed:
        return OrderTransitionResult(False, "invalid_transition", order=order, status=order.status, reason=check.reason)

    if order.status == OrderStatus.CONFIRMED:
        return OrderTransitionResult(True, order=order, status=order.status)

    try:
        await client.update_order_status(order_id, OrderStatus.CONFIRMED)
    except BackendException as e:
        return OrderTransitionResult(False, "backend_error", order=order, status=order.status, reason=e.message)

    return OrderTransitionResult(True, order=order, status=OrderStatus.CONFIRMED)
