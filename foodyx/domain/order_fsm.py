"""Order status transition rules (single source of truth)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from foodyx.domain.order import OrderStatus

ALLOWED_TRANSITIONS: Mapping[str, frozenset[str]] = {
    OrderStatus.PENDING: frozenset(
        {
            OrderStatus.CONFIRMED,
            OrderStatus.CANCELLED,
        }
    ),
    OrderStatus.CONFIRMED: frozenset(
        {
            OrderStatus.PREPARING,
            OrderStatus.CANCELLED,
        }
    ),
    OrderStatus.PREPARING: frozenset(
        {
            OrderStatus.READY_FOR_PICKUP,
            OrderStatus.CANCELLED,
        }
    ),
    OrderStatus.READY_FOR_PICKUP: frozenset({OrderStatus.ON_THE_WAY}),
    OrderStatus.ON_THE_WAY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    {
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    }
)

# Statuses the customer may still cancel from
CANCELLABLE_STATUSES = frozenset(
    {
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
    }
)

# Transitions the storefront client is allowed to request itself
CLIENT_TARGETS = frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED})


@dataclass(frozen=True, slots=True)
class TransitionValidationResult:
    allowed: bool
    reason: str | None = None


def is_terminal(status: str | None) -> bool:
    return OrderStatus.normalize(status) in TERMINAL_STATUSES


def can_cancel(status: str | None) -> bool:
    return OrderStatus.normalize(status) in CANCELLABLE_STATUSES


def validate_order_transition(
    *,
    current_status: str | None,
    target_status: str,
    client_initiated: bool = True,
) -> TransitionValidationResult:
    """Validate terminal guards, client permissions and the transition matrix."""
    if not target_status:
        return TransitionValidationResult(False, "Target status is missing.")

    target = OrderStatus.normalize(target_status)
    current = OrderStatus.normalize(current_status) if current_status is not None else None

    if target not in ALLOWED_TRANSITIONS:
        return TransitionValidationResult(False, f"Unsupported status: {target}")

    if current is not None and current not in ALLOWED_TRANSITIONS:
        return TransitionValidationResult(False, f"Unsupported current status: {current}")

    if client_initiated and target not in CLIENT_TARGETS:
        return TransitionValidationResult(
            False,
            f"Status '{target}' can only be set by the restaurant or delivery service.",
        )

    if current == target:
        return TransitionValidationResult(True)

    if current in TERMINAL_STATUSES:
        return TransitionValidationResult(False, f"Order is already {current.lower()}.")

    if current is not None and target not in ALLOWED_TRANSITIONS[current]:
        return TransitionValidationResult(False, f"Transition '{current} -> {target}' is not allowed.")

    return TransitionValidationResult(True)
