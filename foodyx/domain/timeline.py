"""Five-stage display timeline derived from an order status."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from foodyx.domain.order import OrderStatus


@dataclass(frozen=True, slots=True)
class TimelineStage:
    key: str
    title: str
    description: str
    completed: bool
    time: datetime | None = None


# (key, title, description, statuses that mark the stage completed)
_STAGES: tuple[tuple[str, str, str, frozenset[str] | None], ...] = (
    ("placed", "Order Placed", "Your order has been received", None),
    (
        "preparing",
        "Preparing",
        "Restaurant is preparing your food",
        frozenset(
            {
                OrderStatus.PREPARING,
                OrderStatus.READY_FOR_PICKUP,
                OrderStatus.ON_THE_WAY,
                OrderStatus.DELIVERED,
            }
        ),
    ),
    (
        "ready_for_pickup",
        "Ready for Pickup",
        "Your order is ready for delivery",
        frozenset({OrderStatus.READY_FOR_PICKUP, OrderStatus.ON_THE_WAY, OrderStatus.DELIVERED}),
    ),
    (
        "on_the_way",
        "On the Way",
        "Your order is being delivered",
        frozenset({OrderStatus.ON_THE_WAY, OrderStatus.DELIVERED}),
    ),
    (
        "delivered",
        "Delivered",
        "Your order has been delivered",
        frozenset({OrderStatus.DELIVERED}),
    ),
)


def build_timeline(status: str | None, placed_at: datetime | None = None) -> list[TimelineStage]:
    """Derive the display timeline; "placed" is always complete."""
    normalized = OrderStatus.normalize(status)
    return [
        TimelineStage(
            key=key,
            title=title,
            description=description,
            completed=done_when is None or normalized in done_when,
            time=placed_at if done_when is None else None,
        )
        for key, title, description, done_when in _STAGES
    ]


def current_stage(stages: list[TimelineStage]) -> TimelineStage:
    """Last completed stage."""
    done = [stage for stage in stages if stage.completed]
    return done[-1] if done else stages[0]
