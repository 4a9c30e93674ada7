"""
Driver assignment with retry on location change.

``assign`` never raises for the expected failure modes; it reports them as
an ``AssignmentResult`` so the checkout can park the order and retry later
from a different point. Attempts for one order run one at a time, and an
order that already has a driver is never sent again.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from foodyx.core.exceptions import (
    BackendException,
    InvalidOrderException,
    NoDriversAvailableException,
)
from foodyx.domain.value_objects import GeoPoint

logger = logging.getLogger(__name__)


class AssignmentOutcome(str, Enum):
    SUCCESS = "success"
    NO_DRIVERS = "no_drivers"
    NETWORK_OR_SERVER_ERROR = "network_or_server_error"
    INVALID_ORDER = "invalid_order"


@dataclass(slots=True)
class AssignmentResult:
    outcome: AssignmentOutcome
    order_id: str
    location: GeoPoint
    message: str = ""
    delivery: dict[str, Any] = field(default_factory=dict)
    # True when answered from the bound-order cache without a request
    cached: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome == AssignmentOutcome.SUCCESS

    @property
    def recoverable(self) -> bool:
        """Order stays parked and may be retried from a new location."""
        return self.outcome in (AssignmentOutcome.NO_DRIVERS, AssignmentOutcome.NETWORK_OR_SERVER_ERROR)


class DriverAssignmentService:
    """Binds delivery agents to created orders, once per order."""

    def __init__(self, client) -> None:
        self._client = client
        self._locks: dict[str, asyncio.Lock] = {}
        self._bound: dict[str, AssignmentResult] = {}

    def is_bound(self, order_id: str) -> bool:
        return order_id in self._bound

    def is_attempting(self, order_id: str) -> bool:
        lock = self._locks.get(order_id)
        return lock is not None and lock.locked()

    async def assign(self, order_id: str, location: GeoPoint) -> AssignmentResult:
        lock = self._locks.setdefault(order_id, asyncio.Lock())
        async with lock:
            bound = self._bound.get(order_id)
            if bound is not None:
                logger.debug(f"Order {order_id} already has a driver, skipping request")
                return AssignmentResult(
                    outcome=AssignmentOutcome.SUCCESS,
                    order_id=order_id,
                    location=bound.location,
                    message=bound.message,
                    delivery=bound.delivery,
                    cached=True,
                )
            return await self._attempt(order_id, location)

    async def _attempt(self, order_id: str, location: GeoPoint) -> AssignmentResult:
        logger.info(f"Assigning driver for order {order_id} at {location}")
        try:
            delivery = await self._client.assign_delivery_driver(order_id, location)
        except NoDriversAvailableException as e:
            logger.info(f"No drivers for order {order_id} at {location}")
            return AssignmentResult(AssignmentOutcome.NO_DRIVERS, order_id, location, e.message)
        except InvalidOrderException as e:
            logger.warning(f"Order {order_id} rejected by delivery service: {e.message}")
            return AssignmentResult(AssignmentOutcome.INVALID_ORDER, order_id, location, e.message)
        except BackendException as e:
            logger.error(f"Driver assignment for order {order_id} failed: {e.message}")
            return AssignmentResult(AssignmentOutcome.NETWORK_OR_SERVER_ERROR, order_id, location, e.message)

        result = AssignmentResult(
            AssignmentOutcome.SUCCESS,
            order_id,
            location,
            "Driver assigned",
            delivery=delivery,
        )
        self._bound[order_id] = result
        return result

    def forget(self, order_id: str) -> None:
        self._bound.pop(order_id, None)
        lock = self._locks.get(order_id)
        if lock is not None and not lock.locked():
            del self._locks[order_id]
