"""Delivery-side entities: delivery records, drivers, pending assignments."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from foodyx.domain.order import DeliveryStatus, extract_id, parse_timestamp
from foodyx.domain.value_objects import GeoPoint


@dataclass(frozen=True, slots=True)
class DeliveryRecord:
    """Client-side cached copy of a delivery, refreshed by polling."""

    delivery_id: str | None
    order_id: str
    driver_id: str | None
    status: str
    customer_location: GeoPoint | None
    driver_location: GeoPoint | None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    actual_delivery_time: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return DeliveryStatus.is_terminal(self.status)

    @classmethod
    def from_api(cls, data: dict[str, Any], *, order_id: str | None = None) -> DeliveryRecord:
        found_order = str(data.get("orderId") or order_id or "")
        if not found_order:
            raise ValueError("Delivery payload has no order id")
        driver = data.get("driverId")
        if isinstance(driver, dict):
            driver = extract_id(driver)
        return cls(
            delivery_id=extract_id(data, "deliveryId"),
            order_id=found_order,
            driver_id=str(driver) if driver else None,
            status=DeliveryStatus.normalize(data.get("status")),
            customer_location=GeoPoint.from_any(data.get("customerLocation")),
            driver_location=GeoPoint.from_any(data.get("driverLocation")),
            created_at=parse_timestamp(data.get("createdAt")),
            updated_at=parse_timestamp(data.get("updatedAt")),
            actual_delivery_time=parse_timestamp(data.get("actualDeliveryTime")),
        )


@dataclass(frozen=True, slots=True)
class DriverProfile:
    driver_id: str
    user_id: str | None
    is_available: bool
    vehicle_type: str | None
    vehicle_number: str | None
    rating: float | None
    total_deliveries: int
    location: GeoPoint | None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> DriverProfile:
        driver_id = extract_id(data, "driverId")
        if not driver_id:
            raise ValueError("Driver payload has no id")
        return cls(
            driver_id=driver_id,
            user_id=data.get("userId"),
            is_available=bool(data.get("isAvailable", False)),
            vehicle_type=data.get("vehicleType"),
            vehicle_number=data.get("vehicleNumber"),
            rating=data.get("rating"),
            total_deliveries=int(data.get("totalDeliveries") or 0),
            location=GeoPoint.from_any(data.get("location")),
        )


@dataclass(slots=True)
class PendingAssignment:
    """An order that exists server-side but has no driver bound yet."""

    order_id: str
    last_attempted_location: GeoPoint
    attempts: int = 1
    created_at: datetime = field(default_factory=datetime.now)

    def record_attempt(self, location: GeoPoint) -> None:
        self.last_attempted_location = location
        self.attempts += 1
