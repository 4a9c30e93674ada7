"""
Live tracking of a confirmed order.

Read-only: the feed fetches order, delivery and driver data and draws them
on the map; it never changes order or delivery state. Polling is opt-in
(``start_tracking``) and must be stopped when the view goes away.
"""
from __future__ import annotations

import logging

from foodyx.core.config import TrackingConfig
from foodyx.core.exceptions import FoodyXException
from foodyx.core.notifications import NotificationService, get_notification_service
from foodyx.core.periodic import PeriodicTask
from foodyx.domain.entities.delivery import DeliveryRecord, DriverProfile
from foodyx.domain.order import Order
from foodyx.domain.timeline import TimelineStage, build_timeline
from foodyx.domain.value_objects import GeoPoint
from foodyx.integrations.map_surface import MapSurface, Marker, MarkerKind

logger = logging.getLogger(__name__)

FETCH_FAILED = "Failed to fetch order details"


class LiveTrackingFeed:
    def __init__(
        self,
        client,
        *,
        map_surface: MapSurface | None = None,
        notifications: NotificationService | None = None,
        config: TrackingConfig | None = None,
    ) -> None:
        self._client = client
        self._map = map_surface
        self._notifications = notifications or get_notification_service()
        self.config = config or TrackingConfig()

        self.order_id: str | None = None
        self.order: Order | None = None
        self.delivery: DeliveryRecord | None = None
        self.driver: DriverProfile | None = None
        self.tracking = False
        self._poller: PeriodicTask | None = None

    # ------------------------------------------------------------------ derived

    @property
    def timeline(self) -> list[TimelineStage]:
        if self.order is None:
            return []
        return build_timeline(self.order.status, self.order.created_at)

    @property
    def driver_location(self) -> GeoPoint | None:
        if self.delivery is not None and self.delivery.driver_location is not None:
            return self.delivery.driver_location
        if self.driver is not None:
            return self.driver.location
        return None

    @property
    def customer_location(self) -> GeoPoint | None:
        return self.delivery.customer_location if self.delivery is not None else None

    @property
    def is_polling(self) -> bool:
        return self._poller is not None and self._poller.running

    # ------------------------------------------------------------------ lifecycle

    async def mount(self, order_id: str) -> None:
        """Load order, delivery record and driver once. Failures are reported, not raised."""
        if self.order_id != order_id and self._poller is not None:
            await self.stop_tracking()
        self.order_id = order_id
        self.order = None
        self.delivery = None
        self.driver = None

        try:
            data = await self._client.get_order(order_id)
            self.order = Order.from_api(data, order_id=order_id) if data else None
        except (FoodyXException, ValueError) as e:
            logger.error(f"Order {order_id} fetch failed: {e}")
            await self._notifications.error(FETCH_FAILED, order_id=order_id)

        try:
            data = await self._client.get_delivery_by_order(order_id)
            self.delivery = DeliveryRecord.from_api(data, order_id=order_id) if data else None
        except (FoodyXException, ValueError) as e:
            logger.error(f"Delivery for order {order_id} fetch failed: {e}")
            await self._notifications.error(FETCH_FAILED, order_id=order_id)

        if self.delivery is not None and self.delivery.driver_id:
            try:
                data = await self._client.get_driver(self.delivery.driver_id)
                self.driver = DriverProfile.from_api(data) if data else None
            except (FoodyXException, ValueError) as e:
                logger.error(f"Driver {self.delivery.driver_id} fetch failed: {e}")
                await self._notifications.error(FETCH_FAILED, order_id=order_id)

        self.render()

    async def unmount(self) -> None:
        await self.stop_tracking()
        self.order_id = None
        self.order = None
        self.delivery = None
        self.driver = None

    # ------------------------------------------------------------------ tracking

    def start_tracking(self) -> None:
        if self.order_id is None or self.is_polling:
            return
        self.tracking = True
        self.render()
        if self.delivery is not None and self.delivery.is_terminal:
            logger.info(f"Delivery for order {self.order_id} already {self.delivery.status}, not polling")
            self.tracking = False
            return
        self._poller = PeriodicTask(
            self._poll,
            self.config.poll_interval,
            name=f"tracking-{self.order_id}",
        )
        self._poller.start()
        logger.info(f"Tracking order {self.order_id} every {self.config.poll_interval}s")

    async def stop_tracking(self) -> None:
        self.tracking = False
        poller, self._poller = self._poller, None
        if poller is not None:
            await poller.stop()

    async def _poll(self) -> bool:
        order_id = self.order_id
        if order_id is None:
            return False
        data = await self._client.get_delivery_by_order(order_id)
        if data:
            self.delivery = DeliveryRecord.from_api(data, order_id=order_id)
        self.render()
        if self.delivery is not None and self.delivery.is_terminal:
            logger.info(f"Delivery for order {order_id} is {self.delivery.status}, stopping tracking")
            self.tracking = False
            return False
        return True

    # ------------------------------------------------------------------ map

    def render(self) -> None:
        if self._map is None:
            return
        driver = self.driver_location
        customer = self.customer_location
        center = driver or customer
        if center is None:
            return

        markers = []
        if driver is not None:
            markers.append(Marker(driver, MarkerKind.DRIVER, "Driver"))
        if customer is not None:
            markers.append(Marker(customer, MarkerKind.CUSTOMER, "Delivery location"))
        polyline = [driver, customer] if self.tracking and driver and customer else None
        self._map.render(center, self.config.map_zoom, markers, polyline)
