"""Storefront bootstrap wiring settings, logging, error tracking, client and services."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from foodyx.api_client import FoodyXClient
from foodyx.core.config import Settings, load_settings
from foodyx.core.geolocation import Geolocator
from foodyx.core.notifications import NotificationService, get_notification_service
from foodyx.core.sentry_integration import init_sentry
from foodyx.integrations.map_surface import MapSurface
from foodyx.integrations.payment_service import PaymentRedirector, PaymentService
from foodyx.logging_config import setup_logging
from foodyx.services.cart_store import CartStore
from foodyx.services.checkout_coordinator import OrderSubmissionCoordinator
from foodyx.services.order_history import OrderHistoryService
from foodyx.services.tracking_feed import LiveTrackingFeed

logger = logging.getLogger(__name__)


@dataclass
class Storefront:
    settings: Settings
    client: FoodyXClient
    notifications: NotificationService
    cart: CartStore
    checkout: OrderSubmissionCoordinator
    tracking: LiveTrackingFeed
    history: OrderHistoryService

    async def close(self) -> None:
        await self.tracking.unmount()
        await self.notifications.close()
        await self.client.close()


def build_storefront(
    settings: Settings | None = None,
    *,
    redirector: PaymentRedirector | None = None,
    map_surface: MapSurface | None = None,
    geolocator: Geolocator | None = None,
    client: FoodyXClient | None = None,
) -> Storefront:
    """Create the storefront runtime components from configuration."""
    settings = settings or load_settings()
    setup_logging()
    init_sentry(settings.sentry_dsn, environment=settings.environment)

    client = client or FoodyXClient.from_settings(settings)
    notifications = get_notification_service()
    cart = CartStore(client, notifications)
    tracking = LiveTrackingFeed(
        client,
        map_surface=map_surface,
        notifications=notifications,
        config=settings.tracking,
    )
    payments = (
        PaymentService(client, redirector, settings.checkout.payhere_checkout_url)
        if redirector is not None
        else None
    )
    if payments is None:
        logger.warning("No payment redirector supplied, card checkout disabled")

    checkout = OrderSubmissionCoordinator(
        client,
        cart,
        payments=payments,
        notifications=notifications,
        map_surface=map_surface,
        geolocator=geolocator,
        config=settings.checkout,
        map_zoom=settings.tracking.map_zoom,
        on_confirmed=tracking.mount,
    )
    history = OrderHistoryService(client, notifications)

    logger.info(f"Storefront ready against {settings.api.base_url} ({settings.environment})")
    return Storefront(
        settings=settings,
        client=client,
        notifications=notifications,
        cart=cart,
        checkout=checkout,
        tracking=tracking,
        history=history,
    )
