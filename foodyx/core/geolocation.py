"""
Device geolocation.

Positions come from whatever provider the UI supplies (browser API, GPS,
fixed test point). Lookups are bounded by a timeout so a silent provider
never stalls checkout.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from foodyx.core.exceptions import GeolocationException
from foodyx.domain.value_objects import GeoPoint

logger = logging.getLogger(__name__)

DEFAULT_GEOLOCATION_TIMEOUT = 5.0


class Geolocator(Protocol):
    async def current_position(self, *, enable_high_accuracy: bool, timeout: float) -> GeoPoint: ...


async def locate(
    geolocator: Geolocator | None,
    timeout: float = DEFAULT_GEOLOCATION_TIMEOUT,
) -> GeoPoint:
    """Current device position.

    Raises:
        GeolocationException: no provider, provider failure or timeout
    """
    if geolocator is None:
        raise GeolocationException("Geolocation is not supported")
    try:
        return await asyncio.wait_for(
            geolocator.current_position(enable_high_accuracy=True, timeout=timeout),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        logger.warning(f"Geolocation timed out after {timeout}s")
        raise GeolocationException("Failed to get location") from e
    except Exception as e:
        logger.warning(f"Geolocation failed: {e}")
        raise GeolocationException("Failed to get location") from e
