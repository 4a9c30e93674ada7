"""
Driver profile lookups.
"""
from __future__ import annotations

from typing import Any

from foodyx.api_client.core import unwrap


class DriverMixin:
    async def get_driver(self, driver_id: str) -> dict[str, Any] | None:
        data = unwrap(
            await self.request("GET", f"/drivers/{driver_id}", error_message="Failed to fetch driver details")
        )
        return data if isinstance(data, dict) else None
