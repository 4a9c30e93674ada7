"""
Restaurant menu (catalog) calls. These endpoints are public.
"""
from __future__ import annotations

from typing import Any

from foodyx.api_client.core import unwrap


class CatalogMixin:
    """Mixin for menu item lookups."""

    async def get_menu_item(self, restaurant_id: str, menu_item_id: str) -> dict[str, Any] | None:
        data = await self.request(
            "GET",
            f"/restaurants/{restaurant_id}/menu-items/{menu_item_id}",
            auth=False,
            error_message="Failed to fetch menu item",
        )
        data = unwrap(data)
        return data if isinstance(data, dict) else None

    async def get_menu_items(self, restaurant_id: str) -> list[dict[str, Any]]:
        data = unwrap(
            await self.request(
                "GET",
                f"/restaurants/{restaurant_id}/menu-items",
                auth=False,
                error_message="Failed to fetch menu items",
            )
        )
        return data if isinstance(data, list) else []
