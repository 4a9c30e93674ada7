"""
Cart service calls.
"""
from __future__ import annotations

import logging
from typing import Any

from foodyx.api_client.core import unwrap
from foodyx.core.exceptions import BackendException

logger = logging.getLogger(__name__)


class CartMixin:
    """Mixin for the cart-by-user resource and its items."""

    async def get_cart(self, user_id: str) -> dict[str, Any] | None:
        """Fetch the user's cart; None when the backend has none yet."""
        try:
            data = await self.request("GET", f"/carts/{user_id}", error_message="Failed to fetch cart")
        except BackendException as e:
            if e.status == 404:
                return None
            raise
        data = unwrap(data)
        return data if isinstance(data, dict) else None

    async def create_cart(self, user_id: str) -> dict[str, Any]:
        logger.info(f"Creating cart for user {user_id}")
        data = await self.request(
            "POST",
            "/carts",
            json_body={"userId": user_id},
            error_message="Failed to create cart",
        )
        data = unwrap(data)
        return data if isinstance(data, dict) else {}

    async def add_cart_item(self, user_id: str, item: dict[str, Any]) -> Any:
        return await self.request(
            "POST",
            f"/carts/{user_id}/items",
            json_body=item,
            error_message="Failed to add item to cart",
        )

    async def update_cart_item(self, user_id: str, menu_item_id: str, quantity: int) -> Any:
        return await self.request(
            "PATCH",
            f"/carts/{user_id}/items/{menu_item_id}",
            json_body={"quantity": quantity},
            error_message="Failed to update cart item",
        )

    async def remove_cart_item(self, user_id: str, menu_item_id: str) -> Any:
        return await self.request(
            "DELETE",
            f"/carts/{user_id}/items/{menu_item_id}",
            error_message="Failed to remove cart item",
        )

    async def clear_cart(self, user_id: str) -> Any:
        return await self.request("DELETE", f"/carts/{user_id}", error_message="Failed to clear cart")
