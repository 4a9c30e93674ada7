"""
Cart store: the single writer of the signed-in user's cart.

Every mutation goes to the backend first and the whole cart is then re-read,
so the local copy is always the latest server view. Failures leave the
cached cart untouched.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from foodyx.core.exceptions import (
    BackendException,
    FoodyXException,
    NotAuthenticatedException,
    ValidationException,
)
from foodyx.core.notifications import NotificationService, get_notification_service
from foodyx.core.order_math import Number
from foodyx.domain.entities.cart import (
    MAIN_IMAGE_PLACEHOLDER,
    THUMBNAIL_PLACEHOLDER,
    Cart,
    CartLine,
)
from foodyx.domain.order import extract_id

logger = logging.getLogger(__name__)


def _validate_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationException("Quantity must be a positive whole number", field="quantity")
    return quantity


class CartStore:
    """Active cart of the signed-in user, kept in sync with the cart service."""

    def __init__(self, client, notifications: NotificationService | None = None) -> None:
        self._client = client
        self._notifications = notifications or get_notification_service()
        self._cart = Cart.empty()
        self._loaded = False
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------ reads

    @property
    def cart_id(self) -> str | None:
        return self._cart.cart_id

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return self._cart.lines

    @property
    def total(self) -> Number:
        return self._cart.total

    @property
    def restaurant_id(self) -> str | None:
        return self._cart.restaurant_id

    @property
    def is_empty(self) -> bool:
        return self._cart.is_empty

    def snapshot(self) -> Cart:
        return self._cart

    # ------------------------------------------------------------------ sync

    async def refresh(self) -> Cart:
        """Re-read the cart, creating it on the backend when there is none."""
        user_id = self._client.require_user_id()
        async with self._lock:
            return await self._load(user_id)

    async def _load(self, user_id: str) -> Cart:
        data = await self._client.get_cart(user_id)
        if not data or not isinstance(data.get("items"), list):
            logger.info(f"No usable cart for user {user_id}, creating one")
            data = await self._client.create_cart(user_id)
            if not isinstance(data, dict):
                data = {}

        self._cart = Cart.from_api(data, user_id=user_id)
        self._loaded = True
        logger.debug(f"Cart {self._cart.cart_id}: {len(self._cart.lines)} lines, total {self._cart.total}")
        return self._cart

    async def _ensure_loaded(self, user_id: str) -> None:
        if not self._loaded:
            await self._load(user_id)

    def _require_user(self, action: str) -> str:
        try:
            return self._client.require_user_id()
        except NotAuthenticatedException:
            raise NotAuthenticatedException(f"Please login to {action}") from None

    async def _fail(self, error: FoodyXException, default: str) -> None:
        message = error.message or default
        logger.warning(f"Cart operation failed: {message}")
        await self._notifications.error(message)

    # ------------------------------------------------------------------ mutations

    async def add_item(self, menu_item_id: str, quantity: int, restaurant_id: str) -> Cart:
        """Add an item from the catalog; the cart may only hold one restaurant.

        Raises:
            NotAuthenticatedException: no session (nothing is sent)
            ValidationException: bad quantity, other restaurant, unknown item
            BackendException: cart or catalog service failure
        """
        try:
            user_id = self._require_user("add items to cart")
            _validate_quantity(quantity)
            async with self._lock:
                await self._ensure_loaded(user_id)
                current = self._cart.restaurant_id
                if current and not self._cart.is_empty and current != restaurant_id:
                    raise ValidationException(
                        "Your cart contains items from another restaurant. Clear the cart first.",
                        field="restaurant_id",
                    )

                menu_item = await self._client.get_menu_item(restaurant_id, menu_item_id)
                if not menu_item:
                    raise ValidationException("Menu item not found", field="menu_item_id")

                line = CartLine(
                    menu_item_id=extract_id(menu_item, "menuItemId") or menu_item_id,
                    restaurant_id=restaurant_id,
                    name=str(menu_item.get("name") or ""),
                    unit_price=menu_item.get("price"),
                    quantity=quantity,
                    main_image=menu_item.get("mainImage") or MAIN_IMAGE_PLACEHOLDER,
                    thumbnail_image=menu_item.get("thumbnailImage") or THUMBNAIL_PLACEHOLDER,
                )
                logger.info(f"Adding {line.menu_item_id} x{quantity} to cart of user {user_id}")
                await self._client.add_cart_item(user_id, line.to_dict())
                cart = await self._load(user_id)
        except (NotAuthenticatedException, ValidationException, BackendException) as e:
            await self._fail(e, "Failed to add item to cart")
            raise

        await self._notifications.success("Item added to cart successfully!")
        return cart

    async def update_quantity(self, menu_item_id: str, quantity: int) -> Cart:
        try:
            user_id = self._require_user("update cart")
            _validate_quantity(quantity)
            async with self._lock:
                await self._ensure_loaded(user_id)
                if self._cart.find(menu_item_id) is None:
                    raise ValidationException("Item not found in cart", field="menu_item_id")
                await self._client.update_cart_item(user_id, menu_item_id, quantity)
                cart = await self._load(user_id)
        except (NotAuthenticatedException, ValidationException, BackendException) as e:
            await self._fail(e, "Failed to update item quantity")
            raise

        await self._notifications.success("Cart updated successfully")
        return cart

    async def remove_item(self, menu_item_id: str) -> Cart:
        try:
            user_id = self._require_user("remove items from cart")
            async with self._lock:
                await self._client.remove_cart_item(user_id, menu_item_id)
                cart = await self._load(user_id)
        except (NotAuthenticatedException, BackendException) as e:
            await self._fail(e, "Failed to remove item from cart")
            raise

        await self._notifications.success("Item removed from cart")
        return cart

    async def clear(self, *, quiet: bool = False) -> Cart:
        """Empty the cart. ``quiet`` skips the success toast (checkout has its own)."""
        try:
            user_id = self._require_user("clear cart")
            async with self._lock:
                await self._client.clear_cart(user_id)
                cart = await self._load(user_id)
        except (NotAuthenticatedException, BackendException) as e:
            await self._fail(e, "Failed to clear cart")
            raise

        if not quiet:
            await self._notifications.success("Cart cleared successfully")
        return cart

    def reset(self) -> None:
        """Forget the cached cart (sign-out)."""
        self._cart = Cart.empty()
        self._loaded = False
