"""
Order submission coordinator.

Turns the cart plus the checkout form into a created order and drives it
through verification, driver assignment and payment/confirmation:

    IDLE -> CREATING -> VERIFYING -> ASSIGNING_DRIVER
         -> NO_DRIVER_FOUND  (order parked, waiting for a new location)
         -> DRIVER_FOUND     (retry succeeded, user confirms)
         -> PAYING | CONFIRMING -> DONE
    any step -> FAILED (domain error) or IDLE (unexpected error / abandon)

An order that exists server-side is never created twice and never deleted
automatically; when no driver is found it is kept as a pending assignment
and retried only when the delivery location changes.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from foodyx.application.orders import confirm_order
from foodyx.core.config import CheckoutConfig
from foodyx.core.exceptions import (
    BackendException,
    ConfigurationException,
    FoodyXException,
    GeolocationException,
    InvalidOrderException,
    NotAuthenticatedException,
    ValidationException,
)
from foodyx.core.geolocation import Geolocator, locate
from foodyx.core.notifications import NotificationService, get_notification_service
from foodyx.core.sentry_integration import add_breadcrumb, capture_exception
from foodyx.domain.checkout_fsm import CheckoutState, CheckoutStateMachine
from foodyx.domain.entities.delivery import PendingAssignment
from foodyx.domain.order import DeliveryAddress, DraftOrder, PaymentMethod, extract_id
from foodyx.domain.value_objects import GeoPoint
from foodyx.integrations.map_surface import MapSurface, Marker, MarkerKind
from foodyx.integrations.payment_service import CardDetails, PaymentService
from foodyx.services.cart_store import CartStore
from foodyx.services.driver_assignment import AssignmentOutcome, AssignmentResult, DriverAssignmentService

logger = logging.getLogger(__name__)

ConfirmedHook = Callable[[str], "Awaitable[None] | None"]

PROMPT_NO_DRIVERS = "no_drivers"
PROMPT_DRIVER_FOUND = "driver_found"


class _CheckoutAbandoned(Exception):
    """Raised at a step boundary once the user has walked away."""

    def __init__(self, order_id: str | None) -> None:
        super().__init__(order_id)
        self.order_id = order_id


@dataclass
class CheckoutForm:
    """What the customer filled in on the checkout page."""

    payment_method: str = PaymentMethod.CASH
    delivery_address: DeliveryAddress = field(default_factory=DeliveryAddress)
    card_details: dict[str, Any] = field(default_factory=dict)
    show_card_details: bool = False

    def select_payment_method(self, method: str) -> None:
        self.payment_method = PaymentMethod.normalize(method)
        if not PaymentMethod.is_card(self.payment_method):
            self.show_card_details = False
            self.card_details = {}

    @property
    def is_card(self) -> bool:
        return PaymentMethod.is_card(self.payment_method)


class OrderSubmissionCoordinator:
    """Runs one checkout at a time for the signed-in user."""

    def __init__(
        self,
        client,
        cart: CartStore,
        *,
        assignment: DriverAssignmentService | None = None,
        payments: PaymentService | None = None,
        notifications: NotificationService | None = None,
        map_surface: MapSurface | None = None,
        geolocator: Geolocator | None = None,
        config: CheckoutConfig | None = None,
        map_zoom: int = 15,
        on_confirmed: ConfirmedHook | None = None,
    ) -> None:
        self._client = client
        self._cart = cart
        self._assignment = assignment or DriverAssignmentService(client)
        self._payments = payments
        self._notifications = notifications or get_notification_service()
        self._map = map_surface
        self._geolocator = geolocator
        self.config = config or CheckoutConfig()
        self.map_zoom = map_zoom
        self.on_confirmed = on_confirmed

        self.machine = CheckoutStateMachine()
        self.form = CheckoutForm(delivery_address=DeliveryAddress(country=self.config.default_country))
        self.delivery_location: GeoPoint | None = None
        self.order_id: str | None = None
        self.pending: PendingAssignment | None = None
        self.driver_found_order_id: str | None = None
        self.orphaned_order_id: str | None = None
        self.last_error: str | None = None

        self._card: CardDetails | None = None
        self._busy = False
        self._abandoned = False
        self._retry_lock = asyncio.Lock()

        if self._map is not None:
            self._map.on_click(self.handle_location_update)

    # ------------------------------------------------------------------ state

    @property
    def state(self) -> CheckoutState:
        return self.machine.state

    @property
    def is_busy(self) -> bool:
        return self._busy

    def _go(self, target: CheckoutState) -> None:
        self.machine.transition(target)
        add_breadcrumb(f"checkout -> {target.value}", order_id=self.order_id)

    # ------------------------------------------------------------------ form helpers

    async def load_default_address(self) -> DeliveryAddress:
        """Prefill the delivery address from the user's profile when available."""
        if not self._client.is_authenticated:
            return self.form.delivery_address
        try:
            profile = await self._client.get_profile()
        except (BackendException, NotAuthenticatedException) as e:
            logger.warning(f"Could not load profile address: {e.message}")
            return self.form.delivery_address

        address = (profile or {}).get("address")
        if isinstance(address, dict):
            loaded = DeliveryAddress.from_dict(address)
            if not loaded.country:
                loaded.country = self.config.default_country
            self.form.delivery_address = loaded
        return self.form.delivery_address

    async def locate_device(self) -> GeoPoint | None:
        """Use the device position as the delivery location ("use current location")."""
        try:
            point = await locate(self._geolocator, self.config.geolocation_timeout)
        except GeolocationException as e:
            await self._notifications.error(e.message)
            return None
        await self.handle_location_update(point)
        return point

    # ------------------------------------------------------------------ submit

    def _check_preconditions(self) -> bool:
        """Local checks; False means the card form was only revealed.

        Raises:
            NotAuthenticatedException / ValidationException
        """
        if not self._client.is_authenticated:
            raise NotAuthenticatedException("Please login to place an order")
        if self._cart.is_empty:
            raise ValidationException("Your cart is empty", field="cart")
        if self.delivery_location is None:
            raise ValidationException("Please select a delivery location on the map", field="delivery_location")
        if not self.form.delivery_address.is_complete:
            raise ValidationException("Please fill in all address fields", field="delivery_address")
        try:
            self.form.payment_method = PaymentMethod.normalize(self.form.payment_method)
        except ValueError as e:
            raise ValidationException("Please select a valid payment method", field="payment_method") from e

        self._card = None
        if self.form.is_card:
            if not self._cart.cart_id:
                raise ValidationException("Cart not found. Please add items to cart.", field="cart_id")
            if not self.form.show_card_details:
                self.form.show_card_details = True
                return False
            self._card = CardDetails.parse(self.form.card_details)
        return True

    async def submit(self, form: CheckoutForm | None = None) -> CheckoutState:
        """Place the order described by the form.

        Returns the state the attempt ended in. Failures are reported through
        notifications, never raised.
        """
        if self._busy:
            logger.warning("Order submission already in progress, ignoring submit")
            return self.state
        if form is not None:
            self.form = form
        if self.state in (CheckoutState.DONE, CheckoutState.FAILED):
            self.machine.reset()
        if self.state is not CheckoutState.IDLE:
            await self._notifications.warning("An order is already waiting for a driver")
            return self.state

        try:
            if not self._check_preconditions():
                logger.debug("Card details form revealed")
                return self.state
        except (NotAuthenticatedException, ValidationException) as e:
            self.last_error = e.message
            await self._notifications.error(e.message)
            return self.state

        return await self._run_exclusive(self._place_order(), "Failed to place order")

    async def _run_exclusive(self, step: Awaitable[None], crash_message: str) -> CheckoutState:
        """Run one checkout step with the busy flag held; never raises."""
        self._busy = True
        self._abandoned = False
        try:
            await step
        except _CheckoutAbandoned as e:
            self._wind_down(e.order_id)
        except FoodyXException as e:
            await self._fail(e.message)
        except Exception as e:
            await self._crash(e, crash_message)
        finally:
            self._busy = False
        return self.state

    def _checkpoint(self, order_id: str | None) -> None:
        if self._abandoned:
            raise _CheckoutAbandoned(order_id)

    def _wind_down(self, order_id: str | None) -> None:
        logger.info(f"Checkout abandoned mid-flight, order {order_id} left unconfirmed")
        if order_id:
            self.orphaned_order_id = order_id
            self._assignment.forget(order_id)
        self.pending = None
        self.driver_found_order_id = None
        self.machine.reset()

    async def _place_order(self) -> None:
        cart = self._cart.snapshot()
        location = self.delivery_location
        self.order_id = None
        self.last_error = None

        self._go(CheckoutState.CREATING)
        draft = DraftOrder(
            user_id=self._client.require_user_id(),
            restaurant_id=cart.restaurant_id or "",
            items=tuple(line.to_order_line() for line in cart.lines),
            delivery_address=self.form.delivery_address,
            payment_method=self.form.payment_method,
        )
        created = await self._client.create_order(draft.to_payload())
        order_id = extract_id(created or {}, "orderId")
        if not order_id:
            raise FoodyXException("Order creation failed - no order ID received")
        self.order_id = order_id
        logger.info(f"Order {order_id} created")
        self._checkpoint(order_id)

        self._go(CheckoutState.VERIFYING)
        await asyncio.sleep(self.config.order_verify_delay)
        try:
            verified = await self._client.get_order(order_id)
        except BackendException as e:
            if e.status != 404:
                raise
            verified = None
        self._checkpoint(order_id)
        if not verified:
            raise FoodyXException("Order not found in database")

        self._go(CheckoutState.ASSIGNING_DRIVER)
        result = await self._assignment.assign(order_id, location)
        self._checkpoint(order_id)
        if result.ok:
            await self._settle(order_id)
            return
        if result.outcome is AssignmentOutcome.INVALID_ORDER:
            raise InvalidOrderException(order_id, result.message)
        await self._park(result)
        self._checkpoint(order_id)

    async def _park(self, result: AssignmentResult) -> None:
        if result.outcome is AssignmentOutcome.NETWORK_OR_SERVER_ERROR:
            await self._notifications.error(result.message or "Failed to assign delivery driver")

        self.pending = PendingAssignment(order_id=result.order_id, last_attempted_location=result.location)
        self._go(CheckoutState.NO_DRIVER_FOUND)
        logger.info(f"Order {result.order_id} parked without driver")
        await self._notifications.prompt(
            "No drivers available",
            "No drivers are available at this location right now. You can place the order "
            "anyway and a driver will be assigned later, or stay on this page and pick "
            "another location.",
            prompt=PROMPT_NO_DRIVERS,
            order_id=result.order_id,
        )

    async def _settle(self, order_id: str) -> None:
        """Hand off to payment (card) or confirm directly (cash/online).

        Abandoning is honoured up to the payment handoff or the confirm call;
        once the order is confirmed the flow finishes.
        """
        self._checkpoint(order_id)
        if self.form.is_card:
            self._go(CheckoutState.PAYING)
            if self._payments is None:
                raise ConfigurationException("Card payments are not configured")
            await self._payments.initiate(
                order_id=order_id,
                cart=self._cart.snapshot(),
                payment_method=self.form.payment_method,
                card=self._card or self.form.card_details,
            )
            # Control now belongs to the gateway; the cart stays until it reports back.
            self._go(CheckoutState.DONE)
            self._assignment.forget(order_id)
            return

        self._go(CheckoutState.CONFIRMING)
        result = await confirm_order(order_id, client=self._client)
        if not result.ok:
            raise FoodyXException(result.reason or "Failed to confirm order")

        try:
            await self._cart.clear(quiet=True)
        except BackendException as e:
            logger.warning(f"Order {order_id} confirmed but cart was not cleared: {e.message}")

        self._go(CheckoutState.DONE)
        self._assignment.forget(order_id)
        await self._notifications.success("Order placed successfully!", order_id=order_id)
        await self._run_confirmed_hook(order_id)

    async def _run_confirmed_hook(self, order_id: str) -> None:
        if self.on_confirmed is None:
            return
        try:
            result = self.on_confirmed(order_id)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"on_confirmed hook failed for order {order_id}: {e}")

    # ------------------------------------------------------------------ failures

    async def _fail(self, message: str) -> None:
        self.last_error = message
        logger.warning(f"Checkout failed in {self.state.value}: {message}")
        if self.order_id:
            self._assignment.forget(self.order_id)
        if self.machine.can_transition(CheckoutState.FAILED):
            self._go(CheckoutState.FAILED)
        else:
            self.machine.reset()
        await self._notifications.error(message)

    async def _crash(self, error: Exception, message: str) -> None:
        logger.exception(f"Unexpected checkout error in {self.state.value}")
        capture_exception(error, order_id=self.order_id, checkout_state=self.state.value)
        if self.order_id:
            self._assignment.forget(self.order_id)
        self.last_error = message
        self.pending = None
        self.driver_found_order_id = None
        self.machine.reset()
        await self._notifications.error(message)

    # ------------------------------------------------------------------ no-driver prompt

    async def continue_without_driver(self) -> CheckoutState:
        """Place the parked order anyway; the backend binds a driver later."""
        if self._busy:
            return self.state
        if self.state is not CheckoutState.NO_DRIVER_FOUND or self.pending is None:
            await self._notifications.error("No pending order found")
            return self.state

        order_id = self.pending.order_id
        self.pending = None
        return await self._run_exclusive(self._settle(order_id), "Failed to process order")

    def dismiss_no_driver_prompt(self) -> CheckoutState:
        """Stay on the page: keep the pending assignment for location retries."""
        if self.pending is not None:
            logger.info(f"Keeping order {self.pending.order_id} pending for a new location")
        return self.state

    async def handle_location_update(self, point: GeoPoint) -> AssignmentResult | None:
        """Store the new delivery point and retry a parked assignment from there."""
        self.delivery_location = point
        if self._map is not None:
            self._map.render(
                point,
                self.map_zoom,
                [Marker(point, MarkerKind.CUSTOMER, "Delivery location")],
            )

        async with self._retry_lock:
            pending = self.pending
            if pending is None or self.state is not CheckoutState.NO_DRIVER_FOUND:
                return None
            pending.record_attempt(point)
            try:
                result = await self._assignment.assign(pending.order_id, point)
            except Exception as e:
                logger.exception(f"Location retry for order {pending.order_id} failed")
                capture_exception(e, order_id=pending.order_id)
                await self._notifications.error("Failed to update location")
                return None

            if self.pending is not pending:
                # Abandoned while the attempt was in flight.
                self._assignment.forget(pending.order_id)
                return result

            if result.ok:
                self.driver_found_order_id = pending.order_id
                self._go(CheckoutState.DRIVER_FOUND)
                await self._notifications.success("Driver found in the new location!")
                await self._notifications.prompt(
                    "Driver found",
                    "A driver is available at the new location. Proceed with your order?",
                    prompt=PROMPT_DRIVER_FOUND,
                    order_id=pending.order_id,
                )
            elif result.outcome is AssignmentOutcome.NO_DRIVERS:
                await self._notifications.warning("No drivers available in the new location yet")
            elif result.outcome is AssignmentOutcome.INVALID_ORDER:
                self.pending = None
                await self._fail(result.message)
            else:
                await self._notifications.error("Failed to update location")
            return result

    # ------------------------------------------------------------------ driver-found prompt

    async def proceed_after_driver_found(self) -> CheckoutState:
        if self._busy or self.state is not CheckoutState.DRIVER_FOUND or not self.driver_found_order_id:
            return self.state

        order_id = self.driver_found_order_id
        self.pending = None
        self.driver_found_order_id = None
        return await self._run_exclusive(self._settle(order_id), "Failed to process order")

    async def cancel_after_driver_found(self) -> CheckoutState:
        if self.state is not CheckoutState.DRIVER_FOUND:
            return self.state
        self.orphaned_order_id = self.driver_found_order_id
        if self.orphaned_order_id:
            self._assignment.forget(self.orphaned_order_id)
        self.pending = None
        self.driver_found_order_id = None
        self.machine.reset()
        await self._notifications.info("Order placement cancelled")
        return self.state

    def abandon(self) -> CheckoutState:
        """Close checkout without choosing; a created order is left as-is server-side.

        While a step is in flight the run stops at its next step boundary,
        before the order is confirmed or the cart is touched.
        """
        if self._busy:
            self._abandoned = True
            logger.info(f"Checkout abandoned during {self.state.value}")
            return self.state

        order_id = self.pending.order_id if self.pending is not None else self.driver_found_order_id
        if order_id:
            self.orphaned_order_id = order_id
            self._assignment.forget(order_id)
            logger.info(f"Checkout abandoned, order {order_id} left without driver")
        self.pending = None
        self.driver_found_order_id = None
        self.machine.reset()
        return self.state
