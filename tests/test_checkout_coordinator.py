"""Order submission end to end against the fake backend."""
from __future__ import annotations

import asyncio

import pytest

from foodyx.core.config import CheckoutConfig
from foodyx.core.notifications import NotificationType
from foodyx.domain.checkout_fsm import CheckoutState
from foodyx.domain.order import DeliveryAddress, PaymentMethod
from foodyx.domain.value_objects import GeoPoint
from foodyx.integrations.map_surface import InMemoryMapSurface, MarkerKind
from foodyx.integrations.payment_service import PaymentService
from foodyx.services.cart_store import CartStore
from foodyx.services.checkout_coordinator import CheckoutForm, OrderSubmissionCoordinator
from tests.fake_backend import RESTAURANT_ID, USER_ID

COLOMBO = GeoPoint(79.8612, 6.9271)
KANDY = GeoPoint(80.6337, 7.2906)

VALID_CARD = {
    "cardNumber": "1234 5678 1234 5678",
    "cardHolderName": "Nimal Perera",
    "expiryDate": "12/27",
    "cvv": "123",
}


class RecordingRedirector:
    def __init__(self) -> None:
        self.forms: list[str] = []

    async def submit_form(self, form_html: str) -> None:
        self.forms.append(form_html)


class FixedGeolocator:
    def __init__(self, point: GeoPoint, delay: float = 0.0) -> None:
        self.point = point
        self.delay = delay
        self.calls: list[dict] = []

    async def current_position(self, *, enable_high_accuracy: bool, timeout: float) -> GeoPoint:
        self.calls.append({"enable_high_accuracy": enable_high_accuracy, "timeout": timeout})
        await asyncio.sleep(self.delay)
        return self.point


def _address() -> DeliveryAddress:
    return DeliveryAddress(street="12 Galle Road", city="Colombo", state="Western", zip_code="00300", country="Sri Lanka")


def _seed_cart(fake_backend) -> None:
    fake_backend.carts[USER_ID] = {
        "_id": "cart-1",
        "userId": USER_ID,
        "items": [
            {"menuItemId": "item-kottu", "restaurantId": RESTAURANT_ID, "name": "Chicken Kottu", "price": 500, "quantity": 2},
            {"menuItemId": "item-hopper", "restaurantId": RESTAURANT_ID, "name": "Egg Hopper", "price": 250, "quantity": 1},
        ],
    }


@pytest.fixture()
def redirector() -> RecordingRedirector:
    return RecordingRedirector()


@pytest.fixture()
def map_surface() -> InMemoryMapSurface:
    return InMemoryMapSurface()


@pytest.fixture()
async def cart(api, fake_backend, notifications) -> CartStore:
    _seed_cart(fake_backend)
    store = CartStore(api, notifications)
    await store.refresh()
    return store


@pytest.fixture()
def confirmed() -> list[str]:
    return []


@pytest.fixture()
def coordinator(api, cart, notifications, redirector, map_surface, confirmed) -> OrderSubmissionCoordinator:
    async def on_confirmed(order_id: str) -> None:
        confirmed.append(order_id)

    coordinator = OrderSubmissionCoordinator(
        api,
        cart,
        payments=PaymentService(api, redirector),
        notifications=notifications,
        map_surface=map_surface,
        geolocator=FixedGeolocator(COLOMBO),
        config=CheckoutConfig(order_verify_delay=0.0, geolocation_timeout=0.2),
        on_confirmed=on_confirmed,
    )
    coordinator.form = CheckoutForm(payment_method=PaymentMethod.CASH, delivery_address=_address())
    return coordinator


def _order_posts(fake_backend) -> int:
    return sum(1 for m, p in fake_backend.calls if m == "POST" and p == "/api/orders")


# ---------------------------------------------------------------------- happy paths


@pytest.mark.asyncio
async def test_cash_order_reaches_done(coordinator, cart, fake_backend, notifications, confirmed):
    await coordinator.handle_location_update(COLOMBO)

    state = await coordinator.submit()

    assert state is CheckoutState.DONE
    order = fake_backend.orders[coordinator.order_id]
    assert order["status"] == "CONFIRMED"
    assert order["paymentMethod"] == "CASH"
    assert order["deliveryAddress"]["zipCode"] == "00300"
    assert cart.is_empty
    assert fake_backend.carts[USER_ID]["items"] == []
    assert "Order placed successfully!" in notifications.messages(NotificationType.SUCCESS)
    assert confirmed == [coordinator.order_id]
    assert coordinator.machine.history == [
        CheckoutState.IDLE,
        CheckoutState.CREATING,
        CheckoutState.VERIFYING,
        CheckoutState.ASSIGNING_DRIVER,
        CheckoutState.CONFIRMING,
        CheckoutState.DONE,
    ]


@pytest.mark.asyncio
async def test_debit_card_is_sent_as_credit_card(coordinator, fake_backend, redirector):
    coordinator.delivery_location = COLOMBO
    coordinator.form.select_payment_method(PaymentMethod.DEBIT_CARD)
    coordinator.form.show_card_details = True
    coordinator.form.card_details = dict(VALID_CARD)

    state = await coordinator.submit()

    assert state is CheckoutState.DONE
    order = fake_backend.orders[coordinator.order_id]
    assert order["paymentMethod"] == "CREDIT_CARD"
    assert fake_backend.last_payment_request["paymentMethod"] == "DEBIT_CARD"


@pytest.mark.asyncio
async def test_card_flow_reveals_then_validates_then_pays(coordinator, cart, fake_backend, notifications, redirector):
    coordinator.delivery_location = COLOMBO
    coordinator.form.select_payment_method(PaymentMethod.CREDIT_CARD)
    calls_before = len(fake_backend.calls)

    # First submit only reveals the card form
    assert await coordinator.submit() is CheckoutState.IDLE
    assert coordinator.form.show_card_details
    assert len(fake_backend.calls) == calls_before

    # Invalid card never reaches the network
    coordinator.form.card_details = {**VALID_CARD, "cardNumber": "123456781234567"}
    assert await coordinator.submit() is CheckoutState.IDLE
    assert notifications.messages(NotificationType.ERROR)[-1] == "Invalid card number"
    assert len(fake_backend.calls) == calls_before

    coordinator.form.card_details = dict(VALID_CARD)
    assert await coordinator.submit() is CheckoutState.DONE

    assert CheckoutState.PAYING in coordinator.machine.history
    assert len(redirector.forms) == 1
    assert fake_backend.last_payment_request["cardDetails"]["cardNumber"] == "1234 5678 1234 5678"
    # Gateway reports back later; the cart stays until then
    assert not cart.is_empty
    assert fake_backend.orders[coordinator.order_id]["status"] == "PENDING"


def test_choosing_cash_hides_card_form() -> None:
    form = CheckoutForm(payment_method=PaymentMethod.CREDIT_CARD, card_details=dict(VALID_CARD), show_card_details=True)
    form.select_payment_method("cash")
    assert form.payment_method == PaymentMethod.CASH
    assert not form.show_card_details
    assert form.card_details == {}


# ---------------------------------------------------------------------- preconditions


@pytest.mark.asyncio
async def test_missing_location_fails_without_network(coordinator, fake_backend, notifications):
    calls_before = len(fake_backend.calls)

    state = await coordinator.submit()

    assert state is CheckoutState.IDLE
    assert len(fake_backend.calls) == calls_before
    assert notifications.messages(NotificationType.ERROR) == ["Please select a delivery location on the map"]


@pytest.mark.asyncio
async def test_incomplete_address_fails_without_network(coordinator, fake_backend, notifications):
    coordinator.delivery_location = COLOMBO
    coordinator.form.delivery_address.city = ""
    calls_before = len(fake_backend.calls)

    await coordinator.submit()

    assert len(fake_backend.calls) == calls_before
    assert notifications.messages(NotificationType.ERROR) == ["Please fill in all address fields"]


@pytest.mark.asyncio
async def test_unsupported_payment_method_rejected(coordinator, fake_backend, notifications, mocker):
    coordinator.delivery_location = COLOMBO
    coordinator.form.payment_method = "BITCOIN"
    capture = mocker.patch("foodyx.services.checkout_coordinator.capture_exception")
    calls_before = len(fake_backend.calls)

    assert await coordinator.submit() is CheckoutState.IDLE

    assert len(fake_backend.calls) == calls_before
    assert notifications.messages(NotificationType.ERROR) == ["Please select a valid payment method"]
    capture.assert_not_called()

    coordinator.form.payment_method = " cash "
    assert await coordinator.submit() is CheckoutState.DONE
    assert fake_backend.orders[coordinator.order_id]["paymentMethod"] == "CASH"


@pytest.mark.asyncio
async def test_empty_cart_rejected(coordinator, cart, fake_backend, notifications):
    await cart.clear()
    coordinator.delivery_location = COLOMBO
    calls_before = len(fake_backend.calls)

    await coordinator.submit()

    assert len(fake_backend.calls) == calls_before
    assert notifications.messages(NotificationType.ERROR)[-1] == "Your cart is empty"


@pytest.mark.asyncio
async def test_signed_out_user_rejected(coordinator, api, fake_backend, notifications):
    coordinator.delivery_location = COLOMBO
    api.clear_auth()
    calls_before = len(fake_backend.calls)

    await coordinator.submit()

    assert len(fake_backend.calls) == calls_before
    assert notifications.messages(NotificationType.ERROR) == ["Please login to place an order"]


@pytest.mark.asyncio
async def test_concurrent_submit_is_ignored(coordinator, fake_backend):
    coordinator.delivery_location = COLOMBO

    first, second = await asyncio.gather(coordinator.submit(), coordinator.submit())

    assert first is CheckoutState.DONE
    assert _order_posts(fake_backend) == 1


# ---------------------------------------------------------------------- no driver


@pytest.mark.asyncio
async def test_no_driver_then_new_location_reaches_done(coordinator, fake_backend, notifications, map_surface):
    fake_backend.no_driver_locations.add((COLOMBO.longitude, COLOMBO.latitude))
    await coordinator.handle_location_update(COLOMBO)

    assert await coordinator.submit() is CheckoutState.NO_DRIVER_FOUND
    order_id = coordinator.pending.order_id
    prompts = [n for n in notifications.history if n.type is NotificationType.PROMPT]
    assert prompts[-1].data["prompt"] == "no_drivers"

    coordinator.dismiss_no_driver_prompt()
    assert coordinator.pending is not None

    result = await coordinator.handle_location_update(KANDY)
    assert result.ok
    assert coordinator.state is CheckoutState.DRIVER_FOUND
    assert "Driver found in the new location!" in notifications.messages(NotificationType.SUCCESS)
    assert map_surface.last_frame.center == KANDY

    assert await coordinator.proceed_after_driver_found() is CheckoutState.DONE
    assert _order_posts(fake_backend) == 1
    assert fake_backend.orders[order_id]["status"] == "CONFIRMED"
    assert coordinator.pending is None


@pytest.mark.asyncio
async def test_still_no_driver_warns_and_stays_parked(coordinator, fake_backend, notifications):
    fake_backend.no_driver_locations.update({(COLOMBO.longitude, COLOMBO.latitude), (KANDY.longitude, KANDY.latitude)})
    coordinator.delivery_location = COLOMBO
    await coordinator.submit()

    await coordinator.handle_location_update(KANDY)

    assert coordinator.state is CheckoutState.NO_DRIVER_FOUND
    assert coordinator.pending.last_attempted_location == KANDY
    assert coordinator.pending.attempts == 2
    assert notifications.messages(NotificationType.WARNING)[-1] == "No drivers available in the new location yet"


@pytest.mark.asyncio
async def test_continue_without_driver_confirms(coordinator, cart, fake_backend):
    fake_backend.no_driver_locations.add((COLOMBO.longitude, COLOMBO.latitude))
    coordinator.delivery_location = COLOMBO
    await coordinator.submit()
    order_id = coordinator.pending.order_id

    assert await coordinator.continue_without_driver() is CheckoutState.DONE
    assert fake_backend.orders[order_id]["status"] == "CONFIRMED"
    assert cart.is_empty


@pytest.mark.asyncio
async def test_cancel_after_driver_found(coordinator, fake_backend, notifications):
    fake_backend.no_driver_locations.add((COLOMBO.longitude, COLOMBO.latitude))
    coordinator.delivery_location = COLOMBO
    await coordinator.submit()
    order_id = coordinator.pending.order_id
    await coordinator.handle_location_update(KANDY)

    assert await coordinator.cancel_after_driver_found() is CheckoutState.IDLE
    assert notifications.messages(NotificationType.INFO)[-1] == "Order placement cancelled"
    assert coordinator.orphaned_order_id == order_id
    assert fake_backend.orders[order_id]["status"] == "PENDING"


@pytest.mark.asyncio
async def test_abandon_leaves_order_orphaned(coordinator, fake_backend):
    fake_backend.no_driver_locations.add((COLOMBO.longitude, COLOMBO.latitude))
    coordinator.delivery_location = COLOMBO
    await coordinator.submit()
    order_id = coordinator.pending.order_id

    assert coordinator.abandon() is CheckoutState.IDLE
    assert coordinator.orphaned_order_id == order_id
    assert coordinator.pending is None
    assert fake_backend.count("POST", f"/api/orders/{order_id}/cancel") == 0
    assert fake_backend.count("DELETE", f"/api/orders/{order_id}") == 0

    # Later location changes no longer retry anything
    assigns = fake_backend.count("POST", "/api/delivery/assign")
    assert await coordinator.handle_location_update(KANDY) is None
    assert fake_backend.count("POST", "/api/delivery/assign") == assigns


async def _wait_for_state(coordinator, state: CheckoutState, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while coordinator.state is not state:
        if loop.time() > deadline:
            raise AssertionError(f"checkout never reached {state.value}")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_abandon_while_verifying_stops_before_confirm(coordinator, cart, fake_backend, notifications, confirmed):
    coordinator.config.order_verify_delay = 0.2
    coordinator.delivery_location = COLOMBO
    task = asyncio.create_task(coordinator.submit())

    await _wait_for_state(coordinator, CheckoutState.VERIFYING)
    assert coordinator.abandon() is CheckoutState.VERIFYING
    state = await task

    assert state is CheckoutState.IDLE
    order_id = coordinator.order_id
    assert coordinator.orphaned_order_id == order_id
    assert fake_backend.orders[order_id]["status"] == "PENDING"
    assert fake_backend.count("POST", "/api/delivery/assign") == 0
    assert not cart.is_empty
    assert fake_backend.carts[USER_ID]["items"]
    assert notifications.messages(NotificationType.SUCCESS) == []
    assert confirmed == []
    assert not coordinator.is_busy


@pytest.mark.asyncio
async def test_abandon_while_assigning_does_not_park(coordinator, fake_backend, notifications, mocker):
    fake_backend.no_driver_locations.add((COLOMBO.longitude, COLOMBO.latitude))
    coordinator.delivery_location = COLOMBO
    assign = coordinator._assignment.assign

    async def slow_assign(order_id, location):
        await asyncio.sleep(0.1)
        return await assign(order_id, location)

    mocker.patch.object(coordinator._assignment, "assign", side_effect=slow_assign)
    task = asyncio.create_task(coordinator.submit())

    await _wait_for_state(coordinator, CheckoutState.ASSIGNING_DRIVER)
    coordinator.abandon()

    assert await task is CheckoutState.IDLE
    assert coordinator.pending is None
    assert coordinator.orphaned_order_id == coordinator.order_id
    prompts = [n for n in notifications.history if n.type is NotificationType.PROMPT]
    assert prompts == []

    # A later submit starts a fresh checkout
    fake_backend.no_driver_locations.clear()
    assert await coordinator.submit() is CheckoutState.DONE
    assert _order_posts(fake_backend) == 2


@pytest.mark.asyncio
async def test_finished_checkouts_release_assignment_state(coordinator, fake_backend):
    coordinator.delivery_location = COLOMBO
    assert await coordinator.submit() is CheckoutState.DONE
    assert not coordinator._assignment.is_bound(coordinator.order_id)

    fake_backend.no_driver_locations.add((COLOMBO.longitude, COLOMBO.latitude))
    assert await coordinator.submit() is CheckoutState.NO_DRIVER_FOUND
    parked = coordinator.pending.order_id
    await coordinator.handle_location_update(KANDY)
    assert coordinator._assignment.is_bound(parked)

    assert await coordinator.proceed_after_driver_found() is CheckoutState.DONE
    assert not coordinator._assignment.is_bound(parked)
    assert coordinator._assignment._locks == {}


@pytest.mark.asyncio
async def test_failed_and_abandoned_checkouts_release_assignment_state(coordinator, fake_backend):
    fake_backend.no_driver_locations.add((COLOMBO.longitude, COLOMBO.latitude))
    coordinator.delivery_location = COLOMBO
    await coordinator.submit()
    coordinator.abandon()
    assert coordinator._assignment._locks == {}

    fake_backend.assign_script.append((400, {"message": "Order is not pending"}))
    assert await coordinator.submit() is CheckoutState.FAILED
    assert not coordinator._assignment.is_bound(coordinator.order_id)
    assert coordinator._assignment._locks == {}


@pytest.mark.asyncio
async def test_assignment_server_error_parks_order(coordinator, fake_backend, notifications):
    fake_backend.assign_script.append((503, {"message": "Delivery service unavailable"}))
    coordinator.delivery_location = COLOMBO

    assert await coordinator.submit() is CheckoutState.NO_DRIVER_FOUND
    assert "Delivery service unavailable" in notifications.messages(NotificationType.ERROR)

    # Only the user's next location change retries
    assert fake_backend.count("POST", "/api/delivery/assign") == 1
    result = await coordinator.handle_location_update(COLOMBO)
    assert result.ok
    assert coordinator.state is CheckoutState.DRIVER_FOUND


@pytest.mark.asyncio
async def test_location_update_without_pending_does_not_assign(coordinator, fake_backend, map_surface):
    assert await coordinator.handle_location_update(KANDY) is None

    assert coordinator.delivery_location == KANDY
    assert fake_backend.count("POST", "/api/delivery/assign") == 0
    frame = map_surface.last_frame
    assert frame.center == KANDY
    assert frame.markers[0].kind == MarkerKind.CUSTOMER


@pytest.mark.asyncio
async def test_map_click_feeds_location(coordinator, map_surface):
    await map_surface.click(KANDY)
    assert coordinator.delivery_location == KANDY


# ---------------------------------------------------------------------- failures


@pytest.mark.asyncio
async def test_invalid_order_on_assign_fails(coordinator, fake_backend, notifications):
    fake_backend.assign_script.append((400, {"message": "Order is not pending"}))
    coordinator.delivery_location = COLOMBO

    assert await coordinator.submit() is CheckoutState.FAILED
    assert coordinator.pending is None
    assert notifications.messages(NotificationType.ERROR)[-1] == "Order is not pending"


@pytest.mark.asyncio
async def test_missing_order_id_fails_and_next_submit_restarts(coordinator, fake_backend, notifications):
    fake_backend.omit_order_id = True
    coordinator.delivery_location = COLOMBO

    assert await coordinator.submit() is CheckoutState.FAILED
    assert notifications.messages(NotificationType.ERROR)[-1] == "Order creation failed - no order ID received"

    fake_backend.omit_order_id = False
    assert await coordinator.submit() is CheckoutState.DONE
    assert coordinator.machine.history.count(CheckoutState.IDLE) == 2


@pytest.mark.asyncio
async def test_unexpected_error_returns_to_idle(coordinator, api, notifications, mocker):
    coordinator.delivery_location = COLOMBO
    mocker.patch.object(api, "create_order", side_effect=RuntimeError("boom"))
    capture = mocker.patch("foodyx.services.checkout_coordinator.capture_exception")

    assert await coordinator.submit() is CheckoutState.IDLE
    assert notifications.messages(NotificationType.ERROR)[-1] == "Failed to place order"
    capture.assert_called_once()
    assert not coordinator.is_busy


@pytest.mark.asyncio
async def test_verification_miss_fails(coordinator, api, notifications, mocker):
    coordinator.delivery_location = COLOMBO
    mocker.patch.object(api, "get_order", return_value=None)

    assert await coordinator.submit() is CheckoutState.FAILED
    assert notifications.messages(NotificationType.ERROR)[-1] == "Order not found in database"


# ---------------------------------------------------------------------- form helpers


@pytest.mark.asyncio
async def test_load_default_address_from_profile(coordinator):
    coordinator.form.delivery_address = DeliveryAddress()

    address = await coordinator.load_default_address()

    assert address.street == "12 Galle Road"
    assert address.zip_code == "00300"
    assert address.country == "Sri Lanka"


@pytest.mark.asyncio
async def test_locate_device_uses_high_accuracy(coordinator):
    point = await coordinator.locate_device()

    assert point == COLOMBO
    assert coordinator.delivery_location == COLOMBO
    assert coordinator._geolocator.calls == [{"enable_high_accuracy": True, "timeout": 0.2}]


@pytest.mark.asyncio
async def test_locate_device_timeout(coordinator, notifications):
    coordinator._geolocator = FixedGeolocator(COLOMBO, delay=1.0)

    assert await coordinator.locate_device() is None
    assert notifications.messages(NotificationType.ERROR)[-1] == "Failed to get location"
    assert coordinator.delivery_location is None


@pytest.mark.asyncio
async def test_locate_device_without_provider(coordinator, notifications):
    coordinator._geolocator = None

    assert await coordinator.locate_device() is None
    assert notifications.messages(NotificationType.ERROR)[-1] == "Geolocation is not supported"
