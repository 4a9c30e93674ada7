"""
Card payment handoff to the PayHere gateway.

Flow:
1. Card form is validated locally (nothing leaves the client on failure)
2. ``POST /payments/process`` opens a gateway session for the order
3. The returned ``payherePayload`` + ``hash`` are checked for completeness
4. A one-time auto-submitting HTML form is handed to the redirector

The gateway result arrives later through the backend; it is not awaited here.
"""
from __future__ import annotations

import html
import logging
import re
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from foodyx.api_client.core import unwrap
from foodyx.core.config import DEFAULT_PAYHERE_CHECKOUT_URL
from foodyx.core.exceptions import InvalidPaymentSessionException, ValidationException
from foodyx.domain.entities.cart import Cart
from foodyx.domain.order import PaymentMethod

logger = logging.getLogger(__name__)

_CARD_NUMBER_RE = re.compile(r"^\d{16}$")
_EXPIRY_RE = re.compile(r"^\d{2}/\d{2}$")
_CVV_RE = re.compile(r"^\d{3,4}$")

PAYHERE_REQUIRED_FIELDS = ("merchant_id", "order_id", "amount", "currency")


def _first_error(error: ValidationError) -> str:
    """Human message of the first pydantic error (our own ValueError text when present)."""
    details = error.errors()
    if not details:
        return str(error)
    first = details[0]
    ctx_error = (first.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    return first.get("msg", str(error))


class CardDetails(BaseModel):
    """Card form as typed by the customer."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=False)

    card_number: str = Field(alias="cardNumber")
    card_holder_name: str = Field(alias="cardHolderName")
    expiry_date: str = Field(alias="expiryDate")
    cvv: str

    @model_validator(mode="before")
    @classmethod
    def all_fields_present(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise ValueError("Please fill in all card details")
        for name, alias in (
            ("card_number", "cardNumber"),
            ("card_holder_name", "cardHolderName"),
            ("expiry_date", "expiryDate"),
            ("cvv", "cvv"),
        ):
            if not data.get(name) and not data.get(alias):
                raise ValueError("Please fill in all card details")
        return data

    @field_validator("card_number")
    @classmethod
    def sixteen_digits(cls, v: str) -> str:
        if not _CARD_NUMBER_RE.match(re.sub(r"\s", "", v)):
            raise ValueError("Invalid card number")
        return v

    @field_validator("expiry_date")
    @classmethod
    def month_slash_year(cls, v: str) -> str:
        if not _EXPIRY_RE.match(v):
            raise ValueError("Invalid expiry date (MM/YY)")
        return v

    @field_validator("cvv")
    @classmethod
    def three_or_four_digits(cls, v: str) -> str:
        if not _CVV_RE.match(v):
            raise ValueError("Invalid CVV")
        return v

    @classmethod
    def parse(cls, data: dict[str, Any] | CardDetails) -> CardDetails:
        """Validate a card form, raising ValidationException with the first problem."""
        if isinstance(data, CardDetails):
            return data
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ValidationException(_first_error(e), field="card_details") from e

    def to_payload(self) -> dict[str, str]:
        # Expiry and CVV never leave the client.
        return {"cardNumber": self.card_number, "cardHolderName": self.card_holder_name}


class PayHereSession(BaseModel):
    """Gateway handoff returned by the payment service."""

    payload: dict[str, Any]
    hash: str

    @field_validator("payload")
    @classmethod
    def required_fields(cls, v: dict[str, Any]) -> dict[str, Any]:
        if any(not v.get(name) for name in PAYHERE_REQUIRED_FIELDS):
            raise ValueError("Invalid PayHere payload: Missing required fields")
        return v

    @field_validator("hash")
    @classmethod
    def hash_present(cls, v: str) -> str:
        if not v:
            raise ValueError("Invalid PayHere hash: Hash is missing")
        return v

    @classmethod
    def from_response(cls, response: Any) -> PayHereSession:
        data = unwrap(response)
        if not isinstance(data, dict):
            data = {}
        payload = data.get("payherePayload")
        try:
            return cls(
                payload=payload if isinstance(payload, dict) else {},
                hash=str(data.get("hash") or ""),
            )
        except ValidationError as e:
            raise InvalidPaymentSessionException(_first_error(e)) from e

    def form_fields(self) -> list[tuple[str, str]]:
        fields = [(str(key), "" if value is None else str(value)) for key, value in self.payload.items()]
        fields.append(("hash", self.hash))
        return fields


def build_checkout_form(session: PayHereSession, action: str = DEFAULT_PAYHERE_CHECKOUT_URL) -> str:
    """Auto-submitting POST form carrying every payload field plus ``hash``."""
    inputs = "\n".join(
        f'  <input type="hidden" name="{html.escape(name, quote=True)}" value="{html.escape(value, quote=True)}">'
        for name, value in session.form_fields()
    )
    return (
        f'<form id="payhere-checkout" method="POST" action="{html.escape(action, quote=True)}">\n'
        f"{inputs}\n"
        "</form>\n"
        '<script>document.getElementById("payhere-checkout").submit();</script>'
    )


class PaymentRedirector(Protocol):
    """Browser surface that navigates away to the gateway page."""

    async def submit_form(self, form_html: str) -> None: ...


class PaymentService:
    """Builds the payment request and hands control to the gateway."""

    def __init__(
        self,
        client,
        redirector: PaymentRedirector,
        checkout_url: str = DEFAULT_PAYHERE_CHECKOUT_URL,
    ) -> None:
        self._client = client
        self._redirector = redirector
        self.checkout_url = checkout_url

    @staticmethod
    def build_payload(
        *,
        user_id: str,
        cart: Cart,
        order_id: str,
        payment_method: str,
        card: CardDetails,
    ) -> dict[str, Any]:
        items = []
        for line in cart.lines:
            line_total = line.line_total
            items.append(
                {
                    "menuItemId": line.menu_item_id,
                    "restaurantId": line.restaurant_id,
                    "name": line.name,
                    "price": line.unit_price,
                    "quantity": line.quantity,
                    "totalPrice": line_total if line_total is not None else 0,
                }
            )
        return {
            "userId": user_id,
            "cartId": cart.cart_id,
            "orderId": order_id,
            "restaurantId": cart.restaurant_id,
            "items": items,
            "totalAmount": cart.total,
            "paymentMethod": payment_method,
            "cardDetails": card.to_payload(),
        }

    async def initiate(
        self,
        *,
        order_id: str,
        cart: Cart,
        payment_method: str,
        card: CardDetails | dict[str, Any],
    ) -> PayHereSession:
        """Open a gateway session for a created order and redirect to it.

        Raises:
            ValidationException: bad card form, non-card method or no cart id
            BackendException: payment service call failed
            InvalidPaymentSessionException: incomplete gateway handoff
        """
        card = CardDetails.parse(card)
        method = PaymentMethod.normalize(payment_method)
        if not PaymentMethod.is_card(method):
            raise ValidationException(f"{method} is not a card payment method", field="payment_method")
        if not cart.cart_id:
            raise ValidationException("Cart not found. Please add items to cart.", field="cart_id")

        user_id = cart.user_id or self._client.require_user_id()
        payload = self.build_payload(
            user_id=user_id,
            cart=cart,
            order_id=order_id,
            payment_method=method,
            card=card,
        )
        response = await self._client.process_payment(payload)
        session = PayHereSession.from_response(response)

        logger.info(f"Redirecting order {order_id} to PayHere checkout")
        await self._redirector.submit_form(build_checkout_form(session, self.checkout_url))
        return session
