"""
Payment service calls.
"""
from __future__ import annotations

import logging
from typing import Any

from foodyx.api_client.core import unwrap

logger = logging.getLogger(__name__)

PAYMENT_FILTERS = ("status", "restaurantId", "startDate", "endDate", "page", "limit")


class PaymentMixin:
    """Mixin for payment-related calls."""

    async def process_payment(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Open a gateway session.

        Returns:
            The response envelope as sent; the ``data`` member carries
            ``payherePayload`` and ``hash``.
        """
        logger.info(f"Processing payment for order {payload.get('orderId')}")
        data = await self.request(
            "POST",
            "/payments/process",
            json_body=payload,
            error_message="Failed to process payment",
        )
        return data if isinstance(data, dict) else {}

    async def get_payments(self, **filters: Any) -> dict[str, Any]:
        params = {key: str(value) for key, value in filters.items() if key in PAYMENT_FILTERS and value is not None}
        data = await self.request("GET", "/payments/all", params=params, error_message="Failed to fetch payments")
        if isinstance(data, dict):
            # List responses carry pagination next to the envelope
            payments = data.get("data", data.get("payments"))
            return {
                "payments": payments if isinstance(payments, list) else [],
                "pagination": data.get("pagination") or {},
            }
        return {"payments": data if isinstance(data, list) else [], "pagination": {}}

    async def refund_payment(self, payment_id: str, reason: str | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {"paymentId": payment_id}
        if reason:
            body["reason"] = reason
        data = unwrap(
            await self.request("POST", "/payments/refund", json_body=body, error_message="Failed to process refund")
        )
        return data if isinstance(data, dict) else {}
