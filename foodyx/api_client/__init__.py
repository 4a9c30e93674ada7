"""
FoodyX backend API client.

Usage:
    from foodyx.api_client import FoodyXClient
    async with FoodyXClient.from_settings(load_settings()) as client:
        order = await client.get_order(order_id)

Responses may arrive bare or wrapped in ``{status, data}`` envelopes;
``unwrap`` strips the envelope.
"""
from __future__ import annotations

from .client import FoodyXClient
from .core import ApiClientCore, unwrap

__all__ = ["FoodyXClient", "ApiClientCore", "unwrap"]
