"""
User profile calls.
"""
from __future__ import annotations

from typing import Any

from foodyx.api_client.core import unwrap


class UserMixin:
    async def get_profile(self) -> dict[str, Any] | None:
        """Signed-in user's profile; ``address`` is used to prefill checkout."""
        data = unwrap(await self.request("GET", "/auth/profile", error_message="Failed to fetch profile"))
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            return data["user"]
        return data if isinstance(data, dict) else None
