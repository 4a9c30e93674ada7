"""
Core HTTP plumbing shared by every resource mixin: session handling,
authentication header, response decoding and error mapping.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import aiohttp

from foodyx.core.config import DEFAULT_API_URL, Settings
from foodyx.core.exceptions import BackendException, NotAuthenticatedException
from foodyx.logging_config import mask_token

logger = logging.getLogger(__name__)

_ENVELOPE_KEYS = frozenset({"status", "data", "message", "success"})


def unwrap(payload: Any) -> Any:
    """Strip ``{status, data}`` / ``{data}`` envelopes; bare objects pass through."""
    if isinstance(payload, dict) and "data" in payload and set(payload) <= _ENVELOPE_KEYS:
        return payload["data"]
    return payload


def _decode_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return {"message": text}


def _error_message(payload: Any, default: str) -> str:
    if isinstance(payload, dict):
        for key in ("message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return default


class ApiClientCore:
    """Owns the aiohttp session and the bearer token of the signed-in user."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        token: str | None = None,
        *,
        user_id: str | None = None,
        timeout: float = 10.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._user_id = user_id
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any):
        return cls(
            settings.api.base_url,
            settings.api.token,
            user_id=settings.user_id,
            timeout=settings.api.request_timeout,
            **kwargs,
        )

    # ------------------------------------------------------------------ session

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token and self._user_id)

    def set_auth(self, token: str, user_id: str) -> None:
        self._token = token
        self._user_id = user_id
        logger.info(f"Session set for user {user_id} (token {mask_token(token)})")

    def clear_auth(self) -> None:
        self._token = None
        self._user_id = None

    def require_user_id(self) -> str:
        if not self.is_authenticated:
            raise NotAuthenticatedException()
        return self._user_id  # type: ignore[return-value]

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------ requests

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any | None = None,
        params: dict[str, Any] | None = None,
        auth: bool = True,
        error_message: str = "Request failed",
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            NotAuthenticatedException: no token for an authenticated call, or 401
            BackendException: any other 4xx/5xx, or a transport failure
                (``status`` is None then)
        """
        headers = {"Content-Type": "application/json"}
        if auth:
            if not self._token:
                raise NotAuthenticatedException("No authentication token found")
            headers["Authorization"] = f"Bearer {self._token}"

        url = f"{self.base_url}/{path.lstrip('/')}"
        session = await self._get_session()
        try:
            async with session.request(
                method,
                url,
                json=json_body,
                params=params,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                payload = _decode_body(await resp.text())
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"{method} {path} failed: {e!r}")
            raise BackendException(f"{error_message}: network error", status=None) from e

        if status == 401:
            raise NotAuthenticatedException(_error_message(payload, "Session expired, please login again"))
        if status >= 400:
            message = _error_message(payload, error_message)
            logger.warning(f"{method} {path} -> {status}: {message}")
            raise BackendException(message, status=status, payload=payload)

        logger.debug(f"{method} {path} -> {status}")
        return payload
