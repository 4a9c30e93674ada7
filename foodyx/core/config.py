"""Environment-driven configuration objects for the storefront client."""
from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from foodyx.core.exceptions import ConfigurationException

DEFAULT_API_URL = "http://localhost:3010/api"
DEFAULT_PAYHERE_CHECKOUT_URL = "https://sandbox.payhere.lk/pay/checkout"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationException(f"{name} must be a number, got {raw!r}") from e
    if value < 0:
        raise ConfigurationException(f"{name} must not be negative, got {raw!r}")
    return value


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationException(f"{name} must be an integer, got {raw!r}") from e


@dataclass(slots=True)
class ApiConfig:
    base_url: str = DEFAULT_API_URL
    token: str | None = None
    request_timeout: float = 10.0


@dataclass(slots=True)
class CheckoutConfig:
    order_verify_delay: float = 1.0
    geolocation_timeout: float = 5.0
    default_country: str = "Sri Lanka"
    payhere_checkout_url: str = DEFAULT_PAYHERE_CHECKOUT_URL


@dataclass(slots=True)
class TrackingConfig:
    poll_interval: float = 5.0
    map_zoom: int = 15


@dataclass(slots=True)
class Settings:
    api: ApiConfig = field(default_factory=ApiConfig)
    checkout: CheckoutConfig = field(default_factory=CheckoutConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    user_id: str | None = None
    environment: str = "development"
    sentry_dsn: str | None = None


def load_settings() -> Settings:
    """Load environment variables once and expose typed settings."""
    load_dotenv()

    base_url = os.getenv("FOODYX_API_URL", DEFAULT_API_URL).strip().rstrip("/")
    if not base_url.startswith(("http://", "https://")):
        raise ConfigurationException(f"FOODYX_API_URL must be an http(s) URL, got {base_url!r}")

    api = ApiConfig(
        base_url=base_url,
        token=os.getenv("FOODYX_API_TOKEN") or None,
        request_timeout=_float_env("FOODYX_REQUEST_TIMEOUT", 10.0),
    )
    checkout = CheckoutConfig(
        order_verify_delay=_float_env("FOODYX_ORDER_VERIFY_DELAY", 1.0),
        geolocation_timeout=_float_env("FOODYX_GEOLOCATION_TIMEOUT", 5.0),
        default_country=os.getenv("FOODYX_DEFAULT_COUNTRY", "Sri Lanka"),
        payhere_checkout_url=os.getenv(
            "FOODYX_PAYHERE_CHECKOUT_URL", DEFAULT_PAYHERE_CHECKOUT_URL
        ),
    )

    poll_interval = _float_env("FOODYX_TRACKING_POLL_INTERVAL", 5.0)
    if poll_interval == 0:
        raise ConfigurationException("FOODYX_TRACKING_POLL_INTERVAL must be positive")
    tracking = TrackingConfig(
        poll_interval=poll_interval,
        map_zoom=_int_env("FOODYX_MAP_ZOOM", 15),
    )

    return Settings(
        api=api,
        checkout=checkout,
        tracking=tracking,
        user_id=os.getenv("FOODYX_USER_ID") or None,
        environment=os.getenv("FOODYX_ENVIRONMENT", "development"),
        sentry_dsn=os.getenv("SENTRY_DSN") or None,
    )
