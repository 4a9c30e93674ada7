"""Sentry error tracking for the storefront client.

Everything here is a no-op until ``init_sentry`` succeeds, so services can
report unconditionally.
"""
from __future__ import annotations

import logging
import os
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)

_initialized = False


def init_sentry(
    dsn: str | None = None,
    environment: str = "production",
    *,
    release: str | None = None,
    enable_logging: bool = True,
    sample_rate: float = 1.0,
    traces_sample_rate: float = 0.0,
) -> bool:
    """Initialize Sentry error tracking.

    Args:
        dsn: Sentry DSN; falls back to the SENTRY_DSN env var
        environment: Environment name (production, staging, development)
        release: Release tag shown on events
        enable_logging: Turn ERROR log records into Sentry events
        sample_rate: Error sampling rate (1.0 = 100%)
        traces_sample_rate: Performance tracing rate

    Returns:
        True if Sentry was initialized successfully
    """
    global _initialized

    sentry_dsn = dsn or os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        logger.info("No Sentry DSN configured, storefront error tracking is off")
        return False

    integrations = []
    if enable_logging:
        # INFO records become breadcrumbs, ERROR records become events
        integrations.append(LoggingIntegration(level=logging.INFO, event_level=logging.ERROR))

    try:
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=environment,
            release=release,
            integrations=integrations,
            sample_rate=sample_rate,
            traces_sample_rate=traces_sample_rate,
            send_default_pii=False,
        )
        sentry_sdk.set_tag("component", "storefront")
    except Exception as e:
        logger.error(f"Sentry init failed for {environment}: {e}")
        return False

    _initialized = True
    logger.info(f"Sentry reporting enabled ({environment})")
    return True


def sentry_enabled() -> bool:
    return _initialized


def capture_exception(error: BaseException, **extra: Any) -> None:
    """Report an unexpected error; ``extra`` values become event contexts."""
    if not _initialized:
        return

    try:
        with sentry_sdk.new_scope() as scope:
            for key, value in extra.items():
                scope.set_context(key, value if isinstance(value, dict) else {"value": value})
            sentry_sdk.capture_exception(error)
    except Exception as e:
        logger.error(f"Could not report {type(error).__name__} to Sentry: {e}")


def add_breadcrumb(message: str, category: str = "checkout", level: str = "info", **data: Any) -> None:
    if not _initialized:
        return

    try:
        sentry_sdk.add_breadcrumb(message=message, category=category, level=level, data=data)
    except Exception as e:
        logger.error(f"Could not record Sentry breadcrumb: {e}")
