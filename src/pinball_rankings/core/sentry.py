from __future__ import annotations

"""
Sentry initialization helpers for batch ranking jobs.

Environment variables (all optional; safe to omit):
- SENTRY_DSN / PINBALL_RANKINGS_SENTRY_DSN: DSN URL used to enable Sentry.
- SENTRY_ENV / ENV: Environment name (e.g., production, staging). Defaults to development.
- SENTRY_TRACES_SAMPLE_RATE: Float in [0,1] for performance tracing sample rate.
- SENTRY_DEBUG: If set to a truthy value (1/true/yes/on), enables SDK debug output.

Usage:
    from pinball_rankings.core.sentry import init_sentry
    init_sentry(context="rankings_recompute")
"""

import logging
import os
from typing import Iterable, Optional
from urllib.parse import urlparse

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

_LOG = logging.getLogger("pinball_rankings.core.sentry")

DEFAULT_DSN_ENVS = ("SENTRY_DSN", "PINBALL_RANKINGS_SENTRY_DSN")


def _parse_float_env(name: str, default: float) -> float:
    """Parse a float environment variable with a default and clamping.

    Returns `default` if unset or invalid. Values below 0 or above 1 are
    clamped into [0.0, 1.0].
    """
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        val = float(raw)
    except ValueError:
        _LOG.debug(
            "Invalid float for %s: %r; using default=%s", name, raw, default
        )
        return default
    return min(max(val, 0.0), 1.0)


def _truthy_env(name: str) -> bool:
    return os.getenv(name, "").lower() in {"1", "true", "yes", "on"}


def _first_env(names: Iterable[str]) -> Optional[str]:
    for n in names:
        v = os.getenv(n)
        if v:
            return v
    return None


def _is_valid_dsn(dsn: str) -> bool:
    """Accept http(s) DSNs with a host component."""
    parsed = urlparse(dsn)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def init_sentry(
    *,
    context: str,
    release: Optional[str] = None,
    dsn_envs: Optional[Iterable[str]] = None,
) -> bool:
    """Initialize Sentry if a DSN is configured and return whether it did.

    - Reads the DSN from the first non-empty env in `dsn_envs`.
    - Reads environment from SENTRY_ENV or ENV (default: development).
    - Enables LoggingIntegration so ERROR-level logs are captured as events.
    """
    dsn_envs = list(dsn_envs) if dsn_envs is not None else list(DEFAULT_DSN_ENVS)
    dsn = _first_env(dsn_envs)
    if not dsn:
        _LOG.info("Sentry disabled: no DSN configured (checked envs=%s)", dsn_envs)
        return False
    dsn = dsn.strip().strip("\"").strip("'")
    if not _is_valid_dsn(dsn):
        _LOG.info("Sentry disabled: DSN appears invalid; check secrets/env")
        return False

    env = os.getenv("SENTRY_ENV") or os.getenv("ENV") or "development"
    traces = _parse_float_env("SENTRY_TRACES_SAMPLE_RATE", 0.0)

    logging_integration = LoggingIntegration(
        level=logging.INFO,  # breadcrumb level
        event_level=logging.ERROR,  # event threshold
    )
    sentry_sdk.init(
        dsn=dsn,
        environment=env,
        release=release,
        integrations=[logging_integration],
        traces_sample_rate=traces,
        debug=_truthy_env("SENTRY_DEBUG"),
    )
    sentry_sdk.set_tag("service", context)
    _LOG.info(
        "Sentry initialized: context=%s env=%s traces=%s", context, env, traces
    )
    return True


__all__ = [
    "init_sentry",
    "_parse_float_env",
]
