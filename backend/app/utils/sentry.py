import logging
import os
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

logger = logging.getLogger(__name__)


def sample_rate_from_env(env_var: str, default: float = 0.0) -> float:
    """Read a Sentry sample rate, falling back to ``default`` outside [0, 1]."""

    raw_value = os.getenv(env_var)
    if raw_value is None or not raw_value.strip():
        return default

    try:
        value = float(raw_value)
    except ValueError:
        logger.warning(
            "%s is not a valid float (got %r); defaulting to %.2f",
            env_var,
            raw_value,
            default,
        )
        return default

    if not 0.0 <= value <= 1.0:
        logger.warning("%s must be within [0, 1]; defaulting to %.2f", env_var, default)
        return default

    return value


def init_sentry(ranking_policy: Optional[str] = None) -> bool:
    """Initialise Sentry when ``SENTRY_DSN`` is set; return whether it was."""

    dsn = (os.getenv("SENTRY_DSN") or "").strip()
    if not dsn:
        logger.info("SENTRY_DSN not provided; skipping Sentry initialization.")
        return False

    environment = (os.getenv("SENTRY_ENVIRONMENT") or "").strip() or None
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FastApiIntegration()],
        environment=environment,
        traces_sample_rate=sample_rate_from_env("SENTRY_TRACES_SAMPLE_RATE"),
        profiles_sample_rate=sample_rate_from_env("SENTRY_PROFILES_SAMPLE_RATE"),
    )
    if ranking_policy:
        sentry_sdk.set_tag("ranking_policy", ranking_policy)
    logger.info(
        "Initialized Sentry%s",
        f" (environment={environment})" if environment else "",
    )
    return True
