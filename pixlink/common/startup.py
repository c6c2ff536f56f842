"""Startup-time helpers for safe config logging."""

import os

from pixlink.common.config import CommonSettings
from pixlink.common.logging import logger


def _safe_env(name: str) -> str:
    """Return env value with simple redaction for secret-like variable names."""

    value = os.getenv(name)
    if value is None:
        return "<unset>"
    if any(secret in name for secret in ["KEY", "SECRET", "PASSWORD", "TOKEN", "DSN"]):
        return "<redacted>"
    return value


def log_startup_config(service_name: str, keys: list[str]) -> None:
    """Log selected startup config keys for quick troubleshooting."""

    config = {"service": service_name}
    for key in keys:
        config[key] = _safe_env(key)
    logger.info("startup_config=%s", config)


def warn_missing_platform_credentials(config: CommonSettings) -> None:
    """Flag an incomplete platform key pair at boot instead of on the first payer."""

    if not config.gateway_public_key or not config.gateway_secret_key:
        logger.warning(
            "platform gateway credentials incomplete public_key_set=%s secret_key_set=%s",
            bool(config.gateway_public_key),
            bool(config.gateway_secret_key),
        )
