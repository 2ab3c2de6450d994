"""
Centralized configuration module for the repository layer.

This module provides the immutable RepositoryConfig consumed by the
repository factory, the canonical pagination default, and the application
timezone used for "today / this week / this month" boundaries.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

REPOSITORY_TYPES = ("api", "local", "hybrid")

_TRUTHY = ("true", "1", "yes")

# ===========================
# Timezone Configuration
# ===========================


def get_app_timezone() -> ZoneInfo:
    """
    Get the application timezone from environment variable.

    Returns:
        ZoneInfo: Application timezone (defaults to UTC if not configured)

    Environment Variables:
        TZ: Timezone identifier (e.g., 'America/Lima', 'UTC')
            Default: 'UTC'
    """
    tz_name = os.getenv("TZ", "UTC")

    try:
        return ZoneInfo(tz_name)
    except Exception as e:
        logger.warning(
            f"Invalid timezone '{tz_name}' specified in TZ environment variable. "
            f"Falling back to UTC. Error: {e}"
        )
        return ZoneInfo("UTC")


# Global timezone instance - initialized once at import time
APP_TZ = get_app_timezone()


# ===========================
# Pagination Configuration
# ===========================


def get_default_page_size() -> int:
    """
    Get the canonical page size used when a caller does not pass a limit.

    Environment Variables:
        PODOCARE_PAGE_SIZE: Positive integer
            Default: 15
    """
    raw = os.getenv("PODOCARE_PAGE_SIZE", "15")
    try:
        size = int(raw)
    except ValueError:
        logger.warning(f"Invalid PODOCARE_PAGE_SIZE '{raw}', using 15")
        return 15
    if size < 1:
        logger.warning(f"PODOCARE_PAGE_SIZE must be positive, got {size}; using 15")
        return 15
    return size


DEFAULT_PAGE_SIZE = get_default_page_size()


# ===========================
# Repository Configuration
# ===========================


@dataclass(frozen=True)
class RepositoryConfig:
    """Backend selection and connection settings for one repository aggregate.

    Instances are immutable: switching backend means building a new config
    (see ``with_type``) and a new repository aggregate from it.
    """

    type: str = "local"
    api_base_url: str = "/api"
    api_key: Optional[str] = None
    enable_local_fallback: bool = True
    local_storage_prefix: str = "podocare"
    request_timeout: float = 30.0
    simulate_latency: bool = True
    latency_range: Tuple[float, float] = (0.1, 0.3)
    page_size: int = field(default_factory=lambda: DEFAULT_PAGE_SIZE)

    def __post_init__(self):
        if self.type not in REPOSITORY_TYPES:
            raise ConfigurationError(
                f"Unknown repository type: {self.type!r} "
                f"(expected one of {', '.join(REPOSITORY_TYPES)})"
            )
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")
        if self.page_size < 1:
            raise ConfigurationError("page_size must be positive")
        low, high = self.latency_range
        if low < 0 or high < low:
            raise ConfigurationError(f"Invalid latency_range: {self.latency_range}")

    @property
    def storage_prefix(self) -> str:
        """Prefix without trailing separators, so keys read '<prefix>_<name>'."""
        return self.local_storage_prefix.rstrip("_")

    def storage_key(self, collection: str) -> str:
        return f"{self.storage_prefix}_{collection}"

    def with_type(self, repository_type: str) -> "RepositoryConfig":
        """Return a new configuration for another backend mode."""
        return replace(self, type=repository_type)


def create_repository_config(type: str = "local", **options) -> RepositoryConfig:
    """
    Build a RepositoryConfig, dropping options explicitly passed as None so the
    dataclass defaults apply.

    Examples:
        >>> create_repository_config("api", api_base_url="https://clinic.example/api")
    """
    cleaned = {key: value for key, value in options.items() if value is not None}
    return RepositoryConfig(type=type, **cleaned)


def load_repository_config(env_file: Optional[str] = None) -> RepositoryConfig:
    """
    Build a RepositoryConfig from environment variables (optionally loaded
    from a .env file).

    Environment Variables:
        PODOCARE_REPOSITORY_TYPE: 'api', 'local' or 'hybrid' (default 'local')
        PODOCARE_API_BASE_URL: API root (default '/api')
        PODOCARE_API_KEY: Bearer credential (default unset)
        PODOCARE_LOCAL_FALLBACK: Hybrid fallback switch (default 'true')
        PODOCARE_STORAGE_PREFIX: Local storage key prefix (default 'podocare')
        PODOCARE_REQUEST_TIMEOUT: API timeout in seconds (default 30)
        PODOCARE_SIMULATE_LATENCY: Local latency simulation (default 'true')
        PODOCARE_PAGE_SIZE: Default page size (default 15)
    """
    load_dotenv(env_file)

    timeout_str = os.getenv("PODOCARE_REQUEST_TIMEOUT", "30")
    try:
        timeout = float(timeout_str)
    except ValueError:
        raise ConfigurationError(
            f"PODOCARE_REQUEST_TIMEOUT must be a number, got {timeout_str!r}"
        )

    config = create_repository_config(
        os.getenv("PODOCARE_REPOSITORY_TYPE", "local").strip().lower(),
        api_base_url=os.getenv("PODOCARE_API_BASE_URL"),
        api_key=os.getenv("PODOCARE_API_KEY") or None,
        enable_local_fallback=os.getenv("PODOCARE_LOCAL_FALLBACK", "true")
        .strip()
        .lower()
        in _TRUTHY,
        local_storage_prefix=os.getenv("PODOCARE_STORAGE_PREFIX"),
        request_timeout=timeout,
        simulate_latency=os.getenv("PODOCARE_SIMULATE_LATENCY", "true")
        .strip()
        .lower()
        in _TRUTHY,
        page_size=get_default_page_size(),
    )
    log_repository_config(config)
    return config


def log_repository_config(config: RepositoryConfig) -> None:
    """
    Log the active repository configuration (without exposing the API key).
    """
    logger.info(
        "Repository configuration initialized",
        extra={
            "context": {
                "type": config.type,
                "api_base_url": config.api_base_url,
                "api_key_set": bool(config.api_key),
                "enable_local_fallback": config.enable_local_fallback,
                "storage_prefix": config.storage_prefix,
                "request_timeout": config.request_timeout,
                "simulate_latency": config.simulate_latency,
                "page_size": config.page_size,
                "timezone": str(APP_TZ),
            }
        },
    )
