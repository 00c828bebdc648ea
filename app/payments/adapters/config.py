"""
PhonePe merchant configuration.

PhonePeConfig is built once from Django settings (get_phonepe_config) and
injected into the signer, the gateway adapter and the webhook verifier.
It is immutable after construction.

Configuration (via settings):
- PHONEPE_MERCHANT_ID: Merchant identifier issued by PhonePe
- PHONEPE_SALT_KEY: Shared secret used for X-VERIFY checksums
- PHONEPE_SALT_INDEX: Index of the salt key (default: "1")
- PHONEPE_ENV: "production" or anything else for the sandbox host
- PHONEPE_API_TIMEOUT_SECONDS: HTTP timeout per attempt (default: 10)
- PHONEPE_INITIATE_MAX_RETRIES: Extra attempts for initiation (default: 2)
- PHONEPE_STATUS_MAX_RETRIES: Extra attempts for status checks (default: 3)

Usage:
    from payments.adapters import get_phonepe_config

    config = get_phonepe_config()
    if not config.is_configured:
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

logger = logging.getLogger(__name__)

PRODUCTION_BASE_URL = "https://api.phonepe.com/apis/hermes"
SANDBOX_BASE_URL = "https://api-preprod.phonepe.com/apis/pg-sandbox"

PRODUCTION_ENV = "production"
SANDBOX_ENV = "sandbox"


@dataclass(frozen=True)
class PhonePeConfig:
    """
    Immutable PhonePe merchant credentials and client settings.

    Attributes:
        merchant_id: Merchant identifier (empty when not configured)
        salt_key: Shared secret for checksums (empty when not configured)
        salt_index: Key index appended to every checksum
        environment: "production" or "sandbox"
        timeout_seconds: HTTP timeout per attempt
        initiate_max_retries: Default extra attempts for payment initiation
        status_max_retries: Default extra attempts for status checks
    """

    merchant_id: str = ""
    salt_key: str = ""
    salt_index: str = "1"
    environment: str = SANDBOX_ENV
    timeout_seconds: float = 10
    initiate_max_retries: int = 2
    status_max_retries: int = 3

    def __repr__(self) -> str:
        # salt_key must never reach logs
        return (
            f"PhonePeConfig(merchant_id={self.merchant_id!r}, "
            f"salt_index={self.salt_index!r}, environment={self.environment!r})"
        )

    @property
    def is_configured(self) -> bool:
        """True when both merchant id and salt key are present."""
        return bool(self.merchant_id and self.salt_key)

    @property
    def base_url(self) -> str:
        """API host for the configured environment."""
        if self.environment == PRODUCTION_ENV:
            return PRODUCTION_BASE_URL
        return SANDBOX_BASE_URL

    @classmethod
    def from_settings(cls) -> PhonePeConfig:
        """
        Build the configuration from Django settings.

        Logs a warning when credentials are missing; gateway operations
        then report CONFIG_ERROR instead of failing at import time.
        """
        config = cls(
            merchant_id=getattr(settings, "PHONEPE_MERCHANT_ID", "") or "",
            salt_key=getattr(settings, "PHONEPE_SALT_KEY", "") or "",
            salt_index=str(getattr(settings, "PHONEPE_SALT_INDEX", "1") or "1"),
            environment=getattr(settings, "PHONEPE_ENV", SANDBOX_ENV) or SANDBOX_ENV,
            timeout_seconds=getattr(settings, "PHONEPE_API_TIMEOUT_SECONDS", 10),
            initiate_max_retries=getattr(settings, "PHONEPE_INITIATE_MAX_RETRIES", 2),
            status_max_retries=getattr(settings, "PHONEPE_STATUS_MAX_RETRIES", 3),
        )
        if not config.is_configured:
            logger.warning(
                "PhonePe credentials not configured. Set PHONEPE_MERCHANT_ID "
                "and PHONEPE_SALT_KEY to enable payments.",
                extra={"environment": config.environment},
            )
        return config


@lru_cache(maxsize=1)
def get_phonepe_config() -> PhonePeConfig:
    """
    Process-wide configuration, built from settings on first use.

    Cleared when a PHONEPE_* setting changes (override_settings in tests).
    """
    return PhonePeConfig.from_settings()


@receiver(setting_changed)
def _reset_phonepe_config(sender, setting: str, **kwargs) -> None:
    if setting.startswith("PHONEPE_"):
        get_phonepe_config.cache_clear()
