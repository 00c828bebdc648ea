"""
Checksum verification for inbound PhonePe callbacks.

PhonePe signs callbacks with X-VERIFY = SHA256(base64Body + saltKey)
+ "###" + saltIndex. WebhookVerifier checks that header and fails
closed: any malformed input is reported as a failed verification and
never raised to the caller.

Usage:
    from payments.webhooks.verifier import WebhookVerifier

    if not WebhookVerifier().verify(base64_body, request.headers.get("X-VERIFY")):
        return HttpResponse("Invalid signature", status=400)
"""

from __future__ import annotations

import logging
from typing import Any

from payments.adapters import ChecksumSigner, PhonePeConfig, get_phonepe_config

logger = logging.getLogger(__name__)


class WebhookVerifier:
    """Verifies callback checksums with the configured salt."""

    def __init__(self, config: PhonePeConfig | None = None):
        self.config = config if config is not None else get_phonepe_config()
        self._signer = ChecksumSigner(self.config)

    def verify(self, base64_body: Any, received_checksum: Any) -> bool:
        """
        Check received_checksum against base64_body.

        Returns:
            True only for a matching checksum. Missing credentials, empty
            or non-string input and any internal error return False.
        """
        if not self.config.is_configured:
            logger.error("Cannot verify PhonePe callback: credentials not configured")
            return False

        if not isinstance(base64_body, (str, bytes)) or not base64_body:
            logger.warning("PhonePe callback rejected: missing body")
            return False
        if not isinstance(received_checksum, str) or not received_checksum:
            logger.warning("PhonePe callback rejected: missing checksum")
            return False

        try:
            verified = self._signer.verify(base64_body, received_checksum)
        except (TypeError, ValueError) as e:
            # UnicodeDecodeError is a ValueError
            logger.warning(
                "PhonePe callback rejected: malformed input",
                extra={"error": f"{type(e).__name__}: {e}"},
            )
            return False

        if not verified:
            logger.warning("PhonePe callback checksum mismatch")
        return verified
