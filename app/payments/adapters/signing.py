"""
X-VERIFY checksum computation for PhonePe requests and callbacks.

PhonePe authenticates every request with a checksum header:

    X-VERIFY = hex(SHA256(payload + endpoint + saltKey)) + "###" + saltIndex

Callbacks are signed the same way without the endpoint:

    X-VERIFY = hex(SHA256(base64Body + saltKey)) + "###" + saltIndex

Usage:
    from payments.adapters import ChecksumSigner, PhonePeConfig

    signer = ChecksumSigner(get_phonepe_config())
    signed = signer.sign_request(encoded_payload, "/pg/v1/pay")
    headers = {"X-VERIFY": signed.checksum}

    signer.verify(base64_body, received_checksum)  # True / False
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from payments.adapters.config import PhonePeConfig


CHECKSUM_SEPARATOR = "###"


@dataclass(frozen=True)
class SignedRequest:
    """
    A payload ready to send: encoded body, endpoint path and checksum.

    Attributes:
        payload: Encoded payload (base64 string, empty for GET requests)
        endpoint: API path the checksum was computed for
        checksum: X-VERIFY header value
    """

    payload: str
    endpoint: str
    checksum: str


def _as_text(value: str | bytes) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class ChecksumSigner:
    """
    Computes and verifies PhonePe checksums with the configured salt.

    Pure functions of their inputs and the injected configuration.
    """

    def __init__(self, config: PhonePeConfig):
        self._salt_key = config.salt_key
        self._salt_index = config.salt_index

    def _digest(self, data: str) -> str:
        digest = hashlib.sha256(f"{data}{self._salt_key}".encode("utf-8")).hexdigest()
        return f"{digest}{CHECKSUM_SEPARATOR}{self._salt_index}"

    def sign(self, payload: str | bytes, endpoint: str) -> str:
        """
        Compute the checksum for an outgoing request.

        Args:
            payload: Encoded request payload ("" for status checks)
            endpoint: API path, e.g. "/pg/v1/pay"

        Returns:
            Checksum string: 64 hex chars, "###", salt index
        """
        return self._digest(f"{_as_text(payload)}{endpoint}")

    def sign_request(self, payload: str | bytes, endpoint: str) -> SignedRequest:
        """Sign payload for endpoint and bundle the pieces together."""
        text = _as_text(payload)
        return SignedRequest(
            payload=text,
            endpoint=endpoint,
            checksum=self.sign(text, endpoint),
        )

    def verify(
        self,
        payload: str | bytes,
        provided_checksum: str,
        endpoint: str = "",
    ) -> bool:
        """
        Check a checksum against payload.

        Callbacks are signed without an endpoint, which is the default.
        Pass endpoint to check a request checksum produced by sign().
        Comparison is constant-time.

        Raises:
            TypeError / UnicodeDecodeError on malformed input. Callers
            at trust boundaries use WebhookVerifier, which fails closed.
        """
        expected = self.sign(payload, endpoint)
        return hmac.compare_digest(
            expected.encode("utf-8"),
            provided_checksum.encode("utf-8"),
        )
