"""
Request payloads for the PhonePe Pay API.

The initiation request body is a JSON object describing the payment,
serialized canonically and base64-encoded. The checksum is computed over
the encoded string, which is then sent as {"request": "<base64>"}.

Usage:
    from payments.adapters import PaymentIntent, build_initiation_payload, encode_payload

    intent = PaymentIntent(
        amount=10000,
        merchant_transaction_id="MT7850590068188104",
        merchant_user_id="MUID123",
        redirect_url="https://shop.example/payments/return",
        callback_url="https://shop.example/api/v1/payments/webhooks/phonepe/",
    )
    encoded = encode_payload(build_initiation_payload(intent, merchant_id="M123"))
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from typing import Any

PAY_ENDPOINT = "/pg/v1/pay"
STATUS_ENDPOINT_TEMPLATE = "/pg/v1/status/{merchant_id}/{merchant_transaction_id}"

REDIRECT_MODE = "REDIRECT"
PAY_PAGE_INSTRUMENT = "PAY_PAGE"


@dataclass(frozen=True)
class PaymentIntent:
    """
    Caller-supplied description of one payment attempt.

    Attributes:
        amount: Amount in smallest currency unit (paise), positive
        merchant_transaction_id: Idempotency key, unique per attempt
        merchant_user_id: Merchant-side identifier of the payer
        redirect_url: Where PhonePe sends the payer after payment
        callback_url: Where PhonePe posts the server-to-server callback
        mobile_number: Optional payer mobile number
        device_os: Optional device context (e.g. "ANDROID", "IOS")
    """

    amount: int
    merchant_transaction_id: str
    merchant_user_id: str
    redirect_url: str
    callback_url: str
    mobile_number: str | None = None
    device_os: str | None = None

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise ValueError("amount must be an integer number of paise")
        if self.amount <= 0:
            raise ValueError("amount must be positive")
        if not self.merchant_transaction_id:
            raise ValueError("merchant_transaction_id is required")
        if not self.merchant_user_id:
            raise ValueError("merchant_user_id is required")
        if not self.redirect_url:
            raise ValueError("redirect_url is required")
        if not self.callback_url:
            raise ValueError("callback_url is required")


def build_initiation_payload(intent: PaymentIntent, merchant_id: str) -> dict[str, Any]:
    """
    Assemble the Pay API request object for a hosted payment page.

    Optional fields that are not set are left out of the payload.
    """
    payload: dict[str, Any] = {
        "merchantId": merchant_id,
        "merchantTransactionId": intent.merchant_transaction_id,
        "merchantUserId": intent.merchant_user_id,
        "amount": intent.amount,
        "redirectUrl": intent.redirect_url,
        "redirectMode": REDIRECT_MODE,
        "callbackUrl": intent.callback_url,
        "paymentInstrument": {"type": PAY_PAGE_INSTRUMENT},
    }
    if intent.mobile_number:
        payload["mobileNumber"] = intent.mobile_number
    if intent.device_os:
        payload["deviceContext"] = {"deviceOS": intent.device_os}
    return payload


def canonical_json(payload: dict[str, Any]) -> str:
    """Serialize with sorted keys and no insignificant whitespace."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def encode_payload(payload: dict[str, Any]) -> str:
    """Canonical JSON, base64-encoded as ASCII text."""
    return base64.b64encode(canonical_json(payload).encode("utf-8")).decode("ascii")


def decode_payload(encoded: str | bytes) -> Any:
    """
    Reverse of encode_payload, used for callback bodies.

    Raises:
        ValueError: If the input is not valid base64-encoded JSON
    """
    try:
        raw = base64.b64decode(encoded, validate=True)
        return json.loads(raw.decode("utf-8"))
    except (TypeError, UnicodeDecodeError, json.JSONDecodeError, base64.binascii.Error) as e:
        raise ValueError(f"Invalid encoded payload: {e}") from e


def status_endpoint(merchant_id: str, merchant_transaction_id: str) -> str:
    """API path for a transaction status check."""
    return STATUS_ENDPOINT_TEMPLATE.format(
        merchant_id=merchant_id,
        merchant_transaction_id=merchant_transaction_id,
    )
