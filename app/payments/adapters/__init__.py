"""
Payment adapters for external services.

This module provides the adapter for the PhonePe Pay API. All PhonePe
calls should go through PhonePeAdapter to ensure consistent signing,
timeouts, retries and observability.

Usage:
    from payments.adapters import PaymentIntent, get_phonepe_adapter

    result = get_phonepe_adapter().initiate_payment(
        PaymentIntent(
            amount=10000,
            merchant_transaction_id="MT123",
            merchant_user_id="U1",
            redirect_url="https://shop.example/r",
            callback_url="https://shop.example/cb",
        )
    )
"""

from payments.adapters.config import (
    PRODUCTION_BASE_URL,
    SANDBOX_BASE_URL,
    PhonePeConfig,
    get_phonepe_config,
)
from payments.adapters.payloads import (
    PAY_ENDPOINT,
    PaymentIntent,
    build_initiation_payload,
    decode_payload,
    encode_payload,
    status_endpoint,
)
from payments.adapters.phonepe_adapter import PhonePeAdapter, get_phonepe_adapter
from payments.adapters.responses import (
    CONFIG_ERROR_CODE,
    EXHAUSTED_ERROR_CODE,
    KNOWN_ERROR_CODES,
    PERMANENT_FAILURE_CODES,
    GatewayResult,
    KnownErrorResponse,
    RedirectResponse,
    StateResponse,
    UnknownErrorResponse,
    UnrecognizedResponse,
    decode_provider_response,
)
from payments.adapters.signing import ChecksumSigner, SignedRequest

__all__ = [
    "CONFIG_ERROR_CODE",
    "ChecksumSigner",
    "EXHAUSTED_ERROR_CODE",
    "GatewayResult",
    "KNOWN_ERROR_CODES",
    "KnownErrorResponse",
    "PAY_ENDPOINT",
    "PERMANENT_FAILURE_CODES",
    "PRODUCTION_BASE_URL",
    "PaymentIntent",
    "PhonePeAdapter",
    "PhonePeConfig",
    "RedirectResponse",
    "SANDBOX_BASE_URL",
    "SignedRequest",
    "StateResponse",
    "UnknownErrorResponse",
    "UnrecognizedResponse",
    "build_initiation_payload",
    "decode_payload",
    "decode_provider_response",
    "encode_payload",
    "get_phonepe_adapter",
    "get_phonepe_config",
    "status_endpoint",
]
