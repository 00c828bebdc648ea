"""
Pytest fixtures for PhonePe adapter tests.

This module provides fixtures for testing the PhonePe adapter without
network access or real delays: a mocked requests.Session, a recording
sleep function and canned provider responses.

Sections:
    - Configuration Fixtures
    - Transport Fixtures
    - Provider Response Fixtures
"""

from typing import Any
from unittest.mock import MagicMock

import pytest

from payments.adapters import PaymentIntent, PhonePeAdapter, PhonePeConfig


MERCHANT_ID = "PGTESTPAYUAT"
SALT_KEY = "099eb0cd-02cf-4e2a-8aca-3e6c6aff0399"
SALT_INDEX = "1"
REDIRECT_URL = "https://mercury-uat.phonepe.com/transact/simulator?token=abc123"


def make_http_response(body: Any = None, status_code: int = 200, invalid_json: bool = False):
    """Build a stand-in for requests.Response."""
    response = MagicMock()
    response.ok = 200 <= status_code < 400
    response.status_code = status_code
    response.reason = "OK" if response.ok else "Service Unavailable"
    if invalid_json:
        response.json.side_effect = ValueError("Expecting value")
    else:
        response.json.return_value = body
    return response


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def phonepe_config():
    """Sandbox configuration with test credentials."""
    return PhonePeConfig(
        merchant_id=MERCHANT_ID,
        salt_key=SALT_KEY,
        salt_index=SALT_INDEX,
    )


@pytest.fixture
def unconfigured_config():
    """Configuration with no credentials."""
    return PhonePeConfig()


@pytest.fixture
def intent():
    """Standard payment intent."""
    return PaymentIntent(
        amount=10000,
        merchant_transaction_id="TX1",
        merchant_user_id="U1",
        redirect_url="https://x/r",
        callback_url="https://x/cb",
    )


# =============================================================================
# Transport Fixtures
# =============================================================================


@pytest.fixture
def session():
    """Mocked requests.Session; set post/get return values per test."""
    return MagicMock()


@pytest.fixture
def sleeps():
    """List collecting the delays requested by retry policies."""
    return []


@pytest.fixture
def adapter(phonepe_config, session, sleeps):
    """Adapter wired to the mocked session and recording sleep."""
    return PhonePeAdapter(config=phonepe_config, session=session, sleep=sleeps.append)


@pytest.fixture
def unconfigured_adapter(unconfigured_config, session, sleeps):
    """Adapter with missing credentials."""
    return PhonePeAdapter(config=unconfigured_config, session=session, sleep=sleeps.append)


# =============================================================================
# Provider Response Fixtures
# =============================================================================


@pytest.fixture
def pay_success_body():
    """Pay API response with a hosted page redirect."""
    return {
        "success": True,
        "code": "PAYMENT_INITIATED",
        "message": "Payment initiated",
        "data": {
            "merchantId": MERCHANT_ID,
            "merchantTransactionId": "TX1",
            "instrumentResponse": {
                "type": "PAY_PAGE",
                "redirectInfo": {"url": REDIRECT_URL, "method": "GET"},
            },
        },
    }


@pytest.fixture
def status_completed_body():
    """Status API response for a completed payment."""
    return {
        "success": True,
        "code": "PAYMENT_SUCCESS",
        "message": "Your payment is successful.",
        "data": {
            "merchantId": MERCHANT_ID,
            "merchantTransactionId": "TX1",
            "transactionId": "T2401011234567890",
            "amount": 10000,
            "state": "COMPLETED",
            "responseCode": "SUCCESS",
            "paymentInstrument": {"type": "UPI", "utr": "206378866112"},
        },
    }


@pytest.fixture
def status_failed_body():
    """Status API response for a failed payment (success=false with state)."""
    return {
        "success": False,
        "code": "PAYMENT_ERROR",
        "message": "Payment Failed",
        "data": {
            "merchantId": MERCHANT_ID,
            "merchantTransactionId": "TX1",
            "transactionId": "T2401011234567891",
            "amount": 10000,
            "state": "FAILED",
            "responseCode": "ZM",
        },
    }


def error_body(code: str, message: str = "Request failed") -> dict:
    """Envelope for a provider error without data."""
    return {"success": False, "code": code, "message": message, "data": {}}
