"""
Pytest fixtures for webhook tests.

Provides fixtures for testing the callback view, handlers and tasks:
signed callback bodies, WebhookEvent objects in each processing state
and the transactions they refer to.
"""

import json

import pytest
from django.test import RequestFactory, override_settings

from payments.adapters import ChecksumSigner, PhonePeConfig, encode_payload
from payments.state_machines import PaymentTransactionStatus, WebhookEventStatus
from payments.tests.factories import PaymentTransactionFactory, WebhookEventFactory
from payments.webhooks.tests.callbacks import MERCHANT_ID, SALT_INDEX, SALT_KEY, callback_body


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def phonepe_config():
    """Credentials matching the phonepe_settings fixture."""
    return PhonePeConfig(
        merchant_id=MERCHANT_ID,
        salt_key=SALT_KEY,
        salt_index=SALT_INDEX,
        environment="sandbox",
    )


@pytest.fixture
def phonepe_settings():
    """Test PhonePe credentials in settings."""
    with override_settings(
        PHONEPE_MERCHANT_ID=MERCHANT_ID,
        PHONEPE_SALT_KEY=SALT_KEY,
        PHONEPE_SALT_INDEX=SALT_INDEX,
        PHONEPE_ENV="sandbox",
    ):
        yield


# =============================================================================
# Callback Fixtures
# =============================================================================


@pytest.fixture
def rf():
    """Request factory for creating test requests."""
    return RequestFactory()


@pytest.fixture
def make_callback_request(rf, phonepe_config):
    """
    Build a signed callback request.

    Usage:
        request = make_callback_request(callback_body())
        request = make_callback_request(callback_body(), checksum="bad###1")
    """

    def _make(body, checksum=None):
        encoded = encode_payload(body)
        if checksum is None:
            checksum = ChecksumSigner(phonepe_config).sign(encoded, "")
        headers = {"HTTP_X_VERIFY": checksum} if checksum else {}
        return rf.post(
            "/api/v1/payments/webhooks/phonepe/",
            data=json.dumps({"response": encoded}),
            content_type="application/json",
            **headers,
        )

    return _make


# =============================================================================
# Transaction Fixtures
# =============================================================================


@pytest.fixture
def pending_transaction(db):
    """PaymentTransaction waiting for the payer."""
    return PaymentTransactionFactory(
        merchant_transaction_id="MT_HOOK_1",
        status=PaymentTransactionStatus.PENDING,
    )


# =============================================================================
# WebhookEvent Fixtures
# =============================================================================


@pytest.fixture
def pending_webhook_event(db):
    """WebhookEvent in PENDING status."""
    return WebhookEventFactory(
        merchant_transaction_id="MT_HOOK_1",
        payload=callback_body("MT_HOOK_1"),
        status=WebhookEventStatus.PENDING,
    )


@pytest.fixture
def processed_webhook_event(db):
    """WebhookEvent already PROCESSED."""
    return WebhookEventFactory(
        merchant_transaction_id="MT_HOOK_1",
        payload=callback_body("MT_HOOK_1"),
        status=WebhookEventStatus.PROCESSED,
        retry_count=1,
    )


@pytest.fixture
def failed_webhook_event(db):
    """WebhookEvent that FAILED once."""
    return WebhookEventFactory(
        merchant_transaction_id="MT_HOOK_1",
        payload=callback_body("MT_HOOK_1"),
        status=WebhookEventStatus.FAILED,
        retry_count=1,
        error_message="Handler error",
    )
