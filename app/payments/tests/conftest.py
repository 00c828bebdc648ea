"""
Pytest fixtures for payment tests.

This module provides fixtures for creating payment-related test data.
Fixtures are designed to provide transactions in various states for
testing state transitions and business logic.

Usage:
    def test_refund(success_transaction):
        success_transaction.refund()
        success_transaction.save()
        assert success_transaction.status == PaymentTransactionStatus.REFUNDED
"""

import pytest
from django.test import override_settings
from rest_framework.test import APIClient

from payments.state_machines import PaymentTransactionStatus
from payments.tests.factories import PaymentTransactionFactory, UserFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a test user."""
    return UserFactory()


@pytest.fixture
def other_user(db):
    """Create a second user who owns nothing."""
    return UserFactory()


@pytest.fixture
def staff_user(db):
    """Create a staff user."""
    return UserFactory(is_staff=True)


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def auth_client(user):
    """DRF test client authenticated as user."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def phonepe_settings():
    """Test PhonePe credentials in settings."""
    with override_settings(
        PHONEPE_MERCHANT_ID="PGTESTPAYUAT",
        PHONEPE_SALT_KEY="099eb0cd-02cf-4e2a-8aca-3e6c6aff0399",
        PHONEPE_SALT_INDEX="1",
        PHONEPE_ENV="sandbox",
    ):
        yield


# =============================================================================
# PaymentTransaction State Fixtures
# =============================================================================


@pytest.fixture
def initiated_transaction(db, user):
    """Create an INITIATED transaction owned by user."""
    return PaymentTransactionFactory(merchant_user_id=str(user.pk))


@pytest.fixture
def pending_transaction(db, user):
    """Create a PENDING transaction owned by user."""
    txn = PaymentTransactionFactory(merchant_user_id=str(user.pk))
    txn.mark_pending()
    txn.save()
    return txn


@pytest.fixture
def success_transaction(db, user):
    """Create a SUCCESS transaction owned by user."""
    txn = PaymentTransactionFactory(merchant_user_id=str(user.pk))
    txn.mark_pending()
    txn.save()
    txn.mark_success()
    txn.save()
    return txn


@pytest.fixture
def failed_transaction(db, user):
    """Create a FAILED transaction owned by user."""
    txn = PaymentTransactionFactory(merchant_user_id=str(user.pk))
    txn.mark_failed()
    txn.save()
    return txn


@pytest.fixture
def cancelled_transaction(db, user):
    """Create a CANCELLED transaction owned by user."""
    txn = PaymentTransactionFactory(merchant_user_id=str(user.pk))
    txn.cancel()
    txn.save()
    return txn


@pytest.fixture
def refunded_transaction(success_transaction):
    """Create a REFUNDED transaction owned by user."""
    success_transaction.refund()
    success_transaction.save()
    return success_transaction


@pytest.fixture
def transaction_in_state(db, user):
    """Factory fixture: transaction stored directly in any status."""

    def _create(status: str = PaymentTransactionStatus.INITIATED, **kwargs):
        kwargs.setdefault("merchant_user_id", str(user.pk))
        return PaymentTransactionFactory(status=status, **kwargs)

    return _create
