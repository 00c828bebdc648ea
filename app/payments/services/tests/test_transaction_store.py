"""
Tests for the Django transaction store.

Tests cover:
- Record creation and duplicate ids
- Status updates with provider fields
- Same-state refreshes and illegal transitions
- Lookups and order listing
- Database failures reported as None / False / []
"""

from unittest.mock import patch

import pytest
from django.db import DatabaseError
from freezegun import freeze_time

from payments.exceptions import InvalidStateTransitionError
from payments.models import PaymentTransaction
from payments.services import (
    DjangoTransactionStore,
    ProviderResponseFields,
    TransactionStore,
    extract_provider_fields,
)
from payments.state_machines import PaymentTransactionStatus
from payments.tests.factories import PaymentTransactionFactory


PROVIDER_RESPONSE = {
    "success": True,
    "code": "PAYMENT_SUCCESS",
    "message": "Your payment is successful.",
    "data": {
        "merchantTransactionId": "MT_STORE",
        "transactionId": "T2401011234567890",
        "state": "COMPLETED",
        "responseCode": "SUCCESS",
        "paymentInstrument": {"type": "CARD", "cardType": "DEBIT_CARD"},
    },
}


@pytest.fixture
def store():
    return DjangoTransactionStore()


# =============================================================================
# extract_provider_fields
# =============================================================================


class TestExtractProviderFields:
    """Tests for mapping raw provider responses to record fields."""

    def test_full_response(self):
        assert extract_provider_fields(PROVIDER_RESPONSE) == ProviderResponseFields(
            provider_transaction_id="T2401011234567890",
            payment_method="CARD",
            response_code="SUCCESS",
            response_message="Your payment is successful.",
        )

    @pytest.mark.parametrize(
        "response",
        [None, "text", [], {}, {"data": "oops"}, {"data": {"paymentInstrument": "UPI"}}],
    )
    def test_malformed_parts_yield_none(self, response):
        fields = extract_provider_fields(response)

        assert fields.provider_transaction_id is None
        assert fields.payment_method is None
        assert fields.response_code is None

    def test_as_model_fields_skips_missing_values(self):
        fields = extract_provider_fields({"message": "Pending", "data": {"responseCode": ""}})

        assert fields.as_model_fields() == {"response_message": "Pending"}


# =============================================================================
# DjangoTransactionStore
# =============================================================================


class TestDjangoTransactionStore:
    """Tests for DjangoTransactionStore."""

    def test_implements_protocol(self, store):
        assert isinstance(store, TransactionStore)

    def test_create_payment_transaction(self, db, store):
        transaction_id = store.create_payment_transaction(
            order_id="ord_1",
            merchant_transaction_id="MT_STORE",
            amount=10000,
            metadata={"cart": "c1"},
            merchant_user_id="U1",
        )

        txn = PaymentTransaction.objects.get(pk=transaction_id)
        assert txn.status == PaymentTransactionStatus.INITIATED
        assert txn.order_id == "ord_1"
        assert txn.merchant_user_id == "U1"
        assert txn.metadata == {"cart": "c1"}

    def test_create_duplicate_returns_none(self, db, store):
        PaymentTransactionFactory(merchant_transaction_id="MT_STORE", amount=500)

        transaction_id = store.create_payment_transaction(
            order_id="ord_2",
            merchant_transaction_id="MT_STORE",
            amount=10000,
        )

        assert transaction_id is None
        assert PaymentTransaction.objects.get(merchant_transaction_id="MT_STORE").amount == 500

    def test_create_database_error_returns_none(self, db, store):
        with patch.object(PaymentTransaction.objects, "create", side_effect=DatabaseError("down")):
            assert store.create_payment_transaction("ord_1", "MT_STORE", 10000) is None

    def test_update_applies_status_and_fields(self, db, store):
        PaymentTransactionFactory(merchant_transaction_id="MT_STORE")

        assert store.update_payment_transaction_status("MT_STORE", "SUCCESS", PROVIDER_RESPONSE) is True

        txn = PaymentTransaction.objects.get(merchant_transaction_id="MT_STORE")
        assert txn.status == PaymentTransactionStatus.SUCCESS
        assert txn.provider_transaction_id == "T2401011234567890"
        assert txn.payment_method == "CARD"
        assert txn.response_code == "SUCCESS"
        assert txn.response_message == "Your payment is successful."
        assert txn.provider_response == PROVIDER_RESPONSE
        assert txn.completed_at is not None

    def test_update_without_provider_response(self, db, store):
        PaymentTransactionFactory(merchant_transaction_id="MT_STORE")

        assert store.update_payment_transaction_status("MT_STORE", "CANCELLED") is True

        txn = PaymentTransaction.objects.get(merchant_transaction_id="MT_STORE")
        assert txn.status == PaymentTransactionStatus.CANCELLED
        assert txn.provider_response is None

    def test_same_state_refreshes_fields(self, db, store):
        PaymentTransactionFactory(
            merchant_transaction_id="MT_STORE",
            status=PaymentTransactionStatus.SUCCESS,
        )

        assert store.update_payment_transaction_status("MT_STORE", "SUCCESS", PROVIDER_RESPONSE) is True

        txn = PaymentTransaction.objects.get(merchant_transaction_id="MT_STORE")
        assert txn.status == PaymentTransactionStatus.SUCCESS
        assert txn.provider_transaction_id == "T2401011234567890"

    def test_illegal_transition_raises_and_keeps_record(self, db, store):
        PaymentTransactionFactory(
            merchant_transaction_id="MT_STORE",
            status=PaymentTransactionStatus.FAILED,
        )

        with pytest.raises(InvalidStateTransitionError):
            store.update_payment_transaction_status("MT_STORE", "SUCCESS", PROVIDER_RESPONSE)

        txn = PaymentTransaction.objects.get(merchant_transaction_id="MT_STORE")
        assert txn.status == PaymentTransactionStatus.FAILED
        assert txn.provider_response is None

    def test_update_missing_record_returns_false(self, db, store):
        assert store.update_payment_transaction_status("MT_MISSING", "SUCCESS") is False

    def test_get_by_merchant_transaction_id(self, db, store):
        created = PaymentTransactionFactory(merchant_transaction_id="MT_STORE")

        assert store.get_by_merchant_transaction_id("MT_STORE") == created
        assert store.get_by_merchant_transaction_id("MT_MISSING") is None

    def test_list_by_order_newest_first(self, db, store):
        with freeze_time("2026-01-01 10:00:00"):
            older = PaymentTransactionFactory(order_id="ord_1")
        with freeze_time("2026-01-01 11:00:00"):
            newer = PaymentTransactionFactory(order_id="ord_1")
        PaymentTransactionFactory(order_id="ord_2")

        assert store.list_by_order("ord_1") == [newer, older]

    def test_list_by_order_database_error_returns_empty(self, db, store):
        with patch.object(PaymentTransaction.objects, "filter", side_effect=DatabaseError("down")):
            assert store.list_by_order("ord_1") == []
