"""
Tests for PaymentService.

Tests cover:
- Initiation outcomes and the records they leave behind
- Status sync for terminal, unknown and mapped provider states
- Provider updates, cancellation and refunds
- Provider state/code mapping
"""

from unittest.mock import MagicMock, patch

import pytest
from django.test import override_settings
from kombu.exceptions import OperationalError

from payments.adapters import (
    CONFIG_ERROR_CODE,
    EXHAUSTED_ERROR_CODE,
    GatewayResult,
    PaymentIntent,
    decode_provider_response,
)
from payments.models import PaymentTransaction
from payments.services import (
    STATUS_UNKNOWN_CODE,
    PaymentService,
    map_provider_status,
)
from payments.state_machines import PaymentTransactionStatus
from payments.tests.factories import PaymentTransactionFactory


REDIRECT_URL = "https://mercury-uat.phonepe.com/transact/simulator?token=abc123"


def make_intent(merchant_transaction_id="MT_SVC_1", amount=10000):
    return PaymentIntent(
        amount=amount,
        merchant_transaction_id=merchant_transaction_id,
        merchant_user_id="U1",
        redirect_url="https://shop.example/r",
        callback_url="https://shop.example/cb",
    )


def redirect_result(merchant_transaction_id):
    return GatewayResult.from_response(
        decode_provider_response(
            {
                "success": True,
                "code": "PAYMENT_INITIATED",
                "message": "Payment initiated",
                "data": {
                    "merchantTransactionId": merchant_transaction_id,
                    "instrumentResponse": {
                        "type": "PAY_PAGE",
                        "redirectInfo": {"url": REDIRECT_URL, "method": "GET"},
                    },
                },
            }
        )
    )


def error_result(code, message="Request failed"):
    return GatewayResult.from_response(
        decode_provider_response({"success": False, "code": code, "message": message})
    )


def state_result(merchant_transaction_id, state, code="PAYMENT_SUCCESS"):
    return GatewayResult.from_response(
        decode_provider_response(
            {
                "success": state != "FAILED",
                "code": code,
                "message": "Status",
                "data": {
                    "merchantTransactionId": merchant_transaction_id,
                    "transactionId": "T2401011234567890",
                    "state": state,
                    "responseCode": "SUCCESS",
                    "paymentInstrument": {"type": "UPI"},
                },
            }
        )
    )


@pytest.fixture
def mock_adapter():
    adapter = MagicMock()
    with patch.object(PaymentService, "get_adapter", return_value=adapter):
        yield adapter


@pytest.fixture
def mock_reconcile():
    with patch(
        "payments.workers.reconciliation_worker.reconcile_payment_transaction.apply_async"
    ) as apply_async:
        yield apply_async


# =============================================================================
# Provider Status Mapping
# =============================================================================


class TestMapProviderStatus:
    """Tests for map_provider_status."""

    @pytest.mark.parametrize(
        "state,code,expected",
        [
            ("COMPLETED", None, PaymentTransactionStatus.SUCCESS),
            ("FAILED", None, PaymentTransactionStatus.FAILED),
            ("PENDING", None, PaymentTransactionStatus.PENDING),
            (None, "PAYMENT_SUCCESS", PaymentTransactionStatus.SUCCESS),
            (None, "PAYMENT_ERROR", PaymentTransactionStatus.FAILED),
            (None, "PAYMENT_DECLINED", PaymentTransactionStatus.FAILED),
            (None, "TIMED_OUT", PaymentTransactionStatus.FAILED),
            (None, "PAYMENT_PENDING", PaymentTransactionStatus.PENDING),
        ],
    )
    def test_known_values(self, state, code, expected):
        assert map_provider_status(state, code) == expected

    def test_state_wins_over_code(self):
        assert map_provider_status("PENDING", "PAYMENT_SUCCESS") == PaymentTransactionStatus.PENDING

    def test_unknown_state_falls_back_to_code(self):
        assert map_provider_status("AUTHORIZED", "PAYMENT_ERROR") == PaymentTransactionStatus.FAILED

    def test_unrecognized(self):
        assert map_provider_status("AUTHORIZED", "SOMETHING_NEW") is None
        assert map_provider_status(None, None) is None


# =============================================================================
# Initiation
# =============================================================================


@pytest.mark.django_db
class TestInitiatePayment:
    """Tests for PaymentService.initiate_payment."""

    def test_success_moves_record_to_pending(self, mock_adapter):
        mock_adapter.initiate_payment.return_value = redirect_result("MT_SVC_1")

        result = PaymentService.initiate_payment("ord_1", make_intent(), metadata={"cart": "c1"})

        assert result.success is True
        assert result.data.redirect_url == REDIRECT_URL
        assert result.data.transaction.status == PaymentTransactionStatus.PENDING
        assert result.data.transaction.metadata == {"cart": "c1"}
        assert result.data.transaction.response_message == "Payment initiated"
        mock_adapter.initiate_payment.assert_called_once()

    def test_record_created_before_gateway_call(self, mock_adapter):
        def check_record(intent):
            txn = PaymentTransaction.objects.get(merchant_transaction_id=intent.merchant_transaction_id)
            assert txn.status == PaymentTransactionStatus.INITIATED
            return redirect_result(intent.merchant_transaction_id)

        mock_adapter.initiate_payment.side_effect = check_record

        assert PaymentService.initiate_payment("ord_1", make_intent()).success is True

    def test_permanent_failure_marks_failed(self, mock_adapter):
        mock_adapter.initiate_payment.return_value = error_result("BAD_REQUEST", "Invalid amount")

        result = PaymentService.initiate_payment("ord_1", make_intent())

        assert result.success is False
        assert result.error_code == "BAD_REQUEST"
        assert result.error == "Invalid amount"
        txn = PaymentTransaction.objects.get(merchant_transaction_id="MT_SVC_1")
        assert txn.status == PaymentTransactionStatus.FAILED
        assert txn.response_message == "Invalid amount"
        assert txn.failed_at is not None

    def test_config_error_marks_failed(self, mock_adapter):
        mock_adapter.initiate_payment.return_value = GatewayResult(
            success=False,
            code=CONFIG_ERROR_CODE,
            message="PhonePe credentials are not configured",
        )

        result = PaymentService.initiate_payment("ord_1", make_intent())

        assert result.error_code == CONFIG_ERROR_CODE
        txn = PaymentTransaction.objects.get(merchant_transaction_id="MT_SVC_1")
        assert txn.status == PaymentTransactionStatus.FAILED
        assert txn.provider_response == {
            "success": False,
            "code": CONFIG_ERROR_CODE,
            "message": "PhonePe credentials are not configured",
        }

    @override_settings(PHONEPE_RECONCILIATION_DELAY_SECONDS=30)
    def test_exhausted_retries_leave_initiated_and_queue_reconciliation(
        self, mock_adapter, mock_reconcile
    ):
        mock_adapter.initiate_payment.return_value = GatewayResult(
            success=False,
            code=EXHAUSTED_ERROR_CODE,
            message="Network error: connection refused",
        )

        result = PaymentService.initiate_payment("ord_1", make_intent())

        assert result.success is False
        assert result.error_code == EXHAUSTED_ERROR_CODE
        assert result.data.redirect_url is None
        assert result.data.transaction.status == PaymentTransactionStatus.INITIATED
        mock_reconcile.assert_called_once_with(args=["MT_SVC_1"], countdown=30)

    def test_exhausted_retries_with_broker_down_returns_error(self, mock_adapter, mock_reconcile):
        mock_adapter.initiate_payment.return_value = GatewayResult(
            success=False,
            code=EXHAUSTED_ERROR_CODE,
            message="Network error: connection refused",
        )
        mock_reconcile.side_effect = OperationalError("Error 111 connecting to redis")

        result = PaymentService.initiate_payment("ord_1", make_intent())

        assert result.success is False
        assert result.error_code == EXHAUSTED_ERROR_CODE
        assert result.data.transaction.status == PaymentTransactionStatus.INITIATED
        mock_reconcile.assert_called_once()

    def test_reused_id_does_not_touch_existing_record(self, mock_adapter, mock_reconcile):
        existing = PaymentTransactionFactory(
            merchant_transaction_id="MT_SVC_1",
            order_id="ord_old",
            status=PaymentTransactionStatus.SUCCESS,
        )
        mock_adapter.initiate_payment.return_value = error_result(
            "DUPLICATE_TRANSACTION", "Transaction already exists"
        )

        result = PaymentService.initiate_payment("ord_new", make_intent())

        assert result.error_code == "DUPLICATE_TRANSACTION"
        existing.refresh_from_db()
        assert existing.status == PaymentTransactionStatus.SUCCESS
        assert existing.order_id == "ord_old"
        assert PaymentTransaction.objects.count() == 1
        mock_reconcile.assert_not_called()

    def test_store_failure_still_calls_gateway(self, mock_adapter):
        mock_adapter.initiate_payment.return_value = redirect_result("MT_SVC_1")
        store = MagicMock()
        store.create_payment_transaction.return_value = None
        store.get_by_merchant_transaction_id.return_value = None

        with patch.object(PaymentService, "get_store", return_value=store):
            result = PaymentService.initiate_payment("ord_1", make_intent())

        assert result.success is True
        assert result.data.redirect_url == REDIRECT_URL
        assert result.data.transaction is None
        store.update_payment_transaction_status.assert_not_called()


# =============================================================================
# Status Sync
# =============================================================================


@pytest.mark.django_db
class TestSyncStatus:
    """Tests for PaymentService.sync_status."""

    def test_not_found(self, mock_adapter):
        result = PaymentService.sync_status("MT_MISSING")

        assert result.success is False
        assert result.error_code == "TRANSACTION_NOT_FOUND"
        mock_adapter.check_status.assert_not_called()

    @pytest.mark.parametrize(
        "status",
        [
            PaymentTransactionStatus.FAILED,
            PaymentTransactionStatus.CANCELLED,
            PaymentTransactionStatus.REFUNDED,
        ],
    )
    def test_terminal_returned_without_gateway_call(self, mock_adapter, status):
        txn = PaymentTransactionFactory(status=status)

        result = PaymentService.sync_status(txn.merchant_transaction_id)

        assert result.success is True
        assert result.data == txn
        mock_adapter.check_status.assert_not_called()

    def test_unknown_status_keeps_record(self, mock_adapter):
        txn = PaymentTransactionFactory(status=PaymentTransactionStatus.PENDING)
        mock_adapter.check_status.return_value = None

        result = PaymentService.sync_status(txn.merchant_transaction_id)

        assert result.success is False
        assert result.error_code == STATUS_UNKNOWN_CODE
        assert result.data.status == PaymentTransactionStatus.PENDING
        txn.refresh_from_db()
        assert txn.status == PaymentTransactionStatus.PENDING

    def test_unmapped_state_is_unknown(self, mock_adapter):
        txn = PaymentTransactionFactory(status=PaymentTransactionStatus.PENDING)
        mock_adapter.check_status.return_value = state_result(
            txn.merchant_transaction_id, "AUTHORIZED", "SOMETHING_NEW"
        )

        result = PaymentService.sync_status(txn.merchant_transaction_id)

        assert result.error_code == STATUS_UNKNOWN_CODE
        txn.refresh_from_db()
        assert txn.status == PaymentTransactionStatus.PENDING

    def test_completed_moves_to_success(self, mock_adapter):
        txn = PaymentTransactionFactory(status=PaymentTransactionStatus.PENDING)
        mock_adapter.check_status.return_value = state_result(txn.merchant_transaction_id, "COMPLETED")

        result = PaymentService.sync_status(txn.merchant_transaction_id)

        assert result.success is True
        assert result.data.status == PaymentTransactionStatus.SUCCESS
        assert result.data.provider_transaction_id == "T2401011234567890"
        assert result.data.payment_method == "UPI"

    def test_failed_state_moves_to_failed(self, mock_adapter):
        txn = PaymentTransactionFactory(status=PaymentTransactionStatus.INITIATED)
        mock_adapter.check_status.return_value = state_result(
            txn.merchant_transaction_id, "FAILED", "PAYMENT_ERROR"
        )

        result = PaymentService.sync_status(txn.merchant_transaction_id)

        assert result.data.status == PaymentTransactionStatus.FAILED

    def test_success_record_is_polled_again(self, mock_adapter):
        txn = PaymentTransactionFactory(status=PaymentTransactionStatus.SUCCESS)
        mock_adapter.check_status.return_value = state_result(txn.merchant_transaction_id, "COMPLETED")

        result = PaymentService.sync_status(txn.merchant_transaction_id)

        assert result.success is True
        assert result.data.status == PaymentTransactionStatus.SUCCESS
        mock_adapter.check_status.assert_called_once_with(txn.merchant_transaction_id)

    def test_regression_from_success_rejected(self, mock_adapter):
        txn = PaymentTransactionFactory(status=PaymentTransactionStatus.SUCCESS)
        mock_adapter.check_status.return_value = state_result(
            txn.merchant_transaction_id, "FAILED", "PAYMENT_ERROR"
        )

        result = PaymentService.sync_status(txn.merchant_transaction_id)

        assert result.success is False
        assert result.error_code == "INVALID_STATE_TRANSITION"
        txn.refresh_from_db()
        assert txn.status == PaymentTransactionStatus.SUCCESS


# =============================================================================
# Provider Updates
# =============================================================================


@pytest.mark.django_db
class TestApplyProviderUpdate:
    """Tests for apply_provider_update, cancel_payment and mark_refunded."""

    def test_not_found(self):
        result = PaymentService.apply_provider_update("MT_MISSING", PaymentTransactionStatus.SUCCESS)

        assert result.error_code == "TRANSACTION_NOT_FOUND"

    def test_same_state_is_success(self):
        txn = PaymentTransactionFactory(status=PaymentTransactionStatus.PENDING)

        result = PaymentService.apply_provider_update(
            txn.merchant_transaction_id,
            PaymentTransactionStatus.PENDING,
            {"code": "PAYMENT_PENDING", "message": "Still pending", "data": {}},
        )

        assert result.success is True
        assert result.data.status == PaymentTransactionStatus.PENDING
        assert result.data.response_message == "Still pending"

    def test_store_failure(self):
        txn = PaymentTransactionFactory()
        store = MagicMock()
        store.get_by_merchant_transaction_id.return_value = txn
        store.update_payment_transaction_status.return_value = False

        with patch.object(PaymentService, "get_store", return_value=store):
            result = PaymentService.apply_provider_update(
                txn.merchant_transaction_id, PaymentTransactionStatus.PENDING
            )

        assert result.success is False
        assert result.error_code == "STORE_ERROR"

    @pytest.mark.parametrize(
        "status",
        [PaymentTransactionStatus.INITIATED, PaymentTransactionStatus.PENDING],
    )
    def test_cancel_open_payment(self, status):
        txn = PaymentTransactionFactory(status=status)

        result = PaymentService.cancel_payment(txn.merchant_transaction_id)

        assert result.success is True
        assert result.data.status == PaymentTransactionStatus.CANCELLED
        assert result.data.cancelled_at is not None

    def test_cancel_success_rejected(self):
        txn = PaymentTransactionFactory(status=PaymentTransactionStatus.SUCCESS)

        result = PaymentService.cancel_payment(txn.merchant_transaction_id)

        assert result.error_code == "INVALID_STATE_TRANSITION"

    def test_refund_success(self):
        txn = PaymentTransactionFactory(status=PaymentTransactionStatus.SUCCESS)

        result = PaymentService.mark_refunded(txn.merchant_transaction_id)

        assert result.success is True
        assert result.data.status == PaymentTransactionStatus.REFUNDED
        assert result.data.refunded_at is not None

    def test_refund_pending_rejected(self):
        txn = PaymentTransactionFactory(status=PaymentTransactionStatus.PENDING)

        result = PaymentService.mark_refunded(txn.merchant_transaction_id)

        assert result.error_code == "INVALID_STATE_TRANSITION"
        txn.refresh_from_db()
        assert txn.status == PaymentTransactionStatus.PENDING


@pytest.mark.django_db
class TestLookups:
    def test_get_transaction(self):
        txn = PaymentTransactionFactory()

        assert PaymentService.get_transaction(txn.merchant_transaction_id).data == txn
        assert PaymentService.get_transaction("MT_MISSING").error_code == "TRANSACTION_NOT_FOUND"

    def test_list_order_transactions(self):
        PaymentTransactionFactory(order_id="ord_1")
        PaymentTransactionFactory(order_id="ord_1")
        PaymentTransactionFactory(order_id="ord_2")

        result = PaymentService.list_order_transactions("ord_1")

        assert result.success is True
        assert len(result.data) == 2
