"""
Payment service for PhonePe payment flows.

This module provides the PaymentService class which is the entry point
for all PhonePe payment operations. It coordinates the gateway adapter,
the transaction store and the transaction state machine.

The service:
- Creates the INITIATED record before the first gateway call
- Maps gateway results and callbacks onto state transitions
- Keeps "status unknown" distinct from a FAILED payment
- Queues reconciliation when the provider outcome is uncertain

Usage:
    from payments.adapters import PaymentIntent
    from payments.services import PaymentService

    result = PaymentService.initiate_payment(
        order_id="ord_123",
        intent=PaymentIntent(
            amount=10000,
            merchant_transaction_id="MT123",
            merchant_user_id="U1",
            redirect_url="https://shop.example/r",
            callback_url="https://shop.example/cb",
        ),
    )
    if result.success:
        redirect_to(result.data.redirect_url)

    result = PaymentService.sync_status("MT123")
    if result.error_code == "STATUS_UNKNOWN":
        ...  # try again later, the payment is not known to have failed
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.conf import settings

from core.services import BaseService, ServiceResult

from payments.adapters import EXHAUSTED_ERROR_CODE, PhonePeAdapter, get_phonepe_adapter
from payments.exceptions import (
    InvalidStateTransitionError,
    PaymentNotFoundError,
    TransactionStoreError,
)
from payments.services.transaction_store import DjangoTransactionStore
from payments.state_machines import PaymentTransactionStatus

if TYPE_CHECKING:
    from typing import Any

    from payments.adapters import GatewayResult, PaymentIntent
    from payments.models import PaymentTransaction
    from payments.services.transaction_store import TransactionStore


STATUS_UNKNOWN_CODE = "STATUS_UNKNOWN"

# PhonePe data.state -> local status
PROVIDER_STATE_MAP: dict[str, str] = {
    "COMPLETED": PaymentTransactionStatus.SUCCESS,
    "FAILED": PaymentTransactionStatus.FAILED,
    "PENDING": PaymentTransactionStatus.PENDING,
}

# Used when a response or callback carries no state
PROVIDER_CODE_MAP: dict[str, str] = {
    "PAYMENT_SUCCESS": PaymentTransactionStatus.SUCCESS,
    "PAYMENT_ERROR": PaymentTransactionStatus.FAILED,
    "PAYMENT_DECLINED": PaymentTransactionStatus.FAILED,
    "TIMED_OUT": PaymentTransactionStatus.FAILED,
    "PAYMENT_PENDING": PaymentTransactionStatus.PENDING,
}


def map_provider_status(state: str | None, code: str | None) -> str | None:
    """
    Translate a provider state/code pair into a local status.

    State wins over code. Returns None when neither is recognized.
    """
    if state and state in PROVIDER_STATE_MAP:
        return PROVIDER_STATE_MAP[state]
    if code and code in PROVIDER_CODE_MAP:
        return PROVIDER_CODE_MAP[code]
    return None


@dataclass
class InitiatedPayment:
    """
    Outcome of PaymentService.initiate_payment.

    Attributes:
        merchant_transaction_id: The attempt's idempotency key
        redirect_url: Hosted payment page (None on failure)
        transaction: Stored record, if it could be created
        gateway_result: Raw adapter result
    """

    merchant_transaction_id: str
    redirect_url: str | None
    transaction: PaymentTransaction | None
    gateway_result: GatewayResult


class PaymentService(BaseService):
    """
    Entry point for PhonePe payment operations.

    Design Notes:
        - Stateless; collaborators come from get_adapter() / get_store()
        - Gateway and store failures come back as ServiceResult failures
        - Illegal transitions are logged and returned as
          INVALID_STATE_TRANSITION failures, never applied
    """

    @classmethod
    def get_adapter(cls) -> PhonePeAdapter:
        """Shared gateway adapter for the current configuration."""
        return get_phonepe_adapter()

    @classmethod
    def get_store(cls) -> TransactionStore:
        """Transaction store used by all operations."""
        return DjangoTransactionStore()

    # =========================================================================
    # Initiation
    # =========================================================================

    @classmethod
    def initiate_payment(
        cls,
        order_id: str,
        intent: PaymentIntent,
        metadata: dict[str, Any] | None = None,
    ) -> ServiceResult[InitiatedPayment]:
        """
        Record a new attempt and start it with PhonePe.

        Outcomes:
            success             -> record PENDING, redirect_url returned
            permanent / config  -> record FAILED, provider code returned
            retries exhausted   -> record left INITIATED (the provider may
                                   have seen the request), reconciliation
                                   queued (the stale-transaction sweep
                                   covers a broker outage), code ERROR
                                   returned

        Only a record created by this call is updated. A failed create
        (for example a reused merchant transaction id) never touches an
        existing record.
        """
        logger = cls.get_logger()
        merchant_transaction_id = intent.merchant_transaction_id
        log_context = {
            "order_id": order_id,
            "merchant_transaction_id": merchant_transaction_id,
            "amount": intent.amount,
        }
        store = cls.get_store()

        transaction_id = store.create_payment_transaction(
            order_id=order_id,
            merchant_transaction_id=merchant_transaction_id,
            amount=intent.amount,
            metadata=metadata,
            merchant_user_id=intent.merchant_user_id,
        )
        owns_record = transaction_id is not None
        if not owns_record:
            logger.warning(
                "Payment transaction record not created, continuing with gateway call",
                extra=log_context,
            )

        result = cls.get_adapter().initiate_payment(intent)

        if result.success:
            if owns_record:
                cls._record(store, merchant_transaction_id, PaymentTransactionStatus.PENDING, result.raw)
            logger.info("Payment initiated", extra={**log_context, "code": result.code})
            return ServiceResult.success(
                InitiatedPayment(
                    merchant_transaction_id=merchant_transaction_id,
                    redirect_url=result.redirect_url,
                    transaction=store.get_by_merchant_transaction_id(merchant_transaction_id),
                    gateway_result=result,
                )
            )

        if result.code == EXHAUSTED_ERROR_CODE:
            queued = owns_record and cls._queue_reconciliation(merchant_transaction_id)
            logger.error(
                "Payment initiation outcome unknown",
                extra={
                    **log_context,
                    "code": result.code,
                    "error": result.message,
                    "reconciliation_queued": queued,
                },
            )
        else:
            if owns_record:
                provider_response = result.raw or {
                    "success": False,
                    "code": result.code,
                    "message": result.message,
                }
                cls._record(store, merchant_transaction_id, PaymentTransactionStatus.FAILED, provider_response)
            logger.warning(
                "Payment initiation failed",
                extra={**log_context, "code": result.code, "error": result.message},
            )

        return ServiceResult.failure(
            result.message,
            error_code=result.code,
            data=InitiatedPayment(
                merchant_transaction_id=merchant_transaction_id,
                redirect_url=None,
                transaction=store.get_by_merchant_transaction_id(merchant_transaction_id),
                gateway_result=result,
            ),
        )

    # =========================================================================
    # Status
    # =========================================================================

    @classmethod
    def sync_status(cls, merchant_transaction_id: str) -> ServiceResult[PaymentTransaction]:
        """
        Refresh a transaction from PhonePe's status API.

        Records in FAILED, CANCELLED or REFUNDED are returned as-is.
        An unknown status (adapter returned None or an unmapped state)
        is a STATUS_UNKNOWN failure carrying the unchanged record.
        """
        logger = cls.get_logger()
        store = cls.get_store()

        txn = store.get_by_merchant_transaction_id(merchant_transaction_id)
        if txn is None:
            return ServiceResult.from_exception(cls._not_found(merchant_transaction_id))
        if txn.is_terminal:
            return ServiceResult.success(txn)

        result = cls.get_adapter().check_status(merchant_transaction_id)
        if result is None:
            logger.warning(
                "Payment status unknown",
                extra={"merchant_transaction_id": merchant_transaction_id},
            )
            return ServiceResult.failure(
                "Payment status could not be determined",
                error_code=STATUS_UNKNOWN_CODE,
                data=txn,
            )

        status = map_provider_status(result.state, result.code)
        if status is None:
            logger.warning(
                "Unrecognized provider state",
                extra={
                    "merchant_transaction_id": merchant_transaction_id,
                    "state": result.state,
                    "code": result.code,
                },
            )
            return ServiceResult.failure(
                f"Unrecognized provider state {result.state!r} ({result.code})",
                error_code=STATUS_UNKNOWN_CODE,
                data=txn,
            )

        return cls.apply_provider_update(merchant_transaction_id, status, result.raw)

    @classmethod
    def apply_provider_update(
        cls,
        merchant_transaction_id: str,
        status: str,
        provider_response: dict[str, Any] | None = None,
    ) -> ServiceResult[PaymentTransaction]:
        """
        Move a transaction to status and store the provider response.

        Shared by status sync, callbacks and the externally triggered
        cancel/refund. Repeating the current status refreshes provider
        fields without a transition.
        """
        logger = cls.get_logger()
        store = cls.get_store()

        if store.get_by_merchant_transaction_id(merchant_transaction_id) is None:
            return ServiceResult.from_exception(cls._not_found(merchant_transaction_id))

        try:
            updated = store.update_payment_transaction_status(
                merchant_transaction_id,
                status,
                provider_response,
            )
        except InvalidStateTransitionError as e:
            logger.error(
                f"Rejected status update: {e.message}",
                extra=e.details,
            )
            return ServiceResult.from_exception(e)

        if not updated:
            return ServiceResult.from_exception(
                TransactionStoreError(
                    f"Failed to update payment transaction {merchant_transaction_id}",
                    details={"merchant_transaction_id": merchant_transaction_id, "status": status},
                )
            )

        return ServiceResult.success(store.get_by_merchant_transaction_id(merchant_transaction_id))

    @classmethod
    def cancel_payment(cls, merchant_transaction_id: str) -> ServiceResult[PaymentTransaction]:
        """Cancel an INITIATED or PENDING payment."""
        return cls.apply_provider_update(merchant_transaction_id, PaymentTransactionStatus.CANCELLED)

    @classmethod
    def mark_refunded(
        cls,
        merchant_transaction_id: str,
        provider_response: dict[str, Any] | None = None,
    ) -> ServiceResult[PaymentTransaction]:
        """Record a refund for a SUCCESS payment."""
        return cls.apply_provider_update(
            merchant_transaction_id,
            PaymentTransactionStatus.REFUNDED,
            provider_response,
        )

    # =========================================================================
    # Lookups
    # =========================================================================

    @classmethod
    def get_transaction(cls, merchant_transaction_id: str) -> ServiceResult[PaymentTransaction]:
        txn = cls.get_store().get_by_merchant_transaction_id(merchant_transaction_id)
        if txn is None:
            return ServiceResult.from_exception(cls._not_found(merchant_transaction_id))
        return ServiceResult.success(txn)

    @classmethod
    def list_order_transactions(cls, order_id: str) -> ServiceResult[list[PaymentTransaction]]:
        return ServiceResult.success(cls.get_store().list_by_order(order_id))

    # =========================================================================
    # Helpers
    # =========================================================================

    @classmethod
    def _record(
        cls,
        store: TransactionStore,
        merchant_transaction_id: str,
        status: str,
        provider_response: dict[str, Any] | None,
    ) -> bool:
        # Bookkeeping failures are logged; the payment flow goes on.
        try:
            return store.update_payment_transaction_status(
                merchant_transaction_id,
                status,
                provider_response,
            )
        except InvalidStateTransitionError as e:
            cls.get_logger().error(f"Rejected status update: {e.message}", extra=e.details)
            return False

    @classmethod
    def _queue_reconciliation(cls, merchant_transaction_id: str) -> bool:
        from payments.workers.reconciliation_worker import reconcile_payment_transaction

        try:
            reconcile_payment_transaction.apply_async(
                args=[merchant_transaction_id],
                countdown=getattr(settings, "PHONEPE_RECONCILIATION_DELAY_SECONDS", 60),
            )
        except Exception as e:
            # The record stays INITIATED; reconcile_stale_transactions picks it up.
            cls.get_logger().error(
                f"Failed to queue reconciliation: {type(e).__name__}",
                extra={"merchant_transaction_id": merchant_transaction_id},
                exc_info=True,
            )
            return False
        return True

    @staticmethod
    def _not_found(merchant_transaction_id: str) -> PaymentNotFoundError:
        return PaymentNotFoundError(
            f"Payment transaction {merchant_transaction_id} not found",
            details={"merchant_transaction_id": merchant_transaction_id},
        )
