"""
Transaction store for PhonePe payment records.

The payment flow persists through the TransactionStore protocol; the
Django ORM implementation is DjangoTransactionStore. Persistence
failures are logged and reported as None / False / [] so a bookkeeping
problem never blocks a payment. Illegal status transitions are the one
exception: they are data-integrity errors and are raised.

Usage:
    from payments.services.transaction_store import DjangoTransactionStore

    store = DjangoTransactionStore()
    transaction_id = store.create_payment_transaction(
        order_id="ord_123",
        merchant_transaction_id="MT123",
        amount=10000,
    )
    store.update_payment_transaction_status("MT123", "PENDING", provider_response)
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from django.db import DatabaseError, IntegrityError, transaction

from payments.models import PaymentTransaction

if TYPE_CHECKING:
    from typing import Any


logger = logging.getLogger(__name__)


# =============================================================================
# Provider Response Mapping
# =============================================================================


@dataclass(frozen=True)
class ProviderResponseFields:
    """
    Transaction fields carried by a raw PhonePe response.

    Attributes:
        provider_transaction_id: data.transactionId
        payment_method: data.paymentInstrument.type
        response_code: data.responseCode
        response_message: top-level message
    """

    provider_transaction_id: str | None = None
    payment_method: str | None = None
    response_code: str | None = None
    response_message: str | None = None

    def as_model_fields(self) -> dict[str, str]:
        """Fields that were present, keyed by model field name."""
        return {name: value for name, value in asdict(self).items() if value}


def _text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def extract_provider_fields(provider_response: Any) -> ProviderResponseFields:
    """
    Pull the stored transaction fields out of a raw provider response.

    Missing or malformed parts yield None for that field.

    Example:
        extract_provider_fields({
            "message": "Your payment is successful.",
            "data": {
                "transactionId": "T2401",
                "responseCode": "SUCCESS",
                "paymentInstrument": {"type": "UPI"},
            },
        })
        # ProviderResponseFields("T2401", "UPI", "SUCCESS", "Your payment is successful.")
    """
    if not isinstance(provider_response, dict):
        return ProviderResponseFields()

    data = provider_response.get("data")
    if not isinstance(data, dict):
        data = {}
    instrument = data.get("paymentInstrument")
    if not isinstance(instrument, dict):
        instrument = {}

    return ProviderResponseFields(
        provider_transaction_id=_text(data.get("transactionId")),
        payment_method=_text(instrument.get("type")),
        response_code=_text(data.get("responseCode")),
        response_message=_text(provider_response.get("message")),
    )


# =============================================================================
# Store Protocol
# =============================================================================


@runtime_checkable
class TransactionStore(Protocol):
    """
    Protocol for payment transaction persistence.

    Implementations log their own failures and never raise for them.
    """

    def create_payment_transaction(
        self,
        order_id: str,
        merchant_transaction_id: str,
        amount: int,
        metadata: dict[str, Any] | None = None,
        merchant_user_id: str = "",
    ) -> str | None:
        """Create an INITIATED record. Returns its id, or None on failure."""
        ...

    def update_payment_transaction_status(
        self,
        merchant_transaction_id: str,
        status: str,
        provider_response: dict[str, Any] | None = None,
    ) -> bool:
        """Apply a status and provider fields. Returns False on failure."""
        ...

    def get_by_merchant_transaction_id(
        self,
        merchant_transaction_id: str,
    ) -> PaymentTransaction | None:
        """Fetch one record, or None."""
        ...

    def list_by_order(self, order_id: str) -> list[PaymentTransaction]:
        """All records for an order, newest first."""
        ...


# =============================================================================
# Django Implementation
# =============================================================================


class DjangoTransactionStore:
    """TransactionStore backed by the PaymentTransaction model."""

    def create_payment_transaction(
        self,
        order_id: str,
        merchant_transaction_id: str,
        amount: int,
        metadata: dict[str, Any] | None = None,
        merchant_user_id: str = "",
    ) -> str | None:
        try:
            with transaction.atomic():
                txn = PaymentTransaction.objects.create(
                    order_id=order_id,
                    merchant_transaction_id=merchant_transaction_id,
                    merchant_user_id=merchant_user_id,
                    amount=amount,
                    metadata=metadata or {},
                )
        except IntegrityError as e:
            logger.error(
                "Failed to create payment transaction: integrity error",
                extra={
                    "order_id": order_id,
                    "merchant_transaction_id": merchant_transaction_id,
                    "error": str(e),
                },
            )
            return None
        except DatabaseError:
            logger.exception(
                "Failed to create payment transaction",
                extra={
                    "order_id": order_id,
                    "merchant_transaction_id": merchant_transaction_id,
                },
            )
            return None

        logger.info(
            "Payment transaction created",
            extra={
                "transaction_id": str(txn.id),
                "order_id": order_id,
                "merchant_transaction_id": merchant_transaction_id,
            },
        )
        return str(txn.id)

    def update_payment_transaction_status(
        self,
        merchant_transaction_id: str,
        status: str,
        provider_response: dict[str, Any] | None = None,
    ) -> bool:
        """
        Apply status and provider fields under a row lock.

        A request for the current status is a no-op for the state but
        still refreshes the provider fields.

        Raises:
            InvalidStateTransitionError: status is not reachable from the
                stored status
        """
        fields = extract_provider_fields(provider_response)
        log_context = {
            "merchant_transaction_id": merchant_transaction_id,
            "status": status,
        }

        try:
            with transaction.atomic():
                txn = PaymentTransaction.objects.select_for_update().get(
                    merchant_transaction_id=merchant_transaction_id,
                )
                previous_status = txn.status
                txn.transition_to(status)
                for name, value in fields.as_model_fields().items():
                    setattr(txn, name, value)
                if provider_response is not None:
                    txn.provider_response = provider_response
                txn.save()
        except PaymentTransaction.DoesNotExist:
            logger.warning("Payment transaction not found for update", extra=log_context)
            return False
        except DatabaseError:
            logger.exception("Failed to update payment transaction", extra=log_context)
            return False

        logger.info(
            "Payment transaction updated",
            extra={**log_context, "previous_status": previous_status},
        )
        return True

    def get_by_merchant_transaction_id(
        self,
        merchant_transaction_id: str,
    ) -> PaymentTransaction | None:
        try:
            return PaymentTransaction.objects.get(
                merchant_transaction_id=merchant_transaction_id,
            )
        except PaymentTransaction.DoesNotExist:
            return None
        except DatabaseError:
            logger.exception(
                "Failed to get payment transaction",
                extra={"merchant_transaction_id": merchant_transaction_id},
            )
            return None

    def list_by_order(self, order_id: str) -> list[PaymentTransaction]:
        try:
            return list(
                PaymentTransaction.objects.filter(order_id=order_id).order_by("-created_at")
            )
        except DatabaseError:
            logger.exception(
                "Failed to list order payment transactions",
                extra={"order_id": order_id},
            )
            return []
