"""
Payment-specific exceptions for PhonePe payment operations.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── PaymentNotFoundError - Transaction lookup failures
    ├── TransactionStoreError - Persistence failures
    ├── WebhookVerificationError - Checksum mismatch on inbound callbacks
    └── PaymentProcessingError - Payment processing failures
        └── GatewayError - Base for all PhonePe gateway errors
            ├── GatewayConfigurationError - Credentials missing (permanent)
            ├── PermanentGatewayError - Provider says the request is invalid (permanent)
            └── TransientGatewayError - Transport or other provider error (retry)

    InvalidStateTransitionError - Transition not reachable (inherits ConflictError)

Usage:
    from payments.exceptions import (
        GatewayError,
        InvalidStateTransitionError,
        TransientGatewayError,
    )

    # Transport failure inside a single gateway attempt
    raise TransientGatewayError(
        "HTTP 503: Service Unavailable",
        provider_code="HTTP_503",
    )

    # Illegal transition
    raise InvalidStateTransitionError(
        "Cannot move transaction from FAILED to SUCCESS",
        details={"current_state": "FAILED", "target_state": "SUCCESS"},
    )

Note:
    Gateway errors are raised inside the adapter's retry loop only.
    The adapter converts them to GatewayResult values before returning,
    so callers never see them as uncaught failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    Example:
        try:
            PaymentService.cancel_payment(merchant_transaction_id)
        except PaymentError as e:
            logger.error(f"Payment operation failed: {e}")
            return Response(e.to_dict(), status=400)
    """

    default_error_code: str = "PAYMENT_ERROR"


class PaymentNotFoundError(PaymentError):
    """
    Raised when a payment transaction cannot be found.

    Example:
        txn = store.get_by_merchant_transaction_id(merchant_transaction_id)
        if txn is None:
            raise PaymentNotFoundError(
                f"Payment transaction {merchant_transaction_id} not found",
                details={"merchant_transaction_id": merchant_transaction_id},
            )
    """

    default_error_code: str = "TRANSACTION_NOT_FOUND"


class PaymentProcessingError(PaymentError):
    """Raised when payment processing fails."""

    default_error_code: str = "PAYMENT_PROCESSING_ERROR"


class TransactionStoreError(PaymentError):
    """
    Raised when the transaction store cannot persist or read a record.

    The store adapter catches database failures, logs them and returns
    None/False. This exception is used by callers that must stop on a
    bookkeeping failure instead of continuing.
    """

    default_error_code: str = "STORE_ERROR"


class WebhookVerificationError(PaymentError):
    """
    Raised when an inbound webhook fails checksum verification.

    The verifier itself never raises; views raise this internally to
    share the "reject with 400" path.
    """

    default_error_code: str = "WEBHOOK_VERIFICATION_FAILED"


# =============================================================================
# Gateway Exceptions
# =============================================================================


class GatewayError(PaymentProcessingError):
    """
    Base exception for all PhonePe gateway errors.

    Attributes:
        provider_code: PhonePe response code (e.g. BAD_REQUEST) or a
            transport marker such as HTTP_503
        is_retryable: Whether another attempt can change the outcome
    """

    default_error_code: str = "GATEWAY_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if provider_code:
            details["provider_code"] = provider_code
        super().__init__(message, error_code=error_code, details=details)
        self.provider_code = provider_code


class GatewayConfigurationError(GatewayError):
    """
    Merchant credentials are not configured.

    Surfaced immediately with code CONFIG_ERROR. Never retried and
    never preceded by a network call.
    """

    default_error_code: str = "CONFIG_ERROR"
    is_retryable: bool = False


class PermanentGatewayError(GatewayError):
    """
    Provider reported a semantically final failure.

    Codes: BAD_REQUEST, INVALID_MERCHANT, DUPLICATE_TRANSACTION.
    The request itself is invalid, so retrying cannot succeed.
    """

    default_error_code: str = "GATEWAY_PERMANENT_ERROR"
    is_retryable: bool = False


class TransientGatewayError(GatewayError):
    """
    Transport failure or any non-permanent provider error.

    Covers non-2xx responses, connection errors, timeouts, undecodable
    bodies and provider failures outside the permanent set.
    """

    default_error_code: str = "GATEWAY_TRANSIENT_ERROR"
    is_retryable: bool = True


# =============================================================================
# State Machine Exceptions
# =============================================================================


class InvalidStateTransitionError(ConflictError):
    """
    Raised when a status transition is not reachable from the current status.

    Treated as a data-integrity error: surfaced to the caller and logged,
    never silently applied.

    Example:
        raise InvalidStateTransitionError(
            "Cannot move transaction MT123 from FAILED to SUCCESS",
            details={
                "merchant_transaction_id": "MT123",
                "current_state": "FAILED",
                "target_state": "SUCCESS",
            },
        )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Payment domain
    "PaymentError",
    "PaymentNotFoundError",
    "PaymentProcessingError",
    "TransactionStoreError",
    "WebhookVerificationError",
    # Gateway
    "GatewayError",
    "GatewayConfigurationError",
    "PermanentGatewayError",
    "TransientGatewayError",
    # State machine
    "InvalidStateTransitionError",
]
