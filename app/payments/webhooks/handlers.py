"""
Webhook event handlers for PhonePe callbacks.

This module provides a handler registry keyed by the callback's
response code and the handler that applies payment callbacks to the
stored transaction.

The handler registry allows:
- Clean separation between callback routing and handling
- Easy extension for new response codes
- Centralized error handling

Usage:
    from payments.webhooks.handlers import dispatch_webhook, register_handler

    # Register a custom handler
    @register_handler("CUSTOM_CODE")
    def handle_custom_code(webhook_event: WebhookEvent) -> ServiceResult:
        ...

    # Dispatch an event to its handler
    result = dispatch_webhook(webhook_event)
"""

from __future__ import annotations

import logging
from typing import Callable

from core.services import ServiceResult

from payments.models import WebhookEvent
from payments.services import PROVIDER_CODE_MAP, PaymentService, map_provider_status


logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


# Maps PhonePe response codes to handler functions
WEBHOOK_HANDLERS: dict[str, Callable[[WebhookEvent], ServiceResult]] = {}


def register_handler(*codes: str) -> Callable:
    """
    Decorator to register a callback handler for one or more codes.

    Usage:
        @register_handler("PAYMENT_SUCCESS", "PAYMENT_ERROR")
        def handle_payment(webhook_event: WebhookEvent) -> ServiceResult:
            ...
    """

    def decorator(func: Callable[[WebhookEvent], ServiceResult]) -> Callable:
        for code in codes:
            WEBHOOK_HANDLERS[code] = func
            logger.debug(f"Registered webhook handler for {code}")
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Dispatch a callback to the handler registered for its code.

    Unknown codes are logged and acknowledged with a success result so
    they do not fail repeatedly.
    """
    handler = WEBHOOK_HANDLERS.get(webhook_event.code)

    if not handler:
        logger.info(
            f"No handler registered for code: {webhook_event.code}",
            extra={"merchant_transaction_id": webhook_event.merchant_transaction_id},
        )
        return ServiceResult.success(None)

    logger.info(
        f"Dispatching {webhook_event.code} to handler",
        extra={"merchant_transaction_id": webhook_event.merchant_transaction_id},
    )

    return handler(webhook_event)


# =============================================================================
# Payment Handlers
# =============================================================================


@register_handler(*PROVIDER_CODE_MAP)
def handle_payment_callback(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Apply a payment callback to its transaction.

    The callback's data.state decides the new status when present,
    otherwise the response code does. The full callback payload is
    stored as the provider response.
    """
    merchant_transaction_id = webhook_event.merchant_transaction_id
    if not merchant_transaction_id:
        logger.error(
            "Callback has no merchantTransactionId",
            extra={"webhook_event_id": str(webhook_event.id), "code": webhook_event.code},
        )
        return ServiceResult.failure(
            "Callback has no merchantTransactionId",
            error_code="MISSING_TRANSACTION_ID",
        )

    data = webhook_event.payload.get("data") or {}
    state = data.get("state") if isinstance(data, dict) else None
    status = map_provider_status(state, webhook_event.code)

    logger.info(
        f"Applying callback {webhook_event.code} as {status}",
        extra={"merchant_transaction_id": merchant_transaction_id, "state": state},
    )

    return PaymentService.apply_provider_update(
        merchant_transaction_id,
        status,
        webhook_event.payload,
    )
