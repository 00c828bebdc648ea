"""
Celery tasks for payment processing.

This module provides async tasks for:
- Processing PhonePe callbacks
- Retrying failed or never-queued callbacks
- Resetting callbacks stuck in processing
- Reconciling payment status (re-exported from payments.workers)

Usage:
    from payments.tasks import process_webhook_event

    # Queue a callback for async processing
    process_webhook_event.delay(str(webhook_event.id))

    # Reconcile one payment
    from payments.tasks import reconcile_payment_transaction
    reconcile_payment_transaction.delay("MT123")
"""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from celery import shared_task
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MAX_WEBHOOK_RETRIES = WebhookEvent.MAX_RETRIES
STUCK_PROCESSING_THRESHOLD_MINUTES = 30
UNQUEUED_PENDING_THRESHOLD_MINUTES = 5


# =============================================================================
# Webhook Processing Tasks
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_WEBHOOK_RETRIES},
    acks_late=True,
)
def process_webhook_event(self, webhook_event_id: str) -> dict:
    """
    Process a PhonePe callback asynchronously.

    This task:
    1. Loads the WebhookEvent by ID
    2. Checks if already processed (idempotency)
    3. Marks as processing
    4. Dispatches to the handler for its code
    5. Marks as processed or failed

    Raises:
        Exception: Re-raised to trigger Celery retry mechanism
    """
    from payments.webhooks.handlers import dispatch_webhook

    if isinstance(webhook_event_id, str):
        webhook_event_id = UUID(webhook_event_id)

    log_context = {"webhook_event_id": str(webhook_event_id)}
    logger.info("Processing webhook event", extra=log_context)

    try:
        webhook_event = WebhookEvent.objects.get(id=webhook_event_id)
    except WebhookEvent.DoesNotExist:
        logger.error("WebhookEvent not found", extra=log_context)
        return {"status": "not_found", "webhook_event_id": str(webhook_event_id)}

    log_context["merchant_transaction_id"] = webhook_event.merchant_transaction_id

    if webhook_event.status == WebhookEventStatus.PROCESSED:
        logger.info("WebhookEvent already processed, skipping", extra=log_context)
        return {
            "status": "already_processed",
            "webhook_event_id": str(webhook_event_id),
        }

    webhook_event.mark_processing()
    webhook_event.save()

    logger.info(
        f"Dispatching callback: {webhook_event.code}",
        extra={
            **log_context,
            "code": webhook_event.code,
            "retry_count": webhook_event.retry_count,
        },
    )

    try:
        with transaction.atomic():
            result = dispatch_webhook(webhook_event)

        if result.success:
            webhook_event.mark_processed()
            webhook_event.save()
            logger.info("Webhook processed successfully", extra=log_context)
            return {
                "status": "processed",
                "webhook_event_id": str(webhook_event_id),
                "merchant_transaction_id": webhook_event.merchant_transaction_id,
            }

        error_msg = result.error or "Handler returned failure"
        webhook_event.mark_failed(error_msg)
        webhook_event.save()
        logger.warning(
            f"Webhook handler failed: {error_msg}",
            extra={**log_context, "error": error_msg, "error_code": result.error_code},
        )
        return {
            "status": "handler_failed",
            "webhook_event_id": str(webhook_event_id),
            "error": error_msg,
            "error_code": result.error_code,
        }

    except Exception as e:
        error_msg = f"{type(e).__name__}: {str(e)}"
        webhook_event.mark_failed(error_msg)
        webhook_event.save()

        logger.exception(
            "Webhook processing failed with exception",
            extra={**log_context, "error": error_msg},
        )
        raise


@shared_task
def retry_failed_webhooks() -> dict:
    """
    Periodic task to retry callbacks that did not complete.

    Picks up FAILED events under the retry cap, plus PENDING events
    that were stored but never queued (broker unavailable).

    Returns:
        Dict with count of webhooks queued for retry
    """
    unqueued_before = timezone.now() - timedelta(minutes=UNQUEUED_PENDING_THRESHOLD_MINUTES)
    retryable = WebhookEvent.objects.filter(
        Q(status=WebhookEventStatus.FAILED, retry_count__lt=MAX_WEBHOOK_RETRIES)
        | Q(status=WebhookEventStatus.PENDING, created_at__lt=unqueued_before)
    ).order_by("created_at")[:100]

    queued_count = 0
    for webhook in retryable:
        try:
            process_webhook_event.delay(str(webhook.id))
            queued_count += 1
            logger.info(
                "Queued webhook for retry",
                extra={
                    "webhook_event_id": str(webhook.id),
                    "merchant_transaction_id": webhook.merchant_transaction_id,
                    "retry_count": webhook.retry_count,
                },
            )
        except Exception as e:
            logger.error(
                f"Failed to queue webhook for retry: {e}",
                extra={"webhook_event_id": str(webhook.id)},
            )

    logger.info(
        f"Queued {queued_count} webhooks for retry",
        extra={"queued_count": queued_count},
    )

    return {"queued_count": queued_count}


@shared_task
def cleanup_stuck_webhooks() -> dict:
    """
    Periodic task to reset stuck webhooks.

    Webhooks left in PROCESSING for too long (worker crashed) are
    reset to FAILED so retry_failed_webhooks picks them up.

    Returns:
        Dict with count of webhooks reset
    """
    threshold = timezone.now() - timedelta(minutes=STUCK_PROCESSING_THRESHOLD_MINUTES)

    stuck_webhooks = WebhookEvent.objects.filter(
        status=WebhookEventStatus.PROCESSING,
        updated_at__lt=threshold,
    )

    reset_count = 0
    for webhook in stuck_webhooks:
        webhook.mark_failed("Processing timed out - reset for retry")
        webhook.save()
        reset_count += 1
        logger.warning(
            "Reset stuck webhook",
            extra={
                "webhook_event_id": str(webhook.id),
                "merchant_transaction_id": webhook.merchant_transaction_id,
            },
        )

    if reset_count > 0:
        logger.info(
            f"Reset {reset_count} stuck webhooks",
            extra={"reset_count": reset_count},
        )

    return {"reset_count": reset_count}


# =============================================================================
# Re-exported Worker Tasks
# =============================================================================
# Defined in payments.workers, re-exported so Celery autodiscover finds them.

from payments.workers import (  # noqa: E402, F401
    reconcile_payment_transaction,
    reconcile_stale_transactions,
)
