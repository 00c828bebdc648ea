"""
Reconciliation worker for PhonePe payment status.

This module provides Celery tasks that bring local transaction records
in line with PhonePe's view of them. They cover the cases where the
local status may be stale:
- initiation retries exhausted, so the provider may or may not have
  accepted the payment
- a status update was lost after a successful gateway call
- the payer abandoned the hosted page and no callback arrived

Tasks:
- reconcile_payment_transaction: Poll one transaction and apply the result
- reconcile_stale_transactions: Periodic sweep over INITIATED/PENDING records

Usage:
    from payments.workers import reconcile_payment_transaction

    reconcile_payment_transaction.delay("MT123")

Celery Beat Schedule:
    Registered by migration 0002_add_reconciliation_schedule:
    'payments.workers.reconciliation_worker.reconcile_stale_transactions'
    runs every 10 minutes.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from payments.models import PaymentTransaction
from payments.state_machines import PaymentTransactionStatus

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_LOOKBACK_HOURS = 24
DEFAULT_STALE_MINUTES = 15
DEFAULT_MAX_RECORDS = 500

RECONCILABLE_STATES = (
    PaymentTransactionStatus.INITIATED,
    PaymentTransactionStatus.PENDING,
)


# =============================================================================
# On-Demand Task: Single Transaction
# =============================================================================


@shared_task(bind=True)
def reconcile_payment_transaction(self, merchant_transaction_id: str) -> dict:
    """
    Poll PhonePe for one transaction and apply the reported status.

    Args:
        merchant_transaction_id: Transaction to reconcile

    Returns:
        Dict with:
        - status: "reconciled", "status_unknown", "not_found" or "failed"
        - merchant_transaction_id: The id processed
        - transaction_status: Local status after reconciliation
        - error / error_code: Failure details
    """
    from payments.services import STATUS_UNKNOWN_CODE, PaymentService

    logger.info(
        "Reconciling payment transaction",
        extra={"merchant_transaction_id": merchant_transaction_id},
    )

    result = PaymentService.sync_status(merchant_transaction_id)

    if result.success:
        logger.info(
            f"Payment transaction reconciled: {result.data.status}",
            extra={
                "merchant_transaction_id": merchant_transaction_id,
                "transaction_status": result.data.status,
            },
        )
        return {
            "status": "reconciled",
            "merchant_transaction_id": merchant_transaction_id,
            "transaction_status": str(result.data.status),
        }

    if result.error_code == STATUS_UNKNOWN_CODE:
        # Left as-is; the next sweep tries again
        logger.warning(
            "Payment status still unknown",
            extra={"merchant_transaction_id": merchant_transaction_id},
        )
        return {
            "status": "status_unknown",
            "merchant_transaction_id": merchant_transaction_id,
            "transaction_status": str(result.data.status) if result.data else None,
        }

    if result.error_code == "TRANSACTION_NOT_FOUND":
        logger.error(
            "Payment transaction not found for reconciliation",
            extra={"merchant_transaction_id": merchant_transaction_id},
        )
        return {
            "status": "not_found",
            "merchant_transaction_id": merchant_transaction_id,
            "error": result.error,
        }

    logger.error(
        f"Reconciliation failed: {result.error}",
        extra={
            "merchant_transaction_id": merchant_transaction_id,
            "error_code": result.error_code,
        },
    )
    return {
        "status": "failed",
        "merchant_transaction_id": merchant_transaction_id,
        "error": result.error,
        "error_code": result.error_code,
    }


# =============================================================================
# Periodic Task: Stale Transaction Sweep
# =============================================================================


@shared_task
def reconcile_stale_transactions(
    lookback_hours: int | None = None,
    stale_minutes: int | None = None,
    max_records: int = DEFAULT_MAX_RECORDS,
) -> dict:
    """
    Queue reconciliation for transactions stuck in INITIATED or PENDING.

    A record is stale once it is older than stale_minutes. Records older
    than lookback_hours are left alone.

    Returns:
        Dict with status and queued_count
    """
    if lookback_hours is None:
        lookback_hours = getattr(
            settings, "PHONEPE_RECONCILIATION_LOOKBACK_HOURS", DEFAULT_LOOKBACK_HOURS
        )
    if stale_minutes is None:
        stale_minutes = getattr(
            settings, "PHONEPE_RECONCILIATION_STALE_MINUTES", DEFAULT_STALE_MINUTES
        )

    now = timezone.now()
    stale = PaymentTransaction.objects.filter(
        status__in=RECONCILABLE_STATES,
        created_at__gte=now - timedelta(hours=lookback_hours),
        created_at__lte=now - timedelta(minutes=stale_minutes),
    ).order_by("created_at")[:max_records]

    queued_count = 0
    for txn in stale:
        try:
            reconcile_payment_transaction.delay(txn.merchant_transaction_id)
            queued_count += 1
        except Exception as e:
            logger.error(
                f"Failed to queue reconciliation: {e}",
                extra={"merchant_transaction_id": txn.merchant_transaction_id},
            )

    logger.info(
        f"Queued {queued_count} stale payment transactions for reconciliation",
        extra={
            "queued_count": queued_count,
            "lookback_hours": lookback_hours,
            "stale_minutes": stale_minutes,
        },
    )

    return {"status": "completed", "queued_count": queued_count}
