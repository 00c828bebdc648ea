"""
Workers for async payment processing.

This module contains Celery tasks for background payment operations:
- ReconciliationWorker: Brings local records in line with PhonePe

Usage:
    from payments.workers import (
        reconcile_payment_transaction,
        reconcile_stale_transactions,
    )

    reconcile_payment_transaction.delay("MT123")
    reconcile_stale_transactions.delay()
"""

from payments.workers.reconciliation_worker import (
    reconcile_payment_transaction,
    reconcile_stale_transactions,
)

__all__ = [
    "reconcile_payment_transaction",
    "reconcile_stale_transactions",
]
