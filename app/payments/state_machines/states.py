"""
State enums and transition table for payment models.

This module defines the state enums used by payment models with django-fsm.
These are Django TextChoices for database storage and admin integration.

State Machines Overview:

PaymentTransaction States:
    INITIATED → PENDING → SUCCESS / FAILED
    INITIATED → SUCCESS / FAILED (provider result arrives before PENDING is recorded)
    INITIATED / PENDING → CANCELLED
    SUCCESS → REFUNDED

WebhookEvent States:
    PENDING → PROCESSING → PROCESSED
    PENDING → PROCESSING → FAILED (can retry)
"""

from __future__ import annotations

from django.db import models


class PaymentTransactionStatus(models.TextChoices):
    """
    States for the PaymentTransaction model lifecycle.

    Values match the provider-facing status names stored by the
    transaction store (upper case).

    Terminal states: FAILED, CANCELLED, REFUNDED
    SUCCESS is terminal except for the externally triggered refund.
    """

    INITIATED = "INITIATED", "Initiated"
    PENDING = "PENDING", "Pending"
    SUCCESS = "SUCCESS", "Success"
    FAILED = "FAILED", "Failed"
    REFUNDED = "REFUNDED", "Refunded"
    CANCELLED = "CANCELLED", "Cancelled"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for WebhookEvent.

    State Flow:
        PENDING → PROCESSING → PROCESSED
        PENDING → PROCESSING → FAILED (can retry)
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"


# =============================================================================
# Transition Table
# =============================================================================

# Maps each status to the set of statuses it may move to.
PAYMENT_TRANSACTION_TRANSITIONS: dict[str, frozenset[str]] = {
    PaymentTransactionStatus.INITIATED: frozenset(
        {
            PaymentTransactionStatus.PENDING,
            PaymentTransactionStatus.SUCCESS,
            PaymentTransactionStatus.FAILED,
            PaymentTransactionStatus.CANCELLED,
        }
    ),
    PaymentTransactionStatus.PENDING: frozenset(
        {
            PaymentTransactionStatus.SUCCESS,
            PaymentTransactionStatus.FAILED,
            PaymentTransactionStatus.CANCELLED,
        }
    ),
    PaymentTransactionStatus.SUCCESS: frozenset({PaymentTransactionStatus.REFUNDED}),
    PaymentTransactionStatus.FAILED: frozenset(),
    PaymentTransactionStatus.REFUNDED: frozenset(),
    PaymentTransactionStatus.CANCELLED: frozenset(),
}

TERMINAL_TRANSACTION_STATES: frozenset[str] = frozenset(
    status
    for status, targets in PAYMENT_TRANSACTION_TRANSITIONS.items()
    if not targets
)


def is_transition_allowed(current: str, target: str) -> bool:
    """
    Check whether target is reachable from current in one step.

    Same-state requests are not transitions and return False; callers
    treat them as idempotent no-ops.

    Example:
        is_transition_allowed("SUCCESS", "REFUNDED")  # True
        is_transition_allowed("SUCCESS", "INITIATED")  # False
    """
    return target in PAYMENT_TRANSACTION_TRANSITIONS.get(current, frozenset())


def sources_for(target: str) -> list[str]:
    """
    List the statuses from which target can be reached.

    Used to declare django-fsm transition sources from the table above.
    """
    return [
        source
        for source, targets in PAYMENT_TRANSACTION_TRANSITIONS.items()
        if target in targets
    ]


__all__ = [
    "PAYMENT_TRANSACTION_TRANSITIONS",
    "PaymentTransactionStatus",
    "TERMINAL_TRANSACTION_STATES",
    "WebhookEventStatus",
    "is_transition_allowed",
    "sources_for",
]
