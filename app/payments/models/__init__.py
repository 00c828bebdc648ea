"""
Payment domain models.

This module contains all payment-related models:
- PaymentTransaction: One PhonePe payment attempt and its lifecycle
- WebhookEvent: PhonePe callback tracking for idempotent processing
"""

from payments.models.payment_transaction import TRANSITION_METHODS, PaymentTransaction
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "PaymentTransaction",
    "TRANSITION_METHODS",
    "WebhookEvent",
]
