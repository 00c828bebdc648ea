"""
State machine enums and helpers for payment models.

This module defines the state enums used by payment models with django-fsm,
plus the transition table shared by the models and the service layer.
"""

from payments.state_machines.states import (
    PAYMENT_TRANSACTION_TRANSITIONS,
    TERMINAL_TRANSACTION_STATES,
    PaymentTransactionStatus,
    WebhookEventStatus,
    is_transition_allowed,
    sources_for,
)

__all__ = [
    "PAYMENT_TRANSACTION_TRANSITIONS",
    "PaymentTransactionStatus",
    "TERMINAL_TRANSACTION_STATES",
    "WebhookEventStatus",
    "is_transition_allowed",
    "sources_for",
]
