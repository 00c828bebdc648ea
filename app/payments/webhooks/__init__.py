"""
Webhook handling for PhonePe payment callbacks.

This module provides the verifier, view and handlers for PhonePe
server-to-server callbacks. Callbacks are verified, stored
idempotently, and processed asynchronously via Celery tasks.

Usage:
    # In urls.py
    from payments.webhooks.views import phonepe_webhook

    urlpatterns = [
        path("webhooks/phonepe/", phonepe_webhook, name="phonepe_webhook"),
    ]
"""

from payments.webhooks.handlers import dispatch_webhook, register_handler
from payments.webhooks.verifier import WebhookVerifier
from payments.webhooks.views import phonepe_webhook

__all__ = [
    "WebhookVerifier",
    "dispatch_webhook",
    "phonepe_webhook",
    "register_handler",
]
