"""
Payments app configuration.

This app provides PhonePe payment processing infrastructure:
- Gateway adapter with request signing and retries
- Transaction records with FSM-managed status
- Callback handling and reconciliation tasks
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
