"""
Payment admin configuration.

Registers PhonePe payment models with the Django admin. Status changes
go through PaymentService, so status fields are read-only here.
"""

from django.contrib import admin

from payments.models import PaymentTransaction, WebhookEvent

__all__ = [
    "PaymentTransactionAdmin",
    "WebhookEventAdmin",
]


@admin.register(PaymentTransaction)
class PaymentTransactionAdmin(admin.ModelAdmin):
    """
    Admin configuration for PaymentTransaction.

    Provides visibility into PhonePe payment attempts and their states.
    """

    list_display = [
        "merchant_transaction_id",
        "order_id",
        "amount_display",
        "status",
        "payment_method",
        "response_code",
        "created_at",
    ]
    list_filter = ["status", "payment_method", "created_at"]
    search_fields = [
        "id",
        "merchant_transaction_id",
        "order_id",
        "merchant_user_id",
        "provider_transaction_id",
    ]
    readonly_fields = [
        "id",
        "status",
        "created_at",
        "updated_at",
        "provider_transaction_id",
        "payment_method",
        "response_code",
        "response_message",
        "provider_response",
        "completed_at",
        "failed_at",
        "cancelled_at",
        "refunded_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "order_id", "merchant_transaction_id", "status"),
            },
        ),
        (
            "Payment Details",
            {
                "fields": ("amount", "merchant_user_id", "metadata"),
            },
        ),
        (
            "Provider Response",
            {
                "fields": (
                    "provider_transaction_id",
                    "payment_method",
                    "response_code",
                    "response_message",
                    "provider_response",
                ),
                "classes": ("collapse",),
            },
        ),
        (
            "State Timestamps",
            {
                "fields": (
                    "completed_at",
                    "failed_at",
                    "cancelled_at",
                    "refunded_at",
                ),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def amount_display(self, obj: PaymentTransaction) -> str:
        """Display the amount in rupees."""
        return f"₹{obj.amount / 100:.2f}"

    amount_display.short_description = "Amount"

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for payment transactions (audit trail)."""
        return False


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Provides visibility into callback processing status.
    Callback payloads are immutable once received.
    """

    list_display = [
        "id",
        "merchant_transaction_id",
        "code",
        "status",
        "retry_count",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "code", "created_at"]
    search_fields = ["id", "merchant_transaction_id", "code", "event_key"]
    readonly_fields = [
        "id",
        "created_at",
        "updated_at",
        "event_key",
        "merchant_transaction_id",
        "code",
        "payload",
        "processed_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "event_key", "merchant_transaction_id", "code", "status"),
            },
        ),
        (
            "Processing",
            {
                "fields": ("processed_at", "retry_count"),
            },
        ),
        (
            "Error Info",
            {
                "fields": ("error_message",),
                "classes": ("collapse",),
            },
        ),
        (
            "Payload",
            {
                "fields": ("payload",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )
