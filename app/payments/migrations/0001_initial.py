import uuid

import django_fsm
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PaymentTransaction",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "order_id",
                    models.CharField(
                        db_index=True,
                        help_text="Identifier of the order this payment belongs to",
                        max_length=64,
                    ),
                ),
                (
                    "merchant_transaction_id",
                    models.CharField(
                        help_text="Caller-generated idempotency key sent to PhonePe",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "merchant_user_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Merchant-side identifier of the paying user",
                        max_length=64,
                    ),
                ),
                (
                    "amount",
                    models.PositiveBigIntegerField(
                        help_text="Payment amount in smallest currency unit (paise)",
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("INITIATED", "Initiated"),
                            ("PENDING", "Pending"),
                            ("SUCCESS", "Success"),
                            ("FAILED", "Failed"),
                            ("REFUNDED", "Refunded"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        db_index=True,
                        default="INITIATED",
                        help_text="Current state of the transaction (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "provider_transaction_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="PhonePe transaction id, assigned by the provider",
                        max_length=64,
                        null=True,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        help_text="Payment instrument type reported by PhonePe",
                        max_length=32,
                        null=True,
                    ),
                ),
                (
                    "response_code",
                    models.CharField(
                        blank=True,
                        help_text="Last response code reported by PhonePe",
                        max_length=64,
                        null=True,
                    ),
                ),
                (
                    "response_message",
                    models.TextField(
                        blank=True,
                        help_text="Last response message reported by PhonePe",
                        null=True,
                    ),
                ),
                (
                    "provider_response",
                    models.JSONField(
                        blank=True,
                        help_text="Raw provider response (stored for audit)",
                        null=True,
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Arbitrary JSON metadata supplied by the caller",
                    ),
                ),
                (
                    "completed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the payment reached SUCCESS",
                        null=True,
                    ),
                ),
                (
                    "failed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the payment reached FAILED",
                        null=True,
                    ),
                ),
                (
                    "cancelled_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the payment was cancelled",
                        null=True,
                    ),
                ),
                (
                    "refunded_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the payment was refunded",
                        null=True,
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment Transaction",
                "verbose_name_plural": "Payment Transactions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["order_id", "created_at"],
                        name="payments_pa_order_i_5c2f1e_idx",
                    ),
                    models.Index(
                        fields=["status", "created_at"],
                        name="payments_pa_status_8d41a7_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(amount__gt=0),
                        name="payment_transaction_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "event_key",
                    models.CharField(
                        help_text="SHA-256 of the base64 callback body - unique for idempotency",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "merchant_transaction_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        default="",
                        help_text="Merchant transaction id carried by the callback",
                        max_length=64,
                    ),
                ),
                (
                    "code",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Provider response code (e.g. PAYMENT_SUCCESS)",
                        max_length=64,
                    ),
                ),
                (
                    "payload",
                    models.JSONField(
                        help_text="Decoded callback payload from PhonePe (JSON)",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("processed", "Processed"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current processing status",
                        max_length=20,
                    ),
                ),
                (
                    "processed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When event was successfully processed",
                        null=True,
                    ),
                ),
                (
                    "error_message",
                    models.TextField(
                        blank=True,
                        help_text="Error message if processing failed",
                        null=True,
                    ),
                ),
                (
                    "retry_count",
                    models.PositiveSmallIntegerField(
                        default=0,
                        help_text="Number of processing attempts",
                    ),
                ),
            ],
            options={
                "verbose_name": "Webhook Event",
                "verbose_name_plural": "Webhook Events",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "created_at"],
                        name="payments_we_status_3b9e02_idx",
                    ),
                    models.Index(
                        fields=["status", "retry_count"],
                        name="payments_we_status_f61c4d_idx",
                    ),
                ],
            },
        ),
    ]
