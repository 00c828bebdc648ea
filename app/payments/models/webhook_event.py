"""
WebhookEvent model for PhonePe server-to-server callback tracking.

Stores every verified callback received from PhonePe for idempotent
processing and audit trails. PhonePe callbacks carry no event id, so
the SHA-256 of the base64 body is used as the idempotency key: a
provider retry of the same callback maps to the same row.

Usage:
    from payments.models import WebhookEvent

    event, created = WebhookEvent.objects.get_or_create(
        event_key=WebhookEvent.compute_event_key(base64_body),
        defaults={
            "merchant_transaction_id": "MT123",
            "code": "PAYMENT_SUCCESS",
            "payload": decoded_payload,
        },
    )
"""

from __future__ import annotations

import hashlib

from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    Tracks PhonePe callbacks for idempotent processing.

    Processing Flow:
        1. Callback arrives, verify X-VERIFY checksum
        2. Insert/get WebhookEvent by event_key
        3. If exists and PROCESSED -> return 200 (duplicate)
        4. Queue processing task
        5. Task sets PROCESSING, applies the status, then PROCESSED or FAILED
        6. If FAILED, retry task picks it up later

    Fields:
        event_key: SHA-256 of the base64 callback body (unique)
        merchant_transaction_id: Transaction the callback refers to
        code: Provider response code in the callback
        payload: Decoded callback JSON
        status: Processing status
        processed_at: When event was successfully processed
        error_message: Error details if processing failed
        retry_count: Number of processing attempts
    """

    MAX_RETRIES = 5

    event_key = models.CharField(
        max_length=64,
        unique=True,
        help_text="SHA-256 of the base64 callback body - unique for idempotency",
    )

    merchant_transaction_id = models.CharField(
        max_length=64,
        db_index=True,
        blank=True,
        default="",
        help_text="Merchant transaction id carried by the callback",
    )

    code = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Provider response code (e.g. PAYMENT_SUCCESS)",
    )

    payload = models.JSONField(
        help_text="Decoded callback payload from PhonePe (JSON)",
    )

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
        help_text="Current processing status",
    )

    processed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When event was successfully processed",
    )

    error_message = models.TextField(
        null=True,
        blank=True,
        help_text="Error message if processing failed",
    )

    retry_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of processing attempts",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["status", "created_at"], name="payments_we_status_3b9e02_idx"),
            models.Index(fields=["status", "retry_count"], name="payments_we_status_f61c4d_idx"),
        ]

    def __str__(self) -> str:
        """Return string representation with transaction id and code."""
        return f"WebhookEvent({self.merchant_transaction_id}, {self.code})"

    @staticmethod
    def compute_event_key(base64_body: str) -> str:
        """Derive the idempotency key for a callback body."""
        return hashlib.sha256(base64_body.encode("utf-8")).hexdigest()

    @property
    def is_processed(self) -> bool:
        """Check if event has been successfully processed."""
        return self.status == WebhookEventStatus.PROCESSED

    @property
    def can_retry(self) -> bool:
        """Check if event can be retried (failed with retry count < max)."""
        return (
            self.status == WebhookEventStatus.FAILED
            and self.retry_count < self.MAX_RETRIES
        )

    def mark_processing(self) -> None:
        """
        Mark event as being processed.

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookEventStatus.PROCESSING
        self.retry_count += 1

    def mark_processed(self) -> None:
        """
        Mark event as successfully processed.

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        """
        Mark event as failed with error message.

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message
