"""
PaymentTransaction model for PhonePe payment attempts.

A PaymentTransaction is one attempt to pay for an order through the
PhonePe hosted payment page. The merchant transaction id is the
caller-generated idempotency key for the whole flow.

Usage:
    from payments.models import PaymentTransaction
    from payments.state_machines import PaymentTransactionStatus

    txn = PaymentTransaction.objects.create(
        order_id="ord_123",
        merchant_transaction_id="MT7850590068188104",
        amount=10000,
    )

    # State transitions using django-fsm
    txn.mark_pending()  # INITIATED -> PENDING
    txn.save()
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.exceptions import InvalidStateTransitionError
from payments.state_machines import (
    TERMINAL_TRANSACTION_STATES,
    PaymentTransactionStatus,
    is_transition_allowed,
    sources_for,
)


class PaymentTransaction(UUIDPrimaryKeyMixin, BaseModel):
    """
    Persisted record of a single PhonePe payment attempt.

    State Flow:
        INITIATED -> PENDING -> SUCCESS / FAILED
        INITIATED / PENDING -> CANCELLED
        SUCCESS -> REFUNDED

    Fields:
        order_id: Reference to the order in the ordering system
        merchant_transaction_id: Caller-generated idempotency key (unique)
        merchant_user_id: Merchant-side identifier of the payer
        amount: Amount in the smallest currency unit (paise)
        status: Current FSM state
        provider_transaction_id: PhonePe transaction id (once assigned)
        payment_method: Instrument type reported by PhonePe (UPI, CARD, ...)
        response_code / response_message: Last provider code and message
        provider_response: Raw provider response kept for audit
        metadata: Caller-supplied JSON
        *_at timestamps: Track state transition times

    Note:
        Records are never deleted by the payments code.
    """

    # ==========================================================================
    # References
    # ==========================================================================

    order_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Identifier of the order this payment belongs to",
    )

    merchant_transaction_id = models.CharField(
        max_length=64,
        unique=True,
        help_text="Caller-generated idempotency key sent to PhonePe",
    )

    merchant_user_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Merchant-side identifier of the paying user",
    )

    # ==========================================================================
    # Amount & State
    # ==========================================================================

    amount = models.PositiveBigIntegerField(
        help_text="Payment amount in smallest currency unit (paise)",
    )

    status = FSMField(
        default=PaymentTransactionStatus.INITIATED,
        choices=PaymentTransactionStatus.choices,
        db_index=True,
        help_text="Current state of the transaction (managed by FSM)",
    )

    # ==========================================================================
    # Provider Response Fields
    # ==========================================================================

    provider_transaction_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        db_index=True,
        help_text="PhonePe transaction id, assigned by the provider",
    )

    payment_method = models.CharField(
        max_length=32,
        null=True,
        blank=True,
        help_text="Payment instrument type reported by PhonePe",
    )

    response_code = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Last response code reported by PhonePe",
    )

    response_message = models.TextField(
        null=True,
        blank=True,
        help_text="Last response message reported by PhonePe",
    )

    provider_response = models.JSONField(
        null=True,
        blank=True,
        help_text="Raw provider response (stored for audit)",
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Arbitrary JSON metadata supplied by the caller",
    )

    # ==========================================================================
    # State Timestamps
    # ==========================================================================

    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payment reached SUCCESS",
    )

    failed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payment reached FAILED",
    )

    cancelled_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payment was cancelled",
    )

    refunded_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payment was refunded",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Transaction"
        verbose_name_plural = "Payment Transactions"
        indexes = [
            models.Index(fields=["order_id", "created_at"], name="payments_pa_order_i_5c2f1e_idx"),
            models.Index(fields=["status", "created_at"], name="payments_pa_status_8d41a7_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_transaction_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        """Return string representation with merchant id, status, and amount."""
        return (
            f"PaymentTransaction({self.merchant_transaction_id}, "
            f"{self.status}, {self.amount / 100:.2f} INR)"
        )

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is possible."""
        return self.status in TERMINAL_TRANSACTION_STATES

    def transition_to(self, target: str) -> bool:
        """
        Move to target through the matching FSM transition.

        Does not save. Returns False when already in target (no-op).

        Raises:
            InvalidStateTransitionError: target is not reachable from
                the current status
        """
        if self.status == target:
            return False
        if not is_transition_allowed(self.status, target):
            raise InvalidStateTransitionError(
                f"Cannot move transaction {self.merchant_transaction_id} "
                f"from {self.status} to {target}",
                details={
                    "merchant_transaction_id": self.merchant_transaction_id,
                    "current_state": str(self.status),
                    "target_state": str(target),
                },
            )
        getattr(self, TRANSITION_METHODS[target])()
        return True

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=sources_for(PaymentTransactionStatus.PENDING),
        target=PaymentTransactionStatus.PENDING,
    )
    def mark_pending(self):
        """
        Payment accepted by PhonePe, waiting for the payer.

        Transition: INITIATED -> PENDING
        """
        pass

    @transition(
        field=status,
        source=sources_for(PaymentTransactionStatus.SUCCESS),
        target=PaymentTransactionStatus.SUCCESS,
    )
    def mark_success(self):
        """
        Payment completed.

        Transition: INITIATED/PENDING -> SUCCESS
        """
        self.completed_at = timezone.now()

    @transition(
        field=status,
        source=sources_for(PaymentTransactionStatus.FAILED),
        target=PaymentTransactionStatus.FAILED,
    )
    def mark_failed(self):
        """
        Payment failed or was rejected by PhonePe.

        Transition: INITIATED/PENDING -> FAILED
        """
        self.failed_at = timezone.now()

    @transition(
        field=status,
        source=sources_for(PaymentTransactionStatus.CANCELLED),
        target=PaymentTransactionStatus.CANCELLED,
    )
    def cancel(self):
        """
        Cancel the payment before it completes.

        Transition: INITIATED/PENDING -> CANCELLED
        """
        self.cancelled_at = timezone.now()

    @transition(
        field=status,
        source=sources_for(PaymentTransactionStatus.REFUNDED),
        target=PaymentTransactionStatus.REFUNDED,
    )
    def refund(self):
        """
        Mark a completed payment as refunded.

        Transition: SUCCESS -> REFUNDED
        """
        self.refunded_at = timezone.now()


# Maps a target status to the FSM transition method that reaches it.
TRANSITION_METHODS: dict[str, str] = {
    PaymentTransactionStatus.PENDING.value: "mark_pending",
    PaymentTransactionStatus.SUCCESS.value: "mark_success",
    PaymentTransactionStatus.FAILED.value: "mark_failed",
    PaymentTransactionStatus.CANCELLED.value: "cancel",
    PaymentTransactionStatus.REFUNDED.value: "refund",
}
