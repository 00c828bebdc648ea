"""
DRF serializers for payments app.

This module provides serializers for:
- PhonePe payment initiation requests and responses
- Payment transaction display

Related files:
    - models/payment_transaction.py: PaymentTransaction
    - views.py: Payment API views

Usage:
    serializer = InitiatePaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    intent = serializer.to_intent(merchant_user_id=str(request.user.pk))
"""

from __future__ import annotations

from django.core.validators import RegexValidator
from rest_framework import serializers

from payments.adapters import PaymentIntent
from payments.models import PaymentTransaction

# PhonePe accepts up to 35 characters: letters, digits, "_" and "-"
MERCHANT_TRANSACTION_ID_MAX_LENGTH = 35

DEVICE_OS_CHOICES = ["ANDROID", "IOS"]


class InitiatePaymentSerializer(serializers.Serializer):
    """
    Request body for starting a PhonePe payment.

    The merchant user id is not part of the body; the view passes the
    authenticated user's id.
    """

    order_id = serializers.CharField(max_length=64)
    amount = serializers.IntegerField(
        min_value=1,
        help_text="Amount in paise (1 INR = 100 paise)",
    )
    merchant_transaction_id = serializers.CharField(
        max_length=MERCHANT_TRANSACTION_ID_MAX_LENGTH,
        validators=[
            RegexValidator(
                r"^[A-Za-z0-9_-]+$",
                "Only letters, digits, '_' and '-' are allowed.",
            )
        ],
    )
    redirect_url = serializers.URLField()
    callback_url = serializers.URLField()
    mobile_number = serializers.RegexField(
        r"^\d{10}$",
        required=False,
        allow_blank=True,
        error_messages={"invalid": "Enter a 10 digit mobile number."},
    )
    device_os = serializers.ChoiceField(choices=DEVICE_OS_CHOICES, required=False)
    metadata = serializers.DictField(required=False, default=dict)

    def validate_merchant_transaction_id(self, value: str) -> str:
        if PaymentTransaction.objects.filter(merchant_transaction_id=value).exists():
            raise serializers.ValidationError("This merchant transaction id has already been used.")
        return value

    def to_intent(self, merchant_user_id: str) -> PaymentIntent:
        """Build the gateway intent from validated data."""
        data = self.validated_data
        return PaymentIntent(
            amount=data["amount"],
            merchant_transaction_id=data["merchant_transaction_id"],
            merchant_user_id=merchant_user_id,
            redirect_url=data["redirect_url"],
            callback_url=data["callback_url"],
            mobile_number=data.get("mobile_number") or None,
            device_os=data.get("device_os") or None,
        )


class PaymentTransactionSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for PaymentTransaction.

    provider_response is left out; it is kept for audit only.
    """

    is_terminal = serializers.BooleanField(read_only=True)

    class Meta:
        model = PaymentTransaction
        fields = [
            "id",
            "order_id",
            "merchant_transaction_id",
            "amount",
            "status",
            "is_terminal",
            "provider_transaction_id",
            "payment_method",
            "response_code",
            "response_message",
            "metadata",
            "created_at",
            "updated_at",
            "completed_at",
            "failed_at",
            "cancelled_at",
            "refunded_at",
        ]
        read_only_fields = fields


class InitiatePaymentResponseSerializer(serializers.Serializer):
    """Response for a successful initiation."""

    merchant_transaction_id = serializers.CharField()
    redirect_url = serializers.URLField(allow_null=True)
    transaction = PaymentTransactionSerializer(allow_null=True)


class TransactionDetailResponseSerializer(PaymentTransactionSerializer):
    """Transaction plus the outcome of an optional provider refresh."""

    status_synced = serializers.BooleanField(allow_null=True, read_only=True)

    class Meta(PaymentTransactionSerializer.Meta):
        fields = PaymentTransactionSerializer.Meta.fields + ["status_synced"]
        read_only_fields = fields
