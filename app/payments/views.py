"""
DRF views for payments app.

This module provides API views for:
- PhonePe payment initiation
- Transaction lookup with optional provider refresh
- Order transaction history

Related files:
    - services/payment_service.py: PaymentService
    - serializers.py: Request/response serializers
    - urls.py: URL routing
    - webhooks/views.py: PhonePe callback endpoint

Endpoints:
    POST /api/v1/payments/phonepe/initiate/ - Start a payment
    GET /api/v1/payments/phonepe/transactions/{merchant_transaction_id}/ - Transaction detail
    GET /api/v1/payments/phonepe/orders/{order_id}/transactions/ - Order history
    POST /api/v1/payments/webhooks/phonepe/ - PhonePe callback endpoint

Security:
    - All endpoints require authentication except the callback
    - Users see only transactions they initiated (staff see all)
    - The callback verifies PhonePe's X-VERIFY checksum
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.adapters import CONFIG_ERROR_CODE
from payments.serializers import (
    InitiatePaymentResponseSerializer,
    InitiatePaymentSerializer,
    PaymentTransactionSerializer,
    TransactionDetailResponseSerializer,
)
from payments.services import PaymentService

logger = logging.getLogger(__name__)


def _visible_to(request, txn) -> bool:
    return request.user.is_staff or txn.merchant_user_id == str(request.user.pk)


class InitiatePaymentView(APIView):
    """
    Start a PhonePe hosted-page payment.

    POST /api/v1/payments/phonepe/initiate/

    Request body:
        {
            "order_id": "ord_123",
            "amount": 10000,
            "merchant_transaction_id": "MT7850590068188104",
            "redirect_url": "https://shop.example/payments/return",
            "callback_url": "https://shop.example/api/v1/payments/webhooks/phonepe/"
        }

    Returns:
        201 {"merchant_transaction_id", "redirect_url", "transaction"}
        502 gateway failure (provider code in error_code)
        503 PhonePe not configured
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="phonepe_initiate_payment",
        summary="Initiate PhonePe payment",
        request=InitiatePaymentSerializer,
        responses={
            201: InitiatePaymentResponseSerializer,
            400: OpenApiResponse(description="Invalid request body"),
            502: OpenApiResponse(description="PhonePe rejected or did not answer the request"),
            503: OpenApiResponse(description="PhonePe credentials not configured"),
        },
        tags=["Payments - PhonePe"],
    )
    def post(self, request):
        serializer = InitiatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        intent = serializer.to_intent(merchant_user_id=str(request.user.pk))
        result = PaymentService.initiate_payment(
            order_id=serializer.validated_data["order_id"],
            intent=intent,
            metadata=serializer.validated_data.get("metadata") or None,
        )

        if result.success:
            payload = InitiatePaymentResponseSerializer(
                {
                    "merchant_transaction_id": result.data.merchant_transaction_id,
                    "redirect_url": result.data.redirect_url,
                    "transaction": result.data.transaction,
                }
            ).data
            return Response(payload, status=status.HTTP_201_CREATED)

        response_status = (
            status.HTTP_503_SERVICE_UNAVAILABLE
            if result.error_code == CONFIG_ERROR_CODE
            else status.HTTP_502_BAD_GATEWAY
        )
        body = result.to_response()
        body["merchant_transaction_id"] = intent.merchant_transaction_id
        return Response(body, status=response_status)


class TransactionDetailView(APIView):
    """
    Get a transaction, optionally refreshed from PhonePe first.

    GET /api/v1/payments/phonepe/transactions/{merchant_transaction_id}/?refresh=true

    status_synced is null without refresh, true when the provider
    status was applied, false when it could not be determined.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="phonepe_get_transaction",
        summary="Get payment transaction",
        parameters=[
            OpenApiParameter(
                name="refresh",
                type=bool,
                location=OpenApiParameter.QUERY,
                description="Check status with PhonePe before responding",
                required=False,
            ),
        ],
        responses={
            200: TransactionDetailResponseSerializer,
            404: OpenApiResponse(description="Transaction not found"),
        },
        tags=["Payments - PhonePe"],
    )
    def get(self, request, merchant_transaction_id: str):
        result = PaymentService.get_transaction(merchant_transaction_id)
        if not result.success or not _visible_to(request, result.data):
            return Response(
                {"detail": "Payment transaction not found."},
                status=status.HTTP_404_NOT_FOUND,
            )

        txn = result.data
        status_synced = None
        if request.query_params.get("refresh", "").lower() in ("1", "true", "yes"):
            sync_result = PaymentService.sync_status(merchant_transaction_id)
            status_synced = sync_result.success
            if sync_result.data is not None:
                txn = sync_result.data
            if not sync_result.success:
                logger.info(
                    "Transaction refresh did not update status",
                    extra={
                        "merchant_transaction_id": merchant_transaction_id,
                        "error_code": sync_result.error_code,
                    },
                )

        txn.status_synced = status_synced
        return Response(TransactionDetailResponseSerializer(txn).data)


class OrderTransactionsView(APIView):
    """
    List an order's payment attempts, newest first.

    GET /api/v1/payments/phonepe/orders/{order_id}/transactions/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="phonepe_list_order_transactions",
        summary="List order payment transactions",
        responses={200: PaymentTransactionSerializer(many=True)},
        tags=["Payments - PhonePe"],
    )
    def get(self, request, order_id: str):
        result = PaymentService.list_order_transactions(order_id)
        transactions = [txn for txn in result.data or [] if _visible_to(request, txn)]
        return Response(PaymentTransactionSerializer(transactions, many=True).data)
