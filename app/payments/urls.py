"""
URL configuration for the payments app.

Routes:
    - POST /phonepe/initiate/ - Start a PhonePe payment
    - GET /phonepe/transactions/<merchant_transaction_id>/ - Transaction detail
    - GET /phonepe/orders/<order_id>/transactions/ - Order history
    - POST /webhooks/phonepe/ - PhonePe callback endpoint

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments.views import InitiatePaymentView, OrderTransactionsView, TransactionDetailView
from payments.webhooks.views import phonepe_webhook

app_name = "payments"

urlpatterns = [
    # PhonePe API
    path("phonepe/initiate/", InitiatePaymentView.as_view(), name="phonepe_initiate"),
    path(
        "phonepe/transactions/<str:merchant_transaction_id>/",
        TransactionDetailView.as_view(),
        name="phonepe_transaction_detail",
    ),
    path(
        "phonepe/orders/<str:order_id>/transactions/",
        OrderTransactionsView.as_view(),
        name="phonepe_order_transactions",
    ),
    # Webhook endpoints
    path("webhooks/phonepe/", phonepe_webhook, name="phonepe_webhook"),
]
