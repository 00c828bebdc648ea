"""
Payment services for coordinating PhonePe payment operations.

This module provides:
- PaymentService: Entry point for initiation, status sync and updates
- TransactionStore / DjangoTransactionStore: Persistence of payment records
- extract_provider_fields: Mapping of raw provider responses to record fields

Usage:
    from payments.services import PaymentService

    result = PaymentService.initiate_payment(order_id, intent)
    result = PaymentService.sync_status("MT123")
    result = PaymentService.cancel_payment("MT123")
"""

from payments.services.payment_service import (
    PROVIDER_CODE_MAP,
    PROVIDER_STATE_MAP,
    STATUS_UNKNOWN_CODE,
    InitiatedPayment,
    PaymentService,
    map_provider_status,
)
from payments.services.transaction_store import (
    DjangoTransactionStore,
    ProviderResponseFields,
    TransactionStore,
    extract_provider_fields,
)

__all__ = [
    "DjangoTransactionStore",
    "InitiatedPayment",
    "PROVIDER_CODE_MAP",
    "PROVIDER_STATE_MAP",
    "PaymentService",
    "ProviderResponseFields",
    "STATUS_UNKNOWN_CODE",
    "TransactionStore",
    "extract_provider_fields",
    "map_provider_status",
]
