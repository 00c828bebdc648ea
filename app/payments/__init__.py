"""
Payments app for PhonePe integration.

This app handles:
- Payment initiation through the PhonePe hosted payment page
- Payment status checks and reconciliation
- Payment transaction records and their state machine
- PhonePe callback verification and processing

Usage:
    from payments.services import PaymentService

    # Start a payment
    result = PaymentService.initiate_payment(order_id, intent)

    # Refresh its status
    result = PaymentService.sync_status(intent.merchant_transaction_id)
"""
