"""
Webhook endpoint views for PhonePe.

This module provides the HTTP endpoint for PhonePe server-to-server
callbacks. The view:
1. Verifies the X-VERIFY checksum over the base64 body
2. Creates/retrieves the WebhookEvent record (idempotent)
3. Queues the event for async processing
4. Returns immediately

Callback format:
    POST {"response": "<base64 JSON>"}
    X-VERIFY: sha256(response + saltKey) + "###" + saltIndex

Usage:
    # In urls.py
    from payments.webhooks.views import phonepe_webhook

    urlpatterns = [
        path("webhooks/phonepe/", phonepe_webhook, name="phonepe_webhook"),
    ]
"""

from __future__ import annotations

import json
import logging

from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.adapters import decode_payload
from payments.exceptions import WebhookVerificationError
from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus
from payments.webhooks.verifier import WebhookVerifier


logger = logging.getLogger(__name__)


def _read_callback(request: HttpRequest) -> tuple[str, dict]:
    """
    Extract and authenticate the callback body.

    Returns:
        (base64 body, decoded payload)

    Raises:
        WebhookVerificationError: Missing fields, bad checksum or an
            undecodable payload
    """
    try:
        envelope = json.loads(request.body or b"{}")
    except (ValueError, UnicodeDecodeError) as e:
        raise WebhookVerificationError("Invalid JSON body") from e

    base64_body = envelope.get("response") if isinstance(envelope, dict) else None
    if not isinstance(base64_body, str) or not base64_body:
        raise WebhookVerificationError("Missing response field")

    checksum = request.headers.get("X-VERIFY", "")
    if not checksum:
        raise WebhookVerificationError("Missing signature")

    if not WebhookVerifier().verify(base64_body, checksum):
        raise WebhookVerificationError("Invalid signature")

    try:
        payload = decode_payload(base64_body)
    except ValueError as e:
        raise WebhookVerificationError("Invalid response payload") from e
    if not isinstance(payload, dict):
        raise WebhookVerificationError("Invalid response payload")

    return base64_body, payload


@csrf_exempt
@require_POST
def phonepe_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive and queue PhonePe payment callbacks.

    Security:
    - Checksum verification prevents spoofed callbacks
    - CSRF exemption required for external webhooks
    - Only POST requests accepted

    Idempotency:
    - WebhookEvent.event_key (SHA-256 of the body) is unique
    - Duplicate callbacks return 200 without reprocessing

    Returns:
        HttpResponse with status:
        - 200: Callback accepted (new or duplicate)
        - 400: Missing/invalid signature or payload
    """
    try:
        base64_body, payload = _read_callback(request)
    except WebhookVerificationError as e:
        logger.warning(
            "PhonePe callback rejected",
            extra={"error": e.message},
        )
        return HttpResponse(e.message, status=400)

    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    merchant_transaction_id = str(data.get("merchantTransactionId") or "")
    code = str(payload.get("code") or "")

    logger.info(
        f"Received PhonePe callback: {code}",
        extra={
            "merchant_transaction_id": merchant_transaction_id,
            "code": code,
        },
    )

    webhook_event, created = WebhookEvent.objects.get_or_create(
        event_key=WebhookEvent.compute_event_key(base64_body),
        defaults={
            "merchant_transaction_id": merchant_transaction_id,
            "code": code,
            "payload": payload,
            "status": WebhookEventStatus.PENDING,
        },
    )

    if not created:
        if webhook_event.status == WebhookEventStatus.PROCESSED:
            logger.info(
                "Callback already processed, returning success",
                extra={"merchant_transaction_id": merchant_transaction_id},
            )
            return HttpResponse("Already processed", status=200)

        logger.info(
            f"Callback already exists with status: {webhook_event.status}",
            extra={"merchant_transaction_id": merchant_transaction_id},
        )

    try:
        from payments.tasks import process_webhook_event

        process_webhook_event.delay(str(webhook_event.id))
        logger.info(
            "Callback queued for processing",
            extra={
                "merchant_transaction_id": merchant_transaction_id,
                "webhook_event_id": str(webhook_event.id),
            },
        )
    except Exception as e:
        # Stored as PENDING; retry_failed_webhooks and PhonePe's own
        # retries pick it up.
        logger.error(
            f"Failed to queue callback: {type(e).__name__}",
            extra={"merchant_transaction_id": merchant_transaction_id},
            exc_info=True,
        )

    return HttpResponse("Accepted", status=200)
