"""
PhonePe Pay API adapter for payment operations.

This module provides the PhonePeAdapter class which encapsulates all
PhonePe API interactions. All PhonePe calls should go through this
adapter to ensure consistent signing, timeouts, retries and logging.

Features:
- X-VERIFY checksum on every request
- Configurable timeouts on all API calls
- Retry with backoff through core.retry.RetryPolicy (tenacity)
- Gateway failures returned as GatewayResult values, never raised
- Structured logging with timing metrics

Retry policies differ per operation:

    initiate_payment: exponential 1s, 2s, ... (default 2 retries). Stops
        immediately on BAD_REQUEST / INVALID_MERCHANT / DUPLICATE_TRANSACTION.
        Exhaustion returns code "ERROR" with the last error message.

    check_status: linear 1s, 2s, 3s, ... (default 3 retries). Every
        failure is retried. Exhaustion returns None ("status unknown").

Usage:
    from payments.adapters import PaymentIntent, get_phonepe_adapter

    adapter = get_phonepe_adapter()
    result = adapter.initiate_payment(
        PaymentIntent(
            amount=10000,
            merchant_transaction_id="MT123",
            merchant_user_id="U1",
            redirect_url="https://shop.example/r",
            callback_url="https://shop.example/cb",
        )
    )
    if result.success:
        redirect_to(result.redirect_url)

    status = adapter.check_status("MT123")
    if status is None:
        schedule_reconciliation("MT123")
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Callable

import requests

from core.retry import RetryPolicy, exponential_backoff, linear_backoff
from payments.adapters.config import PhonePeConfig, get_phonepe_config
from payments.adapters.payloads import (
    PAY_ENDPOINT,
    build_initiation_payload,
    encode_payload,
    status_endpoint,
)
from payments.adapters.responses import (
    CONFIG_ERROR_CODE,
    EXHAUSTED_ERROR_CODE,
    GatewayResult,
    KnownErrorResponse,
    RedirectResponse,
    StateResponse,
    UnrecognizedResponse,
    decode_provider_response,
)
from payments.adapters.signing import ChecksumSigner
from payments.exceptions import (
    GatewayConfigurationError,
    PermanentGatewayError,
    TransientGatewayError,
)

if TYPE_CHECKING:
    from payments.adapters.payloads import PaymentIntent
    from payments.adapters.responses import ProviderResponse
    from payments.adapters.signing import SignedRequest


class PhonePeAdapter:
    """
    Adapter for PhonePe Pay API operations.

    Configuration, HTTP session and sleep function are injected so the
    adapter can be exercised without network access or real delays.

    Usage:
        adapter = PhonePeAdapter(config=get_phonepe_config())
        result = adapter.initiate_payment(intent)
        status = adapter.check_status(merchant_transaction_id)
    """

    def __init__(
        self,
        config: PhonePeConfig | None = None,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config if config is not None else get_phonepe_config()
        self.signer = ChecksumSigner(self.config)
        self._session = session if session is not None else requests.Session()
        self._sleep = sleep

    def close(self) -> None:
        """Release the HTTP session's pooled connections."""
        self._session.close()

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Retry Policies
    # =========================================================================

    def initiation_policy(self, max_retries: int | None = None) -> RetryPolicy:
        """Exponential backoff; only transient failures are retried."""
        return RetryPolicy(
            max_retries=self.config.initiate_max_retries if max_retries is None else max_retries,
            backoff=exponential_backoff(1.0),
            retry_on=(TransientGatewayError,),
            sleep=self._sleep,
            name="phonepe.initiate_payment",
        )

    def status_policy(self, max_retries: int | None = None) -> RetryPolicy:
        """Linear backoff; every failure is retried."""
        return RetryPolicy(
            max_retries=self.config.status_max_retries if max_retries is None else max_retries,
            backoff=linear_backoff(1.0),
            retry_on=(TransientGatewayError,),
            sleep=self._sleep,
            name="phonepe.check_status",
        )

    # =========================================================================
    # Core Operations
    # =========================================================================

    def initiate_payment(
        self,
        intent: PaymentIntent,
        max_retries: int | None = None,
        deadline_seconds: float | None = None,
    ) -> GatewayResult:
        """
        Start a hosted-page payment.

        Args:
            intent: Payment details
            max_retries: Additional attempts after the first (default from config)
            deadline_seconds: Optional wall-clock budget for all attempts

        Returns:
            GatewayResult. On success, data is the provider "data" object
            unmodified and redirect_url is the hosted payment page.
            Failure codes: CONFIG_ERROR (no network call), a permanent
            provider code (one call), or ERROR after exhausting retries.
        """
        logger = self.get_logger()
        log_context = {
            "operation": "initiate_payment",
            "merchant_transaction_id": intent.merchant_transaction_id,
            "amount": intent.amount,
            "environment": self.config.environment,
        }

        try:
            self._ensure_configured()
        except GatewayConfigurationError as e:
            logger.error("PhonePe credentials not configured", extra=log_context)
            return GatewayResult(success=False, code=e.error_code, message=e.message)

        encoded = encode_payload(build_initiation_payload(intent, self.config.merchant_id))
        signed = self.signer.sign_request(encoded, PAY_ENDPOINT)
        policy = self.initiation_policy(max_retries)
        attempts = 0

        def attempt() -> GatewayResult:
            nonlocal attempts
            attempts += 1
            logger.info(
                f"Initiating payment (attempt {attempts}/{policy.max_attempts})",
                extra=log_context,
            )
            response = self._send("POST", signed, log_context)

            if response.success and isinstance(response, (RedirectResponse, StateResponse)):
                return GatewayResult.from_response(response)

            if isinstance(response, KnownErrorResponse) and response.is_permanent:
                raise PermanentGatewayError(
                    response.message or "Payment initiation failed",
                    provider_code=response.code,
                    details={"response": response.raw},
                )

            raise TransientGatewayError(
                _failure_message(response, "Payment initiation failed"),
                provider_code=getattr(response, "code", None) or None,
            )

        start_time = time.time()
        try:
            result = policy.call(attempt, deadline_seconds=deadline_seconds)
        except PermanentGatewayError as e:
            logger.warning(
                "Payment initiation rejected by PhonePe",
                extra={
                    **log_context,
                    "code": e.provider_code,
                    "attempts": attempts,
                    "duration_ms": (time.time() - start_time) * 1000,
                },
            )
            response = decode_provider_response(e.details.get("response"))
            return GatewayResult(
                success=False,
                code=e.provider_code or "",
                message=e.message,
                data=getattr(response, "data", None),
                response=response,
            )
        except TransientGatewayError as e:
            logger.error(
                "Payment initiation failed after all retries",
                extra={
                    **log_context,
                    "code": EXHAUSTED_ERROR_CODE,
                    "last_error": e.message,
                    "attempts": attempts,
                    "duration_ms": (time.time() - start_time) * 1000,
                },
            )
            return GatewayResult(
                success=False,
                code=EXHAUSTED_ERROR_CODE,
                message=e.message or "Payment initiation failed after multiple attempts",
            )

        logger.info(
            "Payment initiation accepted",
            extra={
                **log_context,
                "code": result.code,
                "attempts": attempts,
                "duration_ms": (time.time() - start_time) * 1000,
            },
        )
        return result

    def check_status(
        self,
        merchant_transaction_id: str,
        max_retries: int | None = None,
        deadline_seconds: float | None = None,
    ) -> GatewayResult | None:
        """
        Read the provider's view of a transaction.

        Args:
            merchant_transaction_id: Transaction to look up
            max_retries: Additional attempts after the first (default from config)
            deadline_seconds: Optional wall-clock budget for all attempts

        Returns:
            GatewayResult carrying the provider state, or None when the
            status is unknown (credentials missing or retries exhausted).
            None is not a FAILED payment; callers reconcile later.
        """
        logger = self.get_logger()
        log_context = {
            "operation": "check_status",
            "merchant_transaction_id": merchant_transaction_id,
            "environment": self.config.environment,
        }

        try:
            self._ensure_configured()
        except GatewayConfigurationError:
            logger.error("PhonePe credentials not configured", extra=log_context)
            return None

        endpoint = status_endpoint(self.config.merchant_id, merchant_transaction_id)
        signed = self.signer.sign_request("", endpoint)
        policy = self.status_policy(max_retries)
        attempts = 0

        def attempt() -> GatewayResult:
            nonlocal attempts
            attempts += 1
            logger.info(
                f"Checking payment status (attempt {attempts}/{policy.max_attempts})",
                extra=log_context,
            )
            response = self._send("GET", signed, log_context)
            if isinstance(response, StateResponse):
                return GatewayResult.from_response(response)
            raise TransientGatewayError(
                _failure_message(response, "Payment status check failed"),
                provider_code=getattr(response, "code", None) or None,
            )

        start_time = time.time()
        try:
            result = policy.call(attempt, deadline_seconds=deadline_seconds)
        except TransientGatewayError as e:
            logger.error(
                "Payment status check failed after all retries",
                extra={
                    **log_context,
                    "last_error": e.message,
                    "attempts": attempts,
                    "duration_ms": (time.time() - start_time) * 1000,
                },
            )
            return None

        logger.info(
            "Payment status received",
            extra={
                **log_context,
                "code": result.code,
                "state": result.state,
                "attempts": attempts,
                "duration_ms": (time.time() - start_time) * 1000,
            },
        )
        return result

    # =========================================================================
    # Transport
    # =========================================================================

    def _ensure_configured(self) -> None:
        if not self.config.is_configured:
            raise GatewayConfigurationError(
                "PhonePe credentials not configured. Please check your environment variables.",
                error_code=CONFIG_ERROR_CODE,
            )

    def _headers(self, signed: SignedRequest) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-VERIFY": signed.checksum,
            "X-MERCHANT-ID": self.config.merchant_id,
        }

    def _send(
        self,
        method: str,
        signed: SignedRequest,
        log_context: dict,
    ) -> ProviderResponse:
        """
        Perform one HTTP exchange and decode the body.

        Raises:
            TransientGatewayError: Network error, timeout, non-2xx status
                or a body that is not JSON
        """
        url = f"{self.config.base_url}{signed.endpoint}"
        start_time = time.time()
        try:
            if method == "POST":
                response = self._session.post(
                    url,
                    json={"request": signed.payload},
                    headers=self._headers(signed),
                    timeout=self.config.timeout_seconds,
                )
            else:
                response = self._session.get(
                    url,
                    headers=self._headers(signed),
                    timeout=self.config.timeout_seconds,
                )
        except requests.Timeout as e:
            raise TransientGatewayError(
                f"Request timed out: {e}",
                provider_code="TIMEOUT",
            ) from e
        except requests.RequestException as e:
            raise TransientGatewayError(
                f"Request failed: {e}",
                provider_code="NETWORK_ERROR",
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        if not response.ok:
            self.get_logger().warning(
                "PhonePe returned an error status",
                extra={**log_context, "http_status": response.status_code, "duration_ms": duration_ms},
            )
            raise TransientGatewayError(
                f"HTTP {response.status_code}: {response.reason}",
                provider_code=f"HTTP_{response.status_code}",
            )

        try:
            body = response.json()
        except ValueError as e:
            raise TransientGatewayError(
                "Invalid JSON in PhonePe response",
                provider_code="INVALID_RESPONSE",
            ) from e

        decoded = decode_provider_response(body)
        self.get_logger().debug(
            "PhonePe response received",
            extra={
                **log_context,
                "success": decoded.success,
                "code": getattr(decoded, "code", None),
                "duration_ms": duration_ms,
            },
        )
        return decoded


def _failure_message(response: ProviderResponse, default: str) -> str:
    if isinstance(response, UnrecognizedResponse):
        return f"Unrecognized PhonePe response: {response.reason}"
    return response.message or default


# =============================================================================
# Shared Adapter
# =============================================================================

_shared_adapter: PhonePeAdapter | None = None
_shared_adapter_lock = threading.Lock()


def get_phonepe_adapter() -> PhonePeAdapter:
    """
    Process-wide adapter for the current configuration.

    Its HTTP session (and connection pool) is reused across calls. A
    configuration change replaces the adapter and closes the old session.
    """
    global _shared_adapter

    config = get_phonepe_config()
    with _shared_adapter_lock:
        if _shared_adapter is None or _shared_adapter.config != config:
            if _shared_adapter is not None:
                _shared_adapter.close()
            _shared_adapter = PhonePeAdapter(config=config)
        return _shared_adapter
