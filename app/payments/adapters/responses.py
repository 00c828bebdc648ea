"""
Decoding of PhonePe API responses into explicit variants.

Every PhonePe response shares the envelope
{"success": bool, "code": str, "message": str, "data": {...}}, but
what "data" contains depends on the call and the outcome. Instead of
reaching into nested dicts at call sites, responses are decoded once
into one of these variants:

    RedirectResponse      - initiation accepted, hosted page URL present
    StateResponse         - status check result carrying data.state
    KnownErrorResponse    - success=false with a documented error code
    UnknownErrorResponse  - success=false with any other code
    UnrecognizedResponse  - body does not match the envelope at all

GatewayResult is what the adapter hands back to callers: a flat
success/code/message triple plus the provider data, unmodified.

Usage:
    from payments.adapters.responses import decode_provider_response

    decoded = decode_provider_response(response.json())
    if isinstance(decoded, RedirectResponse):
        redirect_to(decoded.redirect_url)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

# Initiation errors where the request itself is invalid. Retrying
# cannot change the outcome.
PERMANENT_FAILURE_CODES: frozenset[str] = frozenset(
    {
        "BAD_REQUEST",
        "INVALID_MERCHANT",
        "DUPLICATE_TRANSACTION",
    }
)

KNOWN_ERROR_CODES: frozenset[str] = PERMANENT_FAILURE_CODES | frozenset(
    {
        "AUTHORIZATION_FAILED",
        "INTERNAL_SERVER_ERROR",
        "TRANSACTION_NOT_FOUND",
        "PAYMENT_ERROR",
        "PAYMENT_DECLINED",
        "PAYMENT_PENDING",
        "TIMED_OUT",
    }
)

# Result codes produced locally rather than by PhonePe
CONFIG_ERROR_CODE = "CONFIG_ERROR"
EXHAUSTED_ERROR_CODE = "ERROR"


# =============================================================================
# Response Variants
# =============================================================================


@dataclass(frozen=True)
class RedirectResponse:
    """Initiation accepted; the payer must be sent to redirect_url."""

    code: str
    message: str
    redirect_url: str
    data: dict[str, Any]
    raw: dict[str, Any] = field(repr=False)
    success: bool = True


@dataclass(frozen=True)
class StateResponse:
    """
    Status check result.

    success mirrors the envelope flag: PhonePe reports a FAILED
    payment with success=false while still returning its state.
    """

    code: str
    message: str
    state: str
    data: dict[str, Any]
    raw: dict[str, Any] = field(repr=False)
    success: bool = True


@dataclass(frozen=True)
class KnownErrorResponse:
    """Provider failure with a documented code."""

    code: str
    message: str
    data: dict[str, Any] | None
    raw: dict[str, Any] = field(repr=False)
    success: bool = False

    @property
    def is_permanent(self) -> bool:
        return self.code in PERMANENT_FAILURE_CODES


@dataclass(frozen=True)
class UnknownErrorResponse:
    """Provider failure with a code this client does not know."""

    code: str
    message: str
    data: dict[str, Any] | None
    raw: dict[str, Any] = field(repr=False)
    success: bool = False


@dataclass(frozen=True)
class UnrecognizedResponse:
    """Body that is not a PhonePe envelope."""

    reason: str
    raw: Any = field(repr=False, default=None)
    success: bool = False


ProviderResponse = Union[
    RedirectResponse,
    StateResponse,
    KnownErrorResponse,
    UnknownErrorResponse,
    UnrecognizedResponse,
]


def _redirect_url(data: dict[str, Any]) -> str | None:
    instrument = data.get("instrumentResponse")
    if not isinstance(instrument, dict):
        return None
    redirect_info = instrument.get("redirectInfo")
    if not isinstance(redirect_info, dict):
        return None
    url = redirect_info.get("url")
    return url if isinstance(url, str) and url else None


def decode_provider_response(body: Any) -> ProviderResponse:
    """
    Classify a decoded JSON body into a response variant.

    Never raises; anything that does not fit the envelope becomes
    UnrecognizedResponse with a reason.
    """
    if not isinstance(body, dict):
        return UnrecognizedResponse(reason="response body is not a JSON object", raw=body)

    success = body.get("success")
    if not isinstance(success, bool):
        return UnrecognizedResponse(reason="missing boolean 'success' field", raw=body)

    code = body.get("code")
    code = code if isinstance(code, str) else ""
    message = body.get("message")
    message = message if isinstance(message, str) else ""

    data = body.get("data")
    if data is not None and not isinstance(data, dict):
        return UnrecognizedResponse(reason="'data' field is not an object", raw=body)

    if data is not None:
        state = data.get("state")
        if isinstance(state, str) and state:
            return StateResponse(
                code=code,
                message=message,
                state=state,
                data=data,
                raw=body,
                success=success,
            )

    if success:
        redirect_url = _redirect_url(data) if data is not None else None
        if redirect_url:
            return RedirectResponse(
                code=code,
                message=message,
                redirect_url=redirect_url,
                data=data,
                raw=body,
            )
        return UnrecognizedResponse(
            reason="success response without redirect URL or state",
            raw=body,
        )

    if code in KNOWN_ERROR_CODES:
        return KnownErrorResponse(code=code, message=message, data=data, raw=body)
    return UnknownErrorResponse(code=code, message=message, data=data, raw=body)


# =============================================================================
# Gateway Result
# =============================================================================


@dataclass
class GatewayResult:
    """
    Outcome of a gateway operation.

    Attributes:
        success: Whether the provider accepted the request
        code: Provider code, or CONFIG_ERROR / ERROR for local outcomes
        message: Human-readable message
        data: Provider "data" object, unmodified
        response: Decoded provider response, when one was received
    """

    success: bool
    code: str
    message: str
    data: dict[str, Any] | None = None
    response: ProviderResponse | None = field(default=None, repr=False)

    @property
    def redirect_url(self) -> str | None:
        """Hosted payment page URL for accepted initiations."""
        if isinstance(self.response, RedirectResponse):
            return self.response.redirect_url
        return None

    @property
    def state(self) -> str | None:
        """Provider payment state (COMPLETED / FAILED / PENDING) for status checks."""
        if isinstance(self.response, StateResponse):
            return self.response.state
        return None

    @property
    def raw(self) -> dict[str, Any] | None:
        """Full provider body, for storing alongside the transaction."""
        if self.response is None or isinstance(self.response, UnrecognizedResponse):
            return None
        return self.response.raw

    @classmethod
    def from_response(cls, response: ProviderResponse) -> GatewayResult:
        """Flatten a decoded provider response."""
        if isinstance(response, UnrecognizedResponse):
            return cls(
                success=False,
                code=EXHAUSTED_ERROR_CODE,
                message=response.reason,
                response=response,
            )
        return cls(
            success=response.success,
            code=response.code,
            message=response.message,
            data=response.data,
            response=response,
        )
