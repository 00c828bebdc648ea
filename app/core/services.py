"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Pattern Comparison:
    - ServiceResult: Use for expected failures (gateway declines, unknown status)
    - Exceptions: Use for unexpected failures (database errors, bugs)

Usage:
    from core.services import BaseService, ServiceResult

    class PaymentService(BaseService):
        @classmethod
        def sync_status(cls, merchant_transaction_id: str) -> ServiceResult:
            result = gateway.check_status(merchant_transaction_id)
            if result is None:
                return ServiceResult.failure(
                    "Payment status unknown",
                    error_code="STATUS_UNKNOWN",
                )
            ...
            return ServiceResult.success(transaction)

    # In view
    result = PaymentService.sync_status(merchant_transaction_id)
    if result.success:
        return Response(Serializer(result.data).data)
    return Response(result.to_response(), status=502)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from typing import Any

# Generic type for ServiceResult data
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Provides consistent success/failure handling without exceptions.
    Use this for expected failures (validation errors, business rule violations).

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures

    Usage:
        # Success case
        return ServiceResult.success(transaction)

        # Failure case
        return ServiceResult.failure("Payment declined", "PAYMENT_DECLINED")

        # Check result
        result = PaymentService.initiate_payment(order_id, intent)
        if result.success:
            redirect_url = result.data.redirect_url
        else:
            print(f"Error: {result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def ok(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Alias for success() - use whichever reads better in context.
        """
        return cls(success=True, data=data)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
        data: T | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)
            data: Optional partial data (e.g. the record left behind)

        Returns:
            ServiceResult with success=False and error details
        """
        return cls(
            success=False,
            data=data,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Args:
            exc: The caught exception
            error_code: Optional error code (defaults to the exception's own
                error_code, then to the class name)

        Returns:
            ServiceResult with error details from exception
        """
        code = error_code or getattr(exc, "error_code", None)
        return cls(
            success=False,
            error=getattr(exc, "message", None) or str(exc),
            error_code=code or exc.__class__.__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert to API response format.

        Returns:
            Dict with success status and data or error details
        """
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Services should be stateless
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger named after the service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")
