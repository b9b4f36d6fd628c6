"""
Base service layer patterns for business logic encapsulation.

This module provides the building blocks every domain service uses:
- ServiceResult: Standard result wrapper for expected success/failure
- ErrorCode: Machine-readable failure codes shared across apps
- BaseService: Logging and transaction helpers

Service Layer Philosophy:
    Views handle HTTP concerns, models hold data, services hold the rules.
    A service validates and authorizes BEFORE it writes anything, so a
    failed result never leaves partial state behind.

Pattern Comparison:
    - ServiceResult: expected failures (not found, not allowed, bad input,
      acting on a finished call or answered request)
    - Exceptions: unexpected failures (database errors, signing failures)

Usage:
    from core.services import BaseService, ErrorCode, ServiceResult

    class CallService(BaseService):
        @classmethod
        def end_call(cls, user, call_id) -> ServiceResult[Call]:
            with cls.atomic():
                call = Call.objects.select_for_update().filter(id=call_id).first()
                if call is None:
                    return ServiceResult.failure(
                        "Call not found", error_code=ErrorCode.NOT_FOUND
                    )
                ...
            return ServiceResult.success(call)

    # In a view
    result = CallService.end_call(request.user, call_id)
    if not result.success:
        return service_error_response(result)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")


class ErrorCode:
    """
    Error codes returned in ServiceResult.error_code.

    Each code maps to one HTTP status in core.views.service_error_response:
        NOT_FOUND -> 404
        NOT_AUTHORIZED -> 403
        VALIDATION_ERROR -> 400
        ALREADY_TERMINAL -> 409
    """

    NOT_FOUND = "NOT_FOUND"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    ALREADY_TERMINAL = "ALREADY_TERMINAL"


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Human-readable error message if failed
        error_code: One of ErrorCode for client handling
        errors: Field-level errors for validation failures

    Usage:
        return ServiceResult.success(call)
        return ServiceResult.failure("Call has already ended", ErrorCode.ALREADY_TERMINAL)

        result = CallService.join_call(user, call_id)
        if result:
            call = result.data.call
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """Create a successful result carrying data."""
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code (see ErrorCode)
            errors: Field-level errors (for validation failures)

        Returns:
            ServiceResult with success=False and error details
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert a failure to the API error body.

        Returns:
            {"error": ..., "error_code": ...} plus "errors" when present
        """
        response: dict[str, Any] = {"error": self.error}
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides:
    - A logger named after the concrete service class
    - An explicit transaction boundary via atomic()

    Design Notes:
        - Use @classmethod (no instance state)
        - Return ServiceResult for expected failures
        - Let unexpected exceptions propagate so the transaction rolls back
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Example:
            CallService.get_logger() -> logger "calls.services.CallService"
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Everything written inside the block commits together or not at all.
        Callbacks registered with transaction.on_commit() inside the block
        only fire once the outermost transaction commits.
        """
        with transaction.atomic():
            yield

    @classmethod
    def require_text(cls, value: str | None, message: str) -> ServiceResult | None:
        """
        Reject a blank string with a VALIDATION_ERROR result.

        Returns:
            ServiceResult.failure if value is None or whitespace, None otherwise

        Example:
            invalid = cls.require_text(title, "Title cannot be empty")
            if invalid is not None:
                return invalid
        """
        if value is None or not value.strip():
            return ServiceResult.failure(message, error_code=ErrorCode.VALIDATION_ERROR)
        return None
