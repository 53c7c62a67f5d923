"""
Service layer building blocks.

Business logic lives in service classes (``payments.services``), not in
views or models. Services report expected, recoverable outcomes through
ServiceResult and raise ``core.exceptions`` errors for everything the
caller has to map to an HTTP status.

Usage:
    from core.services import BaseService, ServiceResult

    class CheckoutService(BaseService):
        @classmethod
        def initiate(cls, appointment, user) -> ServiceResult[CheckoutData]:
            if not appointment.is_payment_pending:
                return ServiceResult.failure(
                    "Appointment is already paid", error_code="ALREADY_PAID"
                )
            ...
            return ServiceResult.success(data)

    result = CheckoutService.initiate(appointment, request.user)
    if not result:
        return Response(result.to_response(), status=400)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service call.

    Attributes:
        success: Whether the operation succeeded
        data: Payload of a successful call
        error: Human-readable reason of a failed call
        error_code: Machine-readable reason for API clients
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ServiceResult[T]:
        return cls(success=False, error=error, error_code=error_code)

    def to_response(self) -> dict[str, Any]:
        """Response body in the API's ``{"success": ...}`` envelope."""
        if self.success:
            return {"success": True, "data": self.data}

        body: dict[str, Any] = {"success": False, "error": self.error}
        if self.error_code:
            body["error_code"] = self.error_code
        return body

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for stateless services.

    Services expose classmethods only. Each service logs under its own
    dotted name (``payments.services.manual.ManualReconciliationService``)
    so the ``payments`` logger configuration covers all of them.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")
