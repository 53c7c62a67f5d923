"""
Errors raised by the payment services.

    PaymentError
    ├── PaymentNotFoundError       order id resolves to nothing (404)
    ├── PaymentValidationError     bad amount or override request (400)
    └── NotificationRejectedError  notification refused, nothing written (400)

    InvalidStateTransitionError    FSM refused a transition (409)

The notify endpoint answers the gateway in plain text, so a rejection
carries its response body in ``reason``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError

if TYPE_CHECKING:
    from typing import Any


class PaymentError(BaseApplicationError):
    default_error_code: str = "PAYMENT_ERROR"


class PaymentNotFoundError(PaymentError):
    """
    No Payment matches the order id.

    A malformed order id (foreign prefix, broken UUID) is reported the same
    way as a well-formed one without a row.
    """

    default_error_code: str = "PAYMENT_NOT_FOUND"


class PaymentValidationError(PaymentError):
    """Non-numeric or out-of-range amount, changed amount, unsupported override status."""

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


class NotificationRejectedError(PaymentError):
    """
    A gateway notification that must not change any state.

    The gateway may deliver the same notification again; each delivery is
    judged from scratch.

    Example:
        raise NotificationRejectedError(
            "Notification signature does not match",
            reason=NotificationRejectedError.INVALID_HASH,
            details={"order_id": notification.order_id},
        )
    """

    default_error_code: str = "NOTIFICATION_REJECTED"

    MISSING_FIELDS = "Missing required fields"
    MERCHANT_MISMATCH = "Merchant mismatch"
    INVALID_HASH = "Invalid hash"
    AMOUNT_MISMATCH = "Amount mismatch"

    def __init__(
        self,
        message: str,
        reason: str = INVALID_HASH,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code=error_code, details=details)
        self.reason = reason


class InvalidStateTransitionError(ConflictError):
    """
    django-fsm refused a transition (TransitionNotAllowed), an appointment
    could not be confirmed during an override, or a concurrent notification
    won the race for the payment row (ConcurrentTransition).
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


__all__ = [
    "InvalidStateTransitionError",
    "NotificationRejectedError",
    "PaymentError",
    "PaymentNotFoundError",
    "PaymentValidationError",
]
