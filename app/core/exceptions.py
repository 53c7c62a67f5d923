"""
Application error hierarchy.

Services raise these; views translate them into HTTP responses with
``to_dict()`` as the body. DRF keeps handling its own request-level errors
(authentication, serializer validation).

    BaseApplicationError
    ├── NotFoundError          404
    ├── PermissionDeniedError  403
    └── ConflictError          409

Domain apps subclass them (``payments.exceptions``,
``appointments.exceptions``) and set their own ``default_error_code``.

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError(
        "Appointment not found",
        error_code="APPOINTMENT_NOT_FOUND",
        details={"appointment_id": str(appointment_id)},
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Error carrying a message, a machine-readable code and context.

    Attributes:
        message: Description safe to show to API clients
        error_code: Stable code clients can branch on
        details: Identifiers and values useful when reading logs
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Response body, e.g. ``{"success": False, "error": ..., "error_code": ...}``."""
        body: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            body["details"] = self.details
        return body

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class NotFoundError(BaseApplicationError):
    """A single resource the caller asked for does not exist."""

    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """
    The authenticated user may not act on this resource.

    Missing or invalid credentials are DRF's concern (401); this is for
    a known user touching someone else's appointment.
    """

    default_error_code: str = "PERMISSION_DENIED"


class ConflictError(BaseApplicationError):
    """The request contradicts the current state, e.g. a disallowed transition."""

    default_error_code: str = "CONFLICT"
