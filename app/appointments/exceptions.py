"""
Appointment-specific exceptions.
"""

from __future__ import annotations

from core.exceptions import NotFoundError


class AppointmentNotFoundError(NotFoundError):
    """
    Raised when an appointment identifier does not resolve.

    Example:
        raise AppointmentNotFoundError(
            f"Appointment {appointment_id} not found",
            details={"appointment_id": str(appointment_id)},
        )
    """

    default_error_code: str = "APPOINTMENT_NOT_FOUND"
