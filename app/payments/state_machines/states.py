"""
State enums for payment models.

This module defines the state enums used by payment models with django-fsm.
These are Django TextChoices for database storage and admin integration.

Payment States:
    pending → completed / cancelled / failed / unknown (gateway notification)
    pending / cancelled / failed / unknown → completed (administrative override)
"""

from django.db import models


class PaymentStatus(models.TextChoices):
    """
    States for the Payment model lifecycle.

    Terminal states: COMPLETED, CANCELLED, FAILED, UNKNOWN
    No gateway notification moves a payment out of a terminal state.

    State Flow (gateway):
        PENDING → COMPLETED   (status_code 2)
        PENDING → PENDING     (status_code 0, payload stored only)
        PENDING → CANCELLED   (status_code -1)
        PENDING → FAILED      (status_code -2)
        PENDING → UNKNOWN     (any other status_code)

    Override Flow (administrator):
        PENDING / CANCELLED / FAILED / UNKNOWN → COMPLETED
    """

    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    FAILED = "failed", "Failed"
    UNKNOWN = "unknown", "Unknown"


TERMINAL_PAYMENT_STATUSES = frozenset(
    {
        PaymentStatus.COMPLETED,
        PaymentStatus.CANCELLED,
        PaymentStatus.FAILED,
        PaymentStatus.UNKNOWN,
    }
)
