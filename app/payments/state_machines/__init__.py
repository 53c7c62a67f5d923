"""
State machine enums and helpers for payment models.

This module defines the state enums used by payment models with django-fsm.
"""

from payments.state_machines.states import (
    TERMINAL_PAYMENT_STATUSES,
    PaymentStatus,
)

__all__ = [
    "PaymentStatus",
    "TERMINAL_PAYMENT_STATUSES",
]
