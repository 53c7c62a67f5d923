"""
Payment models.

Usage:
    from payments.models import Payment
"""

from payments.models.payment import Payment, PaymentQuerySet

__all__ = [
    "Payment",
    "PaymentQuerySet",
]
