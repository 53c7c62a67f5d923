"""
Best-effort side effects of a completed payment.

Side effects are queued only after the transaction that completed the
payment commits, and never propagate failures back to the caller: the
payment transition is already the authoritative record.

Usage:
    from payments.dispatch import dispatch_confirmation_email

    with transaction.atomic():
        payment.complete(reference=reference, payload=payload)
        payment.save()
        dispatch_confirmation_email(payment)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import transaction

from payments.tasks import send_appointment_confirmation_email

if TYPE_CHECKING:
    from payments.models import Payment

logger = logging.getLogger(__name__)


def dispatch_confirmation_email(payment: Payment) -> None:
    """
    Queue the appointment confirmation email once the current transaction commits.

    If the transaction rolls back, nothing is queued. A broker failure at
    queue time is logged and swallowed.
    """
    payment_id = str(payment.id)

    def _enqueue() -> None:
        try:
            send_appointment_confirmation_email.delay(payment_id)
        except Exception:
            logger.error(
                "Failed to queue appointment confirmation email",
                extra={"payment_id": payment_id},
                exc_info=True,
            )
        else:
            logger.info(
                "Appointment confirmation email queued",
                extra={"payment_id": payment_id},
            )

    transaction.on_commit(_enqueue)
