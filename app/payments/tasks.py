"""
Celery tasks for payment side effects.

Usage:
    from payments.tasks import send_appointment_confirmation_email

    send_appointment_confirmation_email.delay(str(payment.id))
"""

from __future__ import annotations

import logging
from uuid import UUID

from celery import shared_task
from django.conf import settings

from toolkit.helpers import mask_email
from toolkit.services import EmailService

logger = logging.getLogger(__name__)

CONFIRMATION_TEMPLATE = "payments/appointment_confirmation"


# =============================================================================
# Email Tasks
# =============================================================================


@shared_task
def send_appointment_confirmation_email(payment_id: str) -> dict:
    """
    Email the patient that their appointment is confirmed and paid.

    Best effort: every failure is logged and reported in the return
    value, never raised, and the task is not retried. A failed email
    does not affect the payment or appointment.

    Args:
        payment_id: UUID of the completed Payment

    Returns:
        Dict with "status" ("sent", "failed", "not_found" or "skipped")
    """
    from payments.models import Payment
    from payments.state_machines import PaymentStatus

    try:
        payment = (
            Payment.objects.select_related(
                "patient__profile", "doctor", "appointment"
            ).get(id=UUID(str(payment_id)))
        )
    except (Payment.DoesNotExist, ValueError):
        logger.error(
            "Payment for confirmation email not found",
            extra={"payment_id": str(payment_id)},
        )
        return {"status": "not_found", "payment_id": str(payment_id)}

    if payment.status != PaymentStatus.COMPLETED:
        logger.warning(
            f"Confirmation email skipped for {payment.status} payment",
            extra={"payment_id": str(payment.id)},
        )
        return {"status": "skipped", "payment_id": str(payment.id)}

    patient = payment.patient
    try:
        sent = EmailService.send(
            to=patient.email,
            subject="Your appointment is confirmed",
            template_name=CONFIRMATION_TEMPLATE,
            context=build_confirmation_context(payment),
        )
    except Exception:
        logger.error(
            "Appointment confirmation email failed",
            extra={"payment_id": str(payment.id)},
            exc_info=True,
        )
        return {"status": "failed", "payment_id": str(payment.id)}

    if not sent:
        logger.error(
            "Appointment confirmation email was not delivered",
            extra={"payment_id": str(payment.id)},
        )
        return {"status": "failed", "payment_id": str(payment.id)}

    logger.info(
        f"Appointment confirmation email sent to {mask_email(patient.email)}",
        extra={"payment_id": str(payment.id)},
    )
    return {"status": "sent", "payment_id": str(payment.id)}


def build_confirmation_context(payment) -> dict:
    """Template context for the appointment confirmation email."""
    appointment = payment.appointment
    context = {
        "patient_name": payment.patient.get_full_name(),
        "patient_email": payment.patient.email,
        "doctor_name": str(payment.doctor),
        "amount": f"{payment.amount:.2f}",
        "currency": payment.currency,
        "reference": payment.gateway_reference or "",
        "appointment_id": "",
        "appointment_date": "",
        "appointment_time": "",
        "consultation_type": "",
        "appointment_url": "",
    }
    if appointment is not None:
        context.update(
            {
                "appointment_id": str(appointment.id),
                "appointment_date": appointment.appointment_date.strftime("%d %B %Y"),
                "appointment_time": appointment.appointment_time.strftime("%H:%M"),
                "consultation_type": appointment.get_consultation_type_display(),
                "appointment_url": (
                    f"{settings.CLIENT_URL.rstrip('/')}/appointments/{appointment.id}"
                ),
            }
        )
    return context
