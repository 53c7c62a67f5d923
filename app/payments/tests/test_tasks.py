"""
Tests for the appointment confirmation email task and its dispatcher.
"""

import uuid
from decimal import Decimal
from smtplib import SMTPException
from unittest.mock import patch

from django.core import mail

from payments.dispatch import dispatch_confirmation_email
from payments.state_machines import PaymentStatus
from payments.tasks import build_confirmation_context, send_appointment_confirmation_email
from payments.tests.factories import PaymentFactory


def complete(payment, reference="320025071234"):
    payment.complete(reference=reference)
    payment.save()
    return payment


class TestSendAppointmentConfirmationEmail:
    def test_sends_email(self, payment):
        complete(payment)

        result = send_appointment_confirmation_email(str(payment.id))

        assert result == {"status": "sent", "payment_id": str(payment.id)}
        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert message.to == ["nimal@example.com"]
        assert message.subject == "Your appointment is confirmed"
        assert "Dr. Ayesha Silva" in message.body
        assert "320025071234" in message.body

    def test_delay_runs_inline(self, payment):
        complete(payment)

        result = send_appointment_confirmation_email.delay(str(payment.id))

        assert result.get() == {"status": "sent", "payment_id": str(payment.id)}
        assert len(mail.outbox) == 1

    def test_skips_payment_not_completed(self, payment):
        result = send_appointment_confirmation_email(str(payment.id))

        assert result["status"] == "skipped"
        assert mail.outbox == []

    def test_unknown_payment(self, db):
        assert send_appointment_confirmation_email(str(uuid.uuid4()))["status"] == "not_found"
        assert send_appointment_confirmation_email("not-a-uuid")["status"] == "not_found"

    def test_smtp_failure_reported_not_raised(self, payment):
        complete(payment)

        with patch(
            "django.core.mail.EmailMultiAlternatives.send",
            side_effect=SMTPException("connection refused"),
        ):
            result = send_appointment_confirmation_email(str(payment.id))

        assert result["status"] == "failed"

    def test_unexpected_failure_reported_not_raised(self, payment):
        complete(payment)

        with patch("payments.tasks.EmailService.send", side_effect=RuntimeError("boom")):
            result = send_appointment_confirmation_email(str(payment.id))

        assert result["status"] == "failed"


class TestBuildConfirmationContext:
    def test_context(self, payment, appointment):
        context = build_confirmation_context(complete(payment))

        assert context["patient_name"] == "Nimal Perera"
        assert context["doctor_name"] == "Dr. Ayesha Silva"
        assert context["amount"] == "1500.00"
        assert context["currency"] == "LKR"
        assert context["reference"] == "320025071234"
        assert context["appointment_id"] == str(appointment.id)
        assert context["appointment_url"] == f"http://localhost:3000/appointments/{appointment.id}"

    def test_context_without_appointment(self, patient, doctor):
        payment = PaymentFactory(
            appointment=None,
            patient=patient,
            doctor=doctor,
            amount=Decimal("1500.00"),
            status=PaymentStatus.COMPLETED,
        )

        context = build_confirmation_context(payment)

        assert context["appointment_id"] == ""
        assert context["appointment_url"] == ""


class TestDispatchConfirmationEmail:
    def test_queued_after_commit(self, payment, django_capture_on_commit_callbacks):
        complete(payment)

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            dispatch_confirmation_email(payment)

        assert len(callbacks) == 1
        assert mail.outbox == []

        callbacks[0]()
        assert len(mail.outbox) == 1

    def test_broker_failure_swallowed(self, payment, django_capture_on_commit_callbacks):
        with patch("payments.dispatch.send_appointment_confirmation_email") as task:
            task.delay.side_effect = ConnectionError("broker unavailable")
            with django_capture_on_commit_callbacks(execute=True):
                dispatch_confirmation_email(payment)

        task.delay.assert_called_once_with(str(payment.id))
