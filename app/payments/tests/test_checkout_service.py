"""
Tests for CheckoutService (initiate and verify).
"""

from decimal import Decimal

import pytest

from appointments.models import AppointmentPaymentStatus, AppointmentStatus
from appointments.tests.factories import AppointmentFactory
from authentication.tests.factories import UserFactory
from core.exceptions import PermissionDeniedError
from payments.adapters import PayHereAdapter
from payments.config import SANDBOX_CHECKOUT_URL
from payments.exceptions import PaymentNotFoundError, PaymentValidationError
from payments.models import Payment
from payments.services import CheckoutService
from payments.state_machines import PaymentStatus
from payments.tests.factories import PaymentFactory


class TestInitiate:
    def test_creates_pending_payment_and_signed_form(self, appointment, patient, payhere_config):
        result = CheckoutService.initiate(appointment, patient)

        assert result.success
        checkout = result.data
        payment = Payment.objects.get(pk=checkout.payment_id)
        assert payment.status == PaymentStatus.PENDING
        assert payment.amount == Decimal("1500.00")
        assert payment.appointment == appointment

        data = checkout.payment_data
        assert checkout.checkout_url == SANDBOX_CHECKOUT_URL
        assert checkout.order_id == f"PAY-{payment.id}"
        assert data["order_id"] == checkout.order_id
        assert data["merchant_id"] == "1211149"
        assert data["amount"] == "1500.00"
        assert data["currency"] == "LKR"
        assert data["items"] == "Consultation with Dr. Ayesha Silva"
        assert data["first_name"] == "Nimal"
        assert data["last_name"] == "Perera"
        assert data["email"] == "nimal@example.com"
        assert data["city"] == "Colombo"
        assert data["country"] == "Sri Lanka"
        assert data["return_url"] == "http://localhost:3000/payment/success"
        assert data["cancel_url"] == "http://localhost:3000/payment/cancel"
        assert data["notify_url"] == "http://localhost:8000/api/v1/payments/notify/"
        assert data["hash"] == PayHereAdapter(payhere_config).generate_checkout_hash(
            checkout.order_id, "1500.00", "LKR"
        )

    def test_missing_last_name_defaults(self, doctor):
        patient = UserFactory(first_name="Nimal", last_name="")
        appointment = AppointmentFactory(patient=patient, doctor=doctor)

        data = CheckoutService.initiate(appointment, patient).data.payment_data

        assert data["last_name"] == "Patient"

    def test_other_users_appointment(self, appointment):
        with pytest.raises(PermissionDeniedError):
            CheckoutService.initiate(appointment, UserFactory())

        assert not Payment.objects.exists()

    def test_already_paid(self, patient, doctor):
        appointment = AppointmentFactory(
            patient=patient,
            doctor=doctor,
            booking_status=AppointmentStatus.CONFIRMED,
            payment_status=AppointmentPaymentStatus.PAID,
        )

        result = CheckoutService.initiate(appointment, patient)

        assert not result.success
        assert result.error_code == "ALREADY_PAID"

    def test_cancelled(self, patient, doctor):
        appointment = AppointmentFactory(
            patient=patient, doctor=doctor, booking_status=AppointmentStatus.CANCELLED
        )

        result = CheckoutService.initiate(appointment, patient)

        assert result.error_code == "APPOINTMENT_CANCELLED"

    @pytest.mark.parametrize("fee", [Decimal("99.99"), Decimal("1000000.01")])
    def test_fee_out_of_range(self, patient, doctor, fee):
        appointment = AppointmentFactory(patient=patient, doctor=doctor, consultation_fee=fee)

        with pytest.raises(PaymentValidationError):
            CheckoutService.initiate(appointment, patient)

        assert not Payment.objects.exists()


class TestVerify:
    def test_pending_payment(self, payment, patient):
        result = CheckoutService.verify(payment.order_id, patient)

        receipt = result.data["receipt"]
        assert receipt["status"] == PaymentStatus.PENDING
        assert receipt["orderId"] == payment.order_id
        assert receipt["amount"] == "1500.00"
        assert receipt["paymentReference"] is None
        assert result.data["repaired"] is False

    def test_completed_payment_repairs_appointment(
        self, payment, appointment, patient, django_capture_on_commit_callbacks
    ):
        payment.complete(reference="320025071234")
        payment.save()

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            result = CheckoutService.verify(payment.order_id, patient)

        assert result.data["repaired"] is True
        assert result.data["receipt"]["paymentReference"] == "320025071234"
        assert callbacks == []
        appointment.refresh_from_db()
        assert appointment.booking_status == AppointmentStatus.CONFIRMED
        assert appointment.payment_status == AppointmentPaymentStatus.PAID

    def test_other_patient_cannot_see_payment(self, payment):
        with pytest.raises(PaymentNotFoundError):
            CheckoutService.verify(payment.order_id, UserFactory())

    def test_staff_can_verify(self, payment, admin_user):
        result = CheckoutService.verify(payment.order_id, admin_user)

        assert result.success

    def test_unknown_order(self, patient):
        with pytest.raises(PaymentNotFoundError):
            CheckoutService.verify("PAY-unknown", patient)
