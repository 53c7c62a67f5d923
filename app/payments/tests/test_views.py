"""
Tests for payment API endpoints.
"""

import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.core import mail
from django.utils import timezone
from freezegun import freeze_time
from rest_framework import status

from appointments.models import AppointmentPaymentStatus, AppointmentStatus
from appointments.tests.factories import AppointmentFactory
from authentication.tests.factories import UserFactory
from payments.models import Payment
from payments.state_machines import PaymentStatus
from payments.tests.factories import PaymentFactory

BASE_URL = "/api/v1/payments/"


class TestGenerateHashView:
    url = f"{BASE_URL}generate-hash/"

    def test_returns_hash(self, api_client, payhere_config):
        response = api_client.post(
            self.url,
            {"merchant_id": "1211149", "order_id": "Order12345", "amount": "1000", "currency": "LKR"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {
            "success": True,
            "hash": "5920AE5049D1985536D71176895B0C7A",
            "amount": "1000.00",
            "merchant_id": "1211149",
        }

    def test_merchant_id_optional(self, api_client):
        response = api_client.post(
            self.url,
            {"order_id": "Order12345", "amount": "1000.00", "currency": "LKR"},
            format="json",
        )

        assert response.data["hash"] == "5920AE5049D1985536D71176895B0C7A"

    def test_merchant_mismatch(self, api_client):
        response = api_client.post(
            self.url,
            {"merchant_id": "9999999", "order_id": "Order12345", "amount": "1000", "currency": "LKR"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == "Merchant mismatch"

    def test_invalid_amount(self, api_client):
        response = api_client.post(
            self.url,
            {"order_id": "Order12345", "amount": "ten", "currency": "LKR"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "amount" in response.data["errors"]


class TestInitiatePaymentView:
    url = f"{BASE_URL}initiate/"

    def test_requires_authentication(self, api_client, appointment):
        response = api_client.post(self.url, {"appointment_id": str(appointment.id)}, format="json")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_initiates_checkout(self, api_client, appointment, patient):
        api_client.force_authenticate(user=patient)

        response = api_client.post(self.url, {"appointment_id": str(appointment.id)}, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["success"] is True
        assert response.data["checkoutUrl"] == "https://sandbox.payhere.lk/pay/checkout"
        payment = Payment.objects.get(appointment=appointment)
        assert response.data["paymentData"]["order_id"] == f"PAY-{payment.id}"

    def test_other_users_appointment(self, api_client, appointment):
        api_client.force_authenticate(user=UserFactory())

        response = api_client.post(self.url, {"appointment_id": str(appointment.id)}, format="json")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error_code"] == "NOT_APPOINTMENT_OWNER"

    def test_unknown_appointment(self, api_client, patient):
        api_client.force_authenticate(user=patient)

        response = api_client.post(self.url, {"appointment_id": str(uuid.uuid4())}, format="json")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_already_paid(self, api_client, patient, doctor):
        appointment = AppointmentFactory(
            patient=patient, doctor=doctor, payment_status=AppointmentPaymentStatus.PAID
        )
        api_client.force_authenticate(user=patient)

        response = api_client.post(self.url, {"appointment_id": str(appointment.id)}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "ALREADY_PAID"


class TestVerifyPaymentView:
    url = f"{BASE_URL}verify/"

    def test_completed_payment(self, api_client, payment, patient):
        payment.complete(reference="320025071234")
        payment.save()
        api_client.force_authenticate(user=patient)

        response = api_client.post(self.url, {"order_id": payment.order_id}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["success"] is True
        assert response.data["message"] == "Payment verified successfully"
        assert response.data["receipt"]["paymentReference"] == "320025071234"
        assert response.data["receipt"]["amount"] == "1500.00"

    def test_pending_payment(self, api_client, payment, patient):
        api_client.force_authenticate(user=patient)

        response = api_client.post(self.url, {"order_id": payment.order_id}, format="json")

        assert response.data["message"] == "Payment is pending"

    def test_unknown_order(self, api_client, patient):
        api_client.force_authenticate(user=patient)

        response = api_client.post(self.url, {"order_id": f"PAY-{uuid.uuid4()}"}, format="json")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "PAYMENT_NOT_FOUND"


class TestPaymentListView:
    def test_lists_own_payments(self, api_client, payment, patient):
        PaymentFactory()
        api_client.force_authenticate(user=patient)

        response = api_client.get(BASE_URL)

        assert response.status_code == status.HTTP_200_OK
        rows = response.data["results"]
        assert [row["id"] for row in rows] == [str(payment.id)]
        assert rows[0]["order_id"] == payment.order_id
        assert rows[0]["doctor_name"] == "Ayesha Silva"
        assert rows[0]["status"] == PaymentStatus.PENDING


class TestFixPendingPaymentsView:
    url = f"{BASE_URL}admin/fix-pending/"

    def test_requires_admin(self, api_client, patient):
        api_client.force_authenticate(user=patient)

        response = api_client.post(self.url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_requires_authentication(self, api_client, db):
        response = api_client.post(self.url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_fixes_pending(self, api_client, admin_user, django_capture_on_commit_callbacks):
        with freeze_time(timezone.now() - timedelta(hours=1)):
            payments = [PaymentFactory() for _ in range(2)]
            broken = AppointmentFactory()
        api_client.force_authenticate(user=admin_user)

        with django_capture_on_commit_callbacks(execute=True):
            response = api_client.post(self.url)

        assert response.status_code == status.HTTP_200_OK
        data = response.data
        assert data["success"] is True
        assert (data["fixed"], data["failed"], data["attempted"], data["totalPending"]) == (2, 1, 3, 3)
        errors = [row for row in data["results"] if row["status"] == "error"]
        assert [row["appointmentId"] for row in errors] == [str(broken.id)]
        assert len(mail.outbox) == 2
        for payment in payments:
            payment.refresh_from_db()
            assert payment.status == PaymentStatus.COMPLETED
            assert payment.gateway_response["performed_by"] == admin_user.email

    def test_body_overrides(self, api_client, admin_user, django_capture_on_commit_callbacks):
        PaymentFactory()
        api_client.force_authenticate(user=admin_user)

        with django_capture_on_commit_callbacks(execute=True):
            response = api_client.post(
                self.url, {"minAgeMinutes": 0, "sendEmail": False}, format="json"
            )

        assert response.data["fixed"] == 1
        assert mail.outbox == []

    def test_nothing_pending(self, api_client, admin_user):
        api_client.force_authenticate(user=admin_user)

        response = api_client.post(self.url)

        assert response.data["fixed"] == 0
        assert response.data["totalPending"] == 0


class TestManualPaymentUpdateView:
    def url(self, appointment_id):
        return f"{BASE_URL}admin/manual-update/{appointment_id}/"

    def test_requires_admin(self, api_client, appointment, patient):
        api_client.force_authenticate(user=patient)

        response = api_client.post(self.url(appointment.id))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_force_completes(self, api_client, payment, appointment, admin_user):
        api_client.force_authenticate(user=admin_user)

        response = api_client.post(
            self.url(appointment.id),
            {"paymentStatus": "completed", "paymentReference": "ADMIN-FIX-1741594800123", "sendEmail": False},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["success"] is True
        assert response.data["appointment"]["bookingStatus"] == AppointmentStatus.CONFIRMED
        assert response.data["appointment"]["paymentStatus"] == AppointmentPaymentStatus.PAID
        assert response.data["payment"]["gateway_reference"] == "ADMIN-FIX-1741594800123"
        assert response.data["payment"]["status"] == PaymentStatus.COMPLETED

    def test_unknown_appointment(self, api_client, admin_user):
        api_client.force_authenticate(user=admin_user)

        response = api_client.post(self.url(uuid.uuid4()))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "APPOINTMENT_NOT_FOUND"

    def test_unsupported_status(self, api_client, appointment, admin_user):
        api_client.force_authenticate(user=admin_user)

        response = api_client.post(
            self.url(appointment.id), {"paymentStatus": "failed"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "PAYMENT_VALIDATION_ERROR"

    def test_cancelled_appointment_conflict(self, api_client, payment, appointment, admin_user):
        appointment.booking_status = AppointmentStatus.CANCELLED
        appointment.save()
        api_client.force_authenticate(user=admin_user)

        response = api_client.post(self.url(appointment.id), {"sendEmail": False}, format="json")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "INVALID_STATE_TRANSITION"

    def test_concurrent_notification_conflict(self, api_client, payment, appointment, admin_user):
        api_client.force_authenticate(user=admin_user)

        def load_then_complete_elsewhere(appt):
            stale = Payment.objects.get(pk=payment.pk)
            Payment.objects.filter(pk=payment.pk).update(status=PaymentStatus.COMPLETED)
            return stale

        with patch.object(
            Payment.objects, "latest_for_appointment", side_effect=load_then_complete_elsewhere
        ):
            response = api_client.post(
                self.url(appointment.id), {"sendEmail": False}, format="json"
            )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "INVALID_STATE_TRANSITION"


class TestPaymentDiagnosticView:
    url = f"{BASE_URL}admin/diagnostic/"

    def test_counts(self, api_client, payment, admin_user):
        PaymentFactory(status=PaymentStatus.FAILED)
        api_client.force_authenticate(user=admin_user)

        response = api_client.get(self.url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["payments"]["total"] == 2
        assert response.data["payments"]["byStatus"] == {"pending": 1, "failed": 1}
        assert response.data["appointments"]["awaitingPayment"] == 2

    def test_requires_admin(self, api_client, patient):
        api_client.force_authenticate(user=patient)

        assert api_client.get(self.url).status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.parametrize("path", ["initiate/", "verify/", ""])
def test_authenticated_endpoints_reject_anonymous(api_client, db, path):
    method = api_client.get if path == "" else api_client.post

    assert method(f"{BASE_URL}{path}").status_code == status.HTTP_401_UNAUTHORIZED
