"""
Pytest fixtures for payment tests.

PayHere settings are replaced for every test in this package with a
sandbox merchant, so views, services and the webhook all sign and verify
with the same known secret.

Usage:
    def test_success_notification(payment, notification_form):
        form = notification_form(payment, status_code="2")
        ...
"""

import pytest

from appointments.tests.factories import AppointmentFactory, DoctorFactory
from authentication.tests.factories import StaffUserFactory, UserFactory
from payments.adapters import PayHereAdapter
from payments.config import PayHereConfig, get_payhere_config
from payments.serializers import PayHereNotificationSerializer
from payments.tests.factories import (
    GATEWAY_REFERENCE,
    MERCHANT_ID,
    MERCHANT_SECRET,
    PaymentFactory,
)


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture(autouse=True)
def payhere_settings(settings):
    """Sandbox merchant credentials for every payment test."""
    settings.PAYHERE_MERCHANT_ID = MERCHANT_ID
    settings.PAYHERE_MERCHANT_SECRET = MERCHANT_SECRET
    settings.PAYHERE_SANDBOX = True
    settings.PAYHERE_ORDER_PREFIX = "PAY-"
    settings.CLIENT_URL = "http://localhost:3000"
    settings.SERVER_URL = "http://localhost:8000"
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
    get_payhere_config.cache_clear()
    yield
    get_payhere_config.cache_clear()


@pytest.fixture
def payhere_config():
    return get_payhere_config()


# =============================================================================
# Users and Appointments
# =============================================================================


@pytest.fixture
def patient(db):
    return UserFactory(email="nimal@example.com", first_name="Nimal", last_name="Perera")


@pytest.fixture
def admin_user(db):
    return StaffUserFactory()


@pytest.fixture
def doctor(db):
    return DoctorFactory(name="Ayesha Silva")


@pytest.fixture
def appointment(patient, doctor):
    """Scheduled appointment awaiting payment (fee 1500.00)."""
    return AppointmentFactory(patient=patient, doctor=doctor)


@pytest.fixture
def payment(appointment):
    """Pending payment for ``appointment``."""
    return PaymentFactory(appointment=appointment)


# =============================================================================
# Gateway Notifications
# =============================================================================


@pytest.fixture
def notification_form():
    """
    Build a PayHere notification form for a payment, signed like PayHere signs it.

    Usage:
        form = notification_form(payment, status_code="-2")
        form = notification_form(payment, secret="wrong")  # tampered
    """

    def build(
        payment,
        status_code="2",
        amount=None,
        currency=None,
        order_id=None,
        merchant_id=MERCHANT_ID,
        secret=MERCHANT_SECRET,
        reference=GATEWAY_REFERENCE,
    ):
        amount = f"{payment.amount:.2f}" if amount is None else amount
        currency = currency or payment.currency
        order_id = order_id or payment.order_id
        signer = PayHereAdapter(PayHereConfig(merchant_id=merchant_id, merchant_secret=secret))
        return {
            "merchant_id": merchant_id,
            "order_id": order_id,
            "payment_id": reference,
            "payhere_amount": amount,
            "payhere_currency": currency,
            "status_code": str(status_code),
            "md5sig": signer.generate_notification_hash(
                merchant_id, order_id, amount, currency, str(status_code)
            ),
            "status_message": "Successfully completed the payment.",
            "method": "VISA",
            "card_holder_name": "Nimal Perera",
            "card_no": "************1292",
        }

    return build


@pytest.fixture
def notification(payment, notification_form):
    """Parse a notification form into a GatewayNotification."""

    def parse(form=None, **overrides):
        form = form or notification_form(payment, **overrides)
        return PayHereNotificationSerializer(data=form).to_notification()

    return parse
