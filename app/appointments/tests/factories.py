"""
Factory Boy factories for appointment test data.

Usage:
    from appointments.tests.factories import AppointmentFactory, DoctorFactory

    appointment = AppointmentFactory()
    appointment = AppointmentFactory(patient=user, consultation_fee=Decimal("2500.00"))
"""

import datetime
from decimal import Decimal

import factory

from appointments.models import Appointment, ConsultationType, Doctor
from authentication.tests.factories import UserFactory


class DoctorFactory(factory.django.DjangoModelFactory):
    """Factory for Doctor model (without a login account by default)."""

    class Meta:
        model = Doctor
        skip_postgeneration_save = True

    name = factory.Faker("name")
    email = factory.Sequence(lambda n: f"doctor{n}@example.com")
    specialization = "General Practice"
    consultation_fee = Decimal("1500.00")
    is_active = True


class AppointmentFactory(factory.django.DjangoModelFactory):
    """
    Factory for Appointment model.

    New appointments are scheduled and awaiting payment.

    Examples:
        appointment = AppointmentFactory()
        confirmed = AppointmentFactory(
            booking_status=AppointmentStatus.CONFIRMED,
            payment_status=AppointmentPaymentStatus.PAID,
        )
    """

    class Meta:
        model = Appointment
        skip_postgeneration_save = True

    patient = factory.SubFactory(UserFactory)
    doctor = factory.SubFactory(DoctorFactory)
    appointment_date = factory.LazyFunction(
        lambda: datetime.date.today() + datetime.timedelta(days=3)
    )
    appointment_time = datetime.time(10, 30)
    consultation_type = ConsultationType.PHYSICAL
    consultation_fee = factory.LazyAttribute(lambda o: o.doctor.consultation_fee)
    symptoms = "Persistent headache"
