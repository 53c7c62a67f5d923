"""
Test configuration and fixtures for appointment tests.
"""

import pytest

from appointments.tests.factories import AppointmentFactory, DoctorFactory
from authentication.tests.factories import StaffUserFactory, UserFactory


@pytest.fixture
def patient(db):
    return UserFactory(first_name="Nimal", last_name="Perera")


@pytest.fixture
def admin_user(db):
    return StaffUserFactory()


@pytest.fixture
def doctor(db):
    return DoctorFactory(name="Ayesha Silva")


@pytest.fixture
def appointment(patient, doctor):
    """Scheduled appointment awaiting payment."""
    return AppointmentFactory(patient=patient, doctor=doctor)
