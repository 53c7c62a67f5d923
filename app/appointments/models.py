"""
Appointment and Doctor models.

An Appointment is created by the patient before payment, in booking status
"scheduled" and payment status "pending". It reaches "confirmed"/"paid"
only when its Payment completes (gateway notification or administrative
override), through Appointment.confirm_payment().

Usage:
    from appointments.models import Appointment, AppointmentStatus

    appointment = Appointment.objects.create(
        patient=user,
        doctor=doctor,
        appointment_date=date(2025, 3, 14),
        appointment_time=time(10, 30),
        consultation_type=ConsultationType.ONLINE,
        consultation_fee=Decimal("1500.00"),
    )

    # Appointments the bulk payment fixer will look at
    Appointment.objects.awaiting_payment()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin


class ConsultationType(models.TextChoices):
    """How the consultation takes place."""

    PHYSICAL = "physical", "Physical"
    ONLINE = "online", "Online"


class AppointmentStatus(models.TextChoices):
    """
    Booking status of an appointment.

    State Flow:
        SCHEDULED → CONFIRMED (payment completed)
        CONFIRMED → COMPLETED / NO_SHOW (clinical staff, after the visit)
        SCHEDULED / CONFIRMED → CANCELLED
    """

    SCHEDULED = "scheduled", "Scheduled"
    CONFIRMED = "confirmed", "Confirmed"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    NO_SHOW = "no_show", "No Show"


class AppointmentPaymentStatus(models.TextChoices):
    """Payment status mirrored from the linked Payment."""

    PENDING = "pending", "Pending Payment"
    PAID = "paid", "Paid"


class Doctor(UUIDPrimaryKeyMixin, BaseModel):
    """
    Doctor accepting appointments.

    Fields:
        user: Login account of the doctor (optional for imported records)
        name: Display name used in emails and receipts
        email: Contact address
        specialization: Free-text specialty
        consultation_fee: Default fee charged for a consultation
        is_active: Whether the doctor currently takes bookings
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="doctor_profile",
        help_text="Login account of the doctor",
    )
    name = models.CharField(max_length=200, help_text="Doctor's display name")
    email = models.EmailField(blank=True, help_text="Doctor's contact email")
    specialization = models.CharField(max_length=200, blank=True)
    consultation_fee = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=0,
        help_text="Default consultation fee in local currency",
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        verbose_name = "Doctor"
        verbose_name_plural = "Doctors"

    def __str__(self) -> str:
        return f"Dr. {self.name}"


class AppointmentQuerySet(models.QuerySet):
    """QuerySet helpers for appointment payment state."""

    def awaiting_payment(self):
        """Appointments still waiting for payment and not cancelled."""
        return self.filter(payment_status=AppointmentPaymentStatus.PENDING).exclude(
            booking_status=AppointmentStatus.CANCELLED
        )

    def for_user(self, user):
        """Appointments visible to ``user`` (own bookings, or all for staff)."""
        if user.is_staff:
            return self
        return self.filter(models.Q(patient=user) | models.Q(doctor__user=user))


class Appointment(UUIDPrimaryKeyMixin, BaseModel):
    """
    A booked consultation between a patient and a doctor.

    Booking status and payment status are independent fields: the booking
    status follows the visit, the payment status mirrors the linked Payment.

    Fields:
        patient: User who booked
        doctor: Doctor being consulted
        appointment_date / appointment_time: Scheduled slot
        consultation_type: physical or online
        consultation_fee: Amount charged at checkout
        symptoms: Free-text reason for the visit
        booking_status: FSM-managed booking status
        payment_status: pending or paid
        confirmed_at: When payment confirmation first confirmed the booking
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    patient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="appointments",
        help_text="Patient who booked the appointment",
    )
    doctor = models.ForeignKey(
        Doctor,
        on_delete=models.PROTECT,
        related_name="appointments",
        help_text="Doctor being consulted",
    )

    # ==========================================================================
    # Schedule
    # ==========================================================================

    appointment_date = models.DateField(help_text="Scheduled date")
    appointment_time = models.TimeField(help_text="Scheduled start time")
    consultation_type = models.CharField(
        max_length=20,
        choices=ConsultationType.choices,
        default=ConsultationType.PHYSICAL,
    )
    consultation_fee = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Fee charged for this appointment",
    )
    symptoms = models.TextField(blank=True)

    # ==========================================================================
    # Status
    # ==========================================================================

    booking_status = FSMField(
        default=AppointmentStatus.SCHEDULED,
        choices=AppointmentStatus.choices,
        db_index=True,
        help_text="Booking status (managed by FSM)",
    )
    payment_status = models.CharField(
        max_length=20,
        choices=AppointmentPaymentStatus.choices,
        default=AppointmentPaymentStatus.PENDING,
        db_index=True,
        help_text="Mirrors the status of the linked payment",
    )
    confirmed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When payment confirmation confirmed this booking",
    )

    objects = AppointmentQuerySet.as_manager()

    class Meta:
        ordering = ["-appointment_date", "-appointment_time"]
        verbose_name = "Appointment"
        verbose_name_plural = "Appointments"
        indexes = [
            models.Index(fields=["payment_status", "created_at"], name="appt_paystatus_created_idx"),
            models.Index(fields=["patient", "appointment_date"], name="appt_patient_date_idx"),
        ]

    def __str__(self) -> str:
        return (
            f"Appointment({self.id}, {self.appointment_date} "
            f"{self.appointment_time}, {self.booking_status})"
        )

    @property
    def is_payment_pending(self) -> bool:
        return self.payment_status == AppointmentPaymentStatus.PENDING

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=booking_status,
        source=[AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED],
        target=AppointmentStatus.CONFIRMED,
    )
    def confirm_payment(self):
        """
        Confirm the booking because its payment completed.

        Transition: SCHEDULED/CONFIRMED -> CONFIRMED

        Re-confirming an already confirmed booking only repairs the payment
        status; confirmed_at keeps its first value.
        """
        self.payment_status = AppointmentPaymentStatus.PAID
        if self.confirmed_at is None:
            self.confirmed_at = timezone.now()

