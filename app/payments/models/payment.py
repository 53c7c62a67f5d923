"""
Payment model for PayHere checkouts.

A Payment is created pending when the patient starts checkout and is
afterwards mutated only through its FSM transitions: by a verified
gateway notification, or by an administrator forcing completion.

Usage:
    from payments.models import Payment
    from payments.state_machines import PaymentStatus

    payment = Payment.objects.create(
        patient=appointment.patient,
        doctor=appointment.doctor,
        appointment=appointment,
        amount=appointment.consultation_fee,
    )

    # State transitions using django-fsm
    payment.complete(reference="320025071234", payload=notification.raw)
    payment.save()  # raises ConcurrentTransition if another writer won
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.config import LEGACY_ORDER_PREFIX, get_payhere_config
from payments.exceptions import PaymentValidationError
from payments.state_machines import TERMINAL_PAYMENT_STATUSES, PaymentStatus

if TYPE_CHECKING:
    from typing import Any


class PaymentQuerySet(models.QuerySet):
    """QuerySet helpers for payment lookups."""

    def for_order_id(self, order_id: str, prefix: str | None = None) -> Payment | None:
        """
        Resolve a gateway order id to a Payment.

        ``<prefix><payment uuid>`` resolves to that payment; the legacy
        ``APT_<appointment uuid>_<timestamp>`` form resolves to the latest
        payment of that appointment. Malformed ids resolve to None.
        """
        try:
            kind, identifier = Payment.parse_order_id(order_id, prefix)
        except ValueError:
            return None

        if kind == "appointment":
            return self.filter(appointment_id=identifier).order_by("-created_at").first()
        return self.filter(pk=identifier).first()

    def latest_for_appointment(self, appointment) -> Payment | None:
        return self.filter(appointment=appointment).order_by("-created_at").first()


class Payment(ConcurrentTransitionMixin, UUIDPrimaryKeyMixin, BaseModel):
    """
    A patient's payment for one appointment.

    Uses django-fsm for state management. ConcurrentTransitionMixin makes
    every save() conditional on the status loaded from the database, which
    is what keeps concurrent deliveries of the same notification from both
    applying a transition.

    State Flow:
        PENDING -> COMPLETED / CANCELLED / FAILED / UNKNOWN (gateway)
        PENDING / CANCELLED / FAILED / UNKNOWN -> COMPLETED (administrator)

    Fields:
        patient: User paying
        doctor: Doctor being paid for
        appointment: Appointment this payment confirms (nullable)
        amount: Amount charged, immutable after creation
        currency: ISO 4217 currency code
        status: Current FSM status
        gateway_reference: PayHere payment id or synthetic override
                           reference, set at most once
        gateway_response: Last raw notification or override record
        payment_method: Informational payment method reported by PayHere
        paid_at: When the payment completed
        status_changed_at: When the last transition happened
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    patient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments",
        help_text="Patient making the payment",
    )
    doctor = models.ForeignKey(
        "appointments.Doctor",
        on_delete=models.PROTECT,
        related_name="payments",
        help_text="Doctor the consultation is booked with",
    )
    appointment = models.ForeignKey(
        "appointments.Appointment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
        help_text="Appointment confirmed by this payment",
    )

    # ==========================================================================
    # Amount & Currency
    # ==========================================================================

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount charged in currency units (immutable)",
    )
    currency = models.CharField(
        max_length=3,
        default="LKR",
        help_text="ISO 4217 currency code",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=PaymentStatus.PENDING,
        choices=PaymentStatus.choices,
        db_index=True,
        help_text="Current status of the payment (managed by FSM)",
    )

    # ==========================================================================
    # Gateway Data
    # ==========================================================================

    gateway_reference = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        db_index=True,
        help_text="PayHere payment id, or an ADMIN-FIX reference for overrides",
    )
    gateway_response = models.JSONField(
        default=dict,
        blank=True,
        help_text="Last raw gateway notification or override record (audit)",
    )
    payment_method = models.CharField(
        max_length=50,
        blank=True,
        help_text="Payment method reported by the gateway",
    )

    # ==========================================================================
    # State Timestamps
    # ==========================================================================

    paid_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payment completed",
    )
    status_changed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the status last changed",
    )

    objects = PaymentQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment"
        verbose_name_plural = "Payments"
        indexes = [
            models.Index(fields=["patient", "created_at"], name="payment_patient_created_idx"),
            models.Index(fields=["appointment", "status"], name="payment_appt_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_amount_positive",
            ),
        ]

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_amount = instance.__dict__.get("amount")
        return instance

    def __str__(self) -> str:
        return f"Payment({self.id}, {self.status}, {self.amount} {self.currency})"

    def save(self, *args, **kwargs):
        """
        Save, refusing to change the amount of an existing payment.

        Raises:
            PaymentValidationError: If the amount differs from the stored one
            django_fsm.ConcurrentTransition: If the stored status changed
                since this instance was loaded
        """
        if (
            not self._state.adding
            and getattr(self, "_loaded_amount", None) is not None
            and Decimal(str(self.amount)) != Decimal(str(self._loaded_amount))
        ):
            raise PaymentValidationError(
                "Payment amount cannot be changed after creation",
                details={
                    "payment_id": str(self.id),
                    "stored_amount": str(self._loaded_amount),
                    "new_amount": str(self.amount),
                },
            )
        super().save(*args, **kwargs)
        self._loaded_amount = self.amount

    def refresh_from_db(self, *args, **kwargs):
        super().refresh_from_db(*args, **kwargs)
        self._loaded_amount = self.__dict__.get("amount")

    # ==========================================================================
    # Order Ids
    # ==========================================================================

    @property
    def order_id(self) -> str:
        """Gateway order id: ``<PAYHERE_ORDER_PREFIX><payment uuid>``."""
        return f"{get_payhere_config().order_prefix}{self.id}"

    @staticmethod
    def parse_order_id(order_id: str, prefix: str | None = None) -> tuple[str, uuid.UUID]:
        """
        Split a gateway order id into ("payment" | "appointment", uuid).

        Args:
            order_id: Order id as received from the gateway
            prefix: Current order prefix (defaults to configured prefix)

        Raises:
            ValueError: If the order id matches neither format
        """
        prefix = get_payhere_config().order_prefix if prefix is None else prefix
        order_id = (order_id or "").strip()

        if order_id.startswith(LEGACY_ORDER_PREFIX):
            appointment_part, _, timestamp = order_id[len(LEGACY_ORDER_PREFIX):].rpartition("_")
            if not appointment_part or not timestamp.isdigit():
                raise ValueError(f"Malformed legacy order id: {order_id!r}")
            return "appointment", uuid.UUID(appointment_part)

        if prefix and order_id.startswith(prefix):
            return "payment", uuid.UUID(order_id[len(prefix):])

        raise ValueError(f"Unrecognised order id: {order_id!r}")

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_PAYMENT_STATUSES

    @property
    def is_admin_override(self) -> bool:
        return bool(self.gateway_response.get("admin_override"))

    def _record(self, payload: dict[str, Any] | None) -> None:
        if payload is not None:
            self.gateway_response = payload
        self.status_changed_at = timezone.now()

    def _set_reference(self, reference: str | None) -> None:
        # First confirmed reference wins
        if reference and not self.gateway_reference:
            self.gateway_reference = reference

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=PaymentStatus.PENDING,
        target=PaymentStatus.COMPLETED,
    )
    def complete(
        self,
        reference: str | None = None,
        payload: dict[str, Any] | None = None,
        payment_method: str = "",
    ):
        """
        Mark payment as completed by the gateway.

        Transition: PENDING -> COMPLETED
        """
        self._set_reference(reference)
        self._record(payload)
        if payment_method:
            self.payment_method = payment_method
        self.paid_at = self.status_changed_at

    @transition(
        field=status,
        source=PaymentStatus.PENDING,
        target=PaymentStatus.CANCELLED,
    )
    def cancel(self, payload: dict[str, Any] | None = None):
        """
        Mark payment as cancelled by the patient on the gateway page.

        Transition: PENDING -> CANCELLED
        """
        self._record(payload)

    @transition(
        field=status,
        source=PaymentStatus.PENDING,
        target=PaymentStatus.FAILED,
    )
    def fail(self, payload: dict[str, Any] | None = None):
        """
        Mark payment as failed.

        Transition: PENDING -> FAILED
        """
        self._record(payload)

    @transition(
        field=status,
        source=PaymentStatus.PENDING,
        target=PaymentStatus.UNKNOWN,
    )
    def mark_unknown(self, payload: dict[str, Any] | None = None):
        """
        Record a status code the gateway does not document.

        Transition: PENDING -> UNKNOWN
        """
        self._record(payload)

    @transition(
        field=status,
        source=[
            PaymentStatus.PENDING,
            PaymentStatus.CANCELLED,
            PaymentStatus.FAILED,
            PaymentStatus.UNKNOWN,
        ],
        target=PaymentStatus.COMPLETED,
    )
    def force_complete(self, reference: str, payload: dict[str, Any] | None = None):
        """
        Complete the payment on an administrator's authority.

        Transition: PENDING/CANCELLED/FAILED/UNKNOWN -> COMPLETED

        Bypasses gateway verification. ``reference`` is a synthetic
        ADMIN-FIX reference unless the payment already has one.
        """
        self._set_reference(reference)
        self._record(payload)
        if self.paid_at is None:
            self.paid_at = self.status_changed_at
