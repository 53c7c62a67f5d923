"""
Administrative repair of appointments stuck awaiting payment.

When a gateway notification never arrives, the appointment stays
"pending payment" although the patient paid. ManualReconciliationService
lets an administrator force-complete such payments, bypassing gateway
verification, with a synthetic reference that marks the override:

    ADMIN-FIX-<epoch milliseconds>

Each appointment is repaired in its own transaction, so one bad record
never blocks the others.

Usage:
    from payments.services import ManualReconciliationService

    result = ManualReconciliationService.fix_all()
    report = result.data
    print(f"Fixed {report.fixed}/{report.attempted}, {report.failed} failed")

    result = ManualReconciliationService.fix_one(appointment_id)
"""

from __future__ import annotations

import time
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from django_fsm import ConcurrentTransition, TransitionNotAllowed

from appointments.exceptions import AppointmentNotFoundError
from appointments.models import Appointment
from core.services import BaseService, ServiceResult
from payments.dispatch import dispatch_confirmation_email
from payments.exceptions import InvalidStateTransitionError, PaymentValidationError
from payments.models import Payment
from payments.services.reconciliation import PaymentReconciliationService
from payments.state_machines import PaymentStatus
from payments.types import FixAllReport, FixResult

if TYPE_CHECKING:
    import uuid
    from typing import Any


def generate_reference(prefix: str | None = None) -> str:
    """Synthetic override reference, e.g. ``ADMIN-FIX-1741594800123``."""
    prefix = prefix or settings.RECONCILIATION_REFERENCE_PREFIX
    return f"{prefix}-{int(time.time() * 1000)}"


class ManualReconciliationService(BaseService):
    """
    Force-completes payments on an administrator's authority.

    The override goes through Payment.force_complete() and the same
    appointment confirmation as the gateway path. Whether the confirmation
    email is sent follows RECONCILIATION_SEND_CONFIRMATION_EMAIL unless the
    caller decides explicitly.
    """

    generate_reference = staticmethod(generate_reference)

    # =========================================================================
    # Public API
    # =========================================================================

    @classmethod
    def fix_all(
        cls,
        reference_prefix: str | None = None,
        min_pending_minutes: int | None = None,
        send_email: bool | None = None,
        performed_by=None,
    ) -> ServiceResult[FixAllReport]:
        """
        Force-complete every appointment awaiting payment.

        Appointments created less than ``min_pending_minutes`` ago are
        counted in ``total_pending`` but not attempted, since their
        notification may still be in flight.

        Args:
            reference_prefix: Prefix of synthetic references
            min_pending_minutes: Minimum age before an appointment is
                repaired (default: RECONCILIATION_MIN_PENDING_MINUTES)
            send_email: Queue confirmation emails (default: setting)
            performed_by: Administrator running the fix, recorded for audit

        Returns:
            ServiceResult containing the FixAllReport
        """
        if min_pending_minutes is None:
            min_pending_minutes = settings.RECONCILIATION_MIN_PENDING_MINUTES
        send_email = cls._resolve_send_email(send_email)
        logger = cls.get_logger()

        pending = Appointment.objects.awaiting_payment()
        cutoff = timezone.now() - timedelta(minutes=min_pending_minutes)
        candidates = list(
            pending.filter(created_at__lte=cutoff)
            .order_by("created_at")
            .values_list("id", flat=True)
        )

        report = FixAllReport(total_pending=pending.count())
        logger.info(
            f"Fixing {len(candidates)} of {report.total_pending} appointments awaiting payment",
            extra={"min_pending_minutes": min_pending_minutes, "send_email": send_email},
        )

        for appointment_id in candidates:
            report.attempted += 1
            result = cls._fix_appointment(
                appointment_id,
                reference=generate_reference(reference_prefix),
                send_email=send_email,
                performed_by=performed_by,
            )
            report.results.append(result)
            if result.success:
                report.fixed += 1
            else:
                report.failed += 1

        logger.info(
            f"Bulk payment fix finished: {report.fixed} fixed, {report.failed} failed",
            extra={
                "attempted": report.attempted,
                "fixed": report.fixed,
                "failed": report.failed,
                "total_pending": report.total_pending,
            },
        )
        return ServiceResult.success(report)

    @classmethod
    def fix_one(
        cls,
        appointment_id: uuid.UUID | str,
        payment_status: str = PaymentStatus.COMPLETED,
        reference: str | None = None,
        send_email: bool | None = None,
        performed_by=None,
    ) -> ServiceResult[Payment]:
        """
        Force-complete the payment of one appointment.

        Creates the payment when the appointment has none.

        Args:
            appointment_id: Appointment to repair
            payment_status: Target status; only "completed" is supported
            reference: Reference to record (default: synthetic ADMIN-FIX one)
            send_email: Queue the confirmation email (default: setting)
            performed_by: Administrator running the fix, recorded for audit

        Returns:
            ServiceResult containing the completed Payment

        Raises:
            PaymentValidationError: Unsupported target status
            AppointmentNotFoundError: Unknown appointment
            InvalidStateTransitionError: Appointment cannot be confirmed, or a
                notification changed the payment while the override ran
        """
        if payment_status != PaymentStatus.COMPLETED:
            raise PaymentValidationError(
                f"Manual update only supports '{PaymentStatus.COMPLETED}'",
                details={"payment_status": payment_status},
            )

        send_email = cls._resolve_send_email(send_email)
        reference = reference or generate_reference()

        with transaction.atomic():
            appointment = (
                Appointment.objects.select_for_update()
                .select_related("patient", "doctor")
                .filter(pk=appointment_id)
                .first()
            )
            if appointment is None:
                raise AppointmentNotFoundError(
                    f"Appointment {appointment_id} not found",
                    details={"appointment_id": str(appointment_id)},
                )

            payment = Payment.objects.latest_for_appointment(appointment)
            if payment is None:
                payment = Payment.objects.create(
                    patient=appointment.patient,
                    doctor=appointment.doctor,
                    appointment=appointment,
                    amount=appointment.consultation_fee,
                )
                cls.get_logger().info(
                    "Created missing payment for manual update",
                    extra={"payment_id": str(payment.id), "appointment_id": str(appointment.id)},
                )

            already_settled = (
                payment.status == PaymentStatus.COMPLETED
                and not appointment.is_payment_pending
            )

            cls._force_complete(payment, reference, performed_by)
            if not PaymentReconciliationService.confirm_appointment(payment):
                raise InvalidStateTransitionError(
                    f"Appointment in '{appointment.booking_status}' state cannot be confirmed",
                    details={
                        "appointment_id": str(appointment.id),
                        "booking_status": appointment.booking_status,
                    },
                )
            if send_email and not already_settled:
                dispatch_confirmation_email(payment)

        cls.get_logger().info(
            "Payment manually completed",
            extra={
                "payment_id": str(payment.id),
                "appointment_id": str(appointment.id),
                "reference": payment.gateway_reference,
            },
        )
        return ServiceResult.success(payment)

    # =========================================================================
    # Helpers
    # =========================================================================

    @classmethod
    def _fix_appointment(
        cls,
        appointment_id: uuid.UUID,
        reference: str,
        send_email: bool,
        performed_by=None,
    ) -> FixResult:
        """Repair one appointment in its own transaction; never raises."""
        logger = cls.get_logger()
        try:
            with transaction.atomic():
                appointment = (
                    Appointment.objects.select_for_update()
                    .awaiting_payment()
                    .filter(pk=appointment_id)
                    .first()
                )
                if appointment is None:
                    # Paid or cancelled since the scan
                    return FixResult(
                        appointment_id=appointment_id,
                        success=False,
                        error="Appointment is no longer awaiting payment",
                    )

                payment = Payment.objects.latest_for_appointment(appointment)
                if payment is None:
                    logger.warning(
                        "Appointment awaiting payment has no payment record",
                        extra={"appointment_id": str(appointment_id)},
                    )
                    return FixResult(
                        appointment_id=appointment_id,
                        success=False,
                        error="Missing required payment reference",
                    )

                cls._force_complete(payment, reference, performed_by)
                if not PaymentReconciliationService.confirm_appointment(payment):
                    raise InvalidStateTransitionError(
                        f"Appointment in '{appointment.booking_status}' state "
                        "cannot be confirmed",
                        details={"appointment_id": str(appointment_id)},
                    )
                if send_email:
                    dispatch_confirmation_email(payment)
        except Exception as e:
            logger.error(
                f"Failed to fix appointment {appointment_id}: {e}",
                extra={"appointment_id": str(appointment_id)},
                exc_info=True,
            )
            return FixResult(
                appointment_id=appointment_id,
                success=False,
                error=getattr(e, "message", None) or str(e),
            )

        return FixResult(
            appointment_id=appointment_id,
            success=True,
            payment_id=payment.id,
            reference=payment.gateway_reference,
        )

    @classmethod
    def _force_complete(cls, payment: Payment, reference: str, performed_by=None) -> None:
        """Apply the override transition; a completed payment is left as is."""
        if payment.status == PaymentStatus.COMPLETED:
            return

        payload: dict[str, Any] = {
            "admin_override": True,
            "reference": reference,
            "previous_status": payment.status,
            "performed_at": timezone.now().isoformat(),
            "performed_by": getattr(performed_by, "email", None),
            "previous_response": payment.gateway_response or None,
        }
        try:
            payment.force_complete(reference=reference, payload=payload)
        except TransitionNotAllowed:
            raise InvalidStateTransitionError(
                f"Cannot force-complete payment in '{payment.status}' state",
                details={"payment_id": str(payment.id), "current_state": payment.status},
            )
        try:
            payment.save()
        except ConcurrentTransition:
            # A gateway notification moved the payment after it was loaded
            raise InvalidStateTransitionError(
                "Payment status changed while the override was applied; retry",
                details={"payment_id": str(payment.id)},
            )

    @staticmethod
    def _resolve_send_email(send_email: bool | None) -> bool:
        if send_email is None:
            return bool(settings.RECONCILIATION_SEND_CONFIRMATION_EMAIL)
        return send_email
