"""
Reconciliation of PayHere notifications with local payment state.

This module provides PaymentReconciliationService, which applies one
verified gateway notification to its Payment exactly once and, on
success, confirms the linked Appointment and queues the confirmation
email.

Processing Steps:
    1. Verify merchant and signature (no state touched on failure)
    2. Resolve the order id to a Payment
    3. Cross-check amount and currency against the stored payment
    4. Map the gateway status code to a payment status
    5. Idempotency guard: duplicates and terminal conflicts are
       acknowledged without writes
    6. Status code 0: store the payload while still pending
    7. Otherwise: FSM transition saved under compare-and-set
    8. Success only: confirm the appointment, queue the email

Usage:
    from payments.services import PaymentReconciliationService

    outcome = PaymentReconciliationService.process_notification(notification)
    if outcome.changed:
        ...
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from django.db import transaction

from django_fsm import ConcurrentTransition, can_proceed

from appointments.models import Appointment, AppointmentStatus
from core.services import BaseService
from payments.adapters import PayHereAdapter, format_amount
from payments.config import get_payhere_config
from payments.dispatch import dispatch_confirmation_email
from payments.exceptions import (
    NotificationRejectedError,
    PaymentNotFoundError,
    PaymentValidationError,
)
from payments.locks import compare_and_set
from payments.models import Payment
from payments.state_machines import PaymentStatus
from payments.types import ReconciliationOutcome

if TYPE_CHECKING:
    from payments.config import PayHereConfig
    from payments.types import GatewayNotification


# =============================================================================
# Constants
# =============================================================================

GATEWAY_STATUS_MAP: dict[int, str] = {
    2: PaymentStatus.COMPLETED,
    0: PaymentStatus.PENDING,
    -1: PaymentStatus.CANCELLED,
    -2: PaymentStatus.FAILED,
}


def map_gateway_status(status_code) -> str:
    """Payment status for a gateway status code; anything undocumented is UNKNOWN."""
    try:
        code = int(str(status_code).strip())
    except (TypeError, ValueError):
        return PaymentStatus.UNKNOWN
    return GATEWAY_STATUS_MAP.get(code, PaymentStatus.UNKNOWN)


# =============================================================================
# Reconciliation Service
# =============================================================================


class PaymentReconciliationService(BaseService):
    """
    Applies gateway notifications to payments.

    Concurrency Safety:
        Concurrent deliveries for the same payment serialise on the
        database: the transition's UPDATE is filtered on the status the
        service loaded, so only one delivery can move a payment out of
        PENDING. The loser gets ConcurrentTransition, is reported as a
        duplicate, and triggers no side effects. Deliveries for different
        payments never contend.

    Usage:
        outcome = PaymentReconciliationService.process_notification(notification)
        outcome = PaymentReconciliationService.process_notification(
            notification, config=test_config
        )
    """

    # =========================================================================
    # Public API
    # =========================================================================

    @classmethod
    def process_notification(
        cls,
        notification: GatewayNotification,
        config: PayHereConfig | None = None,
        adapter: PayHereAdapter | None = None,
    ) -> ReconciliationOutcome:
        """
        Apply one PayHere notification.

        Args:
            notification: Parsed notification
            config: Merchant configuration (defaults to settings)
            adapter: Adapter to verify with (defaults to one for ``config``)

        Returns:
            ReconciliationOutcome describing what this delivery did

        Raises:
            NotificationRejectedError: Merchant mismatch, invalid signature,
                or amount/currency mismatch (nothing was written)
            PaymentNotFoundError: Order id does not resolve to a payment
        """
        config = config or get_payhere_config()
        adapter = adapter or PayHereAdapter(config)
        logger = cls.get_logger()
        log_context = {
            "order_id": notification.order_id,
            "status_code": notification.status_code,
            "gateway_reference": notification.gateway_reference,
        }

        # Step 1: authenticity
        cls._verify(notification, adapter, log_context)

        # Step 2: resolve
        payment = cls.resolve_payment(notification.order_id, config)
        log_context["payment_id"] = str(payment.id)

        # Step 3: amount and currency must match what was charged
        cls._check_amount(payment, notification, log_context)

        # Step 4: map
        target = map_gateway_status(notification.status_code)
        previous = payment.status

        logger.info(
            f"PayHere notification for {notification.order_id}: {previous} -> {target}",
            extra={**log_context, "previous_status": previous, "target_status": target},
        )

        # Step 5: idempotency guard
        if payment.is_terminal:
            if previous == target:
                logger.info(
                    "Duplicate notification ignored",
                    extra={**log_context, "status": previous},
                )
                return ReconciliationOutcome(
                    payment=payment,
                    previous_status=previous,
                    status=previous,
                    duplicate=True,
                )

            logger.warning(
                f"Notification reports {target} for payment already {previous}; "
                "stored status kept",
                extra={**log_context, "status": previous, "target_status": target},
            )
            return ReconciliationOutcome(
                payment=payment,
                previous_status=previous,
                status=previous,
                conflict=True,
            )

        # Step 6: still pending at the gateway
        if target == PaymentStatus.PENDING:
            return cls._store_pending(payment, notification, log_context)

        # Step 7 + 8: transition under compare-and-set
        return cls._apply_transition(payment, notification, target, log_context)

    @classmethod
    def resolve_payment(cls, order_id: str, config: PayHereConfig | None = None) -> Payment:
        """
        Find the payment an order id refers to.

        Raises:
            PaymentNotFoundError: Unknown or malformed order id
        """
        config = config or get_payhere_config()
        payment = Payment.objects.select_related("appointment").for_order_id(
            order_id, config.order_prefix
        )
        if payment is None:
            cls.get_logger().warning(
                "Payment not found for order id",
                extra={"order_id": order_id},
            )
            raise PaymentNotFoundError(
                f"Payment not found for order {order_id}",
                details={"order_id": order_id},
            )
        return payment

    @classmethod
    def confirm_appointment(cls, payment: Payment) -> bool:
        """
        Confirm the appointment a completed payment belongs to.

        Locks the appointment row for the rest of the current transaction.
        A missing appointment, or one whose booking status no longer
        allows confirmation, is a data-integrity warning: the payment
        change stands and the appointment is left for manual repair.

        Returns:
            True if the appointment is now confirmed and paid
        """
        logger = cls.get_logger()
        if payment.appointment_id is None:
            logger.warning(
                "Completed payment has no appointment",
                extra={"payment_id": str(payment.id)},
            )
            return False

        with transaction.atomic():
            appointment = (
                Appointment.objects.select_for_update()
                .filter(pk=payment.appointment_id)
                .first()
            )
            if appointment is None:
                logger.warning(
                    "Appointment for completed payment not found",
                    extra={
                        "payment_id": str(payment.id),
                        "appointment_id": str(payment.appointment_id),
                    },
                )
                return False

            if (
                appointment.booking_status == AppointmentStatus.CONFIRMED
                and not appointment.is_payment_pending
            ):
                payment.appointment = appointment
                return True

            if not can_proceed(appointment.confirm_payment):
                logger.warning(
                    f"Appointment in '{appointment.booking_status}' state cannot be "
                    "confirmed by payment",
                    extra={
                        "payment_id": str(payment.id),
                        "appointment_id": str(appointment.id),
                        "booking_status": appointment.booking_status,
                    },
                )
                return False

            appointment.confirm_payment()
            appointment.save(
                update_fields=["booking_status", "payment_status", "confirmed_at", "updated_at"]
            )

        payment.appointment = appointment
        logger.info(
            "Appointment confirmed by payment",
            extra={"payment_id": str(payment.id), "appointment_id": str(appointment.id)},
        )
        return True

    # =========================================================================
    # Steps
    # =========================================================================

    @classmethod
    def _verify(
        cls,
        notification: GatewayNotification,
        adapter: PayHereAdapter,
        log_context: dict,
    ) -> None:
        if not adapter.is_own_merchant(notification.merchant_id):
            cls.get_logger().warning(
                "Notification for another merchant rejected",
                extra={**log_context, "merchant_id": notification.merchant_id},
            )
            raise NotificationRejectedError(
                "Notification merchant id does not match",
                reason=NotificationRejectedError.MERCHANT_MISMATCH,
                details={"order_id": notification.order_id},
            )

        if not adapter.verify_notification(notification):
            cls.get_logger().warning(
                "Notification signature verification failed",
                extra=log_context,
            )
            raise NotificationRejectedError(
                "Notification signature does not match",
                reason=NotificationRejectedError.INVALID_HASH,
                details={"order_id": notification.order_id},
            )

    @classmethod
    def _check_amount(
        cls,
        payment: Payment,
        notification: GatewayNotification,
        log_context: dict,
    ) -> None:
        try:
            notified_amount = Decimal(format_amount(notification.amount))
        except PaymentValidationError:
            notified_amount = None

        if (
            notified_amount != Decimal(format_amount(payment.amount))
            or notification.currency.strip().upper() != payment.currency.upper()
        ):
            cls.get_logger().error(
                "Signed notification amount does not match the payment",
                extra={
                    **log_context,
                    "expected_amount": str(payment.amount),
                    "expected_currency": payment.currency,
                    "notified_amount": notification.amount,
                    "notified_currency": notification.currency,
                },
            )
            raise NotificationRejectedError(
                "Notification amount does not match the payment",
                reason=NotificationRejectedError.AMOUNT_MISMATCH,
                details={"order_id": notification.order_id},
            )

    @classmethod
    def _store_pending(
        cls,
        payment: Payment,
        notification: GatewayNotification,
        log_context: dict,
    ) -> ReconciliationOutcome:
        stored = compare_and_set(
            Payment,
            payment.pk,
            expected_status=PaymentStatus.PENDING,
            gateway_response=notification.raw,
        )
        if stored:
            payment.refresh_from_db()
            cls.get_logger().info("Pending notification recorded", extra=log_context)
            return ReconciliationOutcome(
                payment=payment,
                previous_status=PaymentStatus.PENDING,
                status=PaymentStatus.PENDING,
            )

        # Another delivery completed the payment between load and write
        payment.refresh_from_db()
        cls.get_logger().info(
            f"Pending notification arrived after payment became {payment.status}",
            extra=log_context,
        )
        return ReconciliationOutcome(
            payment=payment,
            previous_status=PaymentStatus.PENDING,
            status=payment.status,
            conflict=True,
        )

    @classmethod
    def _apply_transition(
        cls,
        payment: Payment,
        notification: GatewayNotification,
        target: str,
        log_context: dict,
    ) -> ReconciliationOutcome:
        logger = cls.get_logger()
        previous = payment.status
        confirmed = False

        try:
            with transaction.atomic():
                if target == PaymentStatus.COMPLETED:
                    payment.complete(
                        reference=notification.gateway_reference or None,
                        payload=notification.raw,
                        payment_method=notification.method,
                    )
                elif target == PaymentStatus.CANCELLED:
                    payment.cancel(payload=notification.raw)
                elif target == PaymentStatus.FAILED:
                    payment.fail(payload=notification.raw)
                else:
                    payment.mark_unknown(payload=notification.raw)
                payment.save()

                if target == PaymentStatus.COMPLETED:
                    confirmed = cls.confirm_appointment(payment)
                    dispatch_confirmation_email(payment)
        except ConcurrentTransition:
            payment.refresh_from_db()
            logger.info(
                f"Concurrent delivery already moved payment to {payment.status}",
                extra={**log_context, "status": payment.status},
            )
            return ReconciliationOutcome(
                payment=payment,
                previous_status=previous,
                status=payment.status,
                duplicate=payment.status == target,
                conflict=payment.status != target,
            )

        logger.info(
            f"Payment {payment.id} moved {previous} -> {payment.status}",
            extra={**log_context, "status": payment.status},
        )
        return ReconciliationOutcome(
            payment=payment,
            previous_status=previous,
            status=payment.status,
            changed=True,
            appointment_confirmed=confirmed,
        )
