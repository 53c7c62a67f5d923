"""
Patient checkout with PayHere.

initiate() creates the pending Payment and the signed form the front end
posts to PayHere. verify() is polled by the front end after the patient
returns from the gateway; the notification may not have landed yet, so
it reports the current status and repairs an appointment left behind by
an earlier partial failure.

Usage:
    from payments.services import CheckoutService

    result = CheckoutService.initiate(appointment, request.user)
    if result.success:
        checkout = result.data  # CheckoutData

    result = CheckoutService.verify(order_id, request.user)
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from django.db import transaction

from appointments.models import Appointment, AppointmentStatus
from core.exceptions import PermissionDeniedError
from core.services import BaseService, ServiceResult
from payments.adapters import PayHereAdapter, format_amount
from payments.config import get_payhere_config
from payments.exceptions import PaymentNotFoundError, PaymentValidationError
from payments.models import Payment
from payments.services.reconciliation import PaymentReconciliationService
from payments.state_machines import PaymentStatus
from payments.types import CheckoutData

if TYPE_CHECKING:
    from typing import Any

    from payments.config import PayHereConfig


class CheckoutService(BaseService):
    """Starts and verifies patient checkouts."""

    @classmethod
    def initiate(
        cls,
        appointment: Appointment,
        user,
        config: PayHereConfig | None = None,
    ) -> ServiceResult[CheckoutData]:
        """
        Create a pending payment and the signed PayHere checkout form.

        Args:
            appointment: Appointment being paid for
            user: Requesting user, must be the appointment's patient
            config: Merchant configuration (defaults to settings)

        Returns:
            ServiceResult containing CheckoutData, or a failure when the
            appointment is not awaiting payment

        Raises:
            PermissionDeniedError: User does not own the appointment
            PaymentValidationError: Fee outside the accepted range
        """
        config = config or get_payhere_config()
        adapter = PayHereAdapter(config)

        if appointment.patient_id != user.pk:
            raise PermissionDeniedError(
                "You can only pay for your own appointments",
                error_code="NOT_APPOINTMENT_OWNER",
                details={"appointment_id": str(appointment.id)},
            )

        if not appointment.is_payment_pending:
            return ServiceResult.failure(
                "Appointment is already paid",
                error_code="ALREADY_PAID",
            )
        if appointment.booking_status == AppointmentStatus.CANCELLED:
            return ServiceResult.failure(
                "Appointment is cancelled",
                error_code="APPOINTMENT_CANCELLED",
            )

        amount = Decimal(format_amount(appointment.consultation_fee))
        if not config.min_amount <= amount <= config.max_amount:
            raise PaymentValidationError(
                f"Amount must be between {config.min_amount} and {config.max_amount} "
                f"{config.currency}",
                details={
                    "amount": str(amount),
                    "min_amount": str(config.min_amount),
                    "max_amount": str(config.max_amount),
                },
            )

        with transaction.atomic():
            payment = Payment.objects.create(
                patient=appointment.patient,
                doctor=appointment.doctor,
                appointment=appointment,
                amount=amount,
                currency=config.currency,
            )

        order_id = f"{config.order_prefix}{payment.id}"
        payment_data = cls._build_form(appointment, payment, order_id, adapter, config)

        cls.get_logger().info(
            "Checkout initiated",
            extra={
                "payment_id": str(payment.id),
                "order_id": order_id,
                "amount": payment_data["amount"],
                "environment": config.environment,
            },
        )
        return ServiceResult.success(
            CheckoutData(
                payment_id=payment.id,
                order_id=order_id,
                checkout_url=adapter.checkout_url,
                environment=config.environment,
                payment_data=payment_data,
            )
        )

    @classmethod
    def verify(
        cls,
        order_id: str,
        user,
        config: PayHereConfig | None = None,
    ) -> ServiceResult[dict[str, Any]]:
        """
        Report the status of a checkout to the patient.

        If the payment completed but its appointment was never confirmed,
        the appointment is repaired here. No email is sent from this path.

        Raises:
            PaymentNotFoundError: Unknown order id, or not the user's payment
        """
        payment = PaymentReconciliationService.resolve_payment(order_id, config)
        if payment.patient_id != user.pk and not user.is_staff:
            raise PaymentNotFoundError(
                f"Payment not found for order {order_id}",
                details={"order_id": order_id},
            )

        repaired = False
        appointment = payment.appointment
        if (
            payment.status == PaymentStatus.COMPLETED
            and appointment is not None
            and appointment.is_payment_pending
        ):
            repaired = PaymentReconciliationService.confirm_appointment(payment)
            if repaired:
                cls.get_logger().warning(
                    "Appointment repaired during payment verification",
                    extra={
                        "payment_id": str(payment.id),
                        "appointment_id": str(appointment.id),
                    },
                )

        receipt = {
            "orderId": order_id,
            "amount": format_amount(payment.amount),
            "currency": payment.currency,
            "paymentReference": payment.gateway_reference,
            "date": (payment.paid_at or payment.created_at).isoformat(),
            "status": payment.status,
            "appointmentId": str(payment.appointment_id) if payment.appointment_id else None,
        }
        return ServiceResult.success({"receipt": receipt, "repaired": repaired})

    @staticmethod
    def _build_form(
        appointment: Appointment,
        payment: Payment,
        order_id: str,
        adapter: PayHereAdapter,
        config: PayHereConfig,
    ) -> dict[str, str]:
        patient = appointment.patient
        profile = getattr(patient, "profile", None)
        first_name = (profile.first_name if profile else "") or patient.email.split("@")[0]
        last_name = (profile.last_name if profile else "") or "Patient"
        amount = format_amount(payment.amount)

        return {
            "merchant_id": config.merchant_id,
            "return_url": f"{config.client_url}/payment/success",
            "cancel_url": f"{config.client_url}/payment/cancel",
            "notify_url": f"{config.server_url}/api/v1/payments/notify/",
            "order_id": order_id,
            "items": f"Consultation with {appointment.doctor}",
            "currency": payment.currency,
            "amount": amount,
            "first_name": first_name,
            "last_name": last_name,
            "email": patient.email,
            "phone": profile.phone if profile else "",
            "address": profile.address if profile else "",
            "city": (profile.city if profile else "") or "Colombo",
            "country": (profile.country if profile else "") or "Sri Lanka",
            "hash": adapter.generate_checkout_hash(order_id, amount, payment.currency),
        }
