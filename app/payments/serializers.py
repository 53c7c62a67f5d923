"""
DRF serializers for payments app.

This module provides serializers for:
- PayHere notification parsing (form-encoded gateway callback)
- Checkout hash generation, initiation and verification requests
- Administrative reconciliation requests
- Payment history

Related files:
    - types.py: GatewayNotification produced from the notification form
    - views.py, webhooks/views.py: Views using these serializers

Usage:
    serializer = PayHereNotificationSerializer(data=request.POST)
    notification = serializer.to_notification()
"""

from __future__ import annotations

from rest_framework import serializers

from payments.adapters import format_amount
from payments.exceptions import NotificationRejectedError, PaymentValidationError
from payments.models import Payment
from payments.state_machines import PaymentStatus
from payments.types import GatewayNotification


# =============================================================================
# Gateway Notification
# =============================================================================


class PayHereNotificationSerializer(serializers.Serializer):
    """
    PayHere payment notification (POSTed to notify_url).

    Required, non-blank:
        merchant_id, order_id, payhere_amount, payhere_currency,
        status_code, md5sig

    Optional (informational, not signed):
        payment_id, status_message, method, card_holder_name, card_no

    Usage:
        serializer = PayHereNotificationSerializer(data=request.POST)
        notification = serializer.to_notification()  # or NotificationRejectedError
    """

    merchant_id = serializers.CharField(max_length=64)
    order_id = serializers.CharField(max_length=128)
    payhere_amount = serializers.CharField(max_length=32)
    payhere_currency = serializers.CharField(max_length=8)
    status_code = serializers.CharField(max_length=8)
    md5sig = serializers.CharField(max_length=64)

    payment_id = serializers.CharField(required=False, allow_blank=True, default="")
    status_message = serializers.CharField(required=False, allow_blank=True, default="")
    method = serializers.CharField(required=False, allow_blank=True, default="")
    card_holder_name = serializers.CharField(required=False, allow_blank=True, default="")
    card_no = serializers.CharField(required=False, allow_blank=True, default="")

    def to_notification(self) -> GatewayNotification:
        """
        Validate and return the typed notification.

        Raises:
            NotificationRejectedError: If any required field is missing or blank
        """
        if not self.is_valid():
            raise NotificationRejectedError(
                "Notification is missing required fields",
                reason=NotificationRejectedError.MISSING_FIELDS,
                details={"fields": sorted(self.errors)},
            )

        data = self.validated_data
        return GatewayNotification(
            merchant_id=data["merchant_id"],
            order_id=data["order_id"],
            amount=data["payhere_amount"],
            currency=data["payhere_currency"],
            status_code=data["status_code"],
            signature=data["md5sig"],
            gateway_reference=data["payment_id"],
            status_message=data["status_message"],
            method=data["method"],
            card_holder_name=data["card_holder_name"],
            card_no=data["card_no"],
            raw=self._raw_payload(),
        )

    def _raw_payload(self) -> dict[str, str]:
        initial = self.initial_data
        if hasattr(initial, "dict"):
            return initial.dict()
        return {key: str(value) for key, value in dict(initial).items()}


# =============================================================================
# Checkout Requests
# =============================================================================


class GenerateHashSerializer(serializers.Serializer):
    """Request body of the checkout hash endpoint."""

    merchant_id = serializers.CharField(required=False, allow_blank=True)
    order_id = serializers.CharField(max_length=128)
    amount = serializers.CharField(max_length=32)
    currency = serializers.CharField(max_length=8)

    def validate_amount(self, value: str) -> str:
        try:
            return format_amount(value)
        except PaymentValidationError as e:
            raise serializers.ValidationError(e.message)


class InitiatePaymentSerializer(serializers.Serializer):
    appointment_id = serializers.UUIDField()


class VerifyPaymentSerializer(serializers.Serializer):
    order_id = serializers.CharField(max_length=128)


# =============================================================================
# Administrative Reconciliation Requests
# =============================================================================


class FixPendingPaymentsSerializer(serializers.Serializer):
    """Optional overrides for a bulk fix run."""

    minAgeMinutes = serializers.IntegerField(required=False, min_value=0)
    sendEmail = serializers.BooleanField(required=False, allow_null=True, default=None)


class ManualPaymentUpdateSerializer(serializers.Serializer):
    """
    Request body of the single-appointment override.

    Only "completed" is applied; other values are rejected by the service
    with a PAYMENT_VALIDATION_ERROR.
    """

    paymentStatus = serializers.CharField(required=False, default=PaymentStatus.COMPLETED)
    paymentReference = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, default=None
    )
    sendEmail = serializers.BooleanField(required=False, allow_null=True, default=None)


# =============================================================================
# Responses
# =============================================================================


class PaymentSerializer(serializers.ModelSerializer):
    """Payment history row for the patient dashboard and admin responses."""

    order_id = serializers.CharField(read_only=True)
    doctor_name = serializers.CharField(source="doctor.name", read_only=True)
    appointment_date = serializers.DateField(
        source="appointment.appointment_date", read_only=True, default=None
    )

    class Meta:
        model = Payment
        fields = [
            "id",
            "order_id",
            "appointment",
            "appointment_date",
            "doctor_name",
            "amount",
            "currency",
            "status",
            "gateway_reference",
            "payment_method",
            "paid_at",
            "created_at",
        ]
        read_only_fields = fields
