"""
DRF views for payments app.

This module provides API views for:
- Checkout hash generation for the client-side PayHere form
- Checkout initiation and post-redirect verification
- Payment history
- Administrative reconciliation (bulk fix, single override, diagnostics)

Related files:
    - services/: CheckoutService, ManualReconciliationService
    - serializers.py: Request/response serializers
    - webhooks/views.py: PayHere notification endpoint
    - urls.py: URL routing

Endpoints:
    POST /api/v1/payments/generate-hash/ - Checkout signature
    POST /api/v1/payments/initiate/ - Start checkout for an appointment
    POST /api/v1/payments/verify/ - Status check after gateway redirect
    GET /api/v1/payments/ - Current patient's payments
    POST /api/v1/payments/admin/fix-pending/ - Force-complete stuck payments
    POST /api/v1/payments/admin/manual-update/<appointment_id>/ - Force-complete one
    GET /api/v1/payments/admin/diagnostic/ - Status counts

Security:
    - generate-hash is public (the hash binds the merchant's own values)
    - Checkout and history endpoints require authentication
    - admin/ endpoints require is_staff
"""

from __future__ import annotations

import logging

from django.db.models import Count
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import ListAPIView
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from appointments.exceptions import AppointmentNotFoundError
from appointments.models import Appointment
from core.exceptions import ConflictError, PermissionDeniedError
from payments.adapters import PayHereAdapter
from payments.config import get_payhere_config
from payments.exceptions import PaymentNotFoundError, PaymentValidationError
from payments.models import Payment
from payments.serializers import (
    FixPendingPaymentsSerializer,
    GenerateHashSerializer,
    InitiatePaymentSerializer,
    ManualPaymentUpdateSerializer,
    PaymentSerializer,
    VerifyPaymentSerializer,
)
from payments.services import CheckoutService, ManualReconciliationService

logger = logging.getLogger(__name__)


# =============================================================================
# Checkout
# =============================================================================


@extend_schema(tags=["Payments"])
class GenerateHashView(APIView):
    """
    Compute the checkout hash for the PayHere form.

    POST /api/v1/payments/generate-hash/

    Request body:
        {"merchant_id": "1211149", "order_id": "PAY-...", "amount": "1500", "currency": "LKR"}

    Returns:
        {"success": true, "hash": "...", "amount": "1500.00", "merchant_id": "1211149"}
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = GenerateHashSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"success": False, "error": "Invalid request", "errors": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        data = serializer.validated_data
        adapter = PayHereAdapter(get_payhere_config())

        merchant_id = data.get("merchant_id")
        if merchant_id and not adapter.is_own_merchant(merchant_id):
            logger.warning(
                "Hash requested for another merchant",
                extra={"merchant_id": merchant_id, "order_id": data["order_id"]},
            )
            return Response(
                {"success": False, "error": "Merchant mismatch"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        payment_hash = adapter.generate_checkout_hash(
            data["order_id"], data["amount"], data["currency"]
        )
        return Response(
            {
                "success": True,
                "hash": payment_hash,
                "amount": data["amount"],
                "merchant_id": adapter.config.merchant_id,
            }
        )


@extend_schema(tags=["Payments"])
class InitiatePaymentView(APIView):
    """
    Start checkout for one of the current user's appointments.

    POST /api/v1/payments/initiate/

    Request body:
        {"appointment_id": "<uuid>"}

    Returns:
        {"success": true, "paymentData": {...}, "checkoutUrl": "https://sandbox.payhere.lk/pay/checkout"}
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = InitiatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = (
            Appointment.objects.select_related("doctor", "patient__profile")
            .filter(pk=serializer.validated_data["appointment_id"])
            .first()
        )
        if appointment is None:
            return Response(
                AppointmentNotFoundError("Appointment not found").to_dict(),
                status=status.HTTP_404_NOT_FOUND,
            )

        try:
            result = CheckoutService.initiate(appointment, request.user)
        except PermissionDeniedError as e:
            return Response(e.to_dict(), status=status.HTTP_403_FORBIDDEN)
        except PaymentValidationError as e:
            return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

        if not result:
            return Response(result.to_response(), status=status.HTTP_400_BAD_REQUEST)

        checkout = result.data
        return Response(
            {
                "success": True,
                "paymentData": checkout.payment_data,
                "checkoutUrl": checkout.checkout_url,
            },
            status=status.HTTP_201_CREATED,
        )


@extend_schema(tags=["Payments"])
class VerifyPaymentView(APIView):
    """
    Report a checkout's status after the gateway redirect.

    POST /api/v1/payments/verify/

    Request body:
        {"order_id": "PAY-<uuid>"}

    Returns:
        {"success": true, "message": "...", "receipt": {...}}
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = CheckoutService.verify(serializer.validated_data["order_id"], request.user)
        except PaymentNotFoundError as e:
            return Response(e.to_dict(), status=status.HTTP_404_NOT_FOUND)

        receipt = result.data["receipt"]
        message = (
            "Payment verified successfully"
            if receipt["status"] == "completed"
            else f"Payment is {receipt['status']}"
        )
        return Response({"success": True, "message": message, "receipt": receipt})


@extend_schema(tags=["Payments"])
class PaymentListView(ListAPIView):
    """
    List the current user's payments, newest first.

    GET /api/v1/payments/
    """

    serializer_class = PaymentSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return (
            Payment.objects.filter(patient=self.request.user)
            .select_related("doctor", "appointment")
            .order_by("-created_at")
        )


# =============================================================================
# Administrative Reconciliation
# =============================================================================


@extend_schema(tags=["Payments"])
class FixPendingPaymentsView(APIView):
    """
    Force-complete every appointment stuck awaiting payment.

    POST /api/v1/payments/admin/fix-pending/

    Request body (optional):
        {"minAgeMinutes": 5, "sendEmail": true}

    Returns:
        {"success": true, "message": "...", "fixed": 3, "failed": 1,
         "attempted": 4, "totalPending": 5, "results": [...]}
    """

    permission_classes = [IsAdminUser]

    def post(self, request):
        serializer = FixPendingPaymentsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = ManualReconciliationService.fix_all(
            min_pending_minutes=data.get("minAgeMinutes"),
            send_email=data.get("sendEmail"),
            performed_by=request.user,
        )
        report = result.data

        logger.info(
            "Bulk payment fix requested",
            extra={"admin_id": request.user.pk, "fixed": report.fixed, "failed": report.failed},
        )
        return Response(
            {
                "success": True,
                "message": f"Fixed {report.fixed} of {report.attempted} pending payments",
                "fixed": report.fixed,
                "failed": report.failed,
                "attempted": report.attempted,
                "totalPending": report.total_pending,
                "results": [r.to_dict() for r in report.results],
            }
        )


@extend_schema(tags=["Payments"])
class ManualPaymentUpdateView(APIView):
    """
    Force-complete the payment of one appointment.

    POST /api/v1/payments/admin/manual-update/<appointment_id>/

    Request body (optional):
        {"paymentStatus": "completed", "paymentReference": "ADMIN-FIX-...", "sendEmail": false}

    Returns:
        {"success": true, "message": "...", "appointment": {...}, "payment": {...}}
    """

    permission_classes = [IsAdminUser]

    def post(self, request, appointment_id):
        serializer = ManualPaymentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = ManualReconciliationService.fix_one(
                appointment_id,
                payment_status=data["paymentStatus"],
                reference=data.get("paymentReference") or None,
                send_email=data.get("sendEmail"),
                performed_by=request.user,
            )
        except AppointmentNotFoundError as e:
            return Response(e.to_dict(), status=status.HTTP_404_NOT_FOUND)
        except PaymentValidationError as e:
            return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)
        except ConflictError as e:
            return Response(e.to_dict(), status=status.HTTP_409_CONFLICT)

        payment = result.data
        appointment = payment.appointment
        return Response(
            {
                "success": True,
                "message": "Payment status updated successfully",
                "appointment": {
                    "id": str(appointment.id),
                    "bookingStatus": appointment.booking_status,
                    "paymentStatus": appointment.payment_status,
                },
                "payment": PaymentSerializer(payment).data,
            }
        )


@extend_schema(tags=["Payments"])
class PaymentDiagnosticView(APIView):
    """
    Counts of appointments and payments by status.

    GET /api/v1/payments/admin/diagnostic/
    """

    permission_classes = [IsAdminUser]

    def get(self, request):
        appointments = {
            row["payment_status"]: row["count"]
            for row in Appointment.objects.values("payment_status").annotate(count=Count("id"))
        }
        payments = {
            row["status"]: row["count"]
            for row in Payment.objects.values("status").annotate(count=Count("id"))
        }
        return Response(
            {
                "success": True,
                "appointments": {
                    "total": sum(appointments.values()),
                    "byPaymentStatus": appointments,
                    "awaitingPayment": Appointment.objects.awaiting_payment().count(),
                },
                "payments": {
                    "total": sum(payments.values()),
                    "byStatus": payments,
                },
            }
        )
