"""
URL configuration for the payments app.

Routes:
    - GET  /                                     - Current patient's payments
    - POST /notify/                              - PayHere notification callback
    - POST /generate-hash/                       - Checkout signature
    - POST /initiate/                            - Start checkout
    - POST /verify/                              - Post-redirect status check
    - POST /admin/fix-pending/                   - Force-complete stuck payments
    - POST /admin/manual-update/<appointment_id>/ - Force-complete one appointment
    - GET  /admin/diagnostic/                    - Status counts

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments.views import (
    FixPendingPaymentsView,
    GenerateHashView,
    InitiatePaymentView,
    ManualPaymentUpdateView,
    PaymentDiagnosticView,
    PaymentListView,
    VerifyPaymentView,
)
from payments.webhooks.views import payhere_notify

app_name = "payments"

urlpatterns = [
    path("", PaymentListView.as_view(), name="payment_list"),
    # Gateway callback
    path("notify/", payhere_notify, name="payhere_notify"),
    # Checkout
    path("generate-hash/", GenerateHashView.as_view(), name="generate_hash"),
    path("initiate/", InitiatePaymentView.as_view(), name="initiate"),
    path("verify/", VerifyPaymentView.as_view(), name="verify"),
    # Administrative reconciliation
    path("admin/fix-pending/", FixPendingPaymentsView.as_view(), name="fix_pending"),
    path(
        "admin/manual-update/<uuid:appointment_id>/",
        ManualPaymentUpdateView.as_view(),
        name="manual_update",
    ),
    path("admin/diagnostic/", PaymentDiagnosticView.as_view(), name="diagnostic"),
]
