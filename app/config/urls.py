"""
URL configuration for the Django application.

URL Structure:
    /                                  - ReDoc API documentation
    /admin/                            - Django admin interface
    /health/                           - Health check endpoint
    /schema/                           - OpenAPI schema (YAML)
    /api/v1/auth/token/                - Obtain JWT pair (simplejwt)
    /api/v1/auth/token/refresh/        - Refresh JWT access token
    /api/v1/appointments/              - Appointment endpoints
        <id>/                          - Appointment detail (owner or admin)
    /api/v1/payments/                  - Payment endpoints
        (GET)                          - Current patient's payment history
        notify/                        - PayHere notification callback (POST)
        generate-hash/                 - Checkout signature for the client (POST)
        initiate/                      - Start checkout for an appointment (POST)
        verify/                        - Patient-side status check after redirect (POST)
        admin/fix-pending/             - Force-complete stuck payments (POST, admin)
        admin/manual-update/<id>/      - Force-complete one appointment (POST, admin)
        admin/diagnostic/              - Status counts (GET, admin)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Token authentication for the front end
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    # Appointments
    path("appointments/", include("appointments.urls")),
    # Payments
    path("payments/", include("payments.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Appointments Admin"
admin.site.site_title = "Appointments Admin Portal"
admin.site.index_title = "Appointments and payment reconciliation"
