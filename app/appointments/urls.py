"""
URL configuration for the appointments app.

Routes:
    - GET /             - Appointments visible to the current user
    - GET /<uuid:pk>/   - Appointment detail

All routes are prefixed with /api/v1/appointments/.
"""

from django.urls import path

from appointments.views import AppointmentDetailView, AppointmentListView

app_name = "appointments"

urlpatterns = [
    path("", AppointmentListView.as_view(), name="appointment_list"),
    path("<uuid:pk>/", AppointmentDetailView.as_view(), name="appointment_detail"),
]
