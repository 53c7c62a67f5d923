"""
Appointment admin configuration.
"""

from django.contrib import admin

from appointments.models import Appointment, Doctor


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    """Admin configuration for Doctor."""

    list_display = ["name", "specialization", "consultation_fee", "is_active"]
    list_filter = ["is_active", "specialization"]
    search_fields = ["name", "email", "specialization"]
    readonly_fields = ["id", "created_at", "updated_at"]


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    """
    Admin configuration for Appointment.

    Booking and payment status are read-only here; payments are
    reconciled from the Payment admin or the reconciliation endpoints.
    """

    list_display = [
        "id",
        "patient",
        "doctor",
        "appointment_date",
        "appointment_time",
        "booking_status",
        "payment_status",
        "created_at",
    ]
    list_filter = ["booking_status", "payment_status", "consultation_type"]
    search_fields = ["id", "patient__email", "doctor__name"]
    readonly_fields = [
        "id",
        "booking_status",
        "payment_status",
        "confirmed_at",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["patient", "doctor"]
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "patient", "doctor"),
            },
        ),
        (
            "Schedule",
            {
                "fields": (
                    "appointment_date",
                    "appointment_time",
                    "consultation_type",
                    "consultation_fee",
                    "symptoms",
                ),
            },
        ),
        (
            "Status",
            {
                "fields": ("booking_status", "payment_status", "confirmed_at"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )
