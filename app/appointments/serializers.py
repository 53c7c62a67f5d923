"""
Serializers for appointment read endpoints.
"""

from rest_framework import serializers

from appointments.models import Appointment


class AppointmentSerializer(serializers.ModelSerializer):
    """Appointment with denormalized names for the booking dashboard."""

    doctor_name = serializers.CharField(source="doctor.name", read_only=True)
    patient_name = serializers.CharField(source="patient.get_full_name", read_only=True)

    class Meta:
        model = Appointment
        fields = [
            "id",
            "patient",
            "patient_name",
            "doctor",
            "doctor_name",
            "appointment_date",
            "appointment_time",
            "consultation_type",
            "consultation_fee",
            "symptoms",
            "booking_status",
            "payment_status",
            "confirmed_at",
            "created_at",
        ]
        read_only_fields = fields
