"""
Appointments application.

Holds the Doctor directory entries and the Appointment records that
payments are attached to. Booking status and payment status are tracked
separately; the payments app is the only writer of the paid/confirmed
transition.

Usage:
    from appointments.models import Appointment, AppointmentStatus
"""
