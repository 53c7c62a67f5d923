"""
Read-only appointment views.

The patient front end polls these after returning from the gateway to
show the booking once its payment status has flipped to "paid".
"""

from drf_spectacular.utils import extend_schema
from rest_framework.generics import ListAPIView, RetrieveAPIView
from rest_framework.permissions import IsAuthenticated

from appointments.models import Appointment
from appointments.serializers import AppointmentSerializer


@extend_schema(tags=["Appointments"])
class AppointmentListView(ListAPIView):
    """
    List appointments visible to the current user.

    GET /api/v1/appointments/?payment_status=pending
    """

    serializer_class = AppointmentSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = Appointment.objects.for_user(self.request.user).select_related(
            "doctor", "patient__profile"
        )
        payment_status = self.request.query_params.get("payment_status")
        if payment_status:
            queryset = queryset.filter(payment_status=payment_status)
        return queryset


@extend_schema(tags=["Appointments"])
class AppointmentDetailView(RetrieveAPIView):
    """GET /api/v1/appointments/<id>/"""

    serializer_class = AppointmentSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return Appointment.objects.for_user(self.request.user).select_related(
            "doctor", "patient__profile"
        )
