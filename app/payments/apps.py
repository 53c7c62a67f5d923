from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """PayHere checkout, notification handling and reconciliation."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
