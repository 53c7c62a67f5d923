from django.apps import AppConfig


class ToolkitConfig(AppConfig):
    """Shared email service and templates; no models."""

    name = "toolkit"
