from django.apps import AppConfig


class ProcurementConfig(AppConfig):
    """Purchase orders, deliveries and receiving."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "procurement"
