from django.apps import AppConfig


class LocationsConfig(AppConfig):
    """Warehouse location hierarchy (bins, trucks, jobsites)."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "locations"
