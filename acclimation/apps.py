from django.apps import AppConfig


class AcclimationConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "acclimation"
