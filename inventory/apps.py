"""Django app configuration for the inventory app."""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    """Items, material lots and their per-location splits, plus reservations."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"
