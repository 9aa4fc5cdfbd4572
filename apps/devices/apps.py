"""Django app configuration for the devices app."""

from django.apps import AppConfig


class DevicesConfig(AppConfig):
    """Configuration for push device registrations."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.devices"
    verbose_name = "Devices"
