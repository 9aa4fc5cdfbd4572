"""Django app configuration for the demo app."""

from django.apps import AppConfig


class DemoConfig(AppConfig):
    """Configuration for the demo environment and demo game."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.demo"
    verbose_name = "Demo"
