"""Django app configuration for the notify app."""

from django.apps import AppConfig


class NotifyConfig(AppConfig):
    """Configuration for push delivery."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.notify"
    verbose_name = "Push Notifications"
