"""Django app configuration for the incidents app."""

from django.apps import AppConfig


class IncidentsConfig(AppConfig):
    """Configuration for incident ingestion and lifecycle."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.incidents"
    verbose_name = "Incidents"

    def ready(self):
        # Connect the incident change feed
        from apps.incidents import signals  # noqa: F401
