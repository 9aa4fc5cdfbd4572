"""Custom Django admin app configuration."""

from django.contrib.admin.apps import AdminConfig


class OnCallAdminConfig(AdminConfig):
    default_site = "config.admin.OnCallAdminSite"
