"""Root URL configuration."""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("incidents/", include("apps.incidents.urls")),
    path("devices/", include("apps.devices.urls")),
    path("demo/", include("apps.demo.urls")),
]
