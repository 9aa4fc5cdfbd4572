"""URL configuration for the demo app."""

from django.urls import path

from apps.demo.views import DemoActionView

app_name = "demo"

urlpatterns = [
    path("setup/", DemoActionView.as_view(action="setup"), name="setup"),
    path("start/", DemoActionView.as_view(action="start"), name="start"),
    path("reset/", DemoActionView.as_view(action="reset"), name="reset"),
]
