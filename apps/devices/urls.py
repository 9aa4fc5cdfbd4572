"""URL configuration for the devices app."""

from django.urls import path

from apps.devices.views import DeviceRegisterView, DeviceTestPushView, DeviceUnregisterView

app_name = "devices"

urlpatterns = [
    path("", DeviceRegisterView.as_view(), name="register"),
    path("test-push/", DeviceTestPushView.as_view(), name="test_push"),
    path("<path:token>/", DeviceUnregisterView.as_view(), name="unregister"),
]
