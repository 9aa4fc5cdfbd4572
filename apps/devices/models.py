"""
Device registrations for push delivery.

A user registers one row per device token. Only iOS devices are deliverable
today; Android and web registrations are stored so clients can register
ahead of delivery support.
"""

from django.db import models


class DevicePlatform(models.TextChoices):
    """Client platform of a registered device."""

    IOS = "ios", "iOS"
    ANDROID = "android", "Android"
    WEB = "web", "Web"


class Device(models.Model):
    """A push token registered by a user."""

    user_id = models.CharField(
        max_length=255,
        db_index=True,
    )
    device_token = models.CharField(
        max_length=512,
    )
    platform = models.CharField(
        max_length=20,
        choices=DevicePlatform.choices,
    )
    sandbox = models.BooleanField(
        default=False,
        help_text="True for development builds that must use the sandbox push gateway.",
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
    )

    class Meta:
        ordering = ["user_id", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_id", "device_token"], name="unique_device_token_per_user"
            ),
        ]

    def __str__(self):
        env = "sandbox" if self.sandbox else "production"
        return f"{self.user_id} {self.platform} ({env}) …{self.device_token[-8:]}"

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "device_token": self.device_token,
            "platform": self.platform,
            "sandbox": self.sandbox,
            "created_at": int(self.created_at.timestamp() * 1000) if self.created_at else None,
        }
