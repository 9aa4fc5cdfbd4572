"""
Push delivery ledger.

One row per (incident, device token). The dispatcher consults it before
delivering so a redriven fan-out does not notify a device twice.
"""

from django.db import models


class DeliveryStatus(models.TextChoices):
    """Outcome of the latest delivery attempt to a device."""

    SENT = "sent", "Sent"
    FAILED = "failed", "Failed"


class NotificationDelivery(models.Model):
    """Delivery outcome of one incident notification to one device."""

    incident = models.ForeignKey(
        "incidents.Incident",
        on_delete=models.CASCADE,
        related_name="deliveries",
    )
    device_token = models.CharField(
        max_length=512,
    )
    user_id = models.CharField(
        max_length=255,
        db_index=True,
    )
    status = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        db_index=True,
    )
    error = models.TextField(
        blank=True,
        default="",
    )
    status_code = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Gateway HTTP status, empty for failures before any request.",
    )
    retryable = models.BooleanField(
        default=False,
    )
    attempts = models.PositiveIntegerField(
        default=0,
    )

    # Timestamps
    created_at = models.DateTimeField(
        auto_now_add=True,
    )
    updated_at = models.DateTimeField(
        auto_now=True,
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "Notification deliveries"
        constraints = [
            models.UniqueConstraint(
                fields=["incident", "device_token"], name="unique_delivery_per_device"
            ),
        ]

    def __str__(self):
        return f"{self.incident_id} → …{self.device_token[-8:]} ({self.status})"
