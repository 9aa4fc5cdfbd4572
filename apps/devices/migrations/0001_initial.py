from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Device",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("user_id", models.CharField(db_index=True, max_length=255)),
                ("device_token", models.CharField(max_length=512)),
                (
                    "platform",
                    models.CharField(
                        choices=[("ios", "iOS"), ("android", "Android"), ("web", "Web")],
                        max_length=20,
                    ),
                ),
                (
                    "sandbox",
                    models.BooleanField(
                        default=False,
                        help_text="True for development builds that must use the sandbox push gateway.",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["user_id", "-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("user_id", "device_token"), name="unique_device_token_per_user"
                    ),
                ],
            },
        ),
    ]
