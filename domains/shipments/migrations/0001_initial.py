import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Shipment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tracking_number", models.CharField(max_length=64, unique=True)),
                (
                    "tracking_source",
                    models.CharField(
                        choices=[("shiprocket", "Shiprocket"), ("bluedart", "Blue Dart"), ("unknown", "Unknown")],
                        default="unknown",
                        max_length=16,
                    ),
                ),
                ("actual_courier", models.CharField(blank=True, default="", max_length=80)),
                ("raw_status_text", models.CharField(blank=True, default="", max_length=255)),
                (
                    "canonical_status",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("PICKED_UP", "Picked Up"),
                            ("IN_TRANSIT", "In Transit"),
                            ("OUT_FOR_DELIVERY", "Out For Delivery"),
                            ("NDR", "Delivery Attempt Failed"),
                            ("DELIVERED", "Delivered"),
                            ("RTO", "Returned To Origin"),
                            ("CANCELLED", "Cancelled"),
                            ("UNKNOWN", "Unknown"),
                        ],
                        max_length=24,
                        null=True,
                    ),
                ),
                ("scan_history", models.JSONField(blank=True, default=list)),
                ("first_ndr_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("delivery_confirmed", models.BooleanField(default=False)),
                ("last_checked_at", models.DateTimeField(blank=True, null=True)),
                ("next_check_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("order_reference", models.CharField(blank=True, db_index=True, default="", max_length=40)),
                ("customer_mobile", models.CharField(blank=True, db_index=True, default="", max_length=20)),
                ("customer_email", models.CharField(blank=True, db_index=True, default="", max_length=254)),
                ("ops_note", models.TextField(blank=True, default="")),
                ("ops_resolved_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["canonical_status", "next_check_at"], name="shipments_status_due_idx"),
                    models.Index(fields=["created_at"], name="shipments_created_idx"),
                ],
            },
        ),
    ]
