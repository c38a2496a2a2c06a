from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("platform_order_id", models.CharField(max_length=40, unique=True)),
                ("order_reference", models.CharField(db_index=True, max_length=40)),
                ("financial_status", models.CharField(blank=True, default="", max_length=30)),
                (
                    "order_type",
                    models.CharField(
                        choices=[("PREPAID", "Prepaid"), ("COD", "Cash On Delivery"), ("PPCOD", "Partial Prepaid COD")],
                        default="PREPAID",
                        max_length=8,
                    ),
                ),
                ("is_paid", models.BooleanField(default=False)),
                ("is_cancelled", models.BooleanField(default=False)),
                ("fulfillment_status", models.CharField(blank=True, default="", max_length=30)),
                ("subtotal_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("outstanding_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("currency", models.CharField(default="INR", max_length=3)),
                ("customer_name", models.CharField(blank=True, default="", max_length=120)),
                ("customer_mobile", models.CharField(blank=True, db_index=True, default="", max_length=20)),
                ("customer_email", models.CharField(blank=True, db_index=True, default="", max_length=254)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "orders",
                "indexes": [models.Index(fields=["created_at"], name="orders_created_idx")],
            },
        ),
    ]
