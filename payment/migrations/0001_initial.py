import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("bookingsystem", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PaymentTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("gateway", models.CharField(choices=[("stripe", "Stripe"), ("dpo", "DPO")], max_length=20)),
                ("purpose", models.CharField(choices=[("booking", "Booking"), ("addon", "Add-on")], default="booking", max_length=20)),
                ("reference", models.CharField(max_length=255)),
                ("payment_url", models.URLField(blank=True, max_length=500)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("status", models.CharField(choices=[("initiated", "Initiated"), ("paid", "Paid"), ("failed", "Failed")], default="initiated", max_length=20)),
                ("raw_result", models.JSONField(blank=True, default=dict)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("booking", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="payments", to="bookingsystem.booking")),
            ],
            options={
                "db_table": "payment_transaction",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("gateway", "reference"), name="unique_gateway_reference"),
                    models.UniqueConstraint(condition=models.Q(("purpose", "booking"), ("status", "paid")), fields=("booking",), name="unique_paid_booking_transaction"),
                ],
            },
        ),
    ]
