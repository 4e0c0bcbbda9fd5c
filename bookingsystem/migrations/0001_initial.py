import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("trips", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_ref", models.CharField(max_length=64, unique=True)),
                ("user_name", models.CharField(max_length=150)),
                ("user_email", models.EmailField(db_index=True, max_length=254)),
                ("user_phone", models.CharField(blank=True, max_length=20)),
                ("contact_id_number", models.CharField(blank=True, max_length=50)),
                ("emergency_contact_name", models.CharField(blank=True, max_length=150)),
                ("emergency_contact_phone", models.CharField(blank=True, max_length=20)),
                ("boarding_point", models.CharField(max_length=150)),
                ("dropping_point", models.CharField(max_length=150)),
                ("return_boarding_point", models.CharField(blank=True, max_length=150)),
                ("return_dropping_point", models.CharField(blank=True, max_length=150)),
                ("seats", models.JSONField(default=list)),
                ("return_seats", models.JSONField(blank=True, default=list)),
                ("seat_count", models.PositiveIntegerField()),
                ("total_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("promo_code", models.CharField(blank=True, max_length=50)),
                ("payment_mode", models.CharField(default="Credit Card", max_length=50)),
                ("payment_status", models.CharField(choices=[("pending", "Pending"), ("initiated", "Initiated"), ("paid", "Paid"), ("failed", "Failed")], db_index=True, default="pending", max_length=20)),
                ("booking_status", models.CharField(choices=[("confirmed", "Confirmed"), ("rescheduled", "Rescheduled"), ("cancelled", "Cancelled")], default="confirmed", max_length=20)),
                ("addons", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("agent", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="agent_bookings", to=settings.AUTH_USER_MODEL)),
                ("consultant", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="consultant_bookings", to=settings.AUTH_USER_MODEL)),
                ("return_trip", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="return_bookings", to="trips.trip")),
                ("trip", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="bookings", to="trips.trip")),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "db_table": "booking",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["trip", "user_email", "payment_status"], name="booking_trip_email_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="Passenger",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("seat_number", models.CharField(max_length=5)),
                ("is_return", models.BooleanField(default=False)),
                ("seat_released", models.BooleanField(default=False)),
                ("title", models.CharField(blank=True, max_length=10)),
                ("first_name", models.CharField(max_length=100)),
                ("last_name", models.CharField(blank=True, max_length=100)),
                ("passenger_type", models.CharField(choices=[("adult", "Adult"), ("child", "Child")], default="adult", max_length=10)),
                ("birthdate", models.DateField(blank=True, null=True)),
                ("passport_number", models.CharField(blank=True, max_length=50)),
                ("has_infant", models.BooleanField(default=False)),
                ("infant_name", models.CharField(blank=True, max_length=150)),
                ("infant_birthdate", models.DateField(blank=True, null=True)),
                ("infant_passport_number", models.CharField(blank=True, max_length=50)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("booking", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="passengers", to="bookingsystem.booking")),
                ("trip", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="passengers", to="trips.trip")),
            ],
            options={
                "db_table": "passenger",
                "ordering": ["booking", "is_return", "id"],
                "constraints": [models.UniqueConstraint(condition=models.Q(("seat_released", False)), fields=("trip", "seat_number"), name="unique_live_seat_per_trip")],
            },
        ),
    ]
