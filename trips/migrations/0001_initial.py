import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Bus",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("registration", models.CharField(db_index=True, max_length=20, unique=True)),
                ("name", models.CharField(max_length=100)),
                ("service_type", models.CharField(choices=[("standard", "Standard"), ("executive", "Executive"), ("sleeper", "Sleeper")], default="standard", max_length=20)),
                ("seat_capacity", models.PositiveIntegerField()),
                ("is_active", models.BooleanField(db_index=True, default=True, help_text="Indicates if the bus is in service or retired")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Bus",
                "verbose_name_plural": "Fleet",
                "db_table": "buses",
                "ordering": ["registration"],
            },
        ),
        migrations.CreateModel(
            name="Trip",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("route_name", models.CharField(max_length=150)),
                ("route_origin", models.CharField(db_index=True, max_length=100)),
                ("route_destination", models.CharField(db_index=True, max_length=100)),
                ("departure_date", models.DateField(db_index=True)),
                ("departure_time", models.TimeField()),
                ("fare", models.DecimalField(decimal_places=2, max_digits=10)),
                ("total_seats", models.PositiveIntegerField()),
                ("is_active", models.BooleanField(db_index=True, default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("bus", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="trips", to="trips.bus")),
            ],
            options={
                "verbose_name": "Trip",
                "verbose_name_plural": "Trips",
                "db_table": "trips",
                "ordering": ["departure_date", "departure_time"],
                "indexes": [models.Index(fields=["route_origin", "route_destination", "departure_date"], name="trips_route_date_idx")],
            },
        ),
    ]
