from django.db import models
from utils.constants import Choices


class ActiveManager(models.Manager):
    """Manager that returns only active records"""

    def get_queryset(self):
        return super().get_queryset().filter(is_active=True)


class Bus(models.Model):
    """
    A bus in the fleet. Supports soft delete via is_active.
    """

    registration = models.CharField(max_length=20, unique=True, db_index=True)
    name = models.CharField(max_length=100)
    service_type = models.CharField(
        max_length=20, choices=Choices.SERVICE_TYPE_CHOICES, default="standard"
    )
    seat_capacity = models.PositiveIntegerField()
    is_active = models.BooleanField(
        default=True, help_text="Indicates if the bus is in service or retired", db_index=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActiveManager()
    all_objects = models.Manager()

    def __str__(self):
        status = " (Retired)" if not self.is_active else ""
        return f"{self.name} ({self.registration}){status}"

    class Meta:
        db_table = "buses"
        verbose_name = "Bus"
        verbose_name_plural = "Fleet"
        ordering = ["registration"]


class Trip(models.Model):
    """
    A scheduled departure of a bus on a route.

    Seat occupancy is never stored on the trip: it is derived from the live
    passenger rows of its bookings, so it cannot drift from what was sold.
    """

    bus = models.ForeignKey(Bus, on_delete=models.PROTECT, related_name="trips")
    route_name = models.CharField(max_length=150)
    route_origin = models.CharField(max_length=100, db_index=True)
    route_destination = models.CharField(max_length=100, db_index=True)
    departure_date = models.DateField(db_index=True)
    departure_time = models.TimeField()
    fare = models.DecimalField(max_digits=10, decimal_places=2)
    total_seats = models.PositiveIntegerField()
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActiveManager()
    all_objects = models.Manager()

    class Meta:
        db_table = "trips"
        verbose_name = "Trip"
        verbose_name_plural = "Trips"
        ordering = ["departure_date", "departure_time"]
        indexes = [
            models.Index(
                fields=["route_origin", "route_destination", "departure_date"],
                name="trips_route_date_idx",
            ),
        ]

    @property
    def service_type(self):
        return self.bus.service_type

    def occupied_seats(self):
        """Seat labels held by non-cancelled bookings on this trip."""
        return list(
            self.passengers.filter(seat_released=False)
            .order_by("id")
            .values_list("seat_number", flat=True)
        )

    @property
    def occupied_count(self):
        return self.passengers.filter(seat_released=False).count()

    @property
    def available_seats(self):
        return max(self.total_seats - self.occupied_count, 0)

    def __str__(self):
        return f"{self.route_name} on {self.departure_date} at {self.departure_time}"
