from django.conf import settings
from django.db import models
from utils.constants import Choices, PaymentStatus, BookingStatus


class Booking(models.Model):
    """
    A purchase of one or more seats on a trip, optionally with a paired
    return trip. Identified to the customer by its order reference.
    """

    order_ref = models.CharField(max_length=64, unique=True)
    trip = models.ForeignKey(
        "trips.Trip", on_delete=models.PROTECT, related_name="bookings"
    )
    return_trip = models.ForeignKey(
        "trips.Trip",
        on_delete=models.PROTECT,
        related_name="return_bookings",
        null=True,
        blank=True,
    )

    user_name = models.CharField(max_length=150)
    user_email = models.EmailField(db_index=True)
    user_phone = models.CharField(max_length=20, blank=True)
    contact_id_number = models.CharField(max_length=50, blank=True)
    emergency_contact_name = models.CharField(max_length=150, blank=True)
    emergency_contact_phone = models.CharField(max_length=20, blank=True)

    boarding_point = models.CharField(max_length=150)
    dropping_point = models.CharField(max_length=150)
    return_boarding_point = models.CharField(max_length=150, blank=True)
    return_dropping_point = models.CharField(max_length=150, blank=True)

    seats = models.JSONField(default=list)
    return_seats = models.JSONField(default=list, blank=True)
    seat_count = models.PositiveIntegerField()

    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    promo_code = models.CharField(max_length=50, blank=True)
    payment_mode = models.CharField(max_length=50, default="Credit Card")

    payment_status = models.CharField(
        max_length=20,
        choices=Choices.PAYMENT_STATUS_CHOICES,
        default=PaymentStatus.PENDING,
        db_index=True,
    )
    booking_status = models.CharField(
        max_length=20,
        choices=Choices.BOOKING_STATUS_CHOICES,
        default=BookingStatus.CONFIRMED,
    )
    addons = models.JSONField(default=list, blank=True)

    agent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="agent_bookings",
    )
    consultant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="consultant_bookings",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def seller(self):
        return self.agent or self.consultant

    def __str__(self):
        return f"{self.order_ref} - {self.user_name} ({self.payment_status})"

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Booking"
        verbose_name_plural = "Bookings"
        db_table = "booking"
        indexes = [
            models.Index(
                fields=["trip", "user_email", "payment_status"],
                name="booking_trip_email_status_idx",
            ),
        ]


class Passenger(models.Model):
    """
    The occupant of one seat of a booking, on either the departure or the
    return leg. ``trip`` is the trip of that leg.
    """

    booking = models.ForeignKey(
        Booking, on_delete=models.CASCADE, related_name="passengers"
    )
    trip = models.ForeignKey(
        "trips.Trip", on_delete=models.PROTECT, related_name="passengers"
    )
    seat_number = models.CharField(max_length=5)
    is_return = models.BooleanField(default=False)
    seat_released = models.BooleanField(default=False)

    title = models.CharField(max_length=10, blank=True)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)
    passenger_type = models.CharField(
        max_length=10, choices=Choices.PASSENGER_TYPE_CHOICES, default="adult"
    )
    birthdate = models.DateField(null=True, blank=True)
    passport_number = models.CharField(max_length=50, blank=True)
    has_infant = models.BooleanField(default=False)
    infant_name = models.CharField(max_length=150, blank=True)
    infant_birthdate = models.DateField(null=True, blank=True)
    infant_passport_number = models.CharField(max_length=50, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self):
        leg = "return" if self.is_return else "departure"
        return f"{self.full_name} - {self.seat_number} ({leg})"

    class Meta:
        db_table = "passenger"
        ordering = ["booking", "is_return", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["trip", "seat_number"],
                condition=models.Q(seat_released=False),
                name="unique_live_seat_per_trip",
            )
        ]
