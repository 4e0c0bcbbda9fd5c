from django.db import models
from bookingsystem.models import Booking
from utils.constants import Choices


class PaymentTransaction(models.Model):
    """
    One hosted payment attempt at a gateway for a booking or an add-on.
    ``reference`` is the Stripe checkout session id or the DPO transaction token.
    """

    booking = models.ForeignKey(
        Booking, on_delete=models.CASCADE, related_name="payments"
    )
    gateway = models.CharField(max_length=20, choices=Choices.GATEWAY_CHOICES)
    purpose = models.CharField(
        max_length=20, choices=Choices.TRANSACTION_PURPOSE_CHOICES, default="booking"
    )
    reference = models.CharField(max_length=255)
    payment_url = models.URLField(max_length=500, blank=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(
        max_length=20, choices=Choices.TRANSACTION_STATUS_CHOICES, default="initiated"
    )
    raw_result = models.JSONField(default=dict, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "payment_transaction"
        constraints = [
            models.UniqueConstraint(
                fields=["gateway", "reference"],
                name="unique_gateway_reference",
            ),
            models.UniqueConstraint(
                fields=["booking"],
                condition=models.Q(status="paid", purpose="booking"),
                name="unique_paid_booking_transaction",
            ),
        ]
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.booking.order_ref} - {self.gateway} {self.purpose} - {self.status}"
