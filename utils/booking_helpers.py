import random
import string
import time
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.utils import timezone


CENT = Decimal("0.01")


class BookingHelpers:
    """
    Pure booking policy helpers: pricing, discounts, commissions and the
    change window. None of these touch the database.
    """

    @staticmethod
    def generate_order_reference():
        """
        Generate a client-visible order reference, e.g. RT-1718000000000-x7k2pa.

        Returns:
            str: New order reference
        """
        millis = int(time.time() * 1000)
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
        return f"RT-{millis}-{suffix}"

    @staticmethod
    def money(value):
        return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)

    @staticmethod
    def calculate_trip_price(fare, seat_count):
        """
        Price of ``seat_count`` seats on one leg.

        Args:
            fare (Decimal): Per-seat fare of the trip
            seat_count (int): Number of seats on this leg

        Returns:
            Decimal: Leg price
        """
        return BookingHelpers.money(Decimal(fare) * seat_count)

    @staticmethod
    def apply_discount(amount, rate):
        """
        Apply a percentage discount.

        Returns:
            tuple: (discounted_total, discount_amount)
        """
        amount = BookingHelpers.money(amount)
        discount = BookingHelpers.money(amount * Decimal(rate))
        return amount - discount, discount

    @staticmethod
    def calculate_commission(total_price, rate):
        """
        Reverse an ``rate``-off sale back to the list price and return the
        difference, i.e. the seller's commission.

        A 10% agent sale recorded at 90.00 was listed at 100.00, so the
        commission is 10.00.

        Args:
            total_price (Decimal): Price the booking was sold at
            rate (Decimal): Discount rate the seller applied

        Returns:
            Decimal: Commission amount
        """
        if not total_price:
            return Decimal("0.00")
        rate = Decimal(rate)
        if rate <= 0 or rate >= 1:
            return Decimal("0.00")
        total_price = Decimal(total_price)
        original = total_price / (Decimal(1) - rate)
        return BookingHelpers.money(original - total_price)

    @staticmethod
    def discount_rate_for(user):
        """Discount an approved agent or consultant passes on to the customer."""
        if user is None or not getattr(user, "is_authenticated", False):
            return Decimal("0")
        if not getattr(user, "can_sell", False):
            return Decimal("0")
        return BookingHelpers.seller_rate(user.role_name)

    @staticmethod
    def trip_departure(trip):
        """Combine a trip's date and time into an aware datetime."""
        naive = datetime.combine(trip.departure_date, trip.departure_time)
        return timezone.make_aware(naive, timezone.get_current_timezone())

    @staticmethod
    def can_modify_booking(departure, now=None, cutoff_hours=None):
        """
        Bookings can be rescheduled or extended only while departure is more
        than ``cutoff_hours`` away.
        """
        now = now or timezone.now()
        if cutoff_hours is None:
            cutoff_hours = settings.BOOKING_CHANGE_CUTOFF_HOURS
        return departure - now > timedelta(hours=cutoff_hours)

    @staticmethod
    def normalize_seats(seats):
        return [str(seat).strip().upper() for seat in (seats or [])]

    @staticmethod
    def seat_index(seat_label):
        """
        Position of a seat label on the bus, 1-based. Four seats per row,
        lettered A-D, so 1A is seat 1 and 2C is seat 7.
        """
        row, letter = int(seat_label[:-1]), seat_label[-1]
        return (row - 1) * 4 + "ABCD".index(letter) + 1

    @staticmethod
    def seller_rate(role_name):
        if role_name == "agent":
            return settings.AGENT_DISCOUNT_RATE
        if role_name == "consultant":
            return settings.CONSULTANT_DISCOUNT_RATE
        return Decimal("0")

    @staticmethod
    def sales_summary(bookings, role_name):
        """
        Totals for a seller's paid bookings.

        Args:
            bookings (iterable): Bookings sold by the seller
            role_name (str): ``agent`` or ``consultant``

        Returns:
            dict: Count, revenue and commission of the paid bookings
        """
        rate = BookingHelpers.seller_rate(role_name)
        count = 0
        revenue = Decimal("0.00")
        commission = Decimal("0.00")
        for booking in bookings:
            if booking.payment_status != "paid":
                continue
            count += 1
            revenue += booking.total_price
            commission += BookingHelpers.calculate_commission(booking.total_price, rate)
        return {
            "total_bookings": count,
            "total_revenue": BookingHelpers.money(revenue),
            "total_commission": BookingHelpers.money(commission),
        }
