import time
import logging
from decimal import Decimal
from django.conf import settings
from django.db import IntegrityError, OperationalError, connection, transaction
from bookingsystem.models import Booking, Passenger
from trips.models import Trip
from utils.booking_helpers import BookingHelpers
from utils.validators import BookingValidators
from utils.constants import BookingMessage, BookingStatus, PaymentStatus, TripMessage
from exceptions.handlers import (
    AlreadyExistsException,
    InvalidInputException,
    NotFoundException,
    TransientFailureException,
)

logger = logging.getLogger("booking")

# serialization_failure, deadlock_detected, lock_not_available, query_canceled
TRANSIENT_PGCODES = {"40001", "40P01", "55P03", "57014"}
TRANSIENT_MARKERS = (
    "deadlock",
    "could not serialize",
    "lock timeout",
    "canceling statement due to",
    "database is locked",
    "database table is locked",
)


class BookingCreationService:
    """
    Creates a booking and its passenger rows in one database transaction.

    The transaction is retried on lock and serialization failures. A booking
    that already exists for the order reference is returned as it is, which
    keeps retries from other processes (or a client that lost the response)
    from ever producing a second row.
    """

    def __init__(self, seller=None, sleep=time.sleep):
        self.seller = seller
        self._sleep = sleep

    @property
    def max_attempts(self):
        return settings.BOOKING_MAX_ATTEMPTS

    @property
    def backoff(self):
        return settings.BOOKING_RETRY_BACKOFF

    @staticmethod
    def is_transient(exc):
        """
        True for database errors that a fresh attempt can succeed past.

        Args:
            exc (OperationalError): Error raised by the database layer

        Returns:
            bool: Whether the transaction may be retried
        """
        pgcode = getattr(exc.__cause__, "pgcode", None)
        if pgcode in TRANSIENT_PGCODES:
            return True
        message = str(exc).lower()
        return any(marker in message for marker in TRANSIENT_MARKERS)

    def create(self, data):
        """
        Run the booking transaction with bounded retry.

        Args:
            data (dict): Validated booking request, see BookingCreateSerializer

        Returns:
            Booking: The persisted booking with its passengers prefetched

        Raises:
            TransientFailureException: If every attempt hit a transient error
            AlreadyExistsException: On a seat conflict or an order reference
                already used for a different booking
        """
        if not data.get("order_ref"):
            data = {**data, "order_ref": BookingHelpers.generate_order_reference()}
        order_ref = data["order_ref"]

        for attempt in range(1, self.max_attempts + 1):
            try:
                booking = self._run_transaction(data)
                logger.info(
                    f"Booking {order_ref} ready on attempt {attempt}: id={booking.id}, seats={booking.seats}"
                )
                return booking
            except IntegrityError as exc:
                return self._resolve_conflict(data, exc)
            except OperationalError as exc:
                if not self.is_transient(exc):
                    raise
                logger.warning(
                    f"Transient failure creating booking {order_ref} (attempt {attempt}/{self.max_attempts}): {exc}"
                )
                if attempt < self.max_attempts:
                    self._sleep(self.backoff * attempt)

        logger.error(f"Booking {order_ref} failed after {self.max_attempts} attempts")
        raise TransientFailureException()

    def _run_transaction(self, data):
        with transaction.atomic():
            self._apply_timeouts()

            existing = self._find_existing(data["order_ref"])
            if existing is not None:
                logger.info(f"Booking {data['order_ref']} already exists, returning it unchanged")
                return existing

            BookingValidators.validate_no_recent_pending_booking(
                data["trip_id"], data["user_email"]
            )
            trip, return_trip = self._lock_trips(data)
            self._reserve_seats(trip, data["departure_seats"])
            if return_trip is not None:
                self._reserve_seats(return_trip, data["return_seats"])

            booking = self._insert_booking(data, trip, return_trip)
            self._insert_passengers(booking, data, trip, return_trip)
            return self._find_existing(booking.order_ref)

    def _apply_timeouts(self):
        """Bound lock waits and total statement time for this transaction."""
        if connection.vendor != "postgresql":
            return
        with connection.cursor() as cursor:
            cursor.execute(
                "SET LOCAL lock_timeout = %s", [f"{settings.BOOKING_LOCK_TIMEOUT_MS}ms"]
            )
            cursor.execute(
                "SET LOCAL statement_timeout = %s",
                [f"{settings.BOOKING_STATEMENT_TIMEOUT_MS}ms"],
            )

    @staticmethod
    def _find_existing(order_ref):
        return (
            Booking.objects.select_related("trip", "trip__bus", "return_trip", "return_trip__bus")
            .prefetch_related("passengers")
            .filter(order_ref=order_ref)
            .first()
        )

    @staticmethod
    def _lock_trips(data):
        trip_ids = [data["trip_id"]]
        if data.get("return_trip_id"):
            trip_ids.append(data["return_trip_id"])
        # Lock in id order so two legs booked in opposite directions cannot deadlock.
        trips = {
            trip.id: trip
            for trip in Trip.objects.select_for_update()
            .filter(pk__in=trip_ids)
            .order_by("id")
        }
        trip = trips.get(data["trip_id"])
        if trip is None:
            raise NotFoundException(TripMessage.TRIP_NOT_FOUND)
        return_trip = None
        if data.get("return_trip_id"):
            return_trip = trips.get(data["return_trip_id"])
            if return_trip is None:
                raise NotFoundException(TripMessage.TRIP_NOT_FOUND)
        return trip, return_trip

    @staticmethod
    def _reserve_seats(trip, seats):
        """
        Check the requested seats against the trip's live passenger rows.
        """
        BookingValidators.validate_seats_fit_trip(trip, seats)
        occupied = set(trip.occupied_seats())
        taken = [seat for seat in seats if seat in occupied]
        if taken:
            logger.warning(f"Seats {taken} already taken on trip {trip.id}")
            raise AlreadyExistsException(
                BookingMessage.SEATS_UNAVAILABLE.format(seats=", ".join(taken))
            )
        available = trip.total_seats - len(occupied)
        if len(seats) > available:
            raise InvalidInputException(
                BookingMessage.INSUFFICIENT_SEATS.format(
                    available=available, requested=len(seats)
                )
            )

    def _price(self, trip, return_trip, data):
        total = BookingHelpers.calculate_trip_price(trip.fare, len(data["departure_seats"]))
        if return_trip is not None:
            total += BookingHelpers.calculate_trip_price(
                return_trip.fare, len(data["return_seats"])
            )
        rate = BookingHelpers.discount_rate_for(self.seller)
        if rate:
            return BookingHelpers.apply_discount(total, rate)
        return total, Decimal("0.00")

    def _insert_booking(self, data, trip, return_trip):
        total_price, discount = self._price(trip, return_trip, data)
        seller_fields = {}
        if BookingHelpers.discount_rate_for(self.seller):
            seller_fields[self.seller.role_name] = self.seller

        return Booking.objects.create(
            order_ref=data["order_ref"],
            trip=trip,
            return_trip=return_trip,
            user_name=data["user_name"],
            user_email=data["user_email"],
            user_phone=data.get("user_phone", ""),
            contact_id_number=data.get("contact_id_number", ""),
            emergency_contact_name=data.get("emergency_contact_name", ""),
            emergency_contact_phone=data.get("emergency_contact_phone", ""),
            boarding_point=data["boarding_point"],
            dropping_point=data["dropping_point"],
            return_boarding_point=data.get("return_boarding_point", ""),
            return_dropping_point=data.get("return_dropping_point", ""),
            seats=data["departure_seats"],
            return_seats=data.get("return_seats", []),
            seat_count=len(data["departure_seats"]) + len(data.get("return_seats", [])),
            total_price=total_price,
            discount_amount=discount,
            promo_code=data.get("promo_code", ""),
            payment_mode=data.get("payment_mode") or "Credit Card",
            payment_status=PaymentStatus.PENDING,
            booking_status=BookingStatus.CONFIRMED,
            **seller_fields,
        )

    @staticmethod
    def _insert_passengers(booking, data, trip, return_trip):
        details = {
            (detail["seat_number"], detail.get("is_return", False)): detail
            for detail in data.get("passengers", [])
        }
        first_name, _, last_name = booking.user_name.partition(" ")

        rows = []
        legs = [(trip, data["departure_seats"], False)]
        if return_trip is not None:
            legs.append((return_trip, data["return_seats"], True))
        for leg_trip, seats, is_return in legs:
            for seat in seats:
                detail = details.get((seat, is_return), {})
                rows.append(
                    Passenger(
                        booking=booking,
                        trip=leg_trip,
                        seat_number=seat,
                        is_return=is_return,
                        title=detail.get("title", ""),
                        first_name=detail.get("first_name") or first_name,
                        last_name=detail.get("last_name") or last_name,
                        passenger_type=detail.get("passenger_type", "adult"),
                        birthdate=detail.get("birthdate"),
                        passport_number=detail.get("passport_number", ""),
                        has_infant=detail.get("has_infant", False),
                        infant_name=detail.get("infant_name", ""),
                        infant_birthdate=detail.get("infant_birthdate"),
                        infant_passport_number=detail.get("infant_passport_number", ""),
                    )
                )
        Passenger.objects.bulk_create(rows)

    def _resolve_conflict(self, data, exc):
        """
        A unique constraint fired: either another process stored this order
        reference first, or it sold one of our seats first.
        """
        existing = self._find_existing(data["order_ref"])
        if existing is None:
            logger.warning(f"Seat conflict while creating {data['order_ref']}: {exc}")
            raise AlreadyExistsException(
                BookingMessage.SEATS_UNAVAILABLE.format(
                    seats=", ".join(data["departure_seats"] + data.get("return_seats", []))
                )
            )
        same_request = (
            existing.trip_id == data["trip_id"]
            and existing.return_trip_id == data.get("return_trip_id")
            and list(existing.seats) == list(data["departure_seats"])
            and list(existing.return_seats) == list(data.get("return_seats", []))
        )
        if not same_request:
            logger.warning(f"Order reference {data['order_ref']} reused for a different booking")
            raise AlreadyExistsException(BookingMessage.ORDER_REF_CONFLICT)
        logger.info(f"Booking {data['order_ref']} was created concurrently, returning it")
        return existing


class BookingChangeService:
    """
    Post-sale changes a customer can make from the manage-booking page, and
    the back-office cancellation.
    """

    @staticmethod
    def reschedule(booking, new_date, new_time, new_return_date=None, new_return_time=None):
        """
        Move the booking's trip to a new date and time.

        Only the trip's departure date/time fields change; seats and
        passengers stay on the same trip rows.
        """
        BookingValidators.validate_booking_modifiable(booking)
        if (new_return_date or new_return_time) and booking.return_trip_id is None:
            raise InvalidInputException(BookingMessage.RETURN_RESCHEDULE_WITHOUT_RETURN)

        with transaction.atomic():
            trip = Trip.all_objects.select_for_update().get(pk=booking.trip_id)
            trip.departure_date = new_date
            trip.departure_time = new_time
            trip.save(update_fields=["departure_date", "departure_time", "updated_at"])

            if booking.return_trip_id and (new_return_date or new_return_time):
                return_trip = Trip.all_objects.select_for_update().get(pk=booking.return_trip_id)
                return_trip.departure_date = new_return_date or return_trip.departure_date
                return_trip.departure_time = new_return_time or return_trip.departure_time
                return_trip.save(update_fields=["departure_date", "departure_time", "updated_at"])

            booking.booking_status = BookingStatus.RESCHEDULED
            booking.save(update_fields=["booking_status", "updated_at"])

        logger.info(f"Booking {booking.order_ref} rescheduled to {new_date} {new_time}")
        booking.refresh_from_db()
        return booking

    @staticmethod
    def add_addon(booking, addon):
        """
        Append an add-on to the booking.

        Returns:
            dict: The stored add-on entry
        """
        BookingValidators.validate_booking_modifiable(booking)
        price = BookingHelpers.money(addon["price"])
        if price <= 0:
            raise InvalidInputException(BookingMessage.ADDON_PRICE_INVALID)

        entry = {
            "name": addon["name"],
            "details": addon.get("details", ""),
            "price": str(price),
            "payment_status": PaymentStatus.PENDING,
        }
        with transaction.atomic():
            locked = Booking.objects.select_for_update().get(pk=booking.pk)
            locked.addons = list(locked.addons or []) + [entry]
            locked.save(update_fields=["addons", "updated_at"])
        booking.addons = locked.addons
        logger.info(f"Add-on '{entry['name']}' added to booking {booking.order_ref}")
        return {**entry, "index": len(locked.addons) - 1}

    @staticmethod
    def cancel(booking):
        """
        Cancel a booking and release its seats back to the trip.
        """
        if booking.booking_status == BookingStatus.CANCELLED:
            raise InvalidInputException(BookingMessage.ALREADY_CANCELLED)
        with transaction.atomic():
            released = Passenger.objects.filter(
                booking=booking, seat_released=False
            ).update(seat_released=True)
            Booking.objects.filter(pk=booking.pk).update(
                booking_status=BookingStatus.CANCELLED
            )
        logger.info(f"Booking {booking.order_ref} cancelled, {released} seats released")
        booking.refresh_from_db()
        return booking
