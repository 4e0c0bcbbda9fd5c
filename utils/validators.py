import re
import logging
from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone
from datetime import timedelta
from exceptions.handlers import (
    AlreadyExistsException,
    ChangeWindowClosedException,
    InvalidInputException,
    NotFoundException,
    PermissionDeniedException,
)
from utils.booking_helpers import BookingHelpers
from utils.constants import (
    AlreadyExistsMessage,
    BookingMessage,
    BookingStatus,
    PaymentStatus,
    TripMessage,
    UserMessage,
)

User = get_user_model()
logger = logging.getLogger("accounts")

SEAT_PATTERN = re.compile(r"^[1-9]\d*[A-D]$", re.ASCII)


class UserFieldValidators:
    """
    Reusable validation mixins for user-related fields.
    Eliminates code duplication in serializers.
    """

    @staticmethod
    def validate_email_uniqueness(value, exclude_user=None):
        """
        Validates email uniqueness among active users.
        """
        queryset = User.objects
        if exclude_user:
            queryset = queryset.exclude(pk=exclude_user.pk)

        if queryset.filter(email__iexact=value, is_active=True).exists():
            logger.error(f"Registration failed - Email already exists: {value}")
            raise AlreadyExistsException(AlreadyExistsMessage.EMAIL_ALREADY_EXISTS)

        return value

    @staticmethod
    def validate_mobile_number(value, exclude_user=None):
        """
        Validates mobile number format and uniqueness among active users.

        Returns:
            str: The validated mobile number

        Raises:
            InvalidInputException: If the number is not 7 to 15 digits
            AlreadyExistsException: If mobile number already exists
        """
        value = value.strip().lstrip("+")
        if not value.isdigit() or not 7 <= len(value) <= 15:
            raise InvalidInputException(UserMessage.MOBILE_NUMBER_INVALID)

        queryset = User.objects
        if exclude_user:
            queryset = queryset.exclude(pk=exclude_user.pk)

        if queryset.filter(mobile_number=value, is_active=True).exists():
            logger.error(f"Registration failed - Mobile number already exists: {value}")
            raise AlreadyExistsException(AlreadyExistsMessage.MOBILE_ALREADY_EXISTS)

        return value

    @staticmethod
    def validate_username_uniqueness(value, exclude_user=None):
        """
        Username must be unique across ALL users (active and inactive).
        """
        if len(value) < 5:
            raise InvalidInputException(UserMessage.USERNAME_TOO_SHORT)

        queryset = User.objects
        if exclude_user:
            queryset = queryset.exclude(pk=exclude_user.pk)

        if queryset.filter(username=value).exists():
            logger.error(f"Registration failed - Username already exists: {value}")
            raise AlreadyExistsException(AlreadyExistsMessage.USERNAME_ALREADY_EXISTS)

        return value


class TripValidators:
    """
    Centralized validation logic for fleet and trip operations.
    """

    @staticmethod
    def validate_registration_uniqueness(registration, exclude_pk=None):
        from trips.models import Bus

        registration = registration.strip().upper()
        queryset = Bus.all_objects.filter(registration__iexact=registration)
        if exclude_pk:
            queryset = queryset.exclude(pk=exclude_pk)
        if queryset.exists():
            raise AlreadyExistsException(TripMessage.BUS_ALREADY_EXISTS)
        return registration

    @staticmethod
    def validate_seat_total(bus, total_seats, trip=None):
        """
        Trip seats must fit on the bus and may not drop below what is sold.
        """
        if bus and total_seats > bus.seat_capacity:
            raise InvalidInputException(TripMessage.SEATS_EXCEED_CAPACITY)
        if trip is not None and total_seats < trip.occupied_count:
            raise InvalidInputException(TripMessage.SEATS_BELOW_SOLD)
        return total_seats

    @staticmethod
    def get_active_trip(trip_id):
        """
        Returns an active trip or raises NotFoundException.
        """
        from trips.models import Trip

        try:
            return Trip.objects.select_related("bus").get(pk=trip_id)
        except (Trip.DoesNotExist, ValueError, TypeError):
            logger.warning(f"Trip {trip_id} not found.")
            raise NotFoundException(TripMessage.TRIP_NOT_FOUND)


class BookingValidators:
    """
    Reusable validation logic for booking operations.
    """

    @staticmethod
    def validate_seat_labels(seats):
        """
        Validates seat labels like 12A and rejects repeats. Zero-padded
        rows (01A) and row 0 are refused.

        Returns:
            list: Normalized seat labels

        Raises:
            InvalidInputException: On bad format or duplicates
        """
        seats = BookingHelpers.normalize_seats(seats)
        invalid = [seat for seat in seats if not SEAT_PATTERN.match(seat)]
        if invalid:
            raise InvalidInputException(
                BookingMessage.INVALID_SEAT_FORMAT.format(seats=", ".join(invalid))
            )
        if len(set(seats)) != len(seats):
            raise InvalidInputException(BookingMessage.DUPLICATE_SEATS)
        return seats

    @staticmethod
    def validate_seats_fit_trip(trip, seats):
        """
        Every seat label must exist on the trip's seat map. Labels are
        compared as stored, so only the canonical form (no leading zeros)
        is accepted.
        """
        out_of_range = [
            seat
            for seat in seats
            if not SEAT_PATTERN.match(seat)
            or not 1 <= BookingHelpers.seat_index(seat) <= trip.total_seats
        ]
        if out_of_range:
            raise InvalidInputException(
                BookingMessage.SEAT_OUT_OF_RANGE.format(seats=", ".join(out_of_range))
            )

    @staticmethod
    def validate_idempotency_key(value):
        """
        Idempotency keys are stored as order references and share their
        length limit.
        """
        from bookingsystem.models import Booking

        max_length = Booking._meta.get_field("order_ref").max_length
        if len(value) > max_length:
            logger.warning(f"Idempotency key rejected, {len(value)} characters long")
            raise InvalidInputException(
                BookingMessage.ORDER_REF_TOO_LONG.format(max_length=max_length)
            )
        return value

    @staticmethod
    def validate_no_recent_pending_booking(trip_id, email):
        """
        One customer may hold a single unpaid booking per trip at a time.
        """
        from bookingsystem.models import Booking

        window_start = timezone.now() - timedelta(
            minutes=settings.PENDING_BOOKING_WINDOW_MINUTES
        )
        exists = Booking.objects.filter(
            trip_id=trip_id,
            user_email=email,
            payment_status__in=[PaymentStatus.PENDING, PaymentStatus.INITIATED],
            created_at__gte=window_start,
        ).exists()
        if exists:
            logger.warning(f"Pending booking already exists for {email} on trip {trip_id}")
            raise InvalidInputException(BookingMessage.PENDING_BOOKING_EXISTS)

    @staticmethod
    def get_booking_for_contact(order_ref, id_number, email=None):
        """
        Finds a booking by order reference, authorised by the contact's
        identity document number (and email when given).

        Raises:
            PermissionDeniedException: If nothing matches
        """
        from bookingsystem.models import Booking

        filters = {
            "order_ref": order_ref.strip(),
            "contact_id_number": id_number.strip(),
        }
        if email:
            filters["user_email__iexact"] = email.strip()
        booking = (
            Booking.objects.select_related("trip", "trip__bus", "return_trip", "return_trip__bus")
            .prefetch_related("passengers")
            .filter(**filters)
            .first()
        )
        if booking is None:
            logger.warning(f"Booking lookup failed for {order_ref}")
            raise PermissionDeniedException(BookingMessage.BOOKING_NOT_AUTHORIZED)
        return booking

    @staticmethod
    def validate_booking_modifiable(booking, now=None):
        """
        No changes within the cutoff window before departure, and never on a
        cancelled booking.
        """
        if booking.booking_status == BookingStatus.CANCELLED:
            raise InvalidInputException(BookingMessage.BOOKING_CANCELLED)
        departure = BookingHelpers.trip_departure(booking.trip)
        if not BookingHelpers.can_modify_booking(departure, now=now):
            logger.warning(f"Change rejected for {booking.order_ref}: departure at {departure}")
            raise ChangeWindowClosedException(
                BookingMessage.CHANGE_WINDOW_CLOSED.format(
                    hours=settings.BOOKING_CHANGE_CUTOFF_HOURS
                )
            )


class SellerValidators:
    """
    Validation for agent and consultant account management.
    """

    @staticmethod
    def get_seller_or_404(pk):
        try:
            return User.objects.select_related("role").get(
                pk=pk, role__name__in=["agent", "consultant"]
            )
        except User.DoesNotExist:
            raise NotFoundException(UserMessage.AGENT_NOT_FOUND)

    @staticmethod
    def validate_pending(seller):
        if seller.approval_status != "pending":
            raise InvalidInputException(UserMessage.AGENT_ALREADY_PROCESSED)
