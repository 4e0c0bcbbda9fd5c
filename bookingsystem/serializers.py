from rest_framework import serializers
from .models import Booking, Passenger
from trips.serializers import TripSummarySerializer
from utils.validators import BookingValidators
from utils.constants import BookingMessage
from exceptions.handlers import InvalidInputException


class ContactSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=150)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    id_number = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")


class EmergencyContactSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150, required=False, allow_blank=True, default="")
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")


class PassengerDetailSerializer(serializers.Serializer):
    """
    Optional per-seat passenger details sent with a booking request.
    """

    seat_number = serializers.CharField(max_length=5)
    is_return = serializers.BooleanField(required=False, default=False)
    title = serializers.CharField(max_length=10, required=False, allow_blank=True, default="")
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    passenger_type = serializers.ChoiceField(
        choices=["adult", "child"], required=False, default="adult"
    )
    birthdate = serializers.DateField(required=False, allow_null=True, default=None)
    passport_number = serializers.CharField(
        max_length=50, required=False, allow_blank=True, default=""
    )
    has_infant = serializers.BooleanField(required=False, default=False)
    infant_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default="")
    infant_birthdate = serializers.DateField(required=False, allow_null=True, default=None)
    infant_passport_number = serializers.CharField(
        max_length=50, required=False, allow_blank=True, default=""
    )

    def validate_seat_number(self, value):
        return value.strip().upper()


class BookingCreateSerializer(serializers.Serializer):
    """
    Validates a booking request and flattens it into the shape the booking
    service consumes.
    """

    order_ref = serializers.CharField(max_length=64, required=False, allow_blank=True)
    trip_id = serializers.IntegerField()
    return_trip_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    contact = ContactSerializer()
    emergency_contact = EmergencyContactSerializer(required=False)
    boarding_point = serializers.CharField(max_length=150)
    dropping_point = serializers.CharField(max_length=150)
    return_boarding_point = serializers.CharField(
        max_length=150, required=False, allow_blank=True, default=""
    )
    return_dropping_point = serializers.CharField(
        max_length=150, required=False, allow_blank=True, default=""
    )
    departure_seats = serializers.ListField(child=serializers.CharField(max_length=5))
    return_seats = serializers.ListField(
        child=serializers.CharField(max_length=5), required=False, default=list
    )
    passengers = PassengerDetailSerializer(many=True, required=False)
    promo_code = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    payment_mode = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    gateway = serializers.ChoiceField(choices=["stripe", "dpo"], required=False, default="stripe")

    def validate_departure_seats(self, value):
        if not value:
            raise InvalidInputException(BookingMessage.SEATS_REQUIRED)
        return BookingValidators.validate_seat_labels(value)

    def validate_return_seats(self, value):
        return BookingValidators.validate_seat_labels(value)

    def validate(self, data):
        """
        Return leg fields must come together and point at a different trip.
        """
        return_trip_id = data.get("return_trip_id")
        return_seats = data.get("return_seats", [])
        if return_seats and not return_trip_id:
            raise InvalidInputException(BookingMessage.RETURN_TRIP_REQUIRED)
        if return_trip_id and not return_seats:
            raise InvalidInputException(BookingMessage.RETURN_SEATS_REQUIRED)
        if return_trip_id and return_trip_id == data["trip_id"]:
            raise InvalidInputException(BookingMessage.SAME_TRIP_FOR_RETURN)

        contact = data.pop("contact")
        emergency = data.pop("emergency_contact", None) or {}
        data.update(
            {
                "order_ref": (data.get("order_ref") or "").strip(),
                "user_name": contact["name"].strip(),
                "user_email": contact["email"].strip().lower(),
                "user_phone": contact.get("phone", ""),
                "contact_id_number": contact.get("id_number", "").strip(),
                "emergency_contact_name": emergency.get("name", ""),
                "emergency_contact_phone": emergency.get("phone", ""),
                "passengers": [dict(p) for p in data.get("passengers", [])],
            }
        )
        return data


class PassengerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Passenger
        fields = [
            "id",
            "seat_number",
            "is_return",
            "title",
            "first_name",
            "last_name",
            "passenger_type",
            "birthdate",
            "passport_number",
            "has_infant",
            "infant_name",
            "seat_released",
        ]


class BookingSerializer(serializers.ModelSerializer):
    """
    Ticket view of a booking with its trips and passengers.
    """

    trip = TripSummarySerializer(read_only=True)
    return_trip = TripSummarySerializer(read_only=True)
    passengers = PassengerSerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "order_ref",
            "trip",
            "return_trip",
            "user_name",
            "user_email",
            "user_phone",
            "boarding_point",
            "dropping_point",
            "return_boarding_point",
            "return_dropping_point",
            "seats",
            "return_seats",
            "seat_count",
            "total_price",
            "discount_amount",
            "payment_mode",
            "payment_status",
            "booking_status",
            "addons",
            "passengers",
            "created_at",
        ]
        read_only_fields = fields


class BookingAccessSerializer(serializers.Serializer):
    """
    Order reference plus the contact's identity document number, which is
    what a customer without an account proves ownership with.
    """

    order_ref = serializers.CharField(max_length=64)
    id_number = serializers.CharField(max_length=50)
    email = serializers.EmailField(required=False)


class RescheduleSerializer(BookingAccessSerializer):
    new_departure_date = serializers.DateField()
    new_departure_time = serializers.TimeField()
    new_return_date = serializers.DateField(required=False, allow_null=True, default=None)
    new_return_time = serializers.TimeField(required=False, allow_null=True, default=None)


class AddonSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    details = serializers.CharField(required=False, allow_blank=True, default="")
    price = serializers.DecimalField(max_digits=10, decimal_places=2)


class AddonRequestSerializer(BookingAccessSerializer):
    addon = AddonSerializer()
