import logging
from rest_framework import serializers
from .models import Bus, Trip
from utils.validators import TripValidators
from utils.constants import TripMessage
from exceptions.handlers import InvalidInputException

logger = logging.getLogger("trips")


class BusSerializer(serializers.ModelSerializer):
    """
    Serializes fleet data for the back office.
    """

    class Meta:
        model = Bus
        fields = ["id", "registration", "name", "service_type", "seat_capacity", "is_active"]
        read_only_fields = ["id", "is_active"]

    def validate_registration(self, value):
        """
        Registration plates are unique across the whole fleet, retired buses included.
        """
        exclude_pk = self.instance.pk if self.instance else None
        return TripValidators.validate_registration_uniqueness(value, exclude_pk)


class TripSerializer(serializers.ModelSerializer):
    """
    Serializes and validates trip creation and update requests.
    """

    bus = serializers.PrimaryKeyRelatedField(queryset=Bus.objects.all())
    service_type = serializers.CharField(read_only=True)
    available_seats = serializers.IntegerField(read_only=True)

    class Meta:
        model = Trip
        fields = [
            "id",
            "bus",
            "route_name",
            "route_origin",
            "route_destination",
            "departure_date",
            "departure_time",
            "fare",
            "total_seats",
            "service_type",
            "available_seats",
            "is_active",
        ]
        read_only_fields = ["id", "is_active"]

    def validate_fare(self, value):
        if value <= 0:
            raise InvalidInputException("Fare must be greater than zero.")
        return value

    def validate(self, data):
        """
        Cross-field checks: distinct endpoints and a seat count that fits the bus.
        """
        origin = data.get("route_origin", getattr(self.instance, "route_origin", None))
        destination = data.get(
            "route_destination", getattr(self.instance, "route_destination", None)
        )
        if origin and destination and origin.strip().lower() == destination.strip().lower():
            raise InvalidInputException(TripMessage.SAME_ORIGIN_DESTINATION)

        bus = data.get("bus", getattr(self.instance, "bus", None))
        total_seats = data.get("total_seats", getattr(self.instance, "total_seats", None))
        if total_seats is not None:
            TripValidators.validate_seat_total(bus, total_seats, self.instance)
        return data


class TripSummarySerializer(serializers.ModelSerializer):
    """
    Compact trip representation embedded in bookings and search results.
    """

    service_type = serializers.CharField(read_only=True)
    bus_name = serializers.CharField(source="bus.name", read_only=True)

    class Meta:
        model = Trip
        fields = [
            "id",
            "route_name",
            "route_origin",
            "route_destination",
            "departure_date",
            "departure_time",
            "fare",
            "service_type",
            "bus_name",
        ]


class TripSearchSerializer(serializers.Serializer):
    origin = serializers.CharField()
    destination = serializers.CharField()
    date = serializers.DateField(
        required=False, error_messages={"invalid": TripMessage.INVALID_DATE}
    )
