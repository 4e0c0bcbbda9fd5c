import logging
from django.http import Http404
from django.utils import timezone
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from .models import Bus, Trip
from .serializers import (
    BusSerializer,
    TripSerializer,
    TripSearchSerializer,
    TripSummarySerializer,
)
from utils.constants import TripMessage
from utils.permission_helpers import AdminOnlyPermissionMixin
from utils.queryset_helpers import FilterableQuerysetMixin
from utils.validators import TripValidators
from exceptions.handlers import NotFoundException

logger = logging.getLogger("trips")


class SoftDeleteViewSetMixin:
    """
    Retires records through ``is_active`` instead of deleting them, so
    bookings keep pointing at the buses and trips they were sold on.
    """

    not_found_message = None

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise NotFoundException(self.not_found_message)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        instance.is_active = False
        instance.save(update_fields=["is_active", "updated_at"])
        logger.info(f"{instance.__class__.__name__} {instance.pk} soft-deleted by {request.user}")
        return Response(status=status.HTTP_204_NO_CONTENT)


class BusViewSet(AdminOnlyPermissionMixin, FilterableQuerysetMixin, SoftDeleteViewSetMixin,
                 viewsets.ModelViewSet):
    """
    Fleet management for admins.
    """

    queryset = Bus.objects.all()
    serializer_class = BusSerializer
    filter_fields = ["service_type"]
    not_found_message = TripMessage.BUS_NOT_FOUND

    def perform_create(self, serializer):
        bus = serializer.save()
        logger.info(f"Bus created: {bus.registration}")


class TripViewSet(AdminOnlyPermissionMixin, FilterableQuerysetMixin, SoftDeleteViewSetMixin,
                  viewsets.ModelViewSet):
    """
    Trip scheduling for admins. Seat availability is always derived from
    the passengers booked on the trip.
    """

    queryset = Trip.objects.select_related("bus")
    serializer_class = TripSerializer
    filter_fields = ["route_origin", "route_destination", "departure_date"]
    not_found_message = TripMessage.TRIP_NOT_FOUND

    def perform_create(self, serializer):
        trip = serializer.save()
        logger.info(f"Trip created: {trip}")

    def perform_update(self, serializer):
        trip = serializer.save()
        logger.info(f"Trip updated: {trip}")


class PublicTripViewSet(viewsets.GenericViewSet):
    """
    Route search and seat maps for customers.
    """

    queryset = Trip.objects.select_related("bus")
    permission_classes = [AllowAny]

    @action(detail=False, methods=["get"], url_path="search", url_name="search")
    def search(self, request):
        """
        Active trips between two places, from today onwards or on one date.
        """
        params = TripSearchSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        origin = params.validated_data["origin"].strip()
        destination = params.validated_data["destination"].strip()
        date = params.validated_data.get("date")

        trips = self.get_queryset().filter(
            route_origin__iexact=origin, route_destination__iexact=destination
        )
        if date:
            trips = trips.filter(departure_date=date)
        else:
            trips = trips.filter(departure_date__gte=timezone.localdate())

        results = []
        for trip in trips:
            data = TripSummarySerializer(trip).data
            data["available_seats"] = trip.available_seats
            results.append(data)
        logger.info(f"Trip search {origin} -> {destination} on {date or 'any date'}: {len(results)} found")
        return Response({"count": len(results), "trips": results})

    @action(detail=True, methods=["get"], url_path="seats", url_name="seats")
    def seats(self, request, pk=None):
        """
        Seat map: occupied seat labels for the trip.
        """
        trip = TripValidators.get_active_trip(pk)
        occupied = trip.occupied_seats()
        return Response(
            {
                "trip_id": trip.id,
                "total_seats": trip.total_seats,
                "occupied_seats": occupied,
                "available_seats": max(trip.total_seats - len(occupied), 0),
            }
        )
