from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Role
from bookingsystem.models import Booking, Passenger
from .models import Bus, Trip

User = get_user_model()


class TripModelTest(TestCase):
    """Test cases for derived seat availability."""

    def setUp(self):
        self.bus = Bus.objects.create(registration="B123ABC", name="Coach 1", seat_capacity=40)
        self.trip = Trip.objects.create(
            bus=self.bus,
            route_name="Gaborone - Maun",
            route_origin="Gaborone",
            route_destination="Maun",
            departure_date=timezone.localdate() + timedelta(days=3),
            departure_time="07:00",
            fare=Decimal("300.00"),
            total_seats=40,
        )
        self.booking = Booking.objects.create(
            order_ref="RT-1",
            trip=self.trip,
            user_name="Jane Doe",
            user_email="jane@example.com",
            boarding_point="Main Rank",
            dropping_point="Maun Rank",
            seats=["1A", "1B"],
            seat_count=2,
            total_price=Decimal("600.00"),
        )
        for seat in ("1A", "1B"):
            Passenger.objects.create(
                booking=self.booking, trip=self.trip, seat_number=seat, first_name="Jane"
            )

    def test_available_seats_derived_from_passengers(self):
        """Test that occupancy counts only live passenger rows."""
        self.assertEqual(self.trip.available_seats, 38)
        Passenger.objects.filter(seat_number="1B").update(seat_released=True)
        self.assertEqual(self.trip.occupied_seats(), ["1A"])
        self.assertEqual(self.trip.available_seats, 39)

    def test_service_type_follows_bus(self):
        """Test that a trip reports its bus's service type."""
        self.bus.service_type = "executive"
        self.bus.save()
        self.trip.refresh_from_db()
        self.assertEqual(self.trip.service_type, "executive")

    def test_soft_deleted_trip_hidden_from_default_manager(self):
        """Test that retired trips are only visible through all_objects."""
        self.trip.is_active = False
        self.trip.save()
        self.assertFalse(Trip.objects.filter(pk=self.trip.pk).exists())
        self.assertTrue(Trip.all_objects.filter(pk=self.trip.pk).exists())


class FleetAdminAPITest(APITestCase):
    """Test cases for admin fleet and trip management."""

    def setUp(self):
        admin_role, _ = Role.objects.get_or_create(name="admin")
        self.admin = User.objects.create_user(
            username="adminuser", email="admin@example.com", password="testpass123",
            mobile_number="26779999999", role=admin_role, approval_status="approved",
        )
        self.client.force_authenticate(user=self.admin)
        self.bus = Bus.objects.create(registration="B123ABC", name="Coach 1", seat_capacity=40)

    def trip_payload(self, **overrides):
        payload = {
            "bus": self.bus.id,
            "route_name": "Gaborone - Francistown",
            "route_origin": "Gaborone",
            "route_destination": "Francistown",
            "departure_date": (timezone.localdate() + timedelta(days=7)).isoformat(),
            "departure_time": "08:00",
            "fare": "150.00",
            "total_seats": 40,
        }
        payload.update(overrides)
        return payload

    def test_create_bus_uppercases_registration(self):
        """Test that registration plates are stored upper-case."""
        response = self.client.post(
            reverse("admin-fleet-list"),
            {"registration": "b999xyz", "name": "Coach 2", "seat_capacity": 48},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["registration"], "B999XYZ")

    def test_duplicate_registration_rejected(self):
        """Test that a retired bus still reserves its registration."""
        self.bus.is_active = False
        self.bus.save()
        response = self.client.post(
            reverse("admin-fleet-list"),
            {"registration": "b123abc", "name": "Coach 3", "seat_capacity": 40},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_delete_bus_is_soft(self):
        """Test that deleting a bus retires it."""
        response = self.client.delete(reverse("admin-fleet-detail", args=[self.bus.id]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Bus.all_objects.get(pk=self.bus.id).is_active)

    def test_create_trip(self):
        """Test scheduling a trip."""
        response = self.client.post(reverse("admin-trips-list"), self.trip_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["available_seats"], 40)
        self.assertEqual(response.data["service_type"], "standard")

    def test_trip_seats_cannot_exceed_bus(self):
        """Test that a trip cannot sell more seats than the bus has."""
        response = self.client.post(
            reverse("admin-trips-list"), self.trip_payload(total_seats=60), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_trip_same_origin_destination_rejected(self):
        """Test that a trip needs two different endpoints."""
        response = self.client.post(
            reverse("admin-trips-list"),
            self.trip_payload(route_destination="gaborone"),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_admin_forbidden(self):
        """Test that fleet management requires the admin role."""
        agent_role, _ = Role.objects.get_or_create(name="agent")
        agent = User.objects.create_user(
            username="agentuser", email="agent@example.com", password="testpass123",
            mobile_number="26770000000", role=agent_role, approval_status="approved",
        )
        self.client.force_authenticate(user=agent)
        response = self.client.get(reverse("admin-fleet-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class PublicTripAPITest(APITestCase):
    """Test cases for trip search and seat maps."""

    def setUp(self):
        self.bus = Bus.objects.create(registration="B123ABC", name="Coach 1", seat_capacity=40)
        self.date = timezone.localdate() + timedelta(days=2)
        self.trip = Trip.objects.create(
            bus=self.bus,
            route_name="Gaborone - Francistown",
            route_origin="Gaborone",
            route_destination="Francistown",
            departure_date=self.date,
            departure_time="08:00",
            fare=Decimal("150.00"),
            total_seats=40,
        )
        Trip.objects.create(
            bus=self.bus,
            route_name="Gaborone - Francistown",
            route_origin="Gaborone",
            route_destination="Francistown",
            departure_date=timezone.localdate() - timedelta(days=1),
            departure_time="08:00",
            fare=Decimal("150.00"),
            total_seats=40,
        )

    def test_search_returns_upcoming_trips(self):
        """Test that search without a date skips past departures."""
        response = self.client.get(
            reverse("trips-search"), {"origin": "gaborone", "destination": "Francistown"}
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["trips"][0]["id"], self.trip.id)
        self.assertEqual(response.data["trips"][0]["available_seats"], 40)

    def test_search_by_date(self):
        """Test searching on one departure date."""
        response = self.client.get(
            reverse("trips-search"),
            {"origin": "Gaborone", "destination": "Francistown", "date": self.date.isoformat()},
        )
        self.assertEqual(response.data["count"], 1)

    def test_search_requires_origin_and_destination(self):
        """Test that search parameters are validated."""
        response = self.client.get(reverse("trips-search"), {"origin": "Gaborone"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_seat_map(self):
        """Test that the seat map lists occupied seats."""
        booking = Booking.objects.create(
            order_ref="RT-1",
            trip=self.trip,
            user_name="Jane Doe",
            user_email="jane@example.com",
            boarding_point="Main Rank",
            dropping_point="Station",
            seats=["3C"],
            seat_count=1,
            total_price=Decimal("150.00"),
        )
        Passenger.objects.create(booking=booking, trip=self.trip, seat_number="3C", first_name="Jane")

        response = self.client.get(reverse("trips-seats", args=[self.trip.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["occupied_seats"], ["3C"])
        self.assertEqual(response.data["available_seats"], 39)

    def test_seat_map_unknown_trip(self):
        """Test that an unknown trip returns 404."""
        response = self.client.get(reverse("trips-seats", args=[99999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
