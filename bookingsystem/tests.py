from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import stripe
from django.contrib.auth import get_user_model
from django.db import OperationalError
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Role
from payment.models import PaymentTransaction
from trips.models import Bus, Trip
from utils.idempotency import booking_gate
from exceptions.handlers import (
    AlreadyExistsException,
    InvalidInputException,
    TransientFailureException,
)
from .models import Booking, Passenger
from .services import BookingChangeService, BookingCreationService

User = get_user_model()

CHECKOUT_SESSION = {"id": "cs_test_123", "url": "https://checkout.stripe.com/c/pay/cs_test_123"}


def make_trip(hours_ahead=72, seats=48, fare="150.00", registration="B100AAA"):
    bus, _ = Bus.objects.get_or_create(
        registration=registration,
        defaults={"name": "Coach", "seat_capacity": seats},
    )
    departure = timezone.localtime() + timedelta(hours=hours_ahead)
    return Trip.objects.create(
        bus=bus,
        route_name="Gaborone - Francistown",
        route_origin="Gaborone",
        route_destination="Francistown",
        departure_date=departure.date(),
        departure_time=departure.time().replace(microsecond=0),
        fare=Decimal(fare),
        total_seats=seats,
    )


def booking_data(trip, order_ref="RT-ABC123", seats=None, email="jane@example.com", **extra):
    data = {
        "order_ref": order_ref,
        "trip_id": trip.id,
        "return_trip_id": None,
        "user_name": "Jane Doe",
        "user_email": email,
        "user_phone": "26771111111",
        "contact_id_number": "ID123",
        "boarding_point": "Main Rank",
        "dropping_point": "Station",
        "departure_seats": seats or ["12A", "12B"],
        "return_seats": [],
        "passengers": [],
    }
    data.update(extra)
    return data


class BookingCreationServiceTest(TestCase):
    """Test cases for the booking transaction, retry and deduplication."""

    def setUp(self):
        self.trip = make_trip()
        self.service = BookingCreationService(sleep=lambda seconds: None)

    def test_creates_booking_and_passengers(self):
        """Test that a booking reserves one passenger row per seat."""
        booking = self.service.create(booking_data(self.trip))

        self.assertEqual(booking.order_ref, "RT-ABC123")
        self.assertEqual(booking.seat_count, 2)
        self.assertEqual(booking.total_price, Decimal("300.00"))
        self.assertEqual(booking.payment_status, "pending")
        self.assertEqual(sorted(self.trip.occupied_seats()), ["12A", "12B"])
        passenger = booking.passengers.get(seat_number="12A")
        self.assertEqual(passenger.first_name, "Jane")
        self.assertEqual(passenger.last_name, "Doe")

    def test_same_order_ref_returns_existing_booking(self):
        """Test that a repeated order reference returns the first booking unchanged."""
        first = self.service.create(booking_data(self.trip))
        second = self.service.create(booking_data(self.trip))

        self.assertEqual(first.id, second.id)
        self.assertEqual(Booking.objects.filter(order_ref="RT-ABC123").count(), 1)
        self.assertEqual(self.trip.occupied_count, 2)

    def test_generates_order_ref_when_missing(self):
        """Test that a booking without an order reference gets one."""
        booking = self.service.create(booking_data(self.trip, order_ref=""))
        self.assertTrue(booking.order_ref.startswith("RT-"))

    def test_seat_conflict_rejected(self):
        """Test that a seat held by another booking cannot be sold again."""
        self.service.create(booking_data(self.trip))
        with self.assertRaises(AlreadyExistsException):
            self.service.create(
                booking_data(self.trip, order_ref="RT-OTHER", seats=["12B", "12C"],
                             email="other@example.com")
            )
        self.assertFalse(Booking.objects.filter(order_ref="RT-OTHER").exists())

    def test_seat_outside_bus_rejected(self):
        """Test that seat labels past the trip's capacity are refused."""
        small_trip = make_trip(seats=8, registration="B200BBB")
        with self.assertRaises(InvalidInputException):
            self.service.create(booking_data(small_trip, seats=["3A"]))

    def test_recent_pending_booking_blocks_second_order(self):
        """Test that one email cannot hold two unpaid bookings on a trip."""
        self.service.create(booking_data(self.trip))
        with self.assertRaises(InvalidInputException):
            self.service.create(booking_data(self.trip, order_ref="RT-SECOND", seats=["1A"]))

    def test_transient_failures_retried_until_success(self):
        """Test that two deadlocks are retried and the third attempt commits once."""
        original = BookingCreationService._insert_booking
        calls = {"count": 0}

        def flaky(service, data, trip, return_trip):
            calls["count"] += 1
            if calls["count"] <= 2:
                raise OperationalError("deadlock detected")
            return original(service, data, trip, return_trip)

        with patch.object(BookingCreationService, "_insert_booking", autospec=True,
                          side_effect=flaky):
            booking = self.service.create(booking_data(self.trip))

        self.assertEqual(calls["count"], 3)
        self.assertEqual(Booking.objects.filter(order_ref="RT-ABC123").count(), 1)
        self.assertEqual(
            sorted(booking.passengers.values_list("seat_number", flat=True)), ["12A", "12B"]
        )

    def test_transient_failures_exhaust_attempts(self):
        """Test that persistent lock timeouts end in a transient failure."""
        with patch.object(BookingCreationService, "_insert_booking", autospec=True,
                          side_effect=OperationalError("lock timeout")):
            with self.assertRaises(TransientFailureException):
                self.service.create(booking_data(self.trip))
        self.assertFalse(Booking.objects.exists())
        self.assertEqual(self.trip.occupied_count, 0)

    def test_non_transient_operational_error_propagates(self):
        """Test that unrelated database errors are not retried."""
        with patch.object(BookingCreationService, "_insert_booking", autospec=True,
                          side_effect=OperationalError("no such column")) as mocked:
            with self.assertRaises(OperationalError):
                self.service.create(booking_data(self.trip))
        self.assertEqual(mocked.call_count, 1)

    def test_order_ref_reused_for_different_request(self):
        """Test that a concurrently stored booking with other seats is a conflict."""
        self.service.create(booking_data(self.trip))
        with self.assertRaises(AlreadyExistsException):
            self.service._resolve_conflict(
                booking_data(self.trip, seats=["5A"]), Exception("duplicate key")
            )

    def test_concurrent_duplicate_resolves_to_existing(self):
        """Test that a concurrently stored identical booking is returned."""
        first = self.service.create(booking_data(self.trip))
        resolved = self.service._resolve_conflict(
            booking_data(self.trip), Exception("duplicate key")
        )
        self.assertEqual(resolved.id, first.id)

    def test_zero_padded_seat_label_rejected(self):
        """Test that 01A cannot be sold alongside 1A as a separate seat."""
        self.service.create(booking_data(self.trip, seats=["1A"]))
        for label in ("01A", "001A"):
            with self.assertRaises(InvalidInputException):
                self.service.create(
                    booking_data(self.trip, order_ref=f"RT-{label}", seats=[label],
                                 email="other@example.com")
                )
        self.assertEqual(self.trip.occupied_seats(), ["1A"])

    def test_row_zero_rejected(self):
        """Test that row 0 does not exist on the seat map."""
        with self.assertRaises(InvalidInputException):
            self.service.create(booking_data(self.trip, seats=["0A"]))
        self.assertFalse(Booking.objects.exists())

    def test_order_ref_constraint_returns_stored_booking(self):
        """Test that a lost race on the order reference returns the winner's booking."""
        stored = Booking.objects.create(
            order_ref="RT-ABC123",
            trip=self.trip,
            user_name="Jane Doe",
            user_email="jane@example.com",
            boarding_point="Main Rank",
            dropping_point="Station",
            seats=["12A", "12B"],
            seat_count=2,
            total_price=Decimal("300.00"),
            payment_status="paid",
        )
        real_lookup = BookingCreationService._find_existing
        lookups = []

        def miss_first_lookup(order_ref):
            lookups.append(order_ref)
            return None if len(lookups) == 1 else real_lookup(order_ref)

        with patch.object(BookingCreationService, "_find_existing",
                          side_effect=miss_first_lookup):
            booking = self.service.create(booking_data(self.trip))

        self.assertEqual(booking.id, stored.id)
        self.assertEqual(Booking.objects.filter(order_ref="RT-ABC123").count(), 1)
        self.assertFalse(Passenger.objects.filter(booking=stored).exists())

    def test_seat_constraint_rejects_double_sale(self):
        """Test that the live-seat constraint stops a sale the seat check missed."""
        self.service.create(booking_data(self.trip))
        with patch.object(BookingCreationService, "_reserve_seats", return_value=None):
            with self.assertRaises(AlreadyExistsException):
                self.service.create(
                    booking_data(self.trip, order_ref="RT-OTHER", seats=["12B", "12C"],
                                 email="other@example.com")
                )
        self.assertFalse(Booking.objects.filter(order_ref="RT-OTHER").exists())
        self.assertEqual(sorted(self.trip.occupied_seats()), ["12A", "12B"])

    def test_round_trip_booking(self):
        """Test that a return leg reserves seats on the return trip."""
        return_trip = make_trip(hours_ahead=120, registration="B300CCC")
        booking = self.service.create(
            booking_data(
                self.trip,
                return_trip_id=return_trip.id,
                return_seats=["4C"],
            )
        )
        self.assertEqual(booking.seat_count, 3)
        self.assertEqual(booking.total_price, Decimal("450.00"))
        self.assertEqual(return_trip.occupied_seats(), ["4C"])
        self.assertTrue(booking.passengers.get(seat_number="4C").is_return)

    def test_agent_discount_applied(self):
        """Test that an approved agent sells at the agent discount."""
        role, _ = Role.objects.get_or_create(name="agent")
        agent = User.objects.create_user(
            username="agentuser", email="agent@example.com", password="testpass123",
            mobile_number="26770000000", role=role, approval_status="approved",
        )
        booking = BookingCreationService(seller=agent, sleep=lambda s: None).create(
            booking_data(self.trip)
        )
        self.assertEqual(booking.total_price, Decimal("270.00"))
        self.assertEqual(booking.discount_amount, Decimal("30.00"))
        self.assertEqual(booking.agent, agent)


class BookingChangeServiceTest(TestCase):
    """Test cases for reschedule, add-ons and cancellation."""

    def setUp(self):
        self.trip = make_trip(hours_ahead=72)
        self.booking = BookingCreationService(sleep=lambda s: None).create(
            booking_data(self.trip)
        )

    def test_cancel_releases_seats(self):
        """Test that cancelling frees the seats for another booking."""
        BookingChangeService.cancel(self.booking)

        self.assertEqual(self.booking.booking_status, "cancelled")
        self.assertEqual(self.trip.occupied_count, 0)
        rebooked = BookingCreationService(sleep=lambda s: None).create(
            booking_data(self.trip, order_ref="RT-AGAIN", email="next@example.com")
        )
        self.assertEqual(rebooked.seats, ["12A", "12B"])
        self.assertEqual(Passenger.objects.filter(seat_number="12A").count(), 2)

    def test_cancel_twice_rejected(self):
        """Test that a cancelled booking cannot be cancelled again."""
        BookingChangeService.cancel(self.booking)
        with self.assertRaises(InvalidInputException):
            BookingChangeService.cancel(self.booking)

    def test_add_addon_appends_pending_entry(self):
        """Test that an add-on is stored unpaid with its index."""
        addon = BookingChangeService.add_addon(
            self.booking, {"name": "Extra bag", "details": "23kg", "price": Decimal("50")}
        )
        self.assertEqual(addon["index"], 0)
        self.assertEqual(addon["price"], "50.00")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.addons[0]["payment_status"], "pending")
        self.assertNotIn("index", self.booking.addons[0])


@patch("payment.gateways.stripe.checkout.Session.create", return_value=CHECKOUT_SESSION)
class BookingAPITest(APITestCase):
    """Test cases for the public booking endpoints."""

    def setUp(self):
        booking_gate.clear()
        self.trip = make_trip()
        self.url = reverse("booking-list")
        self.payload = {
            "order_ref": "RT-ABC123",
            "trip_id": self.trip.id,
            "contact": {
                "name": "Jane Doe",
                "email": "Jane@Example.com",
                "phone": "26771111111",
                "id_number": "ID123",
            },
            "boarding_point": "Main Rank",
            "dropping_point": "Station",
            "departure_seats": ["12a", "12B"],
        }

    def tearDown(self):
        booking_gate.clear()

    def test_create_booking_returns_payment_url(self, mock_create):
        """Test that booking creation opens a Stripe checkout."""
        response = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["order_ref"], "RT-ABC123")
        self.assertEqual(response.data["payment_url"], CHECKOUT_SESSION["url"])
        self.assertEqual(response.data["payment_status"], "initiated")
        booking = Booking.objects.get(order_ref="RT-ABC123")
        self.assertEqual(booking.user_email, "jane@example.com")
        self.assertEqual(booking.seats, ["12A", "12B"])
        self.assertEqual(
            mock_create.call_args.kwargs["idempotency_key"], "checkout-RT-ABC123"
        )

    def test_duplicate_submission_returns_same_booking(self, mock_create):
        """Test that a double submit yields one booking and one checkout."""
        first = self.client.post(self.url, self.payload, format="json")
        second = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(first.data["booking_id"], second.data["booking_id"])
        self.assertEqual(Booking.objects.filter(order_ref="RT-ABC123").count(), 1)
        self.assertEqual(self.trip.occupied_count, 2)
        self.assertEqual(mock_create.call_count, 1)

    def test_resubmission_after_gate_expiry_reuses_booking(self, mock_create):
        """Test that a late retry finds the stored booking and open checkout."""
        first = self.client.post(self.url, self.payload, format="json")
        booking_gate.clear()
        second = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.data["booking_id"], second.data["booking_id"])
        self.assertEqual(second.data["payment_url"], CHECKOUT_SESSION["url"])
        self.assertEqual(mock_create.call_count, 1)
        self.assertEqual(PaymentTransaction.objects.count(), 1)

    def test_idempotency_key_header_used_as_order_ref(self, mock_create):
        """Test that the Idempotency-Key header names the order."""
        del self.payload["order_ref"]
        response = self.client.post(
            self.url, self.payload, format="json", HTTP_IDEMPOTENCY_KEY="RT-HEADER1"
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["order_ref"], "RT-HEADER1")

    def test_overlong_idempotency_key_rejected(self, mock_create):
        """Test that a key longer than an order reference is a validation error."""
        del self.payload["order_ref"]
        response = self.client.post(
            self.url, self.payload, format="json", HTTP_IDEMPOTENCY_KEY="K" * 65
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data["success"])
        self.assertFalse(Booking.objects.exists())
        mock_create.assert_not_called()

    def test_zero_padded_seat_label_rejected(self, mock_create):
        """Test that a padded label for a sold seat is refused at the API."""
        self.payload["departure_seats"] = ["012A"]
        response = self.client.post(self.url, self.payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Booking.objects.exists())

    def test_seat_conflict_returns_409(self, mock_create):
        """Test that booking a taken seat returns a conflict."""
        self.client.post(self.url, self.payload, format="json")
        self.payload.update(
            {"order_ref": "RT-XYZ789", "departure_seats": ["12B"]}
        )
        self.payload["contact"]["email"] = "other@example.com"
        response = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(response.data["success"])

    def test_invalid_seat_label_rejected(self, mock_create):
        """Test that malformed seat labels are refused."""
        self.payload["departure_seats"] = ["12E"]
        response = self.client.post(self.url, self.payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        mock_create.assert_not_called()

    def test_gateway_unavailable_leaves_booking_pending(self, mock_create):
        """Test that a Stripe outage returns 502 and keeps the booking pending."""
        mock_create.side_effect = stripe.APIConnectionError("connection refused")
        response = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        booking = Booking.objects.get(order_ref="RT-ABC123")
        self.assertEqual(booking.payment_status, "pending")
        self.assertEqual(booking.passengers.count(), 2)

        mock_create.side_effect = None
        retry = self.client.post(self.url, self.payload, format="json")
        self.assertEqual(retry.status_code, status.HTTP_201_CREATED)
        self.assertEqual(retry.data["booking_id"], booking.id)

    def test_gateway_rejection_marks_booking_failed(self, mock_create):
        """Test that a Stripe refusal fails the booking's payment."""
        mock_create.side_effect = stripe.InvalidRequestError("bad amount", "amount")
        response = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(
            Booking.objects.get(order_ref="RT-ABC123").payment_status, "failed"
        )

    def test_retrieve_booking(self, mock_create):
        """Test the ticket view by order reference."""
        self.client.post(self.url, self.payload, format="json")
        response = self.client.get(reverse("booking-detail", args=["RT-ABC123"]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["passengers"]), 2)
        self.assertEqual(response.data["trip"]["route_name"], "Gaborone - Francistown")

    def test_retrieve_unknown_booking(self, mock_create):
        """Test that an unknown order reference returns 404."""
        response = self.client.get(reverse("booking-detail", args=["RT-NOPE"]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


@patch("payment.gateways.stripe.checkout.Session.create", return_value=CHECKOUT_SESSION)
class ManageBookingAPITest(APITestCase):
    """Test cases for lookup, reschedule and add-ons from the manage-booking page."""

    def make_booking(self, hours_ahead):
        trip = make_trip(hours_ahead=hours_ahead, registration=f"B{hours_ahead}XYZ")
        return BookingCreationService(sleep=lambda s: None).create(
            booking_data(trip, order_ref=f"RT-H{hours_ahead}")
        )

    def access(self, booking, **extra):
        return {"order_ref": booking.order_ref, "id_number": "ID123", **extra}

    def test_lookup_requires_matching_id_number(self, mock_create):
        """Test that a wrong ID number does not reveal the booking."""
        booking = self.make_booking(72)
        response = self.client.post(
            reverse("booking-lookup"),
            {"order_ref": booking.order_ref, "id_number": "WRONG"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_lookup_reports_can_edit(self, mock_create):
        """Test that lookup tells whether the change window is open."""
        booking = self.make_booking(72)
        response = self.client.post(reverse("booking-lookup"), self.access(booking), format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["can_edit"])

    def test_reschedule_inside_window_rejected(self, mock_create):
        """Test that a trip departing in 23 hours cannot be rescheduled."""
        booking = self.make_booking(23)
        new_date = (timezone.localdate() + timedelta(days=10)).isoformat()
        response = self.client.post(
            reverse("booking-reschedule"),
            self.access(booking, new_departure_date=new_date, new_departure_time="09:30"),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        booking.refresh_from_db()
        self.assertEqual(booking.booking_status, "confirmed")

    def test_reschedule_outside_window_succeeds(self, mock_create):
        """Test that a trip departing in 25 hours can be rescheduled."""
        booking = self.make_booking(25)
        new_date = timezone.localdate() + timedelta(days=10)
        response = self.client.post(
            reverse("booking-reschedule"),
            self.access(booking, new_departure_date=new_date.isoformat(),
                        new_departure_time="09:30"),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        booking.refresh_from_db()
        self.assertEqual(booking.booking_status, "rescheduled")
        self.assertEqual(booking.trip.departure_date, new_date)

    def test_addon_inside_window_rejected(self, mock_create):
        """Test that add-ons follow the same change window."""
        booking = self.make_booking(23)
        response = self.client.post(
            reverse("booking-addons"),
            self.access(booking, addon={"name": "Meal", "price": "25.00"}),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_addon_opens_checkout(self, mock_create):
        """Test that an add-on returns a checkout URL keyed to its index."""
        booking = self.make_booking(72)
        response = self.client.post(
            reverse("booking-addons"),
            self.access(booking, addon={"name": "Meal", "price": "25.00"}),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["payment_url"], CHECKOUT_SESSION["url"])
        kwargs = mock_create.call_args.kwargs
        self.assertEqual(kwargs["idempotency_key"], f"addon-{booking.order_ref}-0")
        self.assertEqual(kwargs["metadata"]["purpose"], "addon")


class AdminBookingAPITest(APITestCase):
    """Test cases for back-office booking management."""

    def setUp(self):
        admin_role, _ = Role.objects.get_or_create(name="admin")
        self.admin = User.objects.create_user(
            username="adminuser", email="admin@example.com", password="testpass123",
            mobile_number="26779999999", role=admin_role, approval_status="approved",
        )
        self.client.force_authenticate(user=self.admin)
        self.trip = make_trip()
        self.booking = BookingCreationService(sleep=lambda s: None).create(
            booking_data(self.trip)
        )

    def test_cancel_booking(self):
        """Test that an admin cancellation releases the seats."""
        response = self.client.post(reverse("admin-bookings-cancel", args=[self.booking.order_ref]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["booking"]["booking_status"], "cancelled")
        self.assertEqual(self.trip.occupied_count, 0)

    def test_mark_paid_is_idempotent(self):
        """Test that manual reconciliation only changes the booking once."""
        url = reverse("admin-bookings-mark-paid", args=[self.booking.order_ref])
        first = self.client.post(url)
        second = self.client.post(url)
        self.assertTrue(first.data["changed"])
        self.assertFalse(second.data["changed"])
        self.assertEqual(second.data["booking"]["payment_status"], "paid")

    def test_filter_by_payment_status(self):
        """Test filtering the booking list."""
        response = self.client.get(reverse("admin-bookings-list"), {"payment_status": "paid"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 0)

    def test_anonymous_forbidden(self):
        """Test that the back office requires authentication."""
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse("admin-bookings-list"))
        self.assertIn(
            response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)
        )


class SellerBookingAPITest(APITestCase):
    """Test cases for the agent's own booking list."""

    def setUp(self):
        role, _ = Role.objects.get_or_create(name="agent")
        self.agent = User.objects.create_user(
            username="agentuser", email="agent@example.com", password="testpass123",
            mobile_number="26770000000", role=role, approval_status="approved",
        )
        self.trip = make_trip()

    def test_lists_only_own_bookings_with_summary(self):
        """Test that an agent sees their bookings and paid totals."""
        BookingCreationService(seller=self.agent, sleep=lambda s: None).create(
            booking_data(self.trip)
        )
        BookingCreationService(sleep=lambda s: None).create(
            booking_data(self.trip, order_ref="RT-WALKIN", seats=["1A"], email="w@example.com")
        )
        Booking.objects.filter(order_ref="RT-ABC123").update(payment_status="paid")

        self.client.force_authenticate(user=self.agent)
        response = self.client.get(reverse("seller-bookings"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["bookings"]), 1)
        self.assertEqual(response.data["summary"]["total_bookings"], 1)
        self.assertEqual(response.data["summary"]["total_commission"], Decimal("30.00"))

    def test_suspended_agent_forbidden(self):
        """Test that a suspended agent cannot list bookings."""
        self.agent.is_suspended = True
        self.agent.save()
        self.client.force_authenticate(user=self.agent)
        response = self.client.get(reverse("seller-bookings"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
