import threading
from datetime import datetime, timedelta
from decimal import Decimal

from django.test import SimpleTestCase, override_settings
from django.utils import timezone

from .booking_helpers import BookingHelpers
from .idempotency import Admission, IdempotencyGate


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class IdempotencyGateTest(SimpleTestCase):
    """Test cases for at-most-once execution per key."""

    def setUp(self):
        self.clock = FakeClock()
        self.gate = IdempotencyGate(ttl=30, clock=self.clock)

    def test_concurrent_callers_share_one_execution(self):
        """Test that simultaneous callers with one key run the operation once."""
        started = threading.Event()
        release = threading.Event()
        calls = []
        results = []

        def operation():
            calls.append(1)
            started.set()
            release.wait(5)
            return {"booking_id": 1}

        def caller():
            results.append(self.gate.run("RT-ABC123", operation))

        threads = [threading.Thread(target=caller) for _ in range(5)]
        threads[0].start()
        started.wait(5)
        for thread in threads[1:]:
            thread.start()
        release.set()
        for thread in threads:
            thread.join(5)

        self.assertEqual(len(calls), 1)
        self.assertEqual(len(results), 5)
        self.assertTrue(all(result is results[0] for result in results))

    def test_completed_result_cached_until_ttl(self):
        """Test that a finished result is served from cache, then expires."""
        calls = []

        def operation():
            calls.append(1)
            return len(calls)

        self.assertEqual(self.gate.run("key", operation), 1)
        self.assertEqual(self.gate.admit("key").state, Admission.CACHED)
        self.assertEqual(self.gate.run("key", operation), 1)

        self.clock.now += 30
        self.assertEqual(self.gate.run("key", operation), 2)
        self.assertEqual(len(calls), 2)

    def test_failure_is_evicted(self):
        """Test that a failed execution does not block a retry."""
        def failing():
            raise ValueError("boom")

        with self.assertRaises(ValueError):
            self.gate.run("key", failing)
        self.assertEqual(len(self.gate), 0)
        self.assertEqual(self.gate.run("key", lambda: "ok"), "ok")

    def test_waiters_receive_owner_failure(self):
        """Test that callers waiting on a failing execution get its exception."""
        admission = self.gate.admit("key")
        waiter = self.gate.admit("key")
        self.assertEqual(admission.state, Admission.NEW)
        self.assertEqual(waiter.state, Admission.PENDING)

        error = RuntimeError("gateway down")
        self.gate.fail("key", admission, error)
        with self.assertRaises(RuntimeError):
            waiter.wait(1)
        self.assertEqual(self.gate.admit("key").state, Admission.NEW)

    def test_distinct_keys_independent(self):
        """Test that different keys never share results."""
        self.assertEqual(self.gate.run("a", lambda: 1), 1)
        self.assertEqual(self.gate.run("b", lambda: 2), 2)

    def test_capacity_drops_oldest_completed_entry(self):
        """Test that a full gate evicts the oldest finished key first."""
        gate = IdempotencyGate(ttl=30, clock=self.clock, max_entries=2)
        gate.run("first", lambda: 1)
        self.clock.now += 1
        gate.run("second", lambda: 2)
        self.clock.now += 1
        gate.run("third", lambda: 3)

        self.assertEqual(len(gate), 2)
        self.assertEqual(gate.admit("second").state, Admission.CACHED)
        self.assertEqual(gate.admit("first").state, Admission.NEW)

    def test_forget_drops_entry(self):
        """Test that forget allows immediate re-execution."""
        self.gate.run("key", lambda: 1)
        self.gate.forget("key")
        self.assertEqual(self.gate.run("key", lambda: 2), 2)


@override_settings(
    AGENT_DISCOUNT_RATE=Decimal("0.10"),
    CONSULTANT_DISCOUNT_RATE=Decimal("0.05"),
    BOOKING_CHANGE_CUTOFF_HOURS=24,
)
class BookingHelpersTest(SimpleTestCase):
    """Test cases for pricing, commission and the change window."""

    def test_commission_reverses_discount(self):
        """Test that a 10% sale at 90.00 earns 10.00 commission."""
        self.assertEqual(
            BookingHelpers.calculate_commission(Decimal("90.00"), Decimal("0.10")),
            Decimal("10.00"),
        )

    def test_commission_zero_for_invalid_rate(self):
        """Test that non-positive or full rates yield no commission."""
        self.assertEqual(BookingHelpers.calculate_commission(Decimal("90"), Decimal("0")), Decimal("0.00"))
        self.assertEqual(BookingHelpers.calculate_commission(Decimal("90"), Decimal("1")), Decimal("0.00"))
        self.assertEqual(BookingHelpers.calculate_commission(None, Decimal("0.1")), Decimal("0.00"))

    def test_apply_discount(self):
        """Test that a discount returns the total and the amount taken off."""
        total, discount = BookingHelpers.apply_discount(Decimal("300.00"), Decimal("0.05"))
        self.assertEqual(total, Decimal("285.00"))
        self.assertEqual(discount, Decimal("15.00"))

    def test_seller_rate(self):
        """Test role-based discount rates."""
        self.assertEqual(BookingHelpers.seller_rate("agent"), Decimal("0.10"))
        self.assertEqual(BookingHelpers.seller_rate("consultant"), Decimal("0.05"))
        self.assertEqual(BookingHelpers.seller_rate("admin"), Decimal("0"))

    def test_discount_rate_for_anonymous(self):
        """Test that anonymous customers pay list price."""
        self.assertEqual(BookingHelpers.discount_rate_for(None), Decimal("0"))

    def test_change_window(self):
        """Test the 24-hour change cutoff on both sides."""
        now = timezone.now()
        self.assertFalse(BookingHelpers.can_modify_booking(now + timedelta(hours=23), now=now))
        self.assertFalse(BookingHelpers.can_modify_booking(now + timedelta(hours=24), now=now))
        self.assertTrue(BookingHelpers.can_modify_booking(now + timedelta(hours=25), now=now))

    def test_seat_index(self):
        """Test seat label positions on a four-abreast layout."""
        self.assertEqual(BookingHelpers.seat_index("1A"), 1)
        self.assertEqual(BookingHelpers.seat_index("2C"), 7)
        self.assertEqual(BookingHelpers.seat_index("12B"), 46)

    def test_generated_order_reference_format(self):
        """Test the shape of generated order references."""
        ref = BookingHelpers.generate_order_reference()
        prefix, millis, suffix = ref.split("-")
        self.assertEqual(prefix, "RT")
        self.assertTrue(millis.isdigit())
        self.assertEqual(len(suffix), 6)

    def test_trip_departure_is_aware(self):
        """Test that trip date and time combine into an aware datetime."""
        class TripStub:
            departure_date = datetime(2030, 1, 1).date()
            departure_time = datetime(2030, 1, 1, 8, 30).time()

        departure = BookingHelpers.trip_departure(TripStub)
        self.assertTrue(timezone.is_aware(departure))
        self.assertEqual(timezone.localtime(departure).hour, 8)
