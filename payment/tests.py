from decimal import Decimal
from unittest.mock import MagicMock, patch

import httpx
import stripe
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from bookingsystem.models import Booking
from bookingsystem.services import BookingChangeService, BookingCreationService
from bookingsystem.tests import booking_data, make_trip
from exceptions.handlers import InvalidInputException, NotFoundException
from .gateways import DPOGateway, GatewayRejected, PaymentOutcome, get_gateway
from .models import PaymentTransaction
from .services import PaymentReconciliation


def dpo_response(result, explanation="", token="", company_ref=""):
    body = (
        "<?xml version=\"1.0\" encoding=\"utf-8\"?><API3G>"
        f"<Result>{result}</Result>"
        f"<ResultExplanation>{explanation}</ResultExplanation>"
        f"<TransToken>{token}</TransToken>"
        f"<CompanyRef>{company_ref}</CompanyRef>"
        "</API3G>"
    )
    response = MagicMock()
    response.content = body.encode("utf-8")
    return response


def stripe_event(event_type, order_ref, session_id="cs_test_123", **metadata):
    return {
        "type": event_type,
        "data": {
            "object": {"id": session_id, "metadata": {"orderId": order_ref, **metadata}}
        },
    }


class PaymentReconciliationTest(TestCase):
    """Test cases for idempotent payment status updates."""

    def setUp(self):
        self.trip = make_trip()
        self.booking = BookingCreationService(sleep=lambda s: None).create(
            booking_data(self.trip)
        )
        self.payment = PaymentTransaction.objects.create(
            booking=self.booking,
            gateway="stripe",
            reference="cs_test_123",
            payment_url="https://checkout.stripe.com/c/pay/cs_test_123",
            amount=self.booking.total_price,
        )

    def test_mark_paid_twice_changes_once(self):
        """Test that a duplicate success notification is a no-op."""
        self.assertTrue(PaymentReconciliation.mark_paid("RT-ABC123", "cs_test_123"))
        self.assertFalse(PaymentReconciliation.mark_paid("RT-ABC123", "cs_test_123"))

        self.booking.refresh_from_db()
        self.payment.refresh_from_db()
        self.assertEqual(self.booking.payment_status, "paid")
        self.assertEqual(self.payment.status, "paid")
        self.assertIsNotNone(self.payment.paid_at)

    def test_failure_does_not_downgrade_paid(self):
        """Test that a late failure report leaves a paid booking paid."""
        PaymentReconciliation.mark_paid("RT-ABC123", "cs_test_123")
        self.assertFalse(PaymentReconciliation.mark_failed("RT-ABC123", "cs_test_123"))

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, "paid")

    def test_success_after_failure_marks_paid(self):
        """Test that a late success overrides an earlier failure."""
        self.assertTrue(PaymentReconciliation.mark_failed("RT-ABC123", "cs_test_123"))
        self.assertTrue(PaymentReconciliation.mark_paid("RT-ABC123"))

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, "paid")

    def test_unknown_order_raises_not_found(self):
        """Test that outcomes for unknown orders are reported."""
        with self.assertRaises(NotFoundException):
            PaymentReconciliation.mark_paid("RT-UNKNOWN")

    def test_pending_outcome_changes_nothing(self):
        """Test that an outcome without a final status is ignored."""
        outcome = PaymentOutcome("RT-ABC123", None, reference="tok")
        self.assertFalse(PaymentReconciliation.apply_outcome(outcome))
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, "pending")

    def test_addon_outcome_marks_addon_paid(self):
        """Test that an add-on payment only touches its add-on entry."""
        BookingChangeService.add_addon(self.booking, {"name": "Meal", "price": Decimal("25")})
        outcome = PaymentOutcome(
            "RT-ABC123",
            "paid",
            reference="cs_addon",
            raw={"metadata": {"purpose": "addon", "addonIndex": "0"}},
        )
        self.assertTrue(PaymentReconciliation.apply_outcome(outcome))
        self.assertFalse(PaymentReconciliation.apply_outcome(outcome))

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.addons[0]["payment_status"], "paid")
        self.assertEqual(self.booking.payment_status, "pending")

    def test_addon_outcome_with_bad_index_ignored(self):
        """Test that a non-numeric add-on index changes nothing."""
        BookingChangeService.add_addon(self.booking, {"name": "Meal", "price": Decimal("25")})
        outcome = PaymentOutcome(
            "RT-ABC123",
            "paid",
            reference="cs_addon",
            raw={"metadata": {"purpose": "addon", "addonIndex": "first"}},
        )
        self.assertFalse(PaymentReconciliation.apply_outcome(outcome))

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.addons[0]["payment_status"], "pending")


class GatewayTest(TestCase):
    """Test cases for the gateway adapters."""

    def test_unknown_gateway_rejected(self):
        """Test that only configured gateways can be used."""
        with self.assertRaises(InvalidInputException):
            get_gateway("paypal")

    @patch("payment.gateways.httpx.post")
    def test_dpo_create_token(self, mock_post):
        """Test that a DPO token becomes a hosted payment URL."""
        mock_post.return_value = dpo_response("000", "Transaction created", "TOKEN-1")
        hosted = DPOGateway().create_payment(
            "RT-ABC123", Decimal("300.00"), "Bus ticket", "checkout-RT-ABC123",
            customer={"name": "Jane Doe", "phone": "26771111111"},
        )
        self.assertEqual(hosted.reference, "TOKEN-1")
        self.assertIn("TOKEN-1", hosted.url)
        body = mock_post.call_args.kwargs["content"].decode("utf-8")
        self.assertIn("<CompanyRef>RT-ABC123</CompanyRef>", body)
        self.assertIn("<PaymentAmount>300.00</PaymentAmount>", body)
        self.assertIn("<customerFirstName>Jane</customerFirstName>", body)

    @patch("payment.gateways.httpx.post")
    def test_dpo_create_token_rejected(self, mock_post):
        """Test that a non-000 createToken result is a rejection."""
        mock_post.return_value = dpo_response("801", "Request missing company token")
        with self.assertRaises(GatewayRejected):
            DPOGateway().create_payment("RT-ABC123", Decimal("10"), "Bus ticket", "key")

    @patch("payment.gateways.httpx.post")
    def test_dpo_verify_results(self, mock_post):
        """Test the mapping of DPO verify results to payment outcomes."""
        expected = {"000": "paid", "003": None, "904": "failed", "901": "failed"}
        for result, status_value in expected.items():
            mock_post.return_value = dpo_response(result)
            outcome = DPOGateway().verify_token("TOKEN-1", "RT-ABC123")
            self.assertEqual(outcome.status, status_value, result)

    @patch("payment.gateways.httpx.post")
    def test_dpo_verify_rejects_other_company_ref(self, mock_post):
        """Test that a token DPO files under another order is refused."""
        mock_post.return_value = dpo_response("000", "Transaction Paid", company_ref="RT-OTHER")
        with self.assertRaises(GatewayRejected):
            DPOGateway().verify_token("TOKEN-1", "RT-ABC123")


class StripeWebhookAPITest(APITestCase):
    """Test cases for the Stripe webhook endpoint."""

    def setUp(self):
        self.url = reverse("stripe-webhook")
        self.trip = make_trip()
        self.booking = BookingCreationService(sleep=lambda s: None).create(
            booking_data(self.trip)
        )

    def post_event(self):
        return self.client.post(
            self.url, {"id": "evt_1"}, format="json", HTTP_STRIPE_SIGNATURE="t=1,v1=abc"
        )

    @patch("payment.gateways.stripe.Webhook.construct_event")
    def test_bad_signature_rejected(self, mock_construct):
        """Test that an unverifiable webhook returns 400 and changes nothing."""
        mock_construct.side_effect = stripe.SignatureVerificationError("bad", "t=1,v1=abc")
        response = self.post_event()

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, "pending")

    @patch("payment.gateways.stripe.Webhook.construct_event")
    def test_checkout_completed_marks_paid(self, mock_construct):
        """Test that checkout.session.completed marks the booking paid."""
        mock_construct.return_value = stripe_event("checkout.session.completed", "RT-ABC123")
        response = self.post_event()

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["applied"])
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, "paid")

        again = self.post_event()
        self.assertEqual(again.status_code, status.HTTP_200_OK)
        self.assertFalse(again.data["applied"])

    @patch("payment.gateways.stripe.Webhook.construct_event")
    def test_expired_session_marks_failed(self, mock_construct):
        """Test that an expired checkout fails the booking's payment."""
        mock_construct.return_value = stripe_event("checkout.session.expired", "RT-ABC123")
        self.post_event()
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, "failed")

    @patch("payment.gateways.stripe.Webhook.construct_event")
    def test_unknown_order_acknowledged(self, mock_construct):
        """Test that events for unknown orders are acknowledged without changes."""
        mock_construct.return_value = stripe_event("checkout.session.completed", "RT-MISSING")
        response = self.post_event()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["applied"])

    @patch("payment.gateways.stripe.Webhook.construct_event")
    def test_unrelated_event_ignored(self, mock_construct):
        """Test that events without a payment outcome are acknowledged."""
        mock_construct.return_value = {"type": "customer.created", "data": {"object": {}}}
        response = self.post_event()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"received": True})


class DPOVerifyAPITest(APITestCase):
    """Test cases for the DPO return-page verification endpoint."""

    def setUp(self):
        self.url = reverse("dpo-verify")
        self.trip = make_trip()
        self.booking = BookingCreationService(sleep=lambda s: None).create(
            booking_data(self.trip)
        )
        PaymentTransaction.objects.create(
            booking=self.booking,
            gateway="dpo",
            reference="TOKEN-1",
            payment_url="https://secure.3gdirectpay.com/payv2.php?ID=TOKEN-1",
            amount=self.booking.total_price,
        )
        self.payload = {"order_ref": "RT-ABC123", "transaction_token": "TOKEN-1"}

    @patch("payment.gateways.httpx.post")
    def test_token_from_another_order_rejected(self, mock_post):
        """Test that a paid token cannot settle a different booking."""
        other = BookingCreationService(sleep=lambda s: None).create(
            booking_data(self.trip, order_ref="RT-OTHER", seats=["5A"], email="other@example.com")
        )
        mock_post.return_value = dpo_response("000", "Transaction Paid", company_ref="RT-ABC123")
        response = self.client.post(
            self.url, {"order_ref": "RT-OTHER", "transaction_token": "TOKEN-1"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        mock_post.assert_not_called()
        other.refresh_from_db()
        self.assertEqual(other.payment_status, "pending")

    @patch("payment.gateways.httpx.post")
    def test_company_ref_mismatch_rejected(self, mock_post):
        """Test that DPO's own order reference must match the booking."""
        mock_post.return_value = dpo_response("000", "Transaction Paid", company_ref="RT-OTHER")
        response = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, "pending")

    @patch("payment.gateways.httpx.post")
    def test_paid_result_marks_booking_paid(self, mock_post):
        """Test that DPO result 000 marks the booking paid."""
        mock_post.return_value = dpo_response("000", "Transaction Paid")
        response = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["success"])
        self.assertEqual(response.data["payment_status"], "paid")
        self.assertIn("<VerifyTransaction>1</VerifyTransaction>",
                      mock_post.call_args.kwargs["content"].decode("utf-8"))

    @patch("payment.gateways.httpx.post")
    def test_cancelled_result_marks_booking_failed(self, mock_post):
        """Test that a customer cancellation fails the payment."""
        mock_post.return_value = dpo_response("904", "Transaction cancelled")
        response = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["payment_status"], "failed")

    @patch("payment.gateways.httpx.post")
    def test_gateway_unreachable_returns_502(self, mock_post):
        """Test that a DPO outage returns 502 and leaves the booking pending."""
        mock_post.side_effect = httpx.ConnectError("connection refused")
        response = self.client.post(self.url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(
            Booking.objects.get(order_ref="RT-ABC123").payment_status, "pending"
        )

    def test_missing_parameters(self):
        """Test that the token is required."""
        response = self.client.post(self.url, {"order_ref": "RT-ABC123"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_booking(self):
        """Test that verification for an unknown order returns 404."""
        response = self.client.post(
            self.url, {"order_ref": "RT-NOPE", "transaction_token": "TOKEN-1"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
