import logging
import xml.etree.ElementTree as ET
from decimal import Decimal
from xml.sax.saxutils import escape

import httpx
import stripe
from django.conf import settings

from utils.constants import PaymentMessage
from exceptions.handlers import InvalidInputException

logger = logging.getLogger("payment")


class GatewayError(Exception):
    """Base class for failures talking to a payment provider."""


class GatewayUnavailable(GatewayError):
    """The provider could not be reached or did not answer in time."""


class GatewayRejected(GatewayError):
    """The provider answered and refused the request."""


class InvalidWebhook(GatewayError):
    pass


class HostedPayment:
    """A hosted payment page created at a provider."""

    def __init__(self, reference, url, raw=None):
        self.reference = reference
        self.url = url
        self.raw = raw or {}


class PaymentOutcome:
    """
    Terminal result reported by a provider for one order.

    ``status`` is ``paid``, ``failed`` or None when the provider has no
    final answer yet.
    """

    def __init__(self, order_ref, status, reference=None, raw=None):
        self.order_ref = order_ref
        self.status = status
        self.reference = reference
        self.raw = raw or {}


class StripeGateway:
    """
    Stripe Checkout: hosted card payment sessions confirmed by webhook.
    """

    name = "stripe"

    PAID_EVENTS = ("checkout.session.completed", "checkout.session.async_payment_succeeded")
    FAILED_EVENTS = ("checkout.session.expired", "checkout.session.async_payment_failed")

    def create_payment(self, order_ref, amount, description, idempotency_key, email=None,
                       metadata=None, success_path="/booking/success", cancel_path="/booking/cancelled",
                       **kwargs):
        """
        Create a Checkout session for ``amount`` in the configured currency.

        Args:
            order_ref (str): Order reference, stored in the session metadata
            amount (Decimal): Amount to charge
            description (str): Line item name shown on the payment page
            idempotency_key (str): Key that makes retried calls return the same session
            email (str, optional): Prefills the customer email

        Returns:
            HostedPayment: Session id and redirect URL

        Raises:
            GatewayUnavailable: Network failure or Stripe outage
            GatewayRejected: Stripe refused the request
        """
        base_url = settings.APP_BASE_URL
        params = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": settings.STRIPE_CURRENCY,
                        "product_data": {"name": description},
                        "unit_amount": int(Decimal(amount) * 100),
                    },
                    "quantity": 1,
                }
            ],
            "metadata": {"orderId": order_ref, **(metadata or {})},
            "success_url": f"{base_url}{success_path}?order_id={order_ref}",
            "cancel_url": f"{base_url}{cancel_path}?order_id={order_ref}",
        }
        if email:
            params["customer_email"] = email

        logger.info(f"Creating Stripe checkout session for {order_ref} ({amount})")
        try:
            session = stripe.checkout.Session.create(
                api_key=settings.STRIPE_SECRET_KEY,
                idempotency_key=idempotency_key,
                **params,
            )
        except (stripe.APIConnectionError, stripe.RateLimitError) as exc:
            logger.error(f"Stripe unreachable for {order_ref}: {exc}")
            raise GatewayUnavailable(str(exc)) from exc
        except stripe.StripeError as exc:
            logger.error(f"Stripe rejected checkout for {order_ref}: {exc}")
            raise GatewayRejected(str(exc)) from exc

        return HostedPayment(session["id"], session["url"], {"session_id": session["id"]})

    def parse_webhook(self, payload, signature):
        """
        Verify a webhook signature and translate the event.

        Returns:
            PaymentOutcome or None: None for events that carry no payment outcome

        Raises:
            InvalidWebhook: Bad signature or malformed payload
        """
        try:
            event = stripe.Webhook.construct_event(
                payload, signature, settings.STRIPE_WEBHOOK_SECRET
            )
        except ValueError as exc:
            logger.warning(f"Stripe webhook with invalid payload: {exc}")
            raise InvalidWebhook(PaymentMessage.INVALID_PAYLOAD) from exc
        except stripe.SignatureVerificationError as exc:
            logger.warning(f"Stripe webhook signature verification failed: {exc}")
            raise InvalidWebhook(PaymentMessage.INVALID_SIGNATURE) from exc

        event_type = event["type"]
        if event_type in self.PAID_EVENTS:
            status = "paid"
        elif event_type in self.FAILED_EVENTS:
            status = "failed"
        else:
            logger.info(f"Ignoring Stripe event {event_type}")
            return None

        session = event["data"]["object"]
        metadata = session.get("metadata") or {}
        order_ref = metadata.get("orderId")
        if not order_ref:
            logger.warning(f"Stripe event {event_type} without orderId metadata")
            return None
        return PaymentOutcome(
            order_ref,
            status,
            reference=session.get("id"),
            raw={"event": event_type, "metadata": dict(metadata)},
        )


class DPOGateway:
    """
    DPO Group (3G Direct Pay) API3G: XML over HTTPS.

    createToken opens a transaction and yields a token for the hosted
    payment page; verifyToken reports the result after the redirect back.
    """

    name = "dpo"

    RESULT_OK = "000"
    PENDING_RESULTS = {"001", "003", "005", "007"}

    def _post(self, body):
        try:
            response = httpx.post(
                settings.DPO_API_URL,
                content=body.encode("utf-8"),
                headers={"Content-Type": "application/xml"},
                timeout=settings.DPO_TIMEOUT,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error(f"DPO request failed: {exc}")
            raise GatewayUnavailable(str(exc)) from exc
        try:
            return ET.fromstring(response.content)
        except ET.ParseError as exc:
            logger.error(f"DPO returned malformed XML: {exc}")
            raise GatewayUnavailable(str(exc)) from exc

    @staticmethod
    def _text(root, tag):
        node = root.find(tag)
        return node.text.strip() if node is not None and node.text else ""

    def build_create_token(self, order_ref, amount, description, customer=None):
        customer = customer or {}
        first_name, _, last_name = customer.get("name", "").partition(" ")
        base_url = settings.APP_BASE_URL
        return (
            '<?xml version="1.0" encoding="utf-8"?>'
            "<API3G>"
            f"<CompanyToken>{escape(settings.DPO_COMPANY_TOKEN)}</CompanyToken>"
            "<Request>createToken</Request>"
            "<Transaction>"
            f"<PaymentAmount>{Decimal(amount):.2f}</PaymentAmount>"
            f"<PaymentCurrency>{escape(settings.DPO_CURRENCY)}</PaymentCurrency>"
            f"<CompanyRef>{escape(order_ref)}</CompanyRef>"
            f"<RedirectURL>{escape(f'{base_url}/payment/dpo/return?order_id={order_ref}')}</RedirectURL>"
            f"<BackURL>{escape(f'{base_url}/booking/cancelled?order_id={order_ref}')}</BackURL>"
            "<CompanyRefUnique>1</CompanyRefUnique>"
            f"<customerEmail>{escape(customer.get('email', ''))}</customerEmail>"
            f"<customerFirstName>{escape(first_name)}</customerFirstName>"
            f"<customerLastName>{escape(last_name)}</customerLastName>"
            f"<customerPhone>{escape(customer.get('phone', ''))}</customerPhone>"
            "</Transaction>"
            "<Services><Service>"
            f"<ServiceType>{escape(settings.DPO_SERVICE_TYPE)}</ServiceType>"
            f"<ServiceDescription>{escape(description)}</ServiceDescription>"
            "</Service></Services>"
            "</API3G>"
        )

    def create_payment(self, order_ref, amount, description, idempotency_key, email=None,
                       metadata=None, customer=None, **kwargs):
        """
        Open a DPO transaction. ``CompanyRefUnique`` makes DPO refuse a second
        transaction for the same order reference, which stands in for an
        idempotency key.
        """
        customer = {"email": email or "", **(customer or {})}
        logger.info(f"Creating DPO token for {order_ref} ({amount})")
        root = self._post(self.build_create_token(order_ref, amount, description, customer))

        result = self._text(root, "Result")
        token = self._text(root, "TransToken")
        explanation = self._text(root, "ResultExplanation")
        if result != self.RESULT_OK or not token:
            logger.error(f"DPO createToken rejected {order_ref}: {result} {explanation}")
            raise GatewayRejected(explanation or PaymentMessage.GATEWAY_REJECTED)

        return HostedPayment(
            token,
            settings.DPO_PAYMENT_URL.format(token=token),
            {"result": result, "trans_ref": self._text(root, "TransRef")},
        )

    def verify_token(self, token, order_ref):
        """
        Ask DPO for the outcome of a transaction token.

        Returns:
            PaymentOutcome: ``paid`` on 000, None status while DPO reports the
            transaction as pending, ``failed`` for anything else (904 is a
            customer cancellation)

        Raises:
            GatewayRejected: If DPO reports the token under another CompanyRef
        """
        body = (
            '<?xml version="1.0" encoding="utf-8"?>'
            "<API3G>"
            f"<CompanyToken>{escape(settings.DPO_COMPANY_TOKEN)}</CompanyToken>"
            "<Request>verifyToken</Request>"
            f"<TransactionToken>{escape(token)}</TransactionToken>"
            "<VerifyTransaction>1</VerifyTransaction>"
            "</API3G>"
        )
        root = self._post(body)
        result = self._text(root, "Result")
        explanation = self._text(root, "ResultExplanation")
        logger.info(f"DPO verifyToken for {order_ref}: {result} {explanation}")

        company_ref = self._text(root, "CompanyRef")
        if company_ref and company_ref != order_ref:
            logger.error(f"DPO token {token} belongs to {company_ref}, not {order_ref}")
            raise GatewayRejected(PaymentMessage.ORDER_MISMATCH)

        if result == self.RESULT_OK:
            status = "paid"
        elif result in self.PENDING_RESULTS:
            status = None
        else:
            status = "failed"
        return PaymentOutcome(
            order_ref,
            status,
            reference=token,
            raw={"result": result, "explanation": explanation},
        )


GATEWAYS = {
    StripeGateway.name: StripeGateway,
    DPOGateway.name: DPOGateway,
}


def get_gateway(name):
    try:
        return GATEWAYS[name]()
    except KeyError:
        raise InvalidInputException(PaymentMessage.GATEWAY_NOT_SUPPORTED.format(gateway=name))
