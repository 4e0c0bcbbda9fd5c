import logging
from rest_framework import viewsets, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from .models import PaymentTransaction
from .serializers import DPOVerifySerializer, PaymentTransactionSerializer
from .gateways import (
    DPOGateway,
    GatewayRejected,
    GatewayUnavailable,
    InvalidWebhook,
    StripeGateway,
)
from .services import PaymentReconciliation
from bookingsystem.models import Booking
from utils.constants import BookingMessage, PaymentMessage
from utils.permission_helpers import AdminOnlyPermissionMixin
from utils.queryset_helpers import FilterableQuerysetMixin
from exceptions.handlers import (
    InvalidInputException,
    NotFoundException,
    PaymentGatewayException,
)

logger = logging.getLogger("payment")


class StripeWebhookView(APIView):
    """
    Receives signed Stripe events. The raw body is verified against the
    Stripe-Signature header before anything is trusted.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        signature = request.headers.get("Stripe-Signature", "")
        try:
            outcome = StripeGateway().parse_webhook(request.body, signature)
        except InvalidWebhook as exc:
            raise InvalidInputException(str(exc))

        if outcome is None:
            return Response({"received": True})

        try:
            changed = PaymentReconciliation.apply_outcome(outcome)
        except NotFoundException:
            # Acknowledge so Stripe stops redelivering an event we can never apply.
            logger.error(f"Stripe event for unknown order {outcome.order_ref} acknowledged without update")
            return Response({"received": True, "applied": False})

        return Response({"received": True, "applied": changed})


class DPOVerifyView(APIView):
    """
    Called by the DPO return page with the transaction token to settle the
    booking's payment status.
    """

    permission_classes = [AllowAny]

    def post(self, request):
        serializer = DPOVerifySerializer(data=request.data)
        if not serializer.is_valid():
            raise InvalidInputException(PaymentMessage.MISSING_PARAMETERS)
        order_ref = serializer.validated_data["order_ref"]
        token = serializer.validated_data["transaction_token"]

        if not Booking.objects.filter(order_ref=order_ref).exists():
            raise NotFoundException(BookingMessage.BOOKING_NOT_FOUND)
        if not PaymentTransaction.objects.filter(
            gateway=DPOGateway.name, reference=token, booking__order_ref=order_ref
        ).exists():
            logger.warning(f"DPO token {token} does not belong to {order_ref}")
            raise NotFoundException(PaymentMessage.TRANSACTION_NOT_FOUND)

        try:
            outcome = DPOGateway().verify_token(token, order_ref)
        except GatewayUnavailable:
            raise PaymentGatewayException()
        except GatewayRejected as exc:
            raise InvalidInputException(str(exc))

        changed = PaymentReconciliation.apply_outcome(outcome)
        payment_status = (
            Booking.objects.filter(order_ref=order_ref)
            .values_list("payment_status", flat=True)
            .first()
        )
        return Response(
            {
                "success": outcome.status == "paid",
                "order_ref": order_ref,
                "payment_status": payment_status,
                "result": outcome.raw.get("result"),
                "message": outcome.raw.get("explanation"),
                "changed": changed,
            },
            status=status.HTTP_200_OK,
        )


class PaymentTransactionViewSet(AdminOnlyPermissionMixin, FilterableQuerysetMixin,
                                viewsets.ReadOnlyModelViewSet):
    """
    Gateway transactions for the back office.
    """

    queryset = PaymentTransaction.objects.select_related("booking")
    serializer_class = PaymentTransactionSerializer
    filter_fields = ["gateway", "status", "purpose"]
