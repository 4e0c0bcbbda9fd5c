import logging
from django.http import Http404
from rest_framework import viewsets, status, generics
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from .models import Booking
from .serializers import (
    AddonRequestSerializer,
    BookingAccessSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    RescheduleSerializer,
)
from .services import BookingChangeService, BookingCreationService
from payment.services import PaymentInitiation, PaymentReconciliation
from utils.booking_helpers import BookingHelpers
from utils.constants import BookingMessage
from utils.idempotency import booking_gate
from utils.permission_helpers import AdminOnlyPermissionMixin, IsSeller
from utils.queryset_helpers import (
    FilterableQuerysetMixin,
    OrderedQuerysetMixin,
    SearchableQuerysetMixin,
    SellerQuerysetMixin,
)
from utils.validators import BookingValidators
from exceptions.handlers import NotFoundException

logger = logging.getLogger("booking")


class BookingViewSet(viewsets.GenericViewSet):
    """
    Public booking endpoints: create, ticket view, and the manage-booking
    actions a customer authorises with order reference and ID number.
    """

    queryset = (
        Booking.objects.select_related("trip", "trip__bus", "return_trip", "return_trip__bus")
        .prefetch_related("passengers")
    )
    serializer_class = BookingSerializer
    permission_classes = [AllowAny]
    lookup_field = "order_ref"
    lookup_value_regex = "[^/]+"

    def create(self, request, *args, **kwargs):
        """
        Books seats and opens a payment page.

        The order reference comes from the body, else the Idempotency-Key
        header, else it is generated. Duplicate submissions with the same
        reference share one execution and get the same response.
        """
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        gateway = data.pop("gateway")
        idempotency_key = BookingValidators.validate_idempotency_key(
            request.headers.get("Idempotency-Key", "").strip()
        )
        data["order_ref"] = (
            data.get("order_ref")
            or idempotency_key
            or BookingHelpers.generate_order_reference()
        )
        seller = request.user if request.user.is_authenticated else None

        logger.info(
            f"Booking request {data['order_ref']}: trip={data['trip_id']}, seats={data['departure_seats']}, gateway={gateway}"
        )
        result = booking_gate.run(
            data["order_ref"], lambda: self._book_and_pay(data, gateway, seller)
        )
        return Response(result, status=status.HTTP_201_CREATED)

    @staticmethod
    def _book_and_pay(data, gateway, seller):
        booking = BookingCreationService(seller=seller).create(data)
        payment = PaymentInitiation.start(booking, gateway)
        booking.refresh_from_db(fields=["payment_status"])
        return {
            "success": True,
            "order_ref": booking.order_ref,
            "booking_id": booking.id,
            "total_price": str(booking.total_price),
            "payment_status": booking.payment_status,
            "payment_url": payment.payment_url if payment else None,
        }

    def retrieve(self, request, *args, **kwargs):
        """
        Ticket view by order reference.
        """
        try:
            booking = self.get_object()
        except Http404:
            raise NotFoundException(BookingMessage.BOOKING_NOT_FOUND)
        return Response(self.get_serializer(booking).data)

    @action(detail=False, methods=["post"], url_path="lookup", url_name="lookup")
    def lookup(self, request):
        """
        Find a booking for the manage-booking page and tell whether it can
        still be changed.
        """
        serializer = BookingAccessSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = BookingValidators.get_booking_for_contact(
            serializer.validated_data["order_ref"],
            serializer.validated_data["id_number"],
            serializer.validated_data.get("email"),
        )
        can_edit = BookingHelpers.can_modify_booking(
            BookingHelpers.trip_departure(booking.trip)
        )
        return Response(
            {"success": True, "booking": self.get_serializer(booking).data, "can_edit": can_edit}
        )

    @action(detail=False, methods=["post"], url_path="reschedule", url_name="reschedule")
    def reschedule(self, request):
        serializer = RescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = BookingValidators.get_booking_for_contact(
            data["order_ref"], data["id_number"], data.get("email")
        )
        booking = BookingChangeService.reschedule(
            booking,
            data["new_departure_date"],
            data["new_departure_time"],
            data.get("new_return_date"),
            data.get("new_return_time"),
        )
        return Response(
            {
                "success": True,
                "message": "Booking rescheduled successfully.",
                "booking": self.get_serializer(booking).data,
            }
        )

    @action(detail=False, methods=["post"], url_path="addons", url_name="addons")
    def addons(self, request):
        """
        Add an extra to a booking and return a checkout URL for its price.
        """
        serializer = AddonRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = BookingValidators.get_booking_for_contact(
            data["order_ref"], data["id_number"], data.get("email")
        )
        addon = BookingChangeService.add_addon(booking, data["addon"])
        payment = PaymentInitiation.start_addon(booking, addon)
        return Response(
            {"success": True, "addon": addon, "payment_url": payment.payment_url},
            status=status.HTTP_201_CREATED,
        )


class AdminBookingViewSet(AdminOnlyPermissionMixin, FilterableQuerysetMixin,
                          SearchableQuerysetMixin, OrderedQuerysetMixin,
                          viewsets.ReadOnlyModelViewSet):
    """
    Back-office view of all bookings, with cancellation and manual payment
    reconciliation.
    """

    queryset = BookingViewSet.queryset
    serializer_class = BookingSerializer
    lookup_field = "order_ref"
    lookup_value_regex = "[^/]+"
    filter_fields = ["payment_status", "booking_status"]
    search_fields = ["order_ref", "user_name", "user_email"]
    default_ordering = ["-created_at"]

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise NotFoundException(BookingMessage.BOOKING_NOT_FOUND)

    @action(detail=True, methods=["post"], url_path="cancel", url_name="cancel")
    def cancel(self, request, order_ref=None):
        """Cancel the booking and free its seats."""
        booking = BookingChangeService.cancel(self.get_object())
        logger.info(f"Booking {booking.order_ref} cancelled by {request.user}")
        return Response({"success": True, "booking": self.get_serializer(booking).data})

    @action(detail=True, methods=["post"], url_path="mark-paid", url_name="mark-paid")
    def mark_paid(self, request, order_ref=None):
        booking = self.get_object()
        changed = PaymentReconciliation.mark_paid(booking.order_ref)
        logger.info(f"Booking {booking.order_ref} manually marked paid by {request.user}")
        booking.refresh_from_db()
        return Response(
            {"success": True, "changed": changed, "booking": self.get_serializer(booking).data}
        )


class SellerBookingListView(SellerQuerysetMixin, generics.ListAPIView):
    """
    Bookings sold by the logged-in agent or consultant, with their sales totals.
    """

    queryset = BookingViewSet.queryset.order_by("-created_at")
    serializer_class = BookingSerializer
    permission_classes = [IsSeller]

    def list(self, request, *args, **kwargs):
        bookings = list(self.get_queryset())
        return Response(
            {
                "summary": BookingHelpers.sales_summary(bookings, request.user.role_name),
                "bookings": self.get_serializer(bookings, many=True).data,
            }
        )
