import logging
from django.db import transaction
from django.utils import timezone
from bookingsystem.models import Booking
from payment.models import PaymentTransaction
from payment.gateways import GatewayError, GatewayRejected, GatewayUnavailable, get_gateway
from utils.constants import BookingMessage, PaymentMessage, PaymentStatus
from exceptions.handlers import NotFoundException, PaymentGatewayException

logger = logging.getLogger("payment")


class PaymentReconciliation:
    """
    Applies payment outcomes reported by gateways to bookings.

    Every update is a single conditional statement, so duplicate and
    out-of-order deliveries are harmless. ``paid`` is terminal: a late
    failure report never downgrades it, while a late success does override
    an earlier failure.
    """

    @staticmethod
    def _get_booking_id(order_ref):
        booking_id = (
            Booking.objects.filter(order_ref=order_ref).values_list("id", flat=True).first()
        )
        if booking_id is None:
            logger.warning(f"Payment outcome for unknown order {order_ref}")
            raise NotFoundException(BookingMessage.BOOKING_NOT_FOUND)
        return booking_id

    @staticmethod
    def mark_paid(order_ref, reference=None, raw=None):
        """
        Mark a booking paid.

        Args:
            order_ref (str): Order reference of the booking
            reference (str, optional): Gateway reference of the paying transaction
            raw (dict, optional): Gateway payload kept on the transaction

        Returns:
            bool: True if this call moved the booking to paid

        Raises:
            NotFoundException: If no booking has this order reference
        """
        now = timezone.now()
        with transaction.atomic():
            booking_id = PaymentReconciliation._get_booking_id(order_ref)
            changed = (
                Booking.objects.filter(pk=booking_id)
                .exclude(payment_status=PaymentStatus.PAID)
                .update(payment_status=PaymentStatus.PAID, updated_at=now)
            )
            already_settled = PaymentTransaction.objects.filter(
                booking_id=booking_id, purpose="booking", status="paid"
            ).exists()
            if reference and not already_settled:
                PaymentTransaction.objects.filter(
                    booking_id=booking_id, purpose="booking", reference=reference
                ).update(
                    status="paid", paid_at=now, raw_result=raw or {}, updated_at=now
                )

        if changed:
            logger.info(f"Booking {order_ref} marked paid (reference={reference})")
        else:
            logger.info(f"Booking {order_ref} already paid, ignoring duplicate notification")
        return bool(changed)

    @staticmethod
    def mark_failed(order_ref, reference=None, raw=None):
        """
        Mark a booking's payment failed unless it has already been paid.

        Returns:
            bool: True if this call moved the booking to failed
        """
        now = timezone.now()
        with transaction.atomic():
            booking_id = PaymentReconciliation._get_booking_id(order_ref)
            changed = Booking.objects.filter(
                pk=booking_id,
                payment_status__in=[PaymentStatus.PENDING, PaymentStatus.INITIATED],
            ).update(payment_status=PaymentStatus.FAILED, updated_at=now)
            if reference:
                PaymentTransaction.objects.filter(
                    booking_id=booking_id, reference=reference, status="initiated"
                ).update(status="failed", raw_result=raw or {}, updated_at=now)

        if changed:
            logger.info(f"Booking {order_ref} marked failed (reference={reference})")
        else:
            logger.info(f"Booking {order_ref} not moved to failed, already settled")
        return bool(changed)

    @staticmethod
    def mark_addon_paid(order_ref, index, reference=None):
        """
        Mark one add-on of a booking paid. Repeat calls are no-ops.
        """
        now = timezone.now()
        with transaction.atomic():
            booking = Booking.objects.select_for_update().filter(order_ref=order_ref).first()
            if booking is None:
                raise NotFoundException(BookingMessage.BOOKING_NOT_FOUND)
            addons = list(booking.addons or [])
            if not 0 <= index < len(addons):
                logger.warning(f"Add-on {index} not found on booking {order_ref}")
                return False
            if addons[index].get("payment_status") == PaymentStatus.PAID:
                return False
            addons[index] = {**addons[index], "payment_status": PaymentStatus.PAID}
            booking.addons = addons
            booking.save(update_fields=["addons", "updated_at"])
            if reference:
                PaymentTransaction.objects.filter(
                    booking=booking, purpose="addon", reference=reference
                ).exclude(status="paid").update(status="paid", paid_at=now, updated_at=now)
        logger.info(f"Add-on {index} of booking {order_ref} marked paid")
        return True

    @staticmethod
    def apply_outcome(outcome):
        """
        Route a gateway outcome to the matching update.

        Returns:
            bool: Whether anything changed
        """
        if outcome.status is None:
            return False
        metadata = outcome.raw.get("metadata", {})
        if metadata.get("purpose") == "addon":
            if outcome.status != PaymentStatus.PAID:
                return False
            try:
                index = int(metadata.get("addonIndex", -1))
            except (TypeError, ValueError):
                logger.warning(
                    f"Add-on {metadata.get('addonIndex')!r} not found on booking {outcome.order_ref}"
                )
                return False
            return PaymentReconciliation.mark_addon_paid(
                outcome.order_ref, index, outcome.reference
            )
        if outcome.status == PaymentStatus.PAID:
            return PaymentReconciliation.mark_paid(
                outcome.order_ref, outcome.reference, outcome.raw
            )
        return PaymentReconciliation.mark_failed(
            outcome.order_ref, outcome.reference, outcome.raw
        )


class PaymentInitiation:
    """
    Opens hosted payment pages. Always called after the booking transaction
    has committed.
    """

    @staticmethod
    def start(booking, gateway_name="stripe"):
        """
        Get a payment page for a booking, creating one at the gateway if the
        booking has none open yet.

        Args:
            booking (Booking): Committed booking
            gateway_name (str): ``stripe`` or ``dpo``

        Returns:
            PaymentTransaction or None: None when the booking is already paid

        Raises:
            PaymentGatewayException: The gateway is down (booking stays
                pending) or refused the request (booking becomes failed)
        """
        if booking.payment_status == PaymentStatus.PAID:
            return None

        existing = (
            booking.payments.filter(purpose="booking", gateway=gateway_name, status="initiated")
            .exclude(payment_url="")
            .first()
        )
        if existing is not None:
            logger.info(f"Reusing open {gateway_name} payment for {booking.order_ref}")
            return existing

        gateway = get_gateway(gateway_name)
        try:
            hosted = gateway.create_payment(
                booking.order_ref,
                booking.total_price,
                f"Bus ticket {booking.order_ref}",
                idempotency_key=f"checkout-{booking.order_ref}",
                email=booking.user_email,
                customer={"name": booking.user_name, "phone": booking.user_phone},
            )
        except GatewayUnavailable:
            logger.error(f"Payment gateway {gateway_name} unavailable, {booking.order_ref} left pending")
            raise PaymentGatewayException()
        except GatewayRejected as exc:
            PaymentReconciliation.mark_failed(booking.order_ref)
            raise PaymentGatewayException(f"{PaymentMessage.GATEWAY_REJECTED} {exc}".strip())

        payment, _ = PaymentTransaction.objects.get_or_create(
            gateway=gateway_name,
            reference=hosted.reference,
            defaults={
                "booking": booking,
                "purpose": "booking",
                "payment_url": hosted.url,
                "amount": booking.total_price,
                "raw_result": hosted.raw,
            },
        )
        Booking.objects.filter(
            pk=booking.pk,
            payment_status__in=[PaymentStatus.PENDING, PaymentStatus.FAILED],
        ).update(payment_status=PaymentStatus.INITIATED, updated_at=timezone.now())
        logger.info(f"Payment {payment.reference} initiated for {booking.order_ref} via {gateway_name}")
        return payment

    @staticmethod
    def start_addon(booking, addon):
        """
        Open a Stripe checkout for one add-on of a booking.

        Args:
            booking (Booking): Booking the add-on belongs to
            addon (dict): Stored add-on entry including its ``index``

        Returns:
            PaymentTransaction: Add-on payment with its checkout URL
        """
        gateway = get_gateway("stripe")
        try:
            hosted = gateway.create_payment(
                booking.order_ref,
                addon["price"],
                f"Add-on: {addon['name']}",
                idempotency_key=f"addon-{booking.order_ref}-{addon['index']}",
                email=booking.user_email,
                metadata={"purpose": "addon", "addonIndex": str(addon["index"])},
                success_path="/manage-booking/success",
                cancel_path="/manage-booking",
            )
        except GatewayError as exc:
            logger.error(f"Add-on checkout failed for {booking.order_ref}: {exc}")
            raise PaymentGatewayException()

        payment, _ = PaymentTransaction.objects.get_or_create(
            gateway="stripe",
            reference=hosted.reference,
            defaults={
                "booking": booking,
                "purpose": "addon",
                "payment_url": hosted.url,
                "amount": addon["price"],
                "raw_result": hosted.raw,
            },
        )
        return payment
