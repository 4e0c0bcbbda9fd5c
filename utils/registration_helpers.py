from django.contrib.auth import get_user_model
from django.db.models import Q
from django.utils import timezone
from accounts.models import Role
from bookingsystem.models import Booking
from utils.booking_helpers import BookingHelpers
from utils.constants import UserMessage
from utils.validators import SellerValidators
from exceptions.handlers import InvalidInputException
import logging

User = get_user_model()
logger = logging.getLogger("accounts")


class SellerAccountHelper:
    """
    Centralized agent and consultant account lifecycle: registration,
    approval, suspension and sales reporting.
    """

    @staticmethod
    def register_seller(validated_data):
        """
        Create a pending agent or consultant account.

        Args:
            validated_data (dict): Validated registration data including ``role``

        Returns:
            User: Newly created user awaiting approval
        """
        role_name = validated_data.pop("role")
        role, _ = Role.objects.get_or_create(name=role_name)
        password = validated_data.pop("password")
        user = User.objects.create_user(
            password=password,
            role=role,
            approval_status="pending",
            **validated_data,
        )
        logger.info(f"{role_name.title()} registration received: {user.username}")
        return user

    @staticmethod
    def approve(pk, admin_user):
        seller = SellerValidators.get_seller_or_404(pk)
        SellerValidators.validate_pending(seller)
        seller.approval_status = "approved"
        seller.save(update_fields=["approval_status"])
        logger.info(f"Seller {seller.username} approved by {admin_user}")
        return seller

    @staticmethod
    def decline(pk, admin_user):
        seller = SellerValidators.get_seller_or_404(pk)
        SellerValidators.validate_pending(seller)
        seller.approval_status = "declined"
        seller.save(update_fields=["approval_status"])
        logger.info(f"Seller {seller.username} declined by {admin_user}")
        return seller

    @staticmethod
    def suspend(pk, admin_user):
        """
        Suspend an approved seller. Existing bookings are untouched.
        """
        seller = SellerValidators.get_seller_or_404(pk)
        if seller.is_suspended:
            raise InvalidInputException(UserMessage.AGENT_ALREADY_SUSPENDED)
        seller.is_suspended = True
        seller.suspended_at = timezone.now()
        seller.save(update_fields=["is_suspended", "suspended_at"])
        logger.info(f"Seller {seller.username} suspended by {admin_user}")
        return seller

    @staticmethod
    def unsuspend(pk, admin_user):
        seller = SellerValidators.get_seller_or_404(pk)
        if not seller.is_suspended:
            raise InvalidInputException(UserMessage.AGENT_NOT_SUSPENDED)
        seller.is_suspended = False
        seller.suspended_at = None
        seller.save(update_fields=["is_suspended", "suspended_at"])
        logger.info(f"Seller {seller.username} reinstated by {admin_user}")
        return seller

    @staticmethod
    def sales(seller):
        """
        Paid-booking totals and commission for one seller.

        Returns:
            dict: total_bookings, total_revenue, total_commission
        """
        bookings = Booking.objects.filter(
            Q(agent=seller) | Q(consultant=seller), payment_status="paid"
        ).only("total_price", "payment_status")
        return BookingHelpers.sales_summary(bookings, seller.role_name)
