from rest_framework import generics, permissions, viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView
from django.contrib.auth import get_user_model, update_session_auth_hash
from django.utils import timezone
from .serializers import (
    LoginSerializer,
    UserSerializer,
    ChangePasswordSerializer,
    UpdateProfileSerializer,
    RegistrationSerializer,
    SellerSalesSerializer,
)
import logging
from utils.permission_helpers import AdminOnlyPermissionMixin
from utils.queryset_helpers import FilterableQuerysetMixin, SearchableQuerysetMixin
from utils.registration_helpers import SellerAccountHelper
from utils.constants import UserMessage
from exceptions.handlers import InvalidInputException

User = get_user_model()
logger = logging.getLogger("accounts")


class RegistrationView(APIView):
    """
    Self-registration for travel agents and consultants.

    This view manages the registration process including:
    - Field validation (unique username, email and mobile number)
    - Restricting registration to the agent and consultant roles
    - Creating the account in the pending state for admin approval
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        """
        Processes registration requests.

        Args:
            request: HTTP request object containing registration data

        Returns:
            Response: Pending-approval message with the created user
        """
        serializer = RegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = SellerAccountHelper.register_seller(dict(serializer.validated_data))
        return Response(
            {"message": UserMessage.REGISTRATION_PENDING, "user": UserSerializer(user).data},
            status=status.HTTP_201_CREATED,
        )


class LoginView(TokenObtainPairView):
    """
    Handles user authentication and JWT token generation.

    This view extends Django REST Framework's TokenObtainPairView to provide:
    - Username and password authentication
    - Rejection of pending, declined and suspended sellers
    - JWT access and refresh token generation
    - User data serialization in response
    """

    serializer_class = LoginSerializer
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        """
        Processes user login requests.

        Args:
            request: HTTP request object containing login credentials

        Returns:
            Response: JWT tokens and user data for successful authentication
        """
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = serializer.validated_data["user"]
        user.last_login = timezone.now()
        user.save(update_fields=["last_login"])
        logger.info(f"User logged in: {user.username}")

        refresh = RefreshToken.for_user(user)
        return Response({
            "tokens": {
                "refresh": str(refresh),
                "access": str(refresh.access_token),
            },
            "user": UserSerializer(user).data,
        })


class ProfileView(generics.RetrieveUpdateAPIView):
    """
    Current user's profile: GET to read, PUT to update.
    """

    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user

    def put(self, request, *args, **kwargs):
        """
        Updates current user's profile information.

        Args:
            request: HTTP request object containing updated profile data

        Returns:
            Response: Updated user profile data
        """
        user = self.get_object()
        serializer = UpdateProfileSerializer(
            user, data=request.data, partial=True, context={"request": request}
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()

        return Response(UserSerializer(user).data)


class ChangePasswordView(APIView):
    """
    Handles user password change functionality.
    """

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = request.user
        if not user.check_password(serializer.validated_data["old_password"]):
            raise InvalidInputException(UserMessage.CURRENT_PASSWORD_INCORRECT)

        user.set_password(serializer.validated_data["new_password"])
        user.save()
        update_session_auth_hash(request, user)
        logger.info(f"Password changed for {user.username}")

        return Response({"message": UserMessage.PASSWORD_CHANGED_SUCCESS})


class SellerAdminViewSet(AdminOnlyPermissionMixin, FilterableQuerysetMixin,
                         SearchableQuerysetMixin, viewsets.ReadOnlyModelViewSet):
    """
    Admin panel for agents and consultants.

    Lists sellers (filterable by approval status and role) and exposes the
    approval, suspension and sales-report actions.
    """

    queryset = User.objects.select_related("role").filter(
        role__name__in=["agent", "consultant"]
    ).order_by("-created_at")
    serializer_class = UserSerializer
    filter_fields = ["approval_status"]
    search_fields = ["username", "email", "organization"]

    def get_queryset(self):
        queryset = super().get_queryset()
        role = self.request.query_params.get("role")
        if role:
            queryset = queryset.filter(role__name=role)
        return queryset

    def _respond(self, seller, message):
        return Response({"message": message, "user": UserSerializer(seller).data})

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        seller = SellerAccountHelper.approve(pk, request.user)
        return self._respond(seller, UserMessage.SELLER_APPROVED)

    @action(detail=True, methods=["post"])
    def decline(self, request, pk=None):
        seller = SellerAccountHelper.decline(pk, request.user)
        return self._respond(seller, UserMessage.SELLER_DECLINED)

    @action(detail=True, methods=["post"])
    def suspend(self, request, pk=None):
        seller = SellerAccountHelper.suspend(pk, request.user)
        return self._respond(seller, UserMessage.SELLER_SUSPENDED)

    @action(detail=True, methods=["post"])
    def unsuspend(self, request, pk=None):
        seller = SellerAccountHelper.unsuspend(pk, request.user)
        return self._respond(seller, UserMessage.SELLER_REINSTATED)

    @action(detail=True, methods=["get"])
    def sales(self, request, pk=None):
        """
        Paid bookings, revenue and commission for one seller.
        """
        seller = self.get_object()
        summary = SellerAccountHelper.sales(seller)
        return Response(
            {"user": UserSerializer(seller).data, "sales": SellerSalesSerializer(summary).data}
        )
