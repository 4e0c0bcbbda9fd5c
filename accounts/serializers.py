from rest_framework import serializers
from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from .models import User, Role
from utils.constants import UserMessage
from utils.validators import UserFieldValidators
from exceptions.handlers import InvalidInputException, PermissionDeniedException


class RoleSerializer(serializers.ModelSerializer):
    """Serializer for Role model."""

    class Meta:
        model = Role
        fields = ["id", "name", "description"]


class RegistrationSerializer(serializers.ModelSerializer):
    """
    Serializer for agent and consultant self-registration.

    This serializer handles validation for seller registration including:
    - Duplicate username, email and mobile number checking
    - Password strength and confirmation
    - Restricting the requested role to agent or consultant

    Registered sellers start in the pending state until an admin approves them.
    """

    role = serializers.ChoiceField(choices=["agent", "consultant"], default="agent")
    password = serializers.CharField(write_only=True, min_length=8)
    confirm_password = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = [
            "username",
            "email",
            "mobile_number",
            "password",
            "confirm_password",
            "first_name",
            "last_name",
            "organization",
            "id_number",
            "role",
        ]

    def validate_email(self, value):
        """
        Validates email uniqueness for registration.
        """
        return UserFieldValidators.validate_email_uniqueness(value)

    def validate_mobile_number(self, value):
        """
        Validates mobile number format and uniqueness for registration.
        """
        return UserFieldValidators.validate_mobile_number(value)

    def validate_username(self, value):
        """
        Validates username format and uniqueness for registration.
        """
        return UserFieldValidators.validate_username_uniqueness(value)

    def validate_password(self, value):
        validate_password(value)
        return value

    def validate(self, data):
        """
        Validates password confirmation.
        """
        if data.get("password") != data.pop("confirm_password", None):
            raise InvalidInputException(UserMessage.PASSWORD_NOT_MATCH)
        return data


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for user profile data display.

    This serializer provides user information including:
    - Basic profile fields (username, email, mobile_number, names)
    - Seller fields (organization, approval and suspension state)
    - Read-only fields for system-managed data
    """

    role = RoleSerializer(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "mobile_number",
            "first_name",
            "last_name",
            "organization",
            "id_number",
            "role",
            "approval_status",
            "is_suspended",
            "suspended_at",
            "created_at",
            "last_login",
        ]
        read_only_fields = [
            "username",
            "role",
            "approval_status",
            "is_suspended",
            "suspended_at",
            "created_at",
            "last_login",
        ]


class UpdateProfileSerializer(serializers.ModelSerializer):
    """
    Serializer for user profile updates.

    Provides partial profile updates with uniqueness checks for email and
    mobile number that ignore the user being updated.
    """

    class Meta:
        model = User
        fields = ["first_name", "last_name", "email", "mobile_number", "organization"]

    def validate_email(self, value):
        return UserFieldValidators.validate_email_uniqueness(value, exclude_user=self.instance)

    def validate_mobile_number(self, value):
        return UserFieldValidators.validate_mobile_number(value, exclude_user=self.instance)


class LoginSerializer(serializers.Serializer):
    """
    Serializer for user authentication and login validation.

    This serializer handles user login process including:
    - Username and password field validation
    - User authentication using Django's authenticate function
    - Seller account state checks (pending, declined, suspended)

    Provides comprehensive authentication validation and error handling.
    """

    username = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        """
        Validates user authentication credentials.

        Args:
            data: Dictionary containing username and password

        Returns:
            dict: Validated data with authenticated user object

        Raises:
            serializers.ValidationError: For bad credentials
            PermissionDeniedException: For sellers who may not log in yet
        """
        user = authenticate(username=data.get("username"), password=data.get("password"))
        if not user or not user.is_active:
            raise serializers.ValidationError(UserMessage.INVALID_CREDENTIALS)

        if user.role_name != "admin":
            if user.approval_status != "approved":
                raise PermissionDeniedException(UserMessage.ACCOUNT_NOT_APPROVED)
            if user.is_suspended:
                raise PermissionDeniedException(UserMessage.ACCOUNT_SUSPENDED)

        data["user"] = user
        return data


class ChangePasswordSerializer(serializers.Serializer):
    """
    Serializer for user password change functionality.
    """

    old_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True)

    def validate_new_password(self, value):
        """
        Validates new password using Django's password validators.
        """
        validate_password(value)
        return value


class SellerSalesSerializer(serializers.Serializer):
    total_bookings = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_commission = serializers.DecimalField(max_digits=12, decimal_places=2)
