from django.db import models
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.utils import timezone
from utils.constants import Choices


class Role(models.Model):
    """
    Back-office role assigned to a user.

    Three roles exist: admin (full back office), agent and consultant
    (sell tickets at a discount and earn commission).
    """

    name = models.CharField(max_length=50, unique=True, choices=Choices.ROLE_CHOICES)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


class CustomUserManager(BaseUserManager):
    """
    User manager that lets role drive staff/superuser status.
    """

    def create_user(self, username, email=None, password=None, **extra_fields):
        """
        Create and save a user with the given username, email, and password.
        Validation is handled by serializers, this method focuses on user creation.
        """
        if not username:
            raise ValueError("The given username must be set")
        email = self.normalize_email(email)
        username = self.model.normalize_username(username)

        user = self.model(username=username, email=email, **extra_fields)
        user.set_password(password)
        user.save()
        return user

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        """
        Create and save an approved admin user.
        """
        extra_fields.setdefault("is_active", True)
        extra_fields.setdefault("approval_status", "approved")
        if "role" not in extra_fields:
            extra_fields["role"], _ = Role.objects.get_or_create(name="admin")

        return self.create_user(username, email, password, **extra_fields)


class User(AbstractUser):
    """
    Back-office user: admins, travel agents and consultants.

    Agents and consultants register themselves and stay pending until an
    admin approves them. An approved seller can be suspended and later
    reinstated; suspended sellers cannot log in or sell.
    """
    email = models.EmailField()
    mobile_number = models.CharField(max_length=15)
    organization = models.CharField(max_length=150, blank=True)
    id_number = models.CharField(max_length=50, blank=True)
    role = models.ForeignKey(Role, on_delete=models.PROTECT, null=True, blank=True)
    approval_status = models.CharField(
        max_length=20, choices=Choices.APPROVAL_STATUS_CHOICES, default="pending"
    )
    is_suspended = models.BooleanField(default=False)
    suspended_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    REQUIRED_FIELDS = ["email", "mobile_number"]
    USERNAME_FIELD = "username"

    objects = CustomUserManager()

    class Meta:
        db_table = "users"

    @property
    def role_name(self):
        return self.role.name if self.role else None

    @property
    def is_staff(self):
        """
        Only admins get into the Django admin site.
        """
        return self.role_name == "admin"

    @property
    def is_superuser(self):
        return self.role_name == "admin"

    @property
    def can_sell(self):
        """
        True for approved, unsuspended agents and consultants.
        """
        return (
            self.role_name in ("agent", "consultant")
            and self.approval_status == "approved"
            and not self.is_suspended
        )

    def __str__(self):
        role_name = self.role_name or "No Role"
        return f"{self.username} ({role_name})"
