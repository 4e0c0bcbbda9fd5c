from decimal import Decimal
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APITestCase
from rest_framework import status
from django.contrib.auth import get_user_model
from .models import Role
from trips.models import Bus, Trip
from bookingsystem.models import Booking
from django.utils import timezone
from datetime import timedelta

User = get_user_model()


def make_user(username, role_name, approval_status="approved", **extra):
    role, _ = Role.objects.get_or_create(name=role_name)
    return User.objects.create_user(
        username=username,
        email=extra.pop("email", f"{username}@example.com"),
        password="testpass123",
        mobile_number=extra.pop("mobile_number", "26771000000"),
        role=role,
        approval_status=approval_status,
        **extra,
    )


class RoleModelTest(TestCase):
    """Test cases for Role model."""

    def test_default_roles_created_after_migrate(self):
        """Test that the post_migrate signal seeds admin, agent and consultant."""
        names = set(Role.objects.values_list("name", flat=True))
        self.assertTrue({"admin", "agent", "consultant"}.issubset(names))

    def test_role_str_representation(self):
        """Test the string representation of role."""
        role = Role.objects.get(name="agent")
        self.assertEqual(str(role), "agent")


class UserModelTest(TestCase):
    """Test cases for role-derived user properties."""

    def test_admin_is_staff_and_superuser(self):
        """Test that the admin role drives staff and superuser status."""
        admin = make_user("adminuser", "admin")
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_superuser)
        self.assertFalse(admin.can_sell)

    def test_can_sell_requires_approved_unsuspended_seller(self):
        """Test can_sell for pending, approved and suspended agents."""
        agent = make_user("agentone", "agent", approval_status="pending")
        self.assertFalse(agent.can_sell)
        agent.approval_status = "approved"
        self.assertTrue(agent.can_sell)
        agent.is_suspended = True
        self.assertFalse(agent.can_sell)

    def test_user_str_representation(self):
        """Test the string representation includes the role."""
        agent = make_user("agenttwo", "agent")
        self.assertEqual(str(agent), "agenttwo (agent)")


class RegistrationAPITest(APITestCase):
    """Test cases for agent and consultant registration."""

    def setUp(self):
        self.url = reverse("register")
        self.data = {
            "username": "travelco",
            "email": "agent@travelco.com",
            "mobile_number": "+26771234567",
            "password": "strongpass123",
            "confirm_password": "strongpass123",
            "first_name": "Kabo",
            "last_name": "Molefe",
            "organization": "TravelCo",
            "role": "agent",
        }

    def test_registration_creates_pending_agent(self):
        """Test that registration creates a pending agent account."""
        response = self.client.post(self.url, self.data, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(username="travelco")
        self.assertEqual(user.role_name, "agent")
        self.assertEqual(user.approval_status, "pending")
        self.assertEqual(user.mobile_number, "26771234567")
        self.assertTrue(user.check_password("strongpass123"))

    def test_registration_as_admin_rejected(self):
        """Test that the admin role cannot be self-registered."""
        self.data["role"] = "admin"
        response = self.client.post(self.url, self.data, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(username="travelco").exists())

    def test_registration_password_mismatch(self):
        """Test registration with mismatched passwords."""
        self.data["confirm_password"] = "different123"
        response = self.client.post(self.url, self.data, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_registration_duplicate_email(self):
        """Test registration with an email that is already in use."""
        make_user("existing", "agent", email="agent@travelco.com")
        response = self.client.post(self.url, self.data, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)


class LoginAPITest(APITestCase):
    """Test cases for login and seller account state checks."""

    def setUp(self):
        self.url = reverse("login")

    def test_login_approved_agent(self):
        """Test login returns tokens and user data for an approved agent."""
        make_user("approvedagent", "agent")
        response = self.client.post(
            self.url, {"username": "approvedagent", "password": "testpass123"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data["tokens"])
        self.assertEqual(response.data["user"]["username"], "approvedagent")

    def test_login_pending_agent_forbidden(self):
        """Test that a pending agent cannot log in."""
        make_user("pendingagent", "agent", approval_status="pending")
        response = self.client.post(
            self.url, {"username": "pendingagent", "password": "testpass123"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_login_suspended_agent_forbidden(self):
        """Test that a suspended agent cannot log in."""
        make_user("suspendedagent", "agent", is_suspended=True)
        response = self.client.post(
            self.url, {"username": "suspendedagent", "password": "testpass123"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_login_wrong_password(self):
        """Test login with invalid credentials."""
        make_user("someagent", "agent")
        response = self.client.post(
            self.url, {"username": "someagent", "password": "wrongpass"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ProfileAPITest(APITestCase):
    """Test cases for profile retrieval and update."""

    def setUp(self):
        self.user = make_user("profileagent", "agent")
        self.client.force_authenticate(user=self.user)

    def test_get_profile(self):
        """Test retrieving the current user's profile."""
        response = self.client.get(reverse("profile"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["username"], "profileagent")
        self.assertEqual(response.data["role"]["name"], "agent")

    def test_update_profile(self):
        """Test updating organization and name."""
        response = self.client.put(
            reverse("profile"),
            {"organization": "New Travel", "first_name": "Neo"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.organization, "New Travel")
        self.assertEqual(self.user.first_name, "Neo")

    def test_change_password_wrong_current(self):
        """Test password change with an incorrect current password."""
        response = self.client.post(
            reverse("change-password"),
            {"old_password": "nottheone", "new_password": "anotherpass123"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class SellerAdminAPITest(APITestCase):
    """Test cases for the admin agent panel."""

    def setUp(self):
        self.admin = make_user("adminuser", "admin")
        self.pending = make_user("pendingagent", "agent", approval_status="pending",
                                 mobile_number="26772000000")
        self.agent = make_user("activeagent", "agent", mobile_number="26773000000")
        self.client.force_authenticate(user=self.admin)

    def test_list_filters_by_approval_status(self):
        """Test listing only pending sellers."""
        response = self.client.get(
            reverse("admin-agents-list"), {"approval_status": "pending"}
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        usernames = [user["username"] for user in response.data]
        self.assertEqual(usernames, ["pendingagent"])

    def test_approve_pending_agent(self):
        """Test approving a pending agent."""
        response = self.client.post(reverse("admin-agents-approve", args=[self.pending.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.approval_status, "approved")

    def test_approve_already_processed_agent(self):
        """Test that an approved agent cannot be approved again."""
        response = self.client.post(reverse("admin-agents-approve", args=[self.agent.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_decline_pending_agent(self):
        """Test declining a pending agent."""
        response = self.client.post(reverse("admin-agents-decline", args=[self.pending.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.approval_status, "declined")

    def test_suspend_and_unsuspend(self):
        """Test suspending and reinstating an agent."""
        response = self.client.post(reverse("admin-agents-suspend", args=[self.agent.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.agent.refresh_from_db()
        self.assertTrue(self.agent.is_suspended)
        self.assertIsNotNone(self.agent.suspended_at)

        response = self.client.post(reverse("admin-agents-suspend", args=[self.agent.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(reverse("admin-agents-unsuspend", args=[self.agent.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.agent.refresh_from_db()
        self.assertFalse(self.agent.is_suspended)

    def test_sales_report_counts_paid_bookings(self):
        """Test that sales totals include only paid bookings with agent commission."""
        bus = Bus.objects.create(name="Coach 1", registration="B123ABC", seat_capacity=40)
        trip = Trip.objects.create(
            bus=bus,
            route_name="Gaborone - Francistown",
            route_origin="Gaborone",
            route_destination="Francistown",
            departure_date=(timezone.now() + timedelta(days=5)).date(),
            departure_time="08:00",
            fare=Decimal("200.00"),
            total_seats=40,
        )
        for ref, payment_status in (("AG-1", "paid"), ("AG-2", "pending")):
            Booking.objects.create(
                order_ref=ref,
                trip=trip,
                agent=self.agent,
                user_name="Customer",
                user_email="customer@example.com",
                boarding_point="Main Rank",
                dropping_point="Station",
                seats=["1A"],
                seat_count=1,
                total_price=Decimal("180.00"),
                payment_status=payment_status,
            )

        response = self.client.get(reverse("admin-agents-sales", args=[self.agent.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["sales"]["total_bookings"], 1)
        self.assertEqual(Decimal(response.data["sales"]["total_revenue"]), Decimal("180.00"))
        self.assertEqual(Decimal(response.data["sales"]["total_commission"]), Decimal("20.00"))

    def test_non_admin_forbidden(self):
        """Test that agents cannot access the admin panel."""
        self.client.force_authenticate(user=self.agent)
        response = self.client.get(reverse("admin-agents-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
