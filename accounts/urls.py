from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView
from .views import (
    RegistrationView,
    LoginView,
    ProfileView,
    ChangePasswordView,
    SellerAdminViewSet,
)

router = DefaultRouter()
router.register(r"admin/agents", SellerAdminViewSet, basename="admin-agents")

urlpatterns = [
    # Agent and consultant registration
    path("api/auth/register/", RegistrationView.as_view(), name="register"),

    # Authentication
    path("api/auth/login/", LoginView.as_view(), name="login"),
    path("api/auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),

    # Profile
    path("api/profile/", ProfileView.as_view(), name="profile"),
    path("api/profile/change-password/", ChangePasswordView.as_view(), name="change-password"),

    # Admin agent panel
    path("api/", include(router.urls)),
]
