from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import DPOVerifyView, PaymentTransactionViewSet, StripeWebhookView

router = DefaultRouter()
router.register(r"admin/payments", PaymentTransactionViewSet, basename="admin-payments")

urlpatterns = [
    path("api/payments/stripe/webhook/", StripeWebhookView.as_view(), name="stripe-webhook"),
    path("api/payments/dpo/verify/", DPOVerifyView.as_view(), name="dpo-verify"),
    path("api/", include(router.urls)),
]
