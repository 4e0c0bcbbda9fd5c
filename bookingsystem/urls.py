from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import AdminBookingViewSet, BookingViewSet, SellerBookingListView

router = DefaultRouter()
router.register(r'bookings', BookingViewSet, basename='booking')
router.register(r'admin/bookings', AdminBookingViewSet, basename='admin-bookings')

urlpatterns = [
    path('api/agent/bookings/', SellerBookingListView.as_view(), name='seller-bookings'),
    path('api/', include(router.urls)),
]
