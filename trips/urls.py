from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import BusViewSet, TripViewSet, PublicTripViewSet

router = DefaultRouter()
router.register(r'admin/fleet', BusViewSet, basename='admin-fleet')
router.register(r'admin/trips', TripViewSet, basename='admin-trips')
router.register(r'trips', PublicTripViewSet, basename='trips')

urlpatterns = [
    path('api/', include(router.urls)),
]
