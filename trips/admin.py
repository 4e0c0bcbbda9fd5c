from django.contrib import admin
from .models import Bus, Trip


@admin.register(Bus)
class BusAdmin(admin.ModelAdmin):
    list_display = ('registration', 'name', 'service_type', 'seat_capacity', 'is_active')
    search_fields = ('registration', 'name')
    list_filter = ('service_type', 'is_active')

    def get_queryset(self, request):
        return Bus.all_objects.all()


@admin.register(Trip)
class TripAdmin(admin.ModelAdmin):
    list_display = ('route_name', 'bus', 'departure_date', 'departure_time', 'fare',
                    'total_seats', 'seats_available', 'is_active')
    search_fields = ('route_name', 'route_origin', 'route_destination', 'bus__registration')
    list_filter = ('departure_date', 'is_active')
    readonly_fields = ('created_at', 'updated_at')

    def get_queryset(self, request):
        return Trip.all_objects.select_related('bus')

    def seats_available(self, obj):
        return obj.available_seats
    seats_available.short_description = 'Available'
