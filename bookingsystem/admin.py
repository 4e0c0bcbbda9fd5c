from django.contrib import admin
from .models import Booking, Passenger


class PassengerInline(admin.TabularInline):
    model = Passenger
    extra = 0
    readonly_fields = ['trip', 'seat_number', 'is_return', 'seat_released', 'created_at']


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['order_ref', 'user_name', 'user_email', 'trip', 'seat_count',
                    'total_price', 'payment_status', 'booking_status', 'created_at']
    list_filter = ['payment_status', 'booking_status', 'created_at']
    search_fields = ['order_ref', 'user_name', 'user_email', 'contact_id_number']
    readonly_fields = ['order_ref', 'seats', 'return_seats', 'created_at', 'updated_at']
    inlines = [PassengerInline]
    ordering = ['-created_at']


@admin.register(Passenger)
class PassengerAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'booking', 'trip', 'seat_number', 'is_return', 'seat_released']
    list_filter = ['is_return', 'seat_released', 'passenger_type']
    search_fields = ['first_name', 'last_name', 'booking__order_ref']
    readonly_fields = ['created_at']
    ordering = ['booking', 'seat_number']
