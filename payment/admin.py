from django.contrib import admin
from .models import PaymentTransaction


@admin.register(PaymentTransaction)
class PaymentTransactionAdmin(admin.ModelAdmin):
    list_display = ['id', 'booking', 'gateway', 'purpose', 'reference', 'amount', 'status', 'paid_at', 'created_at']
    list_filter = ['gateway', 'purpose', 'status', 'created_at']
    search_fields = ['reference', 'booking__order_ref']
    readonly_fields = ['raw_result', 'created_at', 'updated_at']
    ordering = ['-created_at']
