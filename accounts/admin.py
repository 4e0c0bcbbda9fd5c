from django.contrib import admin
from .models import User, Role


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("username", "email", "role", "approval_status", "is_suspended", "created_at")
    list_filter = ("role", "approval_status", "is_suspended")
    search_fields = ("username", "email", "organization")


admin.site.register(Role)
