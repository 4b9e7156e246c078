from django.contrib import admin

from .models import AccountProfile


@admin.register(AccountProfile)
class AccountProfileAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "role", "phone", "full_name", "locked_until", "created_at")
    search_fields = ("phone", "full_name", "user__username", "user__email")
    list_filter = ("role",)
    list_select_related = ("user",)
