from django.contrib import admin

from .models import SellerProfile, TeamMembership


@admin.register(SellerProfile)
class SellerProfileAdmin(admin.ModelAdmin):
    list_display = ["username", "user", "currency_type", "refunds_disabled", "tipping_enabled"]
    list_filter = ["currency_type", "refunds_disabled"]
    search_fields = ["username", "name", "user__email"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(TeamMembership)
class TeamMembershipAdmin(admin.ModelAdmin):
    list_display = ["user", "seller", "role", "deleted_at", "created_at"]
    list_filter = ["role"]
    search_fields = ["user__email", "seller__email"]
    raw_id_fields = ["user", "seller"]
