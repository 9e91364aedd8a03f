from django.contrib import admin

from .models import UtmLink, UtmLinkDrivenSale


class UtmLinkDrivenSaleInline(admin.TabularInline):
    model = UtmLinkDrivenSale
    extra = 0
    raw_id_fields = ["purchase"]
    readonly_fields = ["created_at"]


@admin.register(UtmLink)
class UtmLinkAdmin(admin.ModelAdmin):
    list_display = ["title", "seller", "utm_source", "utm_medium", "utm_campaign", "unique_clicks", "deleted_at"]
    list_filter = ["target_resource_type", "utm_medium"]
    search_fields = ["title", "permalink", "utm_source", "utm_campaign", "seller__email"]
    readonly_fields = ["external_id", "created_at", "updated_at"]
    inlines = [UtmLinkDrivenSaleInline]


@admin.register(UtmLinkDrivenSale)
class UtmLinkDrivenSaleAdmin(admin.ModelAdmin):
    list_display = ["utm_link", "purchase", "created_at"]
    raw_id_fields = ["utm_link", "purchase"]
