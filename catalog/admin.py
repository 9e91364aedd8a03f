from django.contrib import admin

from .models import Price, Product, Variant


class VariantInline(admin.TabularInline):
    model = Variant
    extra = 0
    fields = ["name", "price_difference_cents", "max_purchase_count", "position", "deleted_at"]


class PriceInline(admin.TabularInline):
    model = Price
    extra = 0
    fields = ["variant", "recurrence", "price_cents", "deleted_at"]


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ["name", "seller", "native_type", "price_cents", "draft", "archived", "created_at"]
    list_filter = ["native_type", "is_recurring_billing", "draft", "archived"]
    search_fields = ["name", "unique_permalink", "custom_permalink", "seller__username"]
    readonly_fields = ["external_id", "created_at", "updated_at"]
    inlines = [VariantInline, PriceInline]

    fieldsets = (
        ("Basics", {"fields": ("seller", "name", "unique_permalink", "custom_permalink", "description", "native_type")}),
        (
            "Pricing",
            {
                "fields": (
                    "price_cents",
                    "price_currency_type",
                    "customizable_price",
                    "suggested_price_cents",
                    "is_recurring_billing",
                    "subscription_duration",
                    "is_tiered_membership",
                )
            },
        ),
        (
            "Inventory & status",
            {
                "fields": (
                    "max_purchase_count",
                    "quantity_enabled",
                    "require_shipping",
                    "should_show_sales_count",
                    "draft",
                    "archived",
                    "purchase_disabled_at",
                    "deleted_at",
                )
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("external_id", "created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )
