from django.contrib import admin

from .models import (
    Affiliate,
    AffiliateCredit,
    Dispute,
    ProductAffiliate,
    Purchase,
    Refund,
    Subscription,
)


class ProductAffiliateInline(admin.TabularInline):
    model = ProductAffiliate
    extra = 0
    fields = ["product", "affiliate_basis_points"]


class RefundInline(admin.TabularInline):
    model = Refund
    extra = 0
    fields = ["amount_cents", "fee_cents", "platform_tax_cents", "total_transaction_cents", "status", "created_at"]
    readonly_fields = ["created_at"]


@admin.register(Affiliate)
class AffiliateAdmin(admin.ModelAdmin):
    list_display = ["affiliate_user", "seller", "affiliate_type", "affiliate_basis_points", "deleted_at"]
    list_filter = ["affiliate_type"]
    search_fields = ["affiliate_user__email", "seller__email"]
    inlines = [ProductAffiliateInline]


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ["external_id", "product", "subscriber", "recurrence", "price_cents", "cancelled_at", "ended_at"]
    list_filter = ["recurrence", "is_installment_plan"]
    search_fields = ["external_id", "subscriber__email", "product__name"]
    readonly_fields = ["external_id", "created_at", "updated_at"]


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = [
        "external_id",
        "product",
        "email",
        "price_cents",
        "purchase_state",
        "charge_processor_id",
        "stripe_refunded",
        "created_at",
    ]
    list_filter = [
        "purchase_state",
        "charge_processor_id",
        "via_stripe_connect",
        "via_paypal_connect",
        "stripe_refunded",
        "stripe_partially_refunded",
    ]
    search_fields = ["external_id", "email", "full_name", "stripe_transaction_id"]
    readonly_fields = ["external_id", "created_at", "updated_at"]
    date_hierarchy = "created_at"
    inlines = [RefundInline]


@admin.register(Refund)
class RefundAdmin(admin.ModelAdmin):
    list_display = ["purchase", "amount_cents", "fee_cents", "total_transaction_cents", "status", "created_at"]
    search_fields = ["purchase__external_id", "processor_refund_id"]
    readonly_fields = ["external_id", "created_at", "updated_at"]


@admin.register(Dispute)
class DisputeAdmin(admin.ModelAdmin):
    list_display = ["purchase", "state", "amount_cents", "initiated_at", "won_at", "lost_at"]
    list_filter = ["state"]
    search_fields = ["purchase__external_id", "charge_processor_dispute_id"]


@admin.register(AffiliateCredit)
class AffiliateCreditAdmin(admin.ModelAdmin):
    list_display = ["purchase", "affiliate_user", "amount_cents", "basis_point", "created_at"]
    search_fields = ["purchase__external_id", "affiliate_user__email"]
