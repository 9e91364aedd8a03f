from django.contrib import admin

from .models import Balance, BalanceTransaction, Credit, Payment


class BalanceTransactionInline(admin.TabularInline):
    model = BalanceTransaction
    extra = 0
    fields = ["purchase", "refund", "dispute", "credit", "holding_amount_gross_cents", "holding_amount_net_cents"]
    raw_id_fields = ["purchase", "refund", "dispute", "credit"]


@admin.register(Balance)
class BalanceAdmin(admin.ModelAdmin):
    list_display = ["user", "date", "currency", "amount_cents", "holding_amount_cents", "state"]
    list_filter = ["state", "currency"]
    search_fields = ["user__email", "user__username"]
    date_hierarchy = "date"
    inlines = [BalanceTransactionInline]


@admin.register(Credit)
class CreditAdmin(admin.ModelAdmin):
    list_display = ["user", "amount_cents", "balance", "note", "created_at"]
    search_fields = ["user__email", "note"]
    raw_id_fields = ["balance", "fee_retention_refund", "chargebacked_purchase", "financing_paydown_purchase"]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ["external_id", "user", "amount_cents", "currency", "state", "processor", "payout_period_end_date"]
    list_filter = ["state", "processor", "currency"]
    search_fields = ["external_id", "user__email"]
    readonly_fields = ["external_id", "created_at", "updated_at"]
    filter_horizontal = ["balances"]
