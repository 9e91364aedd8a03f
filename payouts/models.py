"""
Payout Models - Creator Platform

Ledger tables behind the balance page and the payout reports.

Models:
- Balance: a seller's daily bucket per currency; payouts drain unpaid balances
- BalanceTransaction: one movement (sale, refund, dispute, credit) into a balance
- Credit: manual or system credit/debit on a seller account
- Payment: a payout to the seller's bank or PayPal account

Author: CP Development Team
Version: 1.0.0
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models import ExternalIdModel


class BalanceQuerySet(models.QuerySet):
    def unpaid(self):
        return self.filter(state=Balance.UNPAID)


class Balance(models.Model):
    UNPAID = "unpaid"
    PROCESSING = "processing"
    PAID = "paid"
    STATE_CHOICES = [
        (UNPAID, "Unpaid"),
        (PROCESSING, "Processing"),
        (PAID, "Paid"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="balances"
    )
    date = models.DateField(default=timezone.localdate)
    currency = models.CharField(max_length=3, default="usd")
    amount_cents = models.IntegerField(default=0)
    holding_currency = models.CharField(max_length=3, default="usd")
    holding_amount_cents = models.IntegerField(default=0)
    state = models.CharField(max_length=16, choices=STATE_CHOICES, default=UNPAID, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = BalanceQuerySet.as_manager()

    class Meta:
        verbose_name = "Balance"
        verbose_name_plural = "Balances"
        ordering = ["date", "id"]

    def __str__(self):
        return f"Balance {self.user_id} {self.date} {self.amount_cents} {self.currency}"


class BalanceTransaction(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="balance_transactions"
    )
    balance = models.ForeignKey(
        Balance,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="balance_transactions",
    )
    purchase = models.ForeignKey(
        "sales.Purchase", on_delete=models.SET_NULL, null=True, blank=True, related_name="balance_transactions"
    )
    refund = models.ForeignKey(
        "sales.Refund", on_delete=models.SET_NULL, null=True, blank=True, related_name="balance_transactions"
    )
    dispute = models.ForeignKey(
        "sales.Dispute", on_delete=models.SET_NULL, null=True, blank=True, related_name="balance_transactions"
    )
    credit = models.ForeignKey(
        "payouts.Credit", on_delete=models.SET_NULL, null=True, blank=True, related_name="balance_transactions"
    )
    issued_amount_currency = models.CharField(max_length=3, default="usd")
    issued_amount_gross_cents = models.IntegerField(default=0)
    issued_amount_net_cents = models.IntegerField(default=0)
    holding_amount_currency = models.CharField(max_length=3, default="usd")
    holding_amount_gross_cents = models.IntegerField(default=0)
    holding_amount_net_cents = models.IntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "Balance transaction"
        verbose_name_plural = "Balance transactions"

    def __str__(self):
        return f"BalanceTransaction {self.pk} ({self.holding_amount_net_cents})"


class Credit(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="credits"
    )
    crediting_user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    balance = models.ForeignKey(
        Balance, on_delete=models.SET_NULL, null=True, blank=True, related_name="credits"
    )
    amount_cents = models.IntegerField(default=0)
    fee_retention_refund = models.ForeignKey(
        "sales.Refund", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    chargebacked_purchase = models.ForeignKey(
        "sales.Purchase", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    financing_paydown_purchase = models.ForeignKey(
        "sales.Purchase", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    note = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "Credit"
        verbose_name_plural = "Credits"

    def __str__(self):
        return f"Credit {self.amount_cents} → {self.user_id}"


class Payment(ExternalIdModel):
    """A payout to the seller."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    RETURNED = "returned"
    CANCELLED = "cancelled"
    STATE_CHOICES = [
        (PROCESSING, "Processing"),
        (COMPLETED, "Completed"),
        (FAILED, "Failed"),
        (RETURNED, "Returned"),
        (CANCELLED, "Cancelled"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="payments"
    )
    state = models.CharField(max_length=16, choices=STATE_CHOICES, default=PROCESSING)
    processor = models.CharField(max_length=16, default="stripe")
    amount_cents = models.IntegerField(default=0)
    currency = models.CharField(max_length=3, default="usd")
    platform_fee_cents = models.IntegerField(null=True, blank=True)
    processor_fee_cents = models.IntegerField(default=0)
    payout_period_end_date = models.DateField(null=True, blank=True)
    balances = models.ManyToManyField(Balance, blank=True, related_name="payments")

    class Meta:
        verbose_name = "Payout"
        verbose_name_plural = "Payouts"
        ordering = ["-payout_period_end_date", "-id"]

    def __str__(self):
        return f"Payout {self.external_id} {self.amount_cents} {self.currency} ({self.state})"

    def previous_completed_payout(self):
        return (
            Payment.objects.filter(
                user_id=self.user_id,
                state=Payment.COMPLETED,
                created_at__lt=self.created_at,
            )
            .order_by("payout_period_end_date", "id")
            .last()
        )
