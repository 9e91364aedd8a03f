"""
Sales Models - Creator Platform

Purchases and everything that happens to them afterwards: refunds,
disputes, subscriptions and affiliate earnings.

Models:
- Affiliate / ProductAffiliate: direct and global affiliates
- Subscription: membership plan of a subscriber
- Purchase: one sale (all money in USD cents)
- Refund / Dispute: money flowing back to the buyer
- AffiliateCredit / AffiliatePartialRefund: affiliate earnings per purchase

Author: CP Development Team
Version: 1.0.0
"""

import math

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.db import models
from django.db.models import Q, Sum
from django.utils import timezone

from catalog.models import RECURRENCE_CHOICES, RECURRENCE_MONTHS
from core.models import ExternalIdModel, SoftDeleteModel
from core.money import get_usd_cents, usd_cents_to_currency


class Affiliate(SoftDeleteModel):
    DIRECT = "direct_affiliate"
    GLOBAL = "global_affiliate"
    TYPE_CHOICES = [(DIRECT, "Direct affiliate"), (GLOBAL, "Global affiliate")]

    QUERY_PARAM = "a"
    GLOBAL_BASIS_POINTS = 1000

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="direct_affiliates",
    )
    affiliate_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="affiliate_accounts",
    )
    affiliate_basis_points = models.PositiveIntegerField(default=GLOBAL_BASIS_POINTS)
    apply_to_all_products = models.BooleanField(default=False)
    affiliate_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=DIRECT)
    products = models.ManyToManyField(
        "catalog.Product", through="ProductAffiliate", related_name="affiliates"
    )

    class Meta:
        verbose_name = "Affiliate"
        verbose_name_plural = "Affiliates"

    def __str__(self):
        return f"{self.affiliate_user} ({self.affiliate_type})"

    @property
    def is_global(self) -> bool:
        return self.affiliate_type == self.GLOBAL

    def basis_points_for(self, product) -> int:
        if self.is_global:
            return self.GLOBAL_BASIS_POINTS
        link = self.product_affiliates.filter(product=product).first()
        if link and link.affiliate_basis_points is not None:
            return link.affiliate_basis_points
        return self.affiliate_basis_points

    def fee_percentage_for(self, product) -> int:
        return self.basis_points_for(product) // 100

    def referral_url_for_product(self, product) -> str:
        return f"{product.long_url}?{self.QUERY_PARAM}={self.external_id}"


class ProductAffiliate(models.Model):
    affiliate = models.ForeignKey(
        Affiliate, on_delete=models.CASCADE, related_name="product_affiliates"
    )
    product = models.ForeignKey(
        "catalog.Product", on_delete=models.CASCADE, related_name="product_affiliates"
    )
    affiliate_basis_points = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("affiliate", "product")

    def __str__(self):
        return f"{self.affiliate_id} → {self.product_id}"


class SubscriptionQuerySet(models.QuerySet):
    def active(self):
        now = timezone.now()
        return self.filter(
            Q(cancelled_at__isnull=True) | Q(cancelled_at__gt=now),
            failed_at__isnull=True,
            ended_at__isnull=True,
        )

    def active_without_pending_cancel(self):
        return self.active().filter(cancelled_at__isnull=True)


class Subscription(ExternalIdModel):
    product = models.ForeignKey(
        "catalog.Product", on_delete=models.CASCADE, related_name="subscriptions"
    )
    subscriber = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="subscriptions",
    )
    tier = models.ForeignKey(
        "catalog.Variant",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="subscriptions",
    )
    recurrence = models.CharField(max_length=16, choices=RECURRENCE_CHOICES, default="monthly")
    price_cents = models.PositiveIntegerField(default=0)
    charge_occurrence_count = models.PositiveIntegerField(null=True, blank=True)
    is_installment_plan = models.BooleanField(default=False)
    is_test_subscription = models.BooleanField(default=False)
    free_trial_ends_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    ended_at = models.DateTimeField(null=True, blank=True)

    objects = SubscriptionQuerySet.as_manager()

    class Meta:
        verbose_name = "Subscription"
        verbose_name_plural = "Subscriptions"

    def __str__(self):
        return f"Subscription {self.external_id} ({self.product_id})"

    @property
    def period(self):
        return relativedelta(months=RECURRENCE_MONTHS.get(self.recurrence, 1))

    @property
    def original_purchase(self):
        return self.purchases.filter(is_original_subscription_purchase=True).order_by("created_at").first()

    def successful_purchases(self):
        return self.purchases.successful()

    @property
    def successful_purchases_count(self) -> int:
        return self.successful_purchases().count()

    @property
    def last_purchase(self):
        return self.successful_purchases().order_by("-created_at", "-id").first()

    @property
    def has_fixed_length(self) -> bool:
        return self.charge_occurrence_count is not None

    @property
    def remaining_charges_count(self):
        if not self.has_fixed_length:
            return None
        return max(self.charge_occurrence_count - self.successful_purchases_count, 0)

    @property
    def current_subscription_price_cents(self) -> int:
        return self.price_cents

    @property
    def alive(self) -> bool:
        now = timezone.now()
        if self.failed_at or self.ended_at:
            return False
        return self.cancelled_at is None or self.cancelled_at > now

    @property
    def pending_cancellation(self) -> bool:
        return self.cancelled_at is not None and self.cancelled_at > timezone.now()

    @property
    def end_time_of_subscription(self):
        for moment in (self.ended_at, self.failed_at):
            if moment:
                return moment
        if self.free_trial_ends_at and self.free_trial_ends_at > timezone.now():
            return self.free_trial_ends_at
        last = self.last_purchase
        if last is None:
            return self.cancelled_at or self.created_at
        return last.created_at + self.period


class PurchaseQuerySet(models.QuerySet):
    def successful(self):
        return self.filter(purchase_state=Purchase.SUCCESSFUL)

    def in_progress(self):
        return self.filter(purchase_state=Purchase.IN_PROGRESS)

    def paid(self):
        return (
            self.successful()
            .filter(stripe_refunded=False, stripe_partially_refunded=False)
            .not_chargedback_or_chargedback_reversed()
        )

    def not_fully_refunded(self):
        return self.filter(stripe_refunded=False)

    def chargedback(self):
        return self.filter(chargeback_date__isnull=False)

    def not_chargeback_reversed(self):
        return self.filter(chargeback_reversed=False)

    def not_chargedback_or_chargedback_reversed(self):
        return self.filter(Q(chargeback_date__isnull=True) | Q(chargeback_reversed=True))

    def paypal(self):
        return self.filter(charge_processor_id=Purchase.PAYPAL)

    def stripe(self):
        return self.filter(charge_processor_id=Purchase.STRIPE)

    def stripe_connect(self):
        return self.stripe().filter(via_stripe_connect=True)

    def paypal_connect(self):
        return self.paypal().filter(via_paypal_connect=True)

    def on_platform_account(self):
        """Sales whose money passes through the platform's own merchant account."""
        return self.filter(via_stripe_connect=False, via_paypal_connect=False)

    def counts_towards_inventory(self):
        return self.filter(
            Q(subscription__isnull=True) | Q(is_original_subscription_purchase=True),
            purchase_state__in=[Purchase.SUCCESSFUL, Purchase.IN_PROGRESS],
            stripe_refunded=False,
        )


class Purchase(ExternalIdModel):
    """A purchase. All amounts are USD cents except ``displayed_price_cents``."""

    IN_PROGRESS = "in_progress"
    SUCCESSFUL = "successful"
    FAILED = "failed"
    TEST_SUCCESSFUL = "test_successful"
    STATE_CHOICES = [
        (IN_PROGRESS, "In progress"),
        (SUCCESSFUL, "Successful"),
        (FAILED, "Failed"),
        (TEST_SUCCESSFUL, "Test purchase"),
    ]

    STRIPE = "stripe"
    PAYPAL = "paypal"
    PROCESSOR_CHOICES = [(STRIPE, "Stripe"), (PAYPAL, "PayPal")]

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="sales"
    )
    product = models.ForeignKey(
        "catalog.Product", on_delete=models.CASCADE, related_name="purchases"
    )
    variant = models.ForeignKey(
        "catalog.Variant",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchases",
    )
    purchaser = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchases",
    )
    email = models.EmailField()
    full_name = models.CharField(max_length=255, blank=True)

    price_cents = models.PositiveIntegerField(default=0)
    fee_cents = models.PositiveIntegerField(default=0)
    tax_cents = models.PositiveIntegerField(default=0)
    platform_tax_cents = models.PositiveIntegerField(default=0)
    shipping_cents = models.PositiveIntegerField(default=0)
    tip_cents = models.PositiveIntegerField(default=0)
    total_transaction_cents = models.PositiveIntegerField(default=0)
    displayed_price_cents = models.PositiveIntegerField(default=0)
    displayed_price_currency_type = models.CharField(max_length=3, default="usd")
    rate_converted_to_usd = models.FloatField(null=True, blank=True)
    quantity = models.PositiveIntegerField(default=1)

    affiliate = models.ForeignKey(
        Affiliate,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchases",
    )
    affiliate_credit_cents = models.PositiveIntegerField(default=0)

    purchase_state = models.CharField(
        max_length=20, choices=STATE_CHOICES, default=IN_PROGRESS, db_index=True
    )
    charge_processor_id = models.CharField(
        max_length=16, choices=PROCESSOR_CHOICES, default=STRIPE
    )
    via_stripe_connect = models.BooleanField(default=False)
    # Native PayPal, charged on the seller's own PayPal account.
    via_paypal_connect = models.BooleanField(default=False)
    stripe_transaction_id = models.CharField(max_length=255, blank=True, db_index=True)
    charge_group_id = models.CharField(max_length=64, blank=True, db_index=True)

    stripe_refunded = models.BooleanField(default=False)
    stripe_partially_refunded = models.BooleanField(default=False)
    chargeback_date = models.DateTimeField(null=True, blank=True)
    chargeback_reversed = models.BooleanField(default=False)
    is_refund_chargeback_fee_waived = models.BooleanField(default=False)
    was_discover_fee_charged = models.BooleanField(default=False)

    subscription = models.ForeignKey(
        Subscription,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchases",
    )
    is_original_subscription_purchase = models.BooleanField(default=False)
    is_free_trial_purchase = models.BooleanField(default=False)
    is_gift_sender_purchase = models.BooleanField(default=False)
    is_gift_receiver_purchase = models.BooleanField(default=False)
    giftee_email = models.EmailField(blank=True)

    card_type = models.CharField(max_length=32, blank=True)
    card_visual = models.CharField(max_length=32, blank=True)
    succeeded_at = models.DateTimeField(null=True, blank=True)

    purchase_success_balance = models.ForeignKey(
        "payouts.Balance",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="successful_sales",
    )
    purchase_refund_balance = models.ForeignKey(
        "payouts.Balance",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="refunded_sales",
    )
    purchase_chargeback_balance = models.ForeignKey(
        "payouts.Balance",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="chargedback_sales",
    )

    objects = PurchaseQuerySet.as_manager()

    class Meta:
        verbose_name = "Purchase"
        verbose_name_plural = "Purchases"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["seller", "purchase_state"]),
            models.Index(fields=["charge_processor_id", "succeeded_at"]),
        ]

    def __str__(self):
        return f"Purchase {self.external_id} ({self.purchase_state})"

    # ---------- state ----------

    @property
    def successful(self) -> bool:
        return self.purchase_state == self.SUCCESSFUL

    @property
    def free_purchase(self) -> bool:
        return self.price_cents == 0

    @property
    def chargedback(self) -> bool:
        return self.chargeback_date is not None

    @property
    def is_recurring_subscription_charge(self) -> bool:
        return self.subscription_id is not None and not self.is_original_subscription_purchase

    @property
    def purchaser_email_or_email(self) -> str:
        if self.purchaser_id and self.purchaser.email:
            return self.purchaser.email
        return self.email

    @property
    def payment_cents(self) -> int:
        return self.price_cents - self.fee_cents

    # Dollar helpers for CSV exports.
    @property
    def price_dollars(self):
        return round(self.price_cents / 100.0, 2)

    @property
    def fee_dollars(self):
        return round(self.fee_cents / 100.0, 2)

    @property
    def tax_dollars(self):
        return round(self.tax_cents / 100.0, 2)

    @property
    def shipping_dollars(self):
        return round(self.shipping_cents / 100.0, 2)

    @property
    def net_total(self):
        return round(self.payment_cents / 100.0, 2)

    # Processor amounts are in the charge currency, ours in USD cents.
    def usd_cents_from_charge(self, amount_cents) -> int:
        return get_usd_cents(self.displayed_price_currency_type, amount_cents, rate=self.rate_converted_to_usd)

    def charge_cents_from_usd(self, usd_cents) -> int:
        return usd_cents_to_currency(self.displayed_price_currency_type, usd_cents, rate=self.rate_converted_to_usd)

    # ---------- refunds ----------

    def _refunded(self, field) -> int:
        return self.refunds.aggregate(total=Sum(field))["total"] or 0

    @property
    def amount_refunded_cents(self) -> int:
        return self._refunded("amount_cents")

    @property
    def gross_amount_refunded_cents(self) -> int:
        return self._refunded("total_transaction_cents")

    @property
    def amount_refundable_cents(self) -> int:
        return max(self.price_cents - self.amount_refunded_cents, 0)

    @property
    def gross_amount_refundable_cents(self) -> int:
        return max(self.total_transaction_cents - self.gross_amount_refunded_cents, 0)

    @property
    def platform_tax_refundable_cents(self) -> int:
        return max(self.platform_tax_cents - self._refunded("platform_tax_cents"), 0)

    @property
    def non_refunded_tax_amount(self) -> int:
        refunded = self._refunded("creator_tax_cents") + self._refunded("platform_tax_cents")
        return max(self.tax_cents + self.platform_tax_cents - refunded, 0)

    @property
    def taxable(self) -> bool:
        return (self.tax_cents + self.platform_tax_cents) > 0

    @property
    def tax_label(self) -> str:
        return "VAT" if self.platform_tax_cents > 0 else "Sales tax"

    def build_refund(self, gross_refund_amount=None, refunding_user=None, previously_partially_refunded=False):
        """
        Build an unsaved Refund for ``gross_refund_amount`` cents.

        - the whole charge: full refund of price, fee and taxes
        - the remainder after earlier partial refunds: what is left of each amount
        - anything else: partial refund, fee and taxes prorated (rounded down)
        """
        if previously_partially_refunded and gross_refund_amount == self.gross_amount_refundable_cents:
            return self._build_remaining_refund(refunding_user)
        if gross_refund_amount == self.total_transaction_cents:
            return Refund(
                purchase=self,
                seller_id=self.seller_id,
                total_transaction_cents=self.total_transaction_cents,
                amount_cents=self.price_cents,
                creator_tax_cents=self.tax_cents,
                fee_cents=self.fee_cents,
                platform_tax_cents=self.platform_tax_refundable_cents,
                refunding_user=refunding_user,
            )
        return self._build_partial_refund(
            gross_refund_amount if gross_refund_amount is not None else self.gross_amount_refundable_cents,
            refunding_user,
        )

    def _build_remaining_refund(self, refunding_user):
        refund = Refund(
            purchase=self,
            seller_id=self.seller_id,
            total_transaction_cents=self.gross_amount_refundable_cents,
            amount_cents=self.amount_refundable_cents,
            creator_tax_cents=max(self.tax_cents - self._refunded("creator_tax_cents"), 0),
            fee_cents=max(self.fee_cents - self._refunded("fee_cents"), 0),
            platform_tax_cents=self.platform_tax_refundable_cents,
            refunding_user=refunding_user,
        )
        if refund.total_transaction_cents < 0 or refund.amount_cents < 0:
            return None
        return refund

    def _build_partial_refund(self, gross_refund_amount, refunding_user):
        if gross_refund_amount <= 0 or gross_refund_amount > self.gross_amount_refundable_cents:
            return None

        platform_tax_refunded = 0
        creator_tax_refunded = 0
        amount_cents = gross_refund_amount
        total = self.total_transaction_cents or 1

        if self.platform_tax_cents > 0 and self.platform_tax_refundable_cents > 0:
            proportional = math.floor(gross_refund_amount * self.platform_tax_cents / total)
            platform_tax_refunded = min(proportional, self.platform_tax_refundable_cents)
            amount_cents = gross_refund_amount - platform_tax_refunded

        if self.tax_cents > 0:
            creator_tax_refunded = math.floor(gross_refund_amount * self.tax_cents / total)

        fee_refund = math.floor(self.fee_cents * amount_cents / self.price_cents) if self.price_cents else 0

        return Refund(
            purchase=self,
            seller_id=self.seller_id,
            total_transaction_cents=gross_refund_amount,
            amount_cents=amount_cents,
            fee_cents=fee_refund,
            creator_tax_cents=creator_tax_refunded,
            platform_tax_cents=platform_tax_refunded,
            refunding_user=refunding_user,
        )


class Refund(ExternalIdModel):
    purchase = models.ForeignKey(Purchase, on_delete=models.CASCADE, related_name="refunds")
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="refunds"
    )
    amount_cents = models.IntegerField(default=0)
    fee_cents = models.IntegerField(default=0)
    creator_tax_cents = models.IntegerField(default=0)
    platform_tax_cents = models.IntegerField(default=0)
    total_transaction_cents = models.IntegerField(default=0)
    retained_fee_cents = models.IntegerField(null=True, blank=True)
    refunding_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    status = models.CharField(max_length=32, blank=True)
    processor_refund_id = models.CharField(max_length=255, null=True, blank=True, unique=True)

    class Meta:
        verbose_name = "Refund"
        verbose_name_plural = "Refunds"
        ordering = ["created_at"]

    def __str__(self):
        return f"Refund {self.amount_cents} for {self.purchase_id}"


class Dispute(ExternalIdModel):
    CREATED = "created"
    FORMALIZED = "formalized"
    WON = "won"
    LOST = "lost"
    STATE_CHOICES = [
        (CREATED, "Created"),
        (FORMALIZED, "Formalized"),
        (WON, "Won"),
        (LOST, "Lost"),
    ]

    purchase = models.ForeignKey(Purchase, on_delete=models.CASCADE, related_name="disputes")
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="disputes"
    )
    state = models.CharField(max_length=16, choices=STATE_CHOICES, default=CREATED)
    reason = models.CharField(max_length=64, blank=True)
    amount_cents = models.IntegerField(default=0)
    charge_processor_dispute_id = models.CharField(
        max_length=255, null=True, blank=True, unique=True
    )
    initiated_at = models.DateTimeField(default=timezone.now)
    formalized_at = models.DateTimeField(null=True, blank=True)
    won_at = models.DateTimeField(null=True, blank=True)
    lost_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Dispute"
        verbose_name_plural = "Disputes"

    def __str__(self):
        return f"Dispute {self.purchase_id} ({self.state})"


class AffiliateCreditQuerySet(models.QuerySet):
    def paid(self):
        return self.filter(purchase__in=Purchase.objects.paid())

    def not_refunded_or_chargebacked(self):
        return self.filter(
            affiliate_credit_refund_balance__isnull=True,
            affiliate_credit_chargeback_balance__isnull=True,
        )


class AffiliateCredit(models.Model):
    affiliate = models.ForeignKey(Affiliate, on_delete=models.CASCADE, related_name="credits")
    affiliate_user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="affiliate_credits"
    )
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="+"
    )
    purchase = models.OneToOneField(
        Purchase, on_delete=models.CASCADE, related_name="affiliate_credit"
    )
    amount_cents = models.IntegerField(default=0)
    basis_point = models.PositiveIntegerField(default=0)
    affiliate_credit_success_balance = models.ForeignKey(
        "payouts.Balance", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    affiliate_credit_refund_balance = models.ForeignKey(
        "payouts.Balance", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    affiliate_credit_chargeback_balance = models.ForeignKey(
        "payouts.Balance", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    created_at = models.DateTimeField(default=timezone.now)

    objects = AffiliateCreditQuerySet.as_manager()

    class Meta:
        verbose_name = "Affiliate credit"
        verbose_name_plural = "Affiliate credits"

    def __str__(self):
        return f"AffiliateCredit {self.amount_cents} ({self.purchase_id})"


class AffiliatePartialRefund(models.Model):
    affiliate_credit = models.ForeignKey(
        AffiliateCredit, on_delete=models.CASCADE, related_name="partial_refunds"
    )
    purchase = models.ForeignKey(
        Purchase, on_delete=models.CASCADE, related_name="affiliate_partial_refunds"
    )
    refund = models.ForeignKey(
        Refund, on_delete=models.CASCADE, null=True, blank=True, related_name="affiliate_partial_refunds"
    )
    amount_cents = models.IntegerField(default=0)
    balance = models.ForeignKey(
        "payouts.Balance", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    created_at = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"AffiliatePartialRefund {self.amount_cents}"
