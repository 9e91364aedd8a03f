"""
Catalog Models - Creator Platform

Products, their variants (tiers on tiered memberships) and per-recurrence
prices.

Models:
- Product: a sellable item of a seller
- Variant: option of a product; on tiered memberships a tier
- Price: recurrence price of a membership (optionally per tier)

Author: CP Development Team
Version: 1.0.0
"""

from django.conf import settings
from django.db import models
from django.db.models import Sum

from core.models import SellerProfile, SoftDeleteModel
from core.money import format_money

MONTHLY = "monthly"
QUARTERLY = "quarterly"
BIANNUALLY = "biannually"
YEARLY = "yearly"

RECURRENCE_CHOICES = [
    (MONTHLY, "Monthly"),
    (QUARTERLY, "Quarterly"),
    (BIANNUALLY, "Every 6 months"),
    (YEARLY, "Yearly"),
]

RECURRENCE_MONTHS = {MONTHLY: 1, QUARTERLY: 3, BIANNUALLY: 6, YEARLY: 12}

RECURRENCE_LONG_INDICATOR = {
    MONTHLY: "a month",
    QUARTERLY: "every 3 months",
    BIANNUALLY: "every 6 months",
    YEARLY: "a year",
}


class Product(SoftDeleteModel):
    """A seller's product (digital, physical, membership, ...)."""

    NATIVE_TYPE_CHOICES = [
        ("digital", "Digital product"),
        ("physical", "Physical product"),
        ("membership", "Membership"),
        ("course", "Course"),
        ("ebook", "E-book"),
        ("call", "Call"),
        ("commission", "Commission"),
        ("bundle", "Bundle"),
    ]
    FREE_TRIAL_UNIT_CHOICES = [("week", "Week"), ("month", "Month")]

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="products",
    )
    name = models.CharField(max_length=255)
    unique_permalink = models.CharField(max_length=64, unique=True)
    custom_permalink = models.CharField(max_length=64, blank=True)
    description = models.TextField(blank=True)
    native_type = models.CharField(
        max_length=16, choices=NATIVE_TYPE_CHOICES, default="digital"
    )
    price_cents = models.PositiveIntegerField(default=0)
    price_currency_type = models.CharField(max_length=3, default="usd")
    customizable_price = models.BooleanField(default=False)
    suggested_price_cents = models.PositiveIntegerField(null=True, blank=True)
    is_recurring_billing = models.BooleanField(default=False)
    subscription_duration = models.CharField(
        max_length=16, choices=RECURRENCE_CHOICES, blank=True
    )
    is_tiered_membership = models.BooleanField(default=False)
    max_purchase_count = models.PositiveIntegerField(null=True, blank=True)
    quantity_enabled = models.BooleanField(default=False)
    require_shipping = models.BooleanField(default=False)
    should_show_sales_count = models.BooleanField(default=False)
    free_trial_enabled = models.BooleanField(default=False)
    free_trial_duration_amount = models.PositiveIntegerField(null=True, blank=True)
    free_trial_duration_unit = models.CharField(
        max_length=8, choices=FREE_TRIAL_UNIT_CHOICES, blank=True
    )
    draft = models.BooleanField(default=False)
    archived = models.BooleanField(default=False)
    purchase_disabled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Product"
        verbose_name_plural = "Products"
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["seller", "deleted_at"])]

    def __str__(self):
        return self.name

    # ---------- urls ----------

    @property
    def general_permalink(self) -> str:
        return self.custom_permalink or self.unique_permalink

    @property
    def long_url(self) -> str:
        profile = SellerProfile.for_user(self.seller)
        return f"{profile.profile_url}/l/{self.general_permalink}"

    # ---------- state ----------

    @property
    def is_membership(self) -> bool:
        return self.native_type == "membership" or self.is_recurring_billing

    @property
    def is_physical(self) -> bool:
        return self.native_type == "physical"

    @property
    def is_published(self) -> bool:
        return self.alive and not self.draft and self.purchase_disabled_at is None

    @property
    def status(self) -> str:
        if self.archived:
            return "archived"
        return "published" if self.is_published else "unpublished"

    def alive_variants(self):
        return self.variants.alive().order_by("position", "id")

    def alive_prices(self):
        return self.prices.alive()

    # ---------- pricing ----------

    @property
    def default_recurrence(self):
        return self.subscription_duration or None

    def price_for(self, recurrence=None, variant=None):
        """Price in cents for a recurrence (and tier on tiered memberships)."""
        if not self.is_recurring_billing:
            extra = variant.price_difference_cents if variant else 0
            return self.price_cents + extra
        recurrence = recurrence or self.default_recurrence
        prices = self.alive_prices().filter(recurrence=recurrence)
        if self.is_tiered_membership:
            prices = prices.filter(variant=variant) if variant else prices
        price = prices.order_by("price_cents").first()
        return price.price_cents if price else self.price_cents

    @property
    def display_price_cents(self) -> int:
        if self.is_tiered_membership:
            cents = (
                self.alive_prices()
                .filter(recurrence=self.default_recurrence, variant__deleted_at__isnull=True)
                .order_by("price_cents")
                .values_list("price_cents", flat=True)
                .first()
            )
            return cents if cents is not None else self.price_cents
        return self.price_for()

    def recurrence_price_values(self, variant=None):
        """Maps each available recurrence to its price for a tier (or the product)."""
        values = {}
        prices = self.alive_prices()
        if self.is_tiered_membership:
            prices = prices.filter(variant=variant)
        else:
            prices = prices.filter(variant__isnull=True)
        for price in prices:
            values[price.recurrence] = {
                "enabled": True,
                "price_cents": price.price_cents,
                "suggested_price_cents": None,
            }
        return values

    @property
    def available_recurrences(self):
        recurrences = set(self.alive_prices().values_list("recurrence", flat=True))
        if not recurrences and self.subscription_duration:
            recurrences.add(self.subscription_duration)
        return sorted(recurrences, key=lambda r: RECURRENCE_MONTHS.get(r, 0))

    def price_formatted_verbose(self) -> str:
        """e.g. ``$10``, ``$5+``, ``$10 a month``."""
        text = format_money(self.display_price_cents, self.price_currency_type)
        if self.customizable_price or (
            self.is_tiered_membership and self.alive_variants().count() > 1
        ):
            text += "+"
        if self.is_recurring_billing and self.default_recurrence:
            text += f" {RECURRENCE_LONG_INDICATOR[self.default_recurrence]}"
        return text

    # ---------- sales ----------

    def successful_purchases(self):
        return self.purchases.successful()

    @property
    def successful_sales_count(self) -> int:
        purchases = self.successful_purchases().not_fully_refunded()
        if self.is_recurring_billing:
            purchases = purchases.filter(is_original_subscription_purchase=True)
        return purchases.count()

    @property
    def revenue_cents(self) -> int:
        """Gross sales minus refunded amounts."""
        purchases = self.successful_purchases()
        gross = purchases.aggregate(total=Sum("price_cents"))["total"] or 0
        refunded = purchases.aggregate(total=Sum("refunds__amount_cents"))["total"] or 0
        return gross - refunded

    @property
    def sales_count_for_inventory(self) -> int:
        purchases = self.purchases.counts_towards_inventory()
        return purchases.aggregate(total=Sum("quantity"))["total"] or 0

    @property
    def remaining_for_sale_count(self):
        if self.max_purchase_count is None:
            return None
        return max(self.max_purchase_count - self.sales_count_for_inventory, 0)

    @property
    def is_sales_limited(self) -> bool:
        return self.max_purchase_count is not None

    @property
    def free_trial_duration(self):
        if not (self.free_trial_enabled and self.free_trial_duration_amount):
            return None
        return {
            "amount": self.free_trial_duration_amount,
            "unit": self.free_trial_duration_unit or "week",
        }


class Variant(SoftDeleteModel):
    product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name="variants"
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price_difference_cents = models.IntegerField(default=0)
    max_purchase_count = models.PositiveIntegerField(null=True, blank=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = "Variant"
        verbose_name_plural = "Variants"
        ordering = ["position", "id"]

    def __str__(self):
        return f"{self.product.name} - {self.name}"

    @property
    def sales_count_for_inventory(self) -> int:
        purchases = self.purchases.counts_towards_inventory()
        return purchases.aggregate(total=Sum("quantity"))["total"] or 0

    @property
    def quantity_left(self):
        if self.max_purchase_count is None:
            return None
        return max(self.max_purchase_count - self.sales_count_for_inventory, 0)

    @property
    def active_subscribers_count(self) -> int:
        return self.subscriptions.active().count()


class Price(SoftDeleteModel):
    product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name="prices"
    )
    variant = models.ForeignKey(
        Variant,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="prices",
    )
    recurrence = models.CharField(max_length=16, choices=RECURRENCE_CHOICES)
    price_cents = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = "Price"
        verbose_name_plural = "Prices"

    def __str__(self):
        return f"{self.product.name} {self.recurrence}: {self.price_cents}"
