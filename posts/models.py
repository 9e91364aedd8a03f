"""
Post Models - Creator Platform

Posts (installments) a seller publishes to an audience, plus the delivery
log used for open counts and missed-post lookups.

Author: CP Development Team
Version: 1.0.0
"""

from django.conf import settings
from django.db import models

from core.models import SellerProfile, SoftDeleteModel


class PostQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(deleted_at__isnull=True)

    def published(self):
        return self.alive().filter(published_at__isnull=False)


class Post(SoftDeleteModel):
    PRODUCT = "product"
    SELLER = "seller"
    FOLLOWER = "follower"
    AUDIENCE = "audience"
    AFFILIATE = "affiliate"
    AUDIENCE_CHOICES = [
        (PRODUCT, "Customers of a product"),
        (SELLER, "All customers"),
        (FOLLOWER, "Followers"),
        (AUDIENCE, "Customers and followers"),
        (AFFILIATE, "Affiliates"),
    ]
    # Audiences that only buyers may read.
    PAID_AUDIENCES = (PRODUCT, SELLER)

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="posts"
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="posts",
    )
    name = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    slug = models.SlugField(max_length=255, blank=True)
    audience_type = models.CharField(max_length=16, choices=AUDIENCE_CHOICES, default=AUDIENCE)
    published_at = models.DateTimeField(null=True, blank=True)
    shown_on_profile = models.BooleanField(default=True)
    allow_comments = models.BooleanField(default=True)

    objects = PostQuerySet.as_manager()

    class Meta:
        verbose_name = "Post"
        verbose_name_plural = "Posts"
        ordering = ["-published_at", "-id"]

    def __str__(self):
        return self.name

    @property
    def is_published(self) -> bool:
        return self.published_at is not None

    @property
    def requires_purchase(self) -> bool:
        return self.audience_type in self.PAID_AUDIENCES

    @property
    def full_url(self) -> str:
        profile = SellerProfile.for_user(self.seller)
        return f"{profile.profile_url}/p/{self.slug or self.external_id}"


class PostDelivery(models.Model):
    """Delivery log: which post went to which email address."""

    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name="deliveries")
    purchase = models.ForeignKey(
        "sales.Purchase",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="post_deliveries",
    )
    email = models.EmailField()
    sent_at = models.DateTimeField(auto_now_add=True)
    opened_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Post delivery"
        verbose_name_plural = "Post deliveries"
        unique_together = ("post", "email")

    def __str__(self):
        return f"{self.post_id} → {self.email}"
