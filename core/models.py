"""
Core Models - Creator Platform

Shared abstract base models (external ids, soft deletion) plus the seller
profile and team membership tables used by the seller context.

Author: CP Development Team
Version: 1.0.0
"""

import secrets

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.text import slugify


def generate_external_id() -> str:
    """Opaque, URL-safe identifier exposed to the front end instead of the pk."""
    return secrets.token_urlsafe(12)


class AliveQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(deleted_at__isnull=True)

    def deleted(self):
        return self.filter(deleted_at__isnull=False)


class ExternalIdModel(models.Model):
    """Abstract base: external id plus timestamps."""

    external_id = models.CharField(
        max_length=32,
        unique=True,
        default=generate_external_id,
        editable=False,
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class SoftDeleteModel(ExternalIdModel):
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = AliveQuerySet.as_manager()

    class Meta:
        abstract = True

    @property
    def alive(self) -> bool:
        return self.deleted_at is None

    def mark_deleted(self):
        self.deleted_at = timezone.now()
        self.save(update_fields=["deleted_at", "updated_at"])


class SellerProfile(models.Model):
    """Creator-facing account settings attached to a Django user."""

    CURRENCY_CHOICES = [
        ("usd", "US Dollar"),
        ("eur", "Euro"),
        ("gbp", "British Pound"),
        ("jpy", "Japanese Yen"),
        ("cad", "Canadian Dollar"),
        ("aud", "Australian Dollar"),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="seller_profile",
    )
    username = models.SlugField(max_length=64, unique=True)
    name = models.CharField(max_length=255, blank=True)
    currency_type = models.CharField(
        max_length=3, choices=CURRENCY_CHOICES, default="usd"
    )
    support_email = models.EmailField(blank=True)
    refunds_disabled = models.BooleanField(default=False)
    tipping_enabled = models.BooleanField(default=False)
    show_currencies_always = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Seller profile"
        verbose_name_plural = "Seller profiles"
        ordering = ["username"]

    def __str__(self):
        return self.username

    @classmethod
    def for_user(cls, user):
        profile, _ = cls.objects.get_or_create(
            user=user,
            defaults={"username": slugify(user.username) or f"user{user.pk}"},
        )
        return profile

    @property
    def display_name(self) -> str:
        return self.name or self.username

    @property
    def profile_url(self) -> str:
        return f"{settings.FRONTEND_URL}/{self.username}"


class TeamMembership(models.Model):
    """Grants a user a role on a seller's account."""

    ROLE_OWNER = "owner"
    ROLE_ADMIN = "admin"
    ROLE_MARKETING = "marketing"
    ROLE_SUPPORT = "support"
    ROLE_ACCOUNTANT = "accountant"
    ROLE_CHOICES = [
        (ROLE_OWNER, "Owner"),
        (ROLE_ADMIN, "Admin"),
        (ROLE_MARKETING, "Marketing"),
        (ROLE_SUPPORT, "Support"),
        (ROLE_ACCOUNTANT, "Accountant"),
    ]

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="team_members",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="team_memberships",
    )
    role = models.CharField(max_length=16, choices=ROLE_CHOICES)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = AliveQuerySet.as_manager()

    class Meta:
        verbose_name = "Team membership"
        verbose_name_plural = "Team memberships"
        unique_together = ("seller", "user")

    def __str__(self):
        return f"{self.user} → {self.seller} ({self.role})"
