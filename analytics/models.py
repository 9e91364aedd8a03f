"""
Analytics Models - Creator Platform

UTM tracking links and the sales they drove.

Author: CP Development Team
Version: 1.0.0
"""

import secrets
import string
from urllib.parse import urlencode

from django.conf import settings
from django.db import models

from core.models import SellerProfile, SoftDeleteModel


class UtmLink(SoftDeleteModel):
    PROFILE_PAGE = "profile_page"
    SUBSCRIBE_PAGE = "subscribe_page"
    PRODUCT_PAGE = "product_page"
    POST_PAGE = "post_page"
    TARGET_CHOICES = [
        (PROFILE_PAGE, "Profile page"),
        (SUBSCRIBE_PAGE, "Subscribe page"),
        (PRODUCT_PAGE, "Product page"),
        (POST_PAGE, "Post page"),
    ]

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="utm_links"
    )
    title = models.CharField(max_length=255)
    target_resource_type = models.CharField(max_length=20, choices=TARGET_CHOICES, default=PROFILE_PAGE)
    target_resource_id = models.PositiveBigIntegerField(null=True, blank=True)
    permalink = models.CharField(max_length=16, unique=True)
    utm_source = models.CharField(max_length=64)
    utm_medium = models.CharField(max_length=64)
    utm_campaign = models.CharField(max_length=64)
    utm_term = models.CharField(max_length=64, blank=True)
    utm_content = models.CharField(max_length=64, blank=True)
    unique_clicks = models.PositiveIntegerField(default=0)
    total_clicks = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = "UTM link"
        verbose_name_plural = "UTM links"
        indexes = [models.Index(fields=["seller", "deleted_at"])]

    def __str__(self):
        return self.title

    @classmethod
    def generate_permalink(cls) -> str:
        alphabet = string.ascii_lowercase + string.digits
        while True:
            permalink = "".join(secrets.choice(alphabet) for _ in range(8))
            if not cls.objects.filter(permalink=permalink).exists():
                return permalink

    @property
    def short_url(self) -> str:
        return f"{settings.SHORT_DOMAIN}/u/{self.permalink}"

    def target_resource(self):
        if self.target_resource_type == self.PRODUCT_PAGE:
            from catalog.models import Product

            return Product.objects.filter(pk=self.target_resource_id).first()
        if self.target_resource_type == self.POST_PAGE:
            from posts.models import Post

            return Post.objects.filter(pk=self.target_resource_id).first()
        return None

    def destination_option(self):
        profile = SellerProfile.for_user(self.seller)
        resource = self.target_resource()
        if self.target_resource_type == self.PRODUCT_PAGE and resource:
            return {
                "id": f"{self.PRODUCT_PAGE}-{resource.external_id}",
                "label": resource.name,
                "url": resource.long_url,
            }
        if self.target_resource_type == self.POST_PAGE and resource:
            return {
                "id": f"{self.POST_PAGE}-{resource.external_id}",
                "label": resource.name,
                "url": resource.full_url,
            }
        if self.target_resource_type == self.SUBSCRIBE_PAGE:
            return {
                "id": self.SUBSCRIBE_PAGE,
                "label": "Subscribe page",
                "url": f"{profile.profile_url}/subscribe",
            }
        return {
            "id": self.PROFILE_PAGE,
            "label": "Profile page",
            "url": profile.profile_url,
        }

    @property
    def utm_url(self) -> str:
        params = {
            "utm_source": self.utm_source,
            "utm_medium": self.utm_medium,
            "utm_campaign": self.utm_campaign,
        }
        if self.utm_term:
            params["utm_term"] = self.utm_term
        if self.utm_content:
            params["utm_content"] = self.utm_content
        return f"{self.destination_option()['url']}?{urlencode(params)}"


class UtmLinkDrivenSale(models.Model):
    utm_link = models.ForeignKey(UtmLink, on_delete=models.CASCADE, related_name="driven_sales")
    purchase = models.OneToOneField(
        "sales.Purchase", on_delete=models.CASCADE, related_name="utm_link_driven_sale"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "UTM link driven sale"
        verbose_name_plural = "UTM link driven sales"

    def __str__(self):
        return f"{self.utm_link_id} → {self.purchase_id}"
