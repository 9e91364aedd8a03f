"""
URL configuration for the creator_platform project.

API prefixes:
- /api/catalog/     products
- /api/sales/       customers, receipts, checkout, affiliates
- /api/payouts/     balance page and payout exports
- /api/posts/       posts and the posts dashboard
- /api/analytics/   UTM links and sales analytics
- /api/settings/    seller settings
- /api/payments/    Stripe checkout and config
- /api/token/       simplejwt token pair / refresh
- /stripe/          dj-stripe webhook endpoint
"""

from django.contrib import admin
from django.urls import include, path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/catalog/", include("catalog.urls")),
    path("api/sales/", include("sales.urls")),
    path("api/payouts/", include("payouts.urls")),
    path("api/posts/", include("posts.urls")),
    path("api/analytics/", include("analytics.urls")),
    path("api/settings/", include("core.urls")),
    path("api/payments/", include("core.stripe_integration.urls")),
    path("stripe/", include("djstripe.urls", namespace="djstripe")),
]
