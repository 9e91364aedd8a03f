from django.urls import path

from .views import SalesAnalyticsView, UtmLinkDetailView, UtmLinkNewView, UtmLinksView

app_name = "analytics"

urlpatterns = [
    path("utm-links/", UtmLinksView.as_view(), name="utm-links"),
    path("utm-links/new/", UtmLinkNewView.as_view(), name="utm-link-new"),
    path("utm-links/<str:external_id>/", UtmLinkDetailView.as_view(), name="utm-link-detail"),
    path("sales/", SalesAnalyticsView.as_view(), name="sales"),
]
