from django.urls import path

from .views import (
    DashboardProductsView,
    ProductDetailView,
    ProductEditView,
    SellerProductCardsView,
)

app_name = "catalog"

urlpatterns = [
    path("products/<str:external_id>/", ProductDetailView.as_view(), name="product-detail"),
    path("products/<str:external_id>/edit/", ProductEditView.as_view(), name="product-edit"),
    path("sellers/<slug:username>/products/", SellerProductCardsView.as_view(), name="seller-products"),
    # Dashboard
    path("dashboard/", DashboardProductsView.as_view(), name="dashboard-products"),
]
