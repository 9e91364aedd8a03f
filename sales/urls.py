from django.urls import path

from .views import (
    AffiliatedProductsView,
    AffiliatesView,
    CheckoutProductView,
    CustomerDetailView,
    CustomerRefundView,
    CustomersView,
    ReceiptView,
    SubscriptionManagerView,
)

app_name = "sales"

urlpatterns = [
    # Customers
    path("customers/", CustomersView.as_view(), name="customers"),
    path("customers/<str:external_id>/", CustomerDetailView.as_view(), name="customer-detail"),
    path("customers/<str:external_id>/refund/", CustomerRefundView.as_view(), name="customer-refund"),
    # Buyer side
    path("purchases/<str:external_id>/receipt/", ReceiptView.as_view(), name="receipt"),
    path("subscriptions/<str:external_id>/manage/", SubscriptionManagerView.as_view(), name="subscription-manage"),
    path("checkout/products/<str:external_id>/", CheckoutProductView.as_view(), name="checkout-product"),
    # Affiliates
    path("affiliated/", AffiliatedProductsView.as_view(), name="affiliated-products"),
    path("affiliates/", AffiliatesView.as_view(), name="affiliates"),
]
