from django.urls import path

from .views import BalancePageView, PayoutExportView, PayoutPeriodView

app_name = "payouts"

urlpatterns = [
    path("balance/", BalancePageView.as_view(), name="balance"),
    path("<str:external_id>/", PayoutPeriodView.as_view(), name="payout-period"),
    path("<str:external_id>/export.csv", PayoutExportView.as_view(), name="payout-export"),
]
