"""
Balance Page Presenter - Creator Platform

Props for the seller's balance page: the upcoming payout (unpaid
balances), payouts still processing, and past payouts (paginated). Each
payout period carries the money breakdown from ``SellerStats``.

Author: CP Development Team
Version: 1.0.0
"""

import datetime

from django.conf import settings

from core.models import SellerProfile
from core.money import format_money
from core.pagination import paginate
from payouts.exports import payout_period
from payouts.models import Balance, Payment
from reports.seller_stats import SellerStats, payout_net_cents


ORDINAL_SUFFIXES = {1: "st", 2: "nd", 3: "rd"}


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return f"{day}th"
    return f"{day}{ORDINAL_SUFFIXES.get(day % 10, 'th')}"


def formatted_payout_date(date) -> str:
    """``November 21st, 2024``"""
    return f"{date:%B} {_ordinal(date.day)}, {date.year}"


class BalancePagePresenter:
    def __init__(self, seller, page=1):
        self.seller = seller
        self.page = page
        self.stats = SellerStats(seller)
        self.profile = SellerProfile.for_user(seller)

    def balance_page_props(self):
        payments = Payment.objects.filter(user=self.seller).prefetch_related("balances")
        past, pagination = paginate(
            payments.filter(state=Payment.COMPLETED).order_by("-payout_period_end_date", "-id"),
            self.page,
            settings.PAYOUTS_PER_PAGE,
        )
        return {
            "next_payout_period_data": self.next_payout_period_data(),
            "processing_payout_periods_data": [
                self.payout_period_data(payment)
                for payment in payments.filter(state=Payment.PROCESSING).order_by("-created_at")
            ],
            "past_payout_period_data": [self.payout_period_data(payment) for payment in past],
            "pagination": pagination,
        }

    def next_payout_period_data(self):
        """Upcoming payout built from all unpaid balances, or None when there are none."""
        balances = list(Balance.objects.unpaid().filter(user=self.seller))
        if not balances:
            return None

        payout_cents = sum(balance.amount_cents for balance in balances)
        last_payout = (
            Payment.objects.filter(user=self.seller, state=Payment.COMPLETED)
            .order_by("payout_period_end_date", "id")
            .last()
        )
        if last_payout and last_payout.payout_period_end_date:
            start = last_payout.payout_period_end_date + datetime.timedelta(days=1)
            period_range = f"Activity since {formatted_payout_date(start)}"
        else:
            period_range = "Activity up to now"

        return {
            "status": "payable" if payout_cents >= settings.MINIMUM_PAYOUT_AMOUNT_CENTS else "not_payable",
            "is_user_payable": payout_cents >= settings.MINIMUM_PAYOUT_AMOUNT_CENTS,
            "minimum_payout_amount_cents": settings.MINIMUM_PAYOUT_AMOUNT_CENTS,
            "displayable_payout_period_range": period_range,
            "payout_currency": "usd",
            "payout_cents": payout_cents,
            "payout_displayed_amount": self._displayed(payout_cents, "usd"),
            "should_be_shown_currencies_always": self.profile.show_currencies_always,
            **self.stats.sales_data_for_balance_ids([balance.id for balance in balances]),
        }

    def payout_period_data(self, payment):
        start, end = payout_period(payment)
        previous = payment.previous_completed_payout()
        if previous is None:
            period_range = f"Activity up to {formatted_payout_date(end)}"
        elif start > end:
            # Two payouts for the same day (instant payout followed by a standard one).
            period_range = f"Activity on {formatted_payout_date(end)}"
        else:
            period_range = f"Activity from {formatted_payout_date(start)} to {formatted_payout_date(end)}"

        data = self.stats.sales_data_for_balance_ids(payment.balances.values_list("id", flat=True))
        paypal_data = self.stats.paypal_sales_data_for_duration(start, end)
        stripe_connect_data = self.stats.stripe_connect_sales_data_for_duration(start, end)

        return {
            "status": payment.state,
            "payment_external_id": payment.external_id,
            "processor": payment.processor,
            "displayable_payout_period_range": period_range,
            "payout_date_formatted": formatted_payout_date(payment.created_at.date()),
            "payout_currency": payment.currency,
            "payout_cents": payment.amount_cents,
            "payout_displayed_amount": self._displayed(payment.amount_cents, payment.currency),
            "payout_fee_cents": payment.platform_fee_cents or 0,
            "should_be_shown_currencies_always": self.profile.show_currencies_always,
            **data,
            "paypal_payout_cents": payout_net_cents(paypal_data),
            "stripe_connect_payout_cents": payout_net_cents(stripe_connect_data),
        }

    @staticmethod
    def _displayed(cents, currency):
        return format_money(cents, currency, no_cents_if_whole=False)
