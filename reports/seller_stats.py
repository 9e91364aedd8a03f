"""
Seller Stats - Creator Platform

Aggregate money figures for one seller, either for a set of balances
(what a payout drained) or for a date window on sales that never touch a
platform balance (native PayPal and Stripe Connect, paid out by the
processor).

Balance figures:
- sales / refunds / chargebacks / credits / loan repayments
- platform fees (split into discover and direct fees) and taxes
- affiliate credits earned and affiliate fees paid

Duration figures (PayPal, Stripe Connect):
- sales, refunds, chargebacks, fees, taxes, affiliate fees
- net payout and revenue per product

Author: CP Development Team
Version: 1.0.0
"""

import datetime
import math
from collections import defaultdict

from django.db.models import F, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from payouts.models import BalanceTransaction, Credit
from sales.models import AffiliateCredit, Dispute, Purchase, Refund


def _sum(queryset, expression) -> int:
    return int(queryset.aggregate(total=Coalesce(Sum(expression), 0))["total"])


def start_of_day(date):
    return timezone.make_aware(datetime.datetime.combine(date, datetime.time.min))


def end_of_day(date):
    return timezone.make_aware(datetime.datetime.combine(date, datetime.time.max))


def _window(queryset, field, start_date, end_date):
    if start_date:
        queryset = queryset.filter(**{f"{field}__gte": start_of_day(start_date)})
    if end_date:
        queryset = queryset.filter(**{f"{field}__lte": end_of_day(end_date)})
    return queryset


def payout_net_cents(sales_data) -> int:
    return (
        sales_data["sales_cents"]
        - sales_data["refunds_cents"]
        - sales_data["chargebacks_cents"]
        - sales_data["fees_cents"]
        - sales_data["affiliate_fees_cents"]
    )


class SellerStats:
    def __init__(self, seller):
        self.seller = seller

    @property
    def sales(self):
        return Purchase.objects.filter(seller=self.seller)

    @property
    def affiliate_credits(self):
        return AffiliateCredit.objects.filter(affiliate_user=self.seller)

    @property
    def credits(self):
        return Credit.objects.filter(user=self.seller)

    # ------------------------------------------------------------------
    # Affiliate credits earned by the seller as an affiliate
    # ------------------------------------------------------------------

    @staticmethod
    def affiliate_credit_sum_from_scope(paid_scope, all_scope) -> int:
        """Paid credits, plus credits of partially refunded sales minus what was refunded of them."""
        partially_refunded = all_scope.filter(purchase__stripe_partially_refunded=True)
        return (
            _sum(paid_scope, "amount_cents")
            + _sum(partially_refunded, "amount_cents")
            - _sum(partially_refunded, "partial_refunds__amount_cents")
        )

    def affiliate_credits_sum_total(self) -> int:
        return self.affiliate_credit_sum_from_scope(self.affiliate_credits.paid(), self.affiliate_credits)

    def affiliate_credits_sum_for_credits_created_between(self, start_time, end_time) -> int:
        scope = self.affiliate_credits.filter(created_at__gt=start_time, created_at__lte=end_time)
        return self.affiliate_credit_sum_from_scope(scope.paid(), scope)

    # ------------------------------------------------------------------
    # Balance figures
    # ------------------------------------------------------------------

    def sales_cents_for_balances(self, balance_ids) -> int:
        return _sum(self.sales.filter(purchase_success_balance_id__in=balance_ids), "price_cents")

    def refunds_cents_for_balances(self, balance_ids) -> int:
        return _sum(self.sales.filter(purchase_refund_balance_id__in=balance_ids), "refunds__amount_cents")

    def chargebacks_cents_for_balances(self, balance_ids) -> int:
        chargebacked = self.sales.filter(purchase_chargeback_balance_id__in=balance_ids)
        return _sum(chargebacked, "price_cents") - _sum(chargebacked, "refunds__amount_cents")

    def credits_cents_for_balances(self, balance_ids) -> int:
        credits = self.credits.filter(
            balance_id__in=balance_ids,
            financing_paydown_purchase__isnull=True,
            fee_retention_refund__isnull=True,
        )
        return _sum(credits, "amount_cents")

    def loan_repayment_cents_for_balances(self, balance_ids) -> int:
        credits = self.credits.filter(balance_id__in=balance_ids, financing_paydown_purchase__isnull=False)
        return _sum(credits, "amount_cents")

    def _returned_fees(self, sales, balance_ids) -> int:
        """Fees given back on refunds and chargebacks debited from these balances."""
        refunded = sales.filter(purchase_refund_balance_id__in=balance_ids)
        refunded_fee = _sum(refunded.filter(is_refund_chargeback_fee_waived=True), "refunds__fee_cents")
        # Without the waiver the platform keeps retained_fee_cents of each refund.
        refunded_fee += _sum(
            refunded.filter(is_refund_chargeback_fee_waived=False),
            F("refunds__fee_cents") - Coalesce(F("refunds__retained_fee_cents"), 0),
        )
        disputed = sales.filter(purchase_chargeback_balance_id__in=balance_ids)
        disputed_fee = _sum(disputed, "fee_cents") - _sum(disputed, "refunds__fee_cents")
        return refunded_fee + disputed_fee

    def _fees_cents(self, sales, balance_ids) -> int:
        revenue_fees = _sum(sales.filter(purchase_success_balance_id__in=balance_ids), "fee_cents")
        return revenue_fees - self._returned_fees(sales, balance_ids)

    def fees_cents_for_balances(self, balance_ids) -> int:
        return self._fees_cents(self.sales, balance_ids)

    def discover_fees_cents_for_balances(self, balance_ids) -> int:
        return self._fees_cents(self.sales.filter(was_discover_fee_charged=True), balance_ids)

    def direct_fees_cents_for_balances(self, balance_ids) -> int:
        return self._fees_cents(self.sales.filter(was_discover_fee_charged=False), balance_ids)

    def discover_sales_count_for_balances(self, balance_ids) -> int:
        return self.sales.filter(purchase_success_balance_id__in=balance_ids, was_discover_fee_charged=True).count()

    def direct_sales_count_for_balances(self, balance_ids) -> int:
        return self.sales.filter(purchase_success_balance_id__in=balance_ids, was_discover_fee_charged=False).count()

    def taxes_cents_for_balances(self, balance_ids) -> int:
        sales = (
            self.sales.successful()
            .not_fully_refunded()
            .not_chargedback_or_chargedback_reversed()
            .filter(purchase_success_balance_id__in=balance_ids)
        )
        return _sum(sales, "tax_cents")

    def affiliate_credit_cents_for_balances(self, balance_ids) -> int:
        credits = self.affiliate_credits
        paid_scope = credits.not_refunded_or_chargebacked().filter(affiliate_credit_success_balance_id__in=balance_ids)
        all_scope = credits.filter(affiliate_credit_success_balance_id__in=balance_ids)
        # Credits earned earlier but taken back in these balances.
        taken_back = (
            credits.filter(affiliate_credit_refund_balance_id__in=balance_ids)
            | credits.filter(affiliate_credit_chargeback_balance_id__in=balance_ids)
        ).exclude(affiliate_credit_success_balance_id__in=balance_ids)
        return self.affiliate_credit_sum_from_scope(paid_scope, all_scope) - _sum(taken_back, "amount_cents")

    def affiliate_fee_cents_for_balances(self, balance_ids) -> int:
        sales = self.sales.filter(purchase_success_balance_id__in=balance_ids)
        fee_cents = _sum(
            sales.filter(purchase_refund_balance__isnull=True, purchase_chargeback_balance__isnull=True),
            "affiliate_credit_cents",
        )
        fee_cents += _sum(sales.filter(stripe_partially_refunded=True), "affiliate_credit_cents")
        return fee_cents + self._returned_affiliate_fee_cents(balance_ids)

    def _returned_affiliate_fee_cents(self, balance_ids) -> int:
        """Affiliate share of refunds and disputes on sales credited in earlier balances."""
        older_sales = self.sales.exclude(purchase_success_balance_id__in=balance_ids)

        refunded_ids = older_sales.filter(purchase_refund_balance_id__in=balance_ids).values("id")
        refunded = BalanceTransaction.objects.filter(
            refund__in=Refund.objects.filter(purchase_id__in=refunded_ids)
        ).exclude(user=self.seller)

        disputed_ids = older_sales.filter(purchase_chargeback_balance_id__in=balance_ids).values("id")
        disputed = BalanceTransaction.objects.filter(
            dispute__in=Dispute.objects.filter(purchase_id__in=disputed_ids)
        ).exclude(user=self.seller)

        return _sum(refunded, "holding_amount_net_cents") + _sum(disputed, "holding_amount_net_cents")

    def sales_data_for_balance_ids(self, balance_ids):
        balance_ids = list(balance_ids)
        return {
            "sales_cents": self.sales_cents_for_balances(balance_ids),
            "refunds_cents": self.refunds_cents_for_balances(balance_ids),
            "chargebacks_cents": self.chargebacks_cents_for_balances(balance_ids),
            "credits_cents": self.credits_cents_for_balances(balance_ids),
            "loan_repayment_cents": self.loan_repayment_cents_for_balances(balance_ids),
            "fees_cents": self.fees_cents_for_balances(balance_ids),
            "discover_fees_cents": self.discover_fees_cents_for_balances(balance_ids),
            "direct_fees_cents": self.direct_fees_cents_for_balances(balance_ids),
            "discover_sales_count": self.discover_sales_count_for_balances(balance_ids),
            "direct_sales_count": self.direct_sales_count_for_balances(balance_ids),
            "taxes_cents": self.taxes_cents_for_balances(balance_ids),
            "affiliate_credits_cents": self.affiliate_credit_cents_for_balances(balance_ids),
            "affiliate_fees_cents": self.affiliate_fee_cents_for_balances(balance_ids),
            "paypal_payout_cents": 0,
        }

    # ------------------------------------------------------------------
    # Duration figures (PayPal / Stripe Connect)
    # ------------------------------------------------------------------

    def _processor_sales(self, processor):
        if processor == "paypal":
            return self.sales.paypal_connect()
        return self.sales.stripe_connect()

    def _processor_refunds(self, processor):
        refunds = Refund.objects.filter(seller=self.seller).select_related("purchase")
        if processor == "paypal":
            return refunds.filter(purchase__charge_processor_id=Purchase.PAYPAL, purchase__via_paypal_connect=True)
        return refunds.filter(purchase__charge_processor_id=Purchase.STRIPE, purchase__via_stripe_connect=True)

    def sales_in_duration(self, processor, start_date=None, end_date=None):
        return _window(self._processor_sales(processor).successful(), "succeeded_at", start_date, end_date)

    def refunds_in_duration(self, processor, start_date=None, end_date=None):
        return _window(self._processor_refunds(processor), "created_at", start_date, end_date)

    def chargebacked_in_duration(self, processor, start_date=None, end_date=None):
        disputed = self._processor_sales(processor).chargedback().not_chargeback_reversed()
        return _window(disputed, "chargeback_date", start_date, end_date)

    @staticmethod
    def _prorated_affiliate_cents(refund):
        purchase = refund.purchase
        if not purchase.price_cents:
            return 0
        return purchase.affiliate_credit_cents * refund.amount_cents / purchase.price_cents

    def affiliate_fee_cents_for_duration(self, processor, start_date=None, end_date=None) -> int:
        sales = self.sales_in_duration(processor, start_date, end_date)
        refunds = self.refunds_in_duration(processor, start_date, end_date)
        chargebacked = self.chargebacked_in_duration(processor, start_date, end_date)
        refunded_affiliate_cents = round(sum(self._prorated_affiliate_cents(refund) for refund in refunds))
        return (
            _sum(sales, "affiliate_credit_cents")
            - refunded_affiliate_cents
            - _sum(chargebacked, "affiliate_credit_cents")
        )

    def sales_data_for_duration(self, processor, start_date=None, end_date=None):
        sales = self.sales_in_duration(processor, start_date, end_date)
        refunds = self.refunds_in_duration(processor, start_date, end_date)
        chargebacked = self.chargebacked_in_duration(processor, start_date, end_date)

        fees = _sum(sales, "fee_cents") - _sum(refunds, "fee_cents") - _sum(chargebacked, "fee_cents")
        taxes = _sum(sales, "tax_cents") - _sum(refunds, "creator_tax_cents") - _sum(chargebacked, "tax_cents")
        affiliate_fees = self.affiliate_fee_cents_for_duration(processor, start_date, end_date)
        return {
            "sales_cents": _sum(sales, "price_cents"),
            "refunds_cents": _sum(refunds, "amount_cents"),
            "chargebacks_cents": _sum(chargebacked, "price_cents"),
            "credits_cents": 0,
            "fees_cents": fees,
            "taxes_cents": taxes,
            "affiliate_credits_cents": 0,
            "affiliate_fees_cents": affiliate_fees,
        }

    def paypal_sales_data_for_duration(self, start_date=None, end_date=None):
        return self.sales_data_for_duration("paypal", start_date, end_date)

    def stripe_connect_sales_data_for_duration(self, start_date=None, end_date=None):
        return self.sales_data_for_duration("stripe_connect", start_date, end_date)

    paypal_payout_net_cents = staticmethod(payout_net_cents)
    stripe_connect_payout_net_cents = staticmethod(payout_net_cents)

    def revenue_by_product_for_duration(self, processor, start_date=None, end_date=None):
        """Net revenue per product id after chargebacks and refunds."""
        revenue = defaultdict(int)
        net = F("price_cents") - F("fee_cents") - F("affiliate_credit_cents")

        sales = self.sales_in_duration(processor, start_date, end_date)
        for row in sales.values("product_id").annotate(total=Sum(net)):
            revenue[row["product_id"]] += row["total"]

        chargebacked = self.chargebacked_in_duration(processor, start_date, end_date)
        for row in chargebacked.values("product_id").annotate(total=Sum(net)):
            revenue[row["product_id"]] -= row["total"]

        for refund in self.refunds_in_duration(processor, start_date, end_date):
            affiliate_cents = math.trunc(self._prorated_affiliate_cents(refund))
            revenue[refund.purchase.product_id] -= refund.amount_cents - refund.fee_cents - affiliate_cents

        return dict(revenue)

    def paypal_revenue_by_product_for_duration(self, start_date=None, end_date=None):
        return self.revenue_by_product_for_duration("paypal", start_date, end_date)

    def stripe_connect_revenue_by_product_for_duration(self, start_date=None, end_date=None):
        return self.revenue_by_product_for_duration("stripe_connect", start_date, end_date)
