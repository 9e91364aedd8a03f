"""
Payout CSV Export - Creator Platform

One CSV per payout listing every money movement behind it: sales,
chargebacks, refunds, affiliate credits and manual credits of the drained
balances, plus the PayPal and Stripe Connect activity of the payout period
(paid out directly by the processor, so it is netted out again).

The ``net`` column adds up to the payout amount. If it does not for a USD
payout, a "Technical Adjustment" row closes the gap.

Author: CP Development Team
Version: 1.0.0
"""

import datetime
import io
import logging

import pandas as pd
from django.conf import settings
from django.db.models import Sum

from core.money import cents_to_dollars
from payouts.models import Credit
from reports.seller_stats import SellerStats, payout_net_cents
from sales.models import AffiliateCredit, Purchase

logger = logging.getLogger(__name__)

COLUMNS = [
    "Type",
    "Date",
    "Purchase ID",
    "Item Name",
    "Buyer Name",
    "Buyer Email",
    "Taxes",
    "Shipping",
    "Sale Price",
    "Fees",
    "Net Total",
]

PAYPAL_PAYOUTS_HEADING = "PayPal Payouts"
STRIPE_CONNECT_PAYOUTS_HEADING = "Stripe Connect Payouts"


def payout_period(payment):
    """First and last day covered by a payout."""
    previous = payment.previous_completed_payout()
    if previous and previous.payout_period_end_date:
        start = previous.payout_period_end_date + datetime.timedelta(days=1)
    else:
        start = datetime.date.fromisoformat(settings.OLDEST_DISPLAYABLE_PAYOUT_PERIOD_END_DATE)
    end = payment.payout_period_end_date or datetime.date.today()
    return start, end


def _balance_sum(queryset, field, balance, amount_field) -> int:
    return queryset.filter(**{field: balance}).aggregate(total=Sum(amount_field))["total"] or 0


class PayoutCsvExport:
    def __init__(self, payment):
        self.payment = payment
        self.stats = SellerStats(payment.user)
        self.running_total = 0

    # ---------- output ----------

    def rows(self):
        self.running_total = 0
        payment = self.payment
        data = []

        for balance in payment.balances.order_by("date", "id"):
            data.extend(self._balance_rows(balance))

        start, end = payout_period(payment)
        data.extend(self._processor_rows("paypal", start, end))
        data.extend(self._processor_rows("stripe_connect", start, end))

        if payment.platform_fee_cents is not None:
            data.append(
                self._summary_row(
                    "Payout Fee",
                    end,
                    fees=cents_to_dollars(payment.platform_fee_cents),
                    net=-cents_to_dollars(payment.platform_fee_cents),
                )
            )
            self.running_total -= payment.platform_fee_cents

        data.sort(key=lambda row: datetime.date.fromisoformat(row[1]))

        if payment.currency == "usd" and payment.amount_cents != self.running_total:
            adjustment_cents = payment.amount_cents - self.running_total
            logger.warning(
                "Payout %s: CSV total differs from payout amount by %s cents",
                payment.external_id,
                adjustment_cents,
            )
            data.append(self._summary_row("Technical Adjustment", end, net=adjustment_cents / 100.0))
        return data

    def to_dataframe(self):
        return pd.DataFrame(self.rows(), columns=COLUMNS)

    def to_csv(self) -> io.BytesIO:
        df = self.to_dataframe()
        buffer = io.BytesIO()
        df.to_csv(buffer, index=False, encoding="utf-8")
        buffer.seek(0)
        logger.info("Exported %d rows for payout %s", len(df), self.payment.external_id)
        return buffer

    # ---------- balances ----------

    def _balance_rows(self, balance):
        rows = []
        for purchase in balance.successful_sales.select_related("product").order_by("id"):
            rows.append(self._sale_row(purchase))

        for purchase in balance.chargedback_sales.select_related("product").order_by("id"):
            rows.append(self._chargeback_row(purchase))

        for purchase in balance.refunded_sales.select_related("product").order_by("id"):
            refunds = list(purchase.refunds.all())
            transactions = balance.balance_transactions.filter(refund__in=refunds).select_related("refund")
            if not transactions.exists():
                # Old refunds may have no balance transaction; only a single full refund can be shown then.
                if len(refunds) == 1 and refunds[0].total_transaction_cents == purchase.total_transaction_cents:
                    rows.append(self._full_refund_row(refunds[0], purchase))
                continue
            for transaction in transactions:
                if transaction.refund.amount_cents == purchase.price_cents:
                    rows.append(self._full_refund_row(transaction.refund, purchase))
                else:
                    rows.append(self._partial_refund_row(transaction, purchase))

        affiliate_cents = self._affiliate_cents_for_balance(balance)
        if affiliate_cents != 0:
            self.running_total += affiliate_cents
            rows.append(
                self._summary_row(
                    "Affiliate Credit",
                    balance.date,
                    price=affiliate_cents / 100.0,
                    net=affiliate_cents / 100.0,
                )
            )

        for credit in Credit.objects.filter(balance=balance).select_related(
            "fee_retention_refund__purchase", "chargebacked_purchase"
        ):
            if credit.fee_retention_refund_id and credit.amount_cents <= 0:
                continue
            if credit.fee_retention_refund_id:
                purchase_id = credit.fee_retention_refund.purchase.external_id
            else:
                purchase_id = credit.chargebacked_purchase.external_id if credit.chargebacked_purchase_id else ""
            self.running_total += credit.amount_cents
            row = self._summary_row(
                "Credit", balance.date, price=cents_to_dollars(credit.amount_cents), net=cents_to_dollars(credit.amount_cents)
            )
            row[2] = purchase_id
            rows.append(row)
        return rows

    @staticmethod
    def _affiliate_cents_for_balance(balance) -> int:
        """Affiliate credits earned minus affiliate fees paid, both net of refunds and chargebacks."""
        credits = AffiliateCredit.objects.all()
        sales = Purchase.objects.all()
        earned = (
            _balance_sum(credits, "affiliate_credit_success_balance", balance, "amount_cents")
            - _balance_sum(credits, "affiliate_credit_refund_balance", balance, "amount_cents")
            - _balance_sum(credits, "affiliate_credit_chargeback_balance", balance, "amount_cents")
        )
        paid = (
            _balance_sum(sales, "purchase_success_balance", balance, "affiliate_credit_cents")
            - _balance_sum(sales, "purchase_refund_balance", balance, "affiliate_credit_cents")
            - _balance_sum(sales, "purchase_chargeback_balance", balance, "affiliate_credit_cents")
        )
        return earned - paid

    # ---------- processor paid sales ----------

    def _processor_rows(self, processor, start, end):
        stats = self.stats
        rows = []
        for purchase in stats.sales_in_duration(processor, start, end).select_related("product").order_by("id"):
            rows.append(self._sale_row(purchase))
        for purchase in stats.chargebacked_in_duration(processor, start, end).select_related("product").order_by("id"):
            rows.append(self._chargeback_row(purchase))
        for refund in stats.refunds_in_duration(processor, start, end).select_related("purchase__product").order_by("id"):
            rows.append(self._processor_refund_row(processor, refund))

        fee_label = "PayPal Connect Affiliate Fees" if processor == "paypal" else "Stripe Connect Affiliate Fees"
        for day in self._activity_days(processor, start, end):
            amount = stats.affiliate_fee_cents_for_duration(processor, day, day)
            if amount != 0:
                self.running_total -= amount
                rows.append(self._summary_row(fee_label, day, price=-(amount / 100.0), net=-(amount / 100.0)))

        payout_amount = payout_net_cents(stats.sales_data_for_duration(processor, start, end))
        if payout_amount != 0:
            heading = PAYPAL_PAYOUTS_HEADING if processor == "paypal" else STRIPE_CONNECT_PAYOUTS_HEADING
            self.running_total -= payout_amount
            rows.append(self._summary_row(heading, end, price=-(payout_amount / 100.0), net=-(payout_amount / 100.0)))
        return rows

    def _activity_days(self, processor, start, end):
        """Days with sales, refunds or chargebacks; affiliate fees are zero on all others."""
        stats = self.stats
        days = set()
        for queryset, field in (
            (stats.sales_in_duration(processor, start, end), "succeeded_at"),
            (stats.refunds_in_duration(processor, start, end), "created_at"),
            (stats.chargebacked_in_duration(processor, start, end), "chargeback_date"),
        ):
            days.update(moment.date() for moment in queryset.datetimes(field, "day"))
        return sorted(days)

    # ---------- row builders ----------

    @staticmethod
    def _summary_row(kind, date, price="", fees="", net=""):
        return [kind, str(date), "", "", "", "", "", "", price, fees, net]

    @staticmethod
    def _purchase_columns(purchase):
        return [purchase.external_id, purchase.product.name, purchase.full_name, purchase.purchaser_email_or_email]

    def _sale_row(self, purchase):
        self.running_total += purchase.payment_cents
        return [
            "Sale",
            str((purchase.succeeded_at or purchase.created_at).date()),
            *self._purchase_columns(purchase),
            purchase.tax_dollars,
            purchase.shipping_dollars,
            purchase.price_dollars,
            purchase.fee_dollars,
            purchase.net_total,
        ]

    def _chargeback_row(self, purchase):
        self.running_total -= purchase.payment_cents
        return [
            "Chargeback",
            str(purchase.chargeback_date.date()),
            *self._purchase_columns(purchase),
            -purchase.tax_dollars,
            -purchase.shipping_dollars,
            -purchase.price_dollars,
            -purchase.fee_dollars,
            -purchase.net_total,
        ]

    def _full_refund_row(self, refund, purchase):
        retained_cents = 0 if purchase.is_refund_chargeback_fee_waived else (refund.retained_fee_cents or 0)
        self.running_total -= purchase.payment_cents + retained_cents
        return [
            "Full Refund",
            str(refund.created_at.date()),
            *self._purchase_columns(purchase),
            -purchase.tax_dollars,
            -purchase.shipping_dollars,
            -purchase.price_dollars,
            round(-purchase.fee_dollars + cents_to_dollars(retained_cents), 2),
            round(-purchase.net_total - cents_to_dollars(retained_cents), 2),
        ]

    def _partial_refund_row(self, transaction, purchase):
        refund = transaction.refund
        fee_amount = -refund.fee_cents / 100.0
        net_amount = transaction.issued_amount_net_cents / 100.0
        self.running_total += transaction.issued_amount_net_cents

        if not purchase.is_refund_chargeback_fee_waived:
            retained_cents = refund.retained_fee_cents or 0
            fee_amount += retained_cents / 100.0
            net_amount -= retained_cents / 100.0
            self.running_total -= retained_cents

        return [
            "Partial Refund",
            str(refund.created_at.date()),
            *self._purchase_columns(purchase),
            -cents_to_dollars(refund.creator_tax_cents),
            -0.0,
            round(-refund.amount_cents / 100.0, 2),
            round(fee_amount, 2),
            round(net_amount, 2),
        ]

    def _processor_refund_row(self, processor, refund):
        self.running_total -= refund.amount_cents - refund.fee_cents
        kind = "PayPal Refund" if processor == "paypal" else "Stripe Connect Refund"
        return [
            kind,
            str(refund.created_at.date()),
            *self._purchase_columns(refund.purchase),
            -cents_to_dollars(refund.creator_tax_cents),
            -0.0,
            -cents_to_dollars(refund.amount_cents),
            cents_to_dollars(refund.fee_cents),
            round(-cents_to_dollars(refund.amount_cents) + cents_to_dollars(refund.fee_cents), 2),
        ]
